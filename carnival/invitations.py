"""Invitation lifecycle: issuing invite codes, resolving them, and recording responses.

An invitation starts out ``pending`` and moves to ``accepted`` or ``declined``
exactly once. Later responses are answered with the stored status instead of
being applied again, so a guest who reloads the link or double-submits the
form sees "already responded" rather than an error.
"""

from __future__ import annotations

import logging
from typing import Callable

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, SQLModel, select

from .database import Event, Invitation, InvitationStatus, store_guard, utcnow
from .errors import (
    DuplicateIdentifierError,
    EventNotFoundError,
    InvalidPayloadError,
    InvitationNotFoundError,
)
from .events import EventDirectory, has_line_break
from .identifiers import new_invite_code

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 5
MAX_NAME_LENGTH = 120
MAX_EMAIL_LENGTH = 255

_TRANSITIONS: dict[InvitationStatus, frozenset[InvitationStatus]] = {
    InvitationStatus.PENDING: frozenset({InvitationStatus.ACCEPTED, InvitationStatus.DECLINED}),
    InvitationStatus.ACCEPTED: frozenset(),
    InvitationStatus.DECLINED: frozenset(),
}


def can_transition(current: InvitationStatus, target: InvitationStatus) -> bool:
    return target in _TRANSITIONS[current]


def parse_decision(value: str | InvitationStatus) -> InvitationStatus:
    """Return the terminal status a guest asked for."""
    try:
        decision = InvitationStatus(value)
    except ValueError:
        raise InvalidPayloadError("Respond with 'accepted' or 'declined'.") from None
    if decision is InvitationStatus.PENDING:
        raise InvalidPayloadError("Respond with 'accepted' or 'declined'.")
    return decision


def invite_link(origin: str, invite_code: str) -> str:
    return f"{origin.rstrip('/')}/respond/{invite_code}"


class InvitationCreate(SQLModel):
    guest_name: str
    guest_email: str


class InvitationManager:
    def __init__(
        self,
        session: Session,
        *,
        code_factory: Callable[[], str] = new_invite_code,
        max_code_attempts: int = MAX_CODE_ATTEMPTS,
    ) -> None:
        self.session = session
        self.code_factory = code_factory
        self.max_code_attempts = max_code_attempts
        self.events = EventDirectory(session)

    def create_invitation(self, event_id: int, guest: InvitationCreate) -> Invitation:
        guest_name = guest.guest_name.strip()
        guest_email = guest.guest_email.strip()
        if not guest_name:
            raise InvalidPayloadError("Guest name is required.")
        if len(guest_name) > MAX_NAME_LENGTH:
            raise InvalidPayloadError(f"Names must be {MAX_NAME_LENGTH} characters or fewer.")
        if has_line_break(guest_name):
            raise InvalidPayloadError("Names must fit on one line.")
        if not guest_email or "@" not in guest_email:
            raise InvalidPayloadError("A valid guest email is required.")
        if len(guest_email) > MAX_EMAIL_LENGTH:
            raise InvalidPayloadError(f"Emails must be {MAX_EMAIL_LENGTH} characters or fewer.")
        if has_line_break(guest_email):
            raise InvalidPayloadError("A valid guest email is required.")

        self.events.get_event(event_id)

        for attempt in range(1, self.max_code_attempts + 1):
            invitation = Invitation(
                event_id=event_id,
                invite_code=self.code_factory(),
                guest_name=guest_name,
                guest_email=guest_email,
            )
            try:
                self._insert(invitation)
            except DuplicateIdentifierError:
                logger.warning("Invite code collision on attempt %d; regenerating", attempt)
                continue
            logger.info("Created invitation %s for event %s", invitation.id, event_id)
            return invitation
        raise DuplicateIdentifierError(invitation.invite_code)

    def _insert(self, invitation: Invitation) -> None:
        code = invitation.invite_code
        with store_guard(self.session, "create_invitation"):
            try:
                self.session.add(invitation)
                self.session.commit()
            except IntegrityError:
                self.session.rollback()
                if self._find(code) is not None:
                    raise DuplicateIdentifierError(code) from None
                raise
            self.session.refresh(invitation)

    def _find(self, invite_code: str) -> Invitation | None:
        return self.session.exec(select(Invitation).where(Invitation.invite_code == invite_code)).first()

    def resolve(self, invite_code: str) -> tuple[Event, Invitation]:
        """Return the event and invitation addressed by an invite code."""
        with store_guard(self.session, "resolve"):
            invitation = self._find(invite_code)
            if invitation is None:
                raise InvitationNotFoundError(invite_code)
            event = self.session.get(Event, invitation.event_id)
        if event is None:
            raise EventNotFoundError(invitation.event_id)
        return event, invitation

    def respond(self, invite_code: str, decision: str | InvitationStatus) -> tuple[Invitation, bool]:
        """Record a guest's response if the invitation is still pending.

        The status check and the write happen in one conditional UPDATE, so
        of several racing calls only the first to reach the store changes
        anything. Every call returns the invitation as stored afterwards, and
        whether this call was the one that changed it.
        """
        target = parse_decision(decision)
        allowed_from = [status for status in InvitationStatus if can_transition(status, target)]
        with store_guard(self.session, "respond"):
            result = self.session.exec(
                update(Invitation)
                .where(Invitation.invite_code == invite_code)
                .where(Invitation.status.in_(allowed_from))
                .values(status=target, responded_at=utcnow())
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
            invitation = self._find(invite_code)
        if invitation is None:
            raise InvitationNotFoundError(invite_code)
        applied = result.rowcount > 0
        if applied:
            logger.info("Invitation %s %s", invitation.id, target.value)
        else:
            logger.info(
                "Invitation %s already %s; ignoring %s", invitation.id, invitation.status.value, target.value
            )
        return invitation, applied

    def list_for_event(self, event_id: int) -> list[Invitation]:
        """Return an event's invitations, newest first."""
        self.events.get_event(event_id)
        with store_guard(self.session, "list_invitations"):
            return list(
                self.session.exec(
                    select(Invitation)
                    .where(Invitation.event_id == event_id)
                    .order_by(Invitation.created_at.desc(), Invitation.id.desc())
                ).all()
            )
