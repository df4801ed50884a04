"""Event directory: owns event records and the delete cascade."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import delete
from sqlmodel import Session, SQLModel, select

from .database import Event, Invitation, Submission, store_guard
from .errors import EventNotFoundError, InvalidPayloadError

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
LINE_BREAKS = frozenset("\r\n")


def has_line_break(value: str) -> bool:
    return not LINE_BREAKS.isdisjoint(value)


class EventCreate(SQLModel):
    title: str
    description: str | None = None
    event_date: datetime
    location: str | None = None
    owner_id: str


class EventDirectory:
    def __init__(self, session: Session) -> None:
        self.session = session

    def get_event(self, event_id: int) -> Event:
        with store_guard(self.session, "get_event"):
            event = self.session.get(Event, event_id)
        if not event:
            raise EventNotFoundError(event_id)
        return event

    def list_events(self, owner_id: str) -> list[Event]:
        """Return the owner's events, soonest first."""
        with store_guard(self.session, "list_events"):
            return list(
                self.session.exec(
                    select(Event)
                    .where(Event.owner_id == owner_id)
                    .order_by(Event.event_date.asc(), Event.id.asc())
                ).all()
            )

    def create_event(self, fields: EventCreate) -> Event:
        title = fields.title.strip()
        owner_id = fields.owner_id.strip()
        if not title:
            raise InvalidPayloadError("Event title is required.")
        if len(title) > MAX_TITLE_LENGTH:
            raise InvalidPayloadError(f"Event titles must be {MAX_TITLE_LENGTH} characters or fewer.")
        if has_line_break(title):
            raise InvalidPayloadError("Event titles must fit on one line.")
        if not owner_id:
            raise InvalidPayloadError("Event owner is required.")

        event = Event(
            title=title,
            description=(fields.description or "").strip() or None,
            event_date=fields.event_date,
            location=(fields.location or "").strip() or None,
            owner_id=owner_id,
        )
        with store_guard(self.session, "create_event"):
            self.session.add(event)
            self.session.commit()
            self.session.refresh(event)
        logger.info("Created event %s for owner %s", event.id, owner_id)
        return event

    def delete_event(self, event_id: int) -> None:
        """Delete an event together with its invitations and submissions."""
        event = self.get_event(event_id)
        with store_guard(self.session, "delete_event"):
            self.session.exec(delete(Invitation).where(Invitation.event_id == event_id))
            self.session.exec(delete(Submission).where(Submission.event_id == event_id))
            self.session.delete(event)
            self.session.commit()
        logger.info("Deleted event %s and its dependent records", event_id)
