"""Collaborative submissions shared by tracks, costumes, and photos."""

from __future__ import annotations

import logging
from typing import Iterable
from urllib.parse import urlparse

from sqlmodel import Session, SQLModel, select

from .database import Submission, SubmissionKind, store_guard
from .errors import InvalidPayloadError
from .events import EventDirectory
from .media import normalize_track_reference

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 200
MAX_AUTHOR_LENGTH = 128


class SubmissionPayload(SQLModel):
    url: str
    title: str | None = None


def is_addressable(url: str) -> bool:
    """Return True for absolute http(s) URLs and paths rooted on this site."""
    if url.startswith("/") and not url.startswith("//"):
        return True
    parsed = urlparse(url)
    return parsed.scheme in {"http", "https"} and bool(parsed.netloc)


def clean_author(author_id: str | None) -> str:
    author = (author_id or "").strip()
    if not author:
        raise InvalidPayloadError("A participant is required to submit.")
    if len(author) > MAX_AUTHOR_LENGTH:
        raise InvalidPayloadError("Participant reference is too long.")
    return author


def clean_title(kind: SubmissionKind, title: str | None) -> str | None:
    """Trim a title or caption; costumes and photos must have one."""
    cleaned = (title or "").strip() or None
    if cleaned and len(cleaned) > MAX_TITLE_LENGTH:
        raise InvalidPayloadError(f"Titles must be {MAX_TITLE_LENGTH} characters or fewer.")
    if cleaned is None and kind is not SubmissionKind.TRACK:
        label = "caption" if kind is SubmissionKind.PHOTO else "title"
        raise InvalidPayloadError(f"A {label} is required.")
    return cleaned


def clean_payload(kind: SubmissionKind, payload: SubmissionPayload) -> SubmissionPayload:
    title = clean_title(kind, payload.title)
    if kind is SubmissionKind.TRACK:
        return SubmissionPayload(url=normalize_track_reference(payload.url), title=title)

    url = (payload.url or "").strip()
    if not url or not is_addressable(url):
        raise InvalidPayloadError("An image link is required.")
    return SubmissionPayload(url=url, title=title)


def rank(submissions: Iterable[Submission]) -> list[Submission]:
    """Order by votes, most first; ties keep their original order."""
    return sorted(submissions, key=lambda item: item.vote_count, reverse=True)


class SubmissionStore:
    def __init__(self, session: Session, kind: SubmissionKind) -> None:
        self.session = session
        self.kind = SubmissionKind(kind)
        self.events = EventDirectory(session)

    def submit(self, event_id: int, author_id: str, payload: SubmissionPayload) -> Submission:
        author = clean_author(author_id)
        cleaned = clean_payload(self.kind, payload)
        self.events.get_event(event_id)

        submission = Submission(
            event_id=event_id,
            kind=self.kind.value,
            author_id=author,
            url=cleaned.url,
            title=cleaned.title,
            vote_count=0,
        )
        with store_guard(self.session, f"submit_{self.kind.value}"):
            self.session.add(submission)
            self.session.commit()
            self.session.refresh(submission)
        logger.info("Stored %s submission %s for event %s", self.kind.value, submission.id, event_id)
        return submission

    def list_by_event(self, event_id: int) -> list[Submission]:
        """Return every submission of this kind for the event in insertion order."""
        with store_guard(self.session, f"list_{self.kind.value}"):
            return list(
                self.session.exec(
                    select(Submission)
                    .where(Submission.event_id == event_id)
                    .where(Submission.kind == self.kind.value)
                    .order_by(Submission.id.asc())
                ).all()
            )
