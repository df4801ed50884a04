"""Database models and helpers for events, invitations, and submissions."""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from datetime import datetime, timezone
from enum import Enum
from typing import Iterator

from sqlalchemy import Column
from sqlalchemy import Enum as SAEnum
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlmodel import Field, Session, SQLModel, create_engine

from .errors import StoreUnavailableError

DEFAULT_SQLITE_PATH = "sqlite:///./carnival.db"

logger = logging.getLogger(__name__)


def _build_engine_url() -> str:
    """Return the configured database URL or fall back to SQLite."""
    return os.environ.get("DATABASE_URL", DEFAULT_SQLITE_PATH)


def build_engine(url: str | None = None) -> Engine:
    url = url or _build_engine_url()
    engine_kwargs = {}
    if url.startswith("sqlite"):
        # SQLite needs check_same_thread disabled for FastAPI concurrency,
        # but passing this flag to other drivers (e.g., psycopg2) raises errors.
        engine_kwargs["connect_args"] = {"check_same_thread": False}
    return create_engine(url, **engine_kwargs)


engine = build_engine()


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    DECLINED = "declined"


class SubmissionKind(str, Enum):
    TRACK = "track"
    COSTUME = "costume"
    PHOTO = "photo"


class Event(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    title: str = Field(nullable=False, max_length=200)
    description: str | None = Field(default=None)
    event_date: datetime = Field(nullable=False)
    location: str | None = Field(default=None)
    owner_id: str = Field(nullable=False, index=True, max_length=128)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)


class Invitation(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", nullable=False, index=True)
    invite_code: str = Field(nullable=False, unique=True, index=True, max_length=64)
    guest_name: str = Field(nullable=False, max_length=120)
    guest_email: str = Field(nullable=False, max_length=255)
    status: InvitationStatus = Field(
        default=InvitationStatus.PENDING,
        sa_column=Column(
            SAEnum(
                InvitationStatus,
                name="invitation_status",
                native_enum=False,
                create_constraint=True,
                length=16,
                values_callable=lambda members: [member.value for member in members],
            ),
            nullable=False,
        ),
    )
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
    responded_at: datetime | None = Field(default=None)


class Submission(SQLModel, table=True):
    id: int | None = Field(default=None, primary_key=True)
    event_id: int = Field(foreign_key="event.id", nullable=False, index=True)
    kind: str = Field(nullable=False, index=True, max_length=16)
    author_id: str = Field(nullable=False, max_length=128)
    url: str = Field(nullable=False)
    title: str | None = Field(default=None, max_length=200)
    vote_count: int = Field(default=0, nullable=False, ge=0)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)


def init_db(bind: Engine | None = None) -> None:
    """Create tables if they don't already exist."""
    SQLModel.metadata.create_all(bind or engine)


def get_session() -> Iterator[Session]:
    """Yield a SQLModel session for dependency injection."""
    with Session(engine) as session:
        yield session


@contextmanager
def store_guard(session: Session, operation: str) -> Iterator[None]:
    """Translate backend connectivity failures into StoreUnavailableError."""
    try:
        yield
    except OperationalError as exc:
        session.rollback()
        logger.warning("Store unavailable during %s: %s", operation, exc)
        raise StoreUnavailableError() from exc
