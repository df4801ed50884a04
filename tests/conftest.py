from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlmodel import Session

from carnival.database import Event, build_engine, init_db


@pytest.fixture
def engine(tmp_path):
    # File-backed so that threads in the concurrency tests share one database.
    engine = build_engine(f"sqlite:///{tmp_path / 'carnival_test.sqlite3'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def event(session) -> Event:
    event = Event(
        title="Carnival Night",
        description="Masks, music, and a costume contest",
        event_date=datetime(2026, 2, 14, 19, 30, tzinfo=timezone.utc),
        location="Harbor Hall",
        owner_id="organizer-1",
    )
    session.add(event)
    session.commit()
    session.refresh(event)
    return event
