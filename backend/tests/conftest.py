"""
Shared fixtures: in-memory SQLite, a scripted timeline and message builders.
"""

import os
from datetime import datetime, timezone
from typing import Dict, Generator, List, Optional

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# Keep module-level engines off the filesystem
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TWITTER_BEARER_TOKEN"] = "test-token"

from hrfe.db import Base
from hrfe.models import Incident  # noqa: F401
from hrfe.services.incident_store import IncidentStore
from hrfe.services.timeline import TimelineMessage


engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session() -> Generator[Session, None, None]:
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db_session) -> IncidentStore:
    return IncidentStore(db_session)


def make_message(
    tweet_id: int,
    text: Optional[str] = None,
    created_at: Optional[datetime] = None,
) -> TimelineMessage:
    if text is None:
        text = f"INC-{tweet_id}\n{tweet_id} Main St   Downtown\nStructure Fire\nE1 STN1"
    if created_at is None:
        created_at = datetime.now(timezone.utc).replace(microsecond=0)
    return TimelineMessage(id=tweet_id, text=text, created_at=created_at)


class ScriptedTimeline:
    """
    Serves pre-built pages in order, one list per direction. Once a script
    runs out every further call gets an empty page.
    """

    def __init__(self, newer=None, older=None, fail_on=None):
        self.newer: List[List[TimelineMessage]] = list(newer or [])
        self.older: List[List[TimelineMessage]] = list(older or [])
        self.fail_on: Dict[str, Exception] = fail_on or {}
        self.since_calls: List[Optional[int]] = []
        self.until_calls: List[Optional[int]] = []

    async def fetch_since(self, after_id):
        self.since_calls.append(after_id)
        if "since" in self.fail_on:
            raise self.fail_on["since"]
        return self.newer.pop(0) if self.newer else []

    async def fetch_until(self, before_id):
        self.until_calls.append(before_id)
        if "until" in self.fail_on:
            raise self.fail_on["until"]
        return self.older.pop(0) if self.older else []


@pytest.fixture
def scripted_timeline():
    return ScriptedTimeline
