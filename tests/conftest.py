"""
Pytest configuration and fixtures.
"""

import datetime
import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Add project root
sys.path.insert(0, str(Path(__file__).parent.parent))

from timelog.domain.models import UserPreferences
from timelog.infra.db import DatabaseEngine
from timelog.infra.repository import TimeEntryRepository
from timelog.services.clock import FixedClock
from timelog.services.timeline_service import TimelineService
from timelog.services.week_service import WeekService

UTC = datetime.timezone.utc

# Monday, 19 October 2026, 12:00 UTC
NOW = datetime.datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


@pytest_asyncio.fixture
async def db():
    """Fresh in-memory SQLite database for each test"""
    engine = DatabaseEngine("sqlite+aiosqlite:///:memory:")
    await engine.create_tables()

    yield engine

    await engine.drop_tables()
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db):
    """Create a new session for a test"""
    async with db.get_session() as session:
        yield session


@pytest.fixture
def repo(db_session):
    return TimeEntryRepository(session=db_session)


@pytest.fixture
def clock():
    return FixedClock(NOW)


@pytest.fixture
def timeline(db, clock):
    return TimelineService(db, clock)


@pytest.fixture
def weeks(db, clock):
    return WeekService(db, clock)


@pytest.fixture
def utc_prefs():
    return UserPreferences(timezone="UTC", locale="en_US")
