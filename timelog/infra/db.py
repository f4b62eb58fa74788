"""
SQLAlchemy database models and configuration.

Architecture Decision: Why SQLAlchemy?
- Provides ORM for cleaner code and prevents SQL injection
- Supports async operations for non-blocking database access
- Easy to migrate to PostgreSQL or other databases if needed

The single-active-entry rule is also a schema constraint: a partial unique
index on owner_id over rows whose end_time is NULL.
"""

import datetime
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from sqlalchemy import JSON, DateTime, Index, Integer, String, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

UTC = datetime.timezone.utc

ACTIVE_ENTRY_INDEX = "uq_time_entries_active_owner"

# How each backend names the active-entry index in its violation message;
# SQLite reports the indexed column instead of the index name.
_ACTIVE_ENTRY_VIOLATIONS = (
    ACTIVE_ENTRY_INDEX,
    "UNIQUE constraint failed: time_entries.owner_id",
)


def is_active_entry_conflict(error: IntegrityError) -> bool:
    """True when an IntegrityError comes from the single-active-entry index"""
    message = str(error.orig)
    return any(marker in message for marker in _ACTIVE_ENTRY_VIOLATIONS)


class UTCDateTime(TypeDecorator):
    """
    Stores instants as naive UTC and hands them back timezone-aware.

    SQLite has no timezone support, so conversion happens at the boundary.
    """
    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(UTC)
        return value.replace(tzinfo=None)

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value.astimezone(UTC)


# Base class for all models
class Base(DeclarativeBase):
    pass


class TimeEntryModel(Base):
    """SQLAlchemy model for TimeEntry entity"""
    __tablename__ = "time_entries"
    __table_args__ = (
        Index(
            ACTIVE_ENTRY_INDEX,
            "owner_id",
            unique=True,
            sqlite_where=text("end_time IS NULL"),
            postgresql_where=text("end_time IS NULL"),
        ),
        Index("ix_time_entries_owner_start", "owner_id", "start_time"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(String(1000), nullable=False)
    start_time: Mapped[datetime.datetime] = mapped_column(UTCDateTime, nullable=False)
    end_time: Mapped[Optional[datetime.datetime]] = mapped_column(UTCDateTime, nullable=True)
    tags: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        UTCDateTime, default=lambda: datetime.datetime.now(UTC), nullable=False
    )


class DatabaseEngine:
    """
    Manages database connection and session lifecycle.

    A process normally uses one shared instance (see get_engine); tests build
    their own against an in-memory database.
    """
    _instance: Optional['DatabaseEngine'] = None

    def __init__(self, db_url: str):
        self.engine = create_async_engine(db_url, echo=False)
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False
        )

    @classmethod
    def get_instance(cls, db_url: Optional[str] = None) -> 'DatabaseEngine':
        """Get or create the database engine instance"""
        if cls._instance is None:
            if db_url is None:
                from timelog.infra.config import get_settings
                db_url = get_settings().get_db_url()
            cls._instance = cls(db_url)
        return cls._instance

    async def create_tables(self):
        """Create all tables in the database"""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_tables(self):
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self):
        await self.engine.dispose()

    def get_session(self) -> AsyncSession:
        """Get a new database session"""
        return self.session_factory()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[AsyncSession]:
        """
        Session wrapped in one transaction.

        Commits when the block exits normally, rolls back on any exception, so
        a multi-step operation is never half-applied.
        """
        async with self.session_factory() as session:
            async with session.begin():
                yield session


# Convenience functions
def get_engine(db_url: Optional[str] = None) -> DatabaseEngine:
    """Get the database engine instance"""
    return DatabaseEngine.get_instance(db_url)


async def init_db(db_url: Optional[str] = None) -> DatabaseEngine:
    """Initialize the database (create tables)"""
    engine = get_engine(db_url)
    await engine.create_tables()
    return engine
