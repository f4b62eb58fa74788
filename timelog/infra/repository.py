"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. Makes it easy to:
- Switch database implementations
- Mock data for testing
- Let the service layer decide transaction boundaries

Repository methods never commit. With an injected session they run inside the
caller's transaction; without one each call gets its own short transaction.
"""

import datetime
from abc import ABCMeta, abstractmethod
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from sqlalchemy import and_, delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from timelog.domain.models import TagStat, TimeEntry, to_utc
from timelog.infra.models import TimeEntryModel
from timelog.infra.db import get_engine


class EntryStore(metaclass=ABCMeta):
    """
    Narrow read/write contract the timeline engine depends on.
    """

    @abstractmethod
    async def insert(self, entry: TimeEntry) -> int:
        """Persist a new entry and return its id"""

    @abstractmethod
    async def find_active_by_owner(self, owner_id: int) -> Optional[TimeEntry]:
        """The owner's entry without end time, if any"""

    @abstractmethod
    async def find_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        ...

    @abstractmethod
    async def find_by_owner_in_range(self, owner_id: int,
                                     from_instant: datetime.datetime,
                                     to_instant: datetime.datetime) -> List[TimeEntry]:
        """Entries overlapping [from_instant, to_instant), running ones included"""

    @abstractmethod
    async def update(self, entry: TimeEntry) -> TimeEntry:
        ...

    @abstractmethod
    async def delete(self, entry_id: int) -> None:
        ...

    @abstractmethod
    async def find_by_owner_title_start(self, owner_id: int, title: str,
                                        start_time: datetime.datetime) -> Optional[TimeEntry]:
        """Duplicate lookup used by imports"""

    @abstractmethod
    async def search_titles(self, owner_id: int, query: str, limit: int = 10) -> List[TimeEntry]:
        ...

    @abstractmethod
    async def tag_stats(self, owner_id: int) -> List[TagStat]:
        ...


class TimeEntryRepository(EntryStore):
    """
    Handles all TimeEntry-related database operations.

    Converts between domain models (Pydantic) and ORM models (SQLAlchemy).
    """

    def __init__(self, session: Optional[AsyncSession] = None):
        self.session = session

    @asynccontextmanager
    async def _session_scope(self) -> AsyncIterator[AsyncSession]:
        """Injected session, or a fresh one-call transaction"""
        if self.session is not None:
            yield self.session
            return
        async with get_engine().transaction() as session:
            yield session

    async def insert(self, entry: TimeEntry) -> int:
        """Create a new time entry"""
        async with self._session_scope() as session:
            entry_model = TimeEntryModel(
                owner_id=entry.owner_id,
                title=entry.title,
                start_time=entry.start_time,
                end_time=entry.end_time,
                tags=list(entry.tags),
                created_at=entry.created_at
            )
            session.add(entry_model)
            await session.flush()
            return entry_model.id

    async def find_active_by_owner(self, owner_id: int) -> Optional[TimeEntry]:
        """Get the currently active (not ended) time entry of an owner"""
        async with self._session_scope() as session:
            result = await session.execute(
                select(TimeEntryModel)
                .where(
                    and_(
                        TimeEntryModel.owner_id == owner_id,
                        TimeEntryModel.end_time.is_(None)
                    )
                )
            )
            entry_model = result.scalar_one_or_none()
            return TimeEntry.model_validate(entry_model) if entry_model else None

    async def find_by_id(self, entry_id: int) -> Optional[TimeEntry]:
        """Get a specific entry by ID"""
        async with self._session_scope() as session:
            entry_model = await session.get(TimeEntryModel, entry_id)
            return TimeEntry.model_validate(entry_model) if entry_model else None

    async def find_by_owner_in_range(self, owner_id: int,
                                     from_instant: datetime.datetime,
                                     to_instant: datetime.datetime) -> List[TimeEntry]:
        """
        Get all entries of an owner that overlap the given range.

        Overlap logic: existing.start < range.end AND existing.end >= range.start.
        A NULL end_time (active entry) overlaps everything after its start.
        """
        async with self._session_scope() as session:
            query = select(TimeEntryModel).where(
                and_(
                    TimeEntryModel.owner_id == owner_id,
                    TimeEntryModel.start_time < to_instant,
                    or_(
                        TimeEntryModel.end_time.is_(None),
                        TimeEntryModel.end_time >= from_instant
                    )
                )
            ).order_by(TimeEntryModel.start_time.desc(), TimeEntryModel.id.desc())

            result = await session.execute(query)
            return [TimeEntry.model_validate(em) for em in result.scalars().all()]

    async def update(self, entry: TimeEntry) -> TimeEntry:
        """Update the mutable fields of an existing time entry"""
        async with self._session_scope() as session:
            entry_model = await session.get(TimeEntryModel, entry.id)
            if entry_model is None:
                raise LookupError(f"Time entry {entry.id} does not exist")

            entry_model.title = entry.title
            entry_model.start_time = entry.start_time
            entry_model.end_time = entry.end_time
            entry_model.tags = list(entry.tags)

            await session.flush()
            return TimeEntry.model_validate(entry_model)

    async def delete(self, entry_id: int) -> None:
        """Delete a time entry by ID"""
        async with self._session_scope() as session:
            await session.execute(
                delete(TimeEntryModel).where(TimeEntryModel.id == entry_id)
            )

    async def find_by_owner_title_start(self, owner_id: int, title: str,
                                        start_time: datetime.datetime) -> Optional[TimeEntry]:
        """Find an entry by owner, exact title and exact start instant"""
        async with self._session_scope() as session:
            result = await session.execute(
                select(TimeEntryModel)
                .where(
                    and_(
                        TimeEntryModel.owner_id == owner_id,
                        TimeEntryModel.title == title,
                        TimeEntryModel.start_time == to_utc(start_time)
                    )
                )
                .limit(1)
            )
            entry_model = result.scalar_one_or_none()
            return TimeEntry.model_validate(entry_model) if entry_model else None

    async def search_titles(self, owner_id: int, query: str, limit: int = 10) -> List[TimeEntry]:
        """
        Search entries whose title contains every token of the query (case-insensitive).

        Returns one entry per distinct title, the latest by start time,
        ordered latest first.
        """
        tokens = [t.lower() for t in query.split() if t]
        async with self._session_scope() as session:
            stmt = select(TimeEntryModel).where(TimeEntryModel.owner_id == owner_id)
            for token in tokens:
                stmt = stmt.where(func.lower(TimeEntryModel.title).contains(token, autoescape=True))
            stmt = stmt.order_by(TimeEntryModel.start_time.desc(), TimeEntryModel.id.desc())

            result = await session.execute(stmt)
            entries: List[TimeEntry] = []
            seen = set()
            for em in result.scalars():
                if em.title in seen:
                    continue
                seen.add(em.title)
                entries.append(TimeEntry.model_validate(em))
                if len(entries) >= limit:
                    break
            return entries

    async def tag_stats(self, owner_id: int) -> List[TagStat]:
        """Usage count per tag for an owner, sorted by tag"""
        async with self._session_scope() as session:
            result = await session.execute(
                select(TimeEntryModel.tags).where(TimeEntryModel.owner_id == owner_id)
            )
            counts: Counter = Counter()
            for tags in result.scalars():
                counts.update(tags or [])
            return [TagStat(tag=tag, count=count) for tag, count in sorted(counts.items())]
