"""
Timeline Service - Core time entry lifecycle.

Architecture Decision: Per-owner state machine over the store
An owner is either Idle (no active entry) or Running (exactly one). The
service is the only writer that moves owners between the two states: each
operation takes the owner's lock, opens one transaction, reads, validates and
writes. Nothing is cached in memory between calls; the store is the state.
"""

import datetime
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable, List, Optional, Sequence

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from timelog.domain.errors import (
    ActiveEntryExists,
    EndBeforeStart,
    EntryNotFound,
    EntryValidationError,
    FutureEndTime,
    FutureStartTime,
    NoActiveEntry,
)
from timelog.domain.models import TagStat, TimeEntry, normalize_tags, to_utc
from timelog.infra.db import DatabaseEngine, get_engine, is_active_entry_conflict
from timelog.infra.repository import EntryStore, TimeEntryRepository
from timelog.services.clock import Clock, SystemClock
from timelog.services.locking import OwnerLocks

logger = logging.getLogger(__name__)

MAX_TITLE_LENGTH = 1000


def clean_title(title: Optional[str]) -> str:
    """Trim a title and reject it when nothing is left"""
    cleaned = (title or "").strip()
    if not cleaned:
        raise EntryValidationError("title", "Title cannot be blank")
    if len(cleaned) > MAX_TITLE_LENGTH:
        raise EntryValidationError("title", f"Title cannot exceed {MAX_TITLE_LENGTH} characters")
    return cleaned


class TimelineService:
    """
    The time tracking engine. Owns start/stop/continue/edit/delete and the
    single-active-entry invariant, but knows nothing about presentation.
    """

    def __init__(self, db: Optional[DatabaseEngine] = None,
                 clock: Optional[Clock] = None,
                 store_factory: Callable[[AsyncSession], EntryStore] = TimeEntryRepository,
                 locks: Optional[OwnerLocks] = None):
        self.db = db or get_engine()
        self.clock = clock or SystemClock()
        self.store_factory = store_factory
        self.locks = locks or OwnerLocks()

    @asynccontextmanager
    async def unit_of_work(self) -> AsyncIterator[EntryStore]:
        """Store bound to a single transaction"""
        async with self.db.transaction() as session:
            yield self.store_factory(session)

    async def start(self, owner_id: int, title: str, tags: Sequence[str] = ()) -> TimeEntry:
        """
        Start a new active entry.

        Raises:
            EntryValidationError: title is blank
            ActiveEntryExists: the owner is already running an entry
        """
        title = clean_title(title)
        async with self.locks.for_owner(owner_id):
            now = self.clock.now()
            try:
                async with self.unit_of_work() as store:
                    active = await store.find_active_by_owner(owner_id)
                    if active is not None:
                        logger.debug(f"Start rejected for owner {owner_id}: entry {active.id} is active")
                        raise ActiveEntryExists(owner_id, active.id)

                    entry = TimeEntry(owner_id=owner_id, title=title, start_time=now,
                                      tags=normalize_tags(tags))
                    entry.id = await store.insert(entry)
            except IntegrityError as e:
                active = await self._conflicting_entry(owner_id, e)
                if active is None:
                    raise
                raise ActiveEntryExists(owner_id, active.id) from e

        logger.info(f"Time entry started for owner {owner_id}, entry {entry.id}")
        return entry

    async def stop(self, owner_id: int) -> TimeEntry:
        """
        Stop the owner's active entry at now().

        Raises:
            NoActiveEntry: the owner is idle
        """
        async with self.locks.for_owner(owner_id):
            now = self.clock.now()
            async with self.unit_of_work() as store:
                active = await store.find_active_by_owner(owner_id)
                if active is None:
                    logger.debug(f"Stop rejected for owner {owner_id}: no active entry")
                    raise NoActiveEntry(owner_id)

                stopped = await store.update(active.model_copy(update={"end_time": now}))

        logger.info(f"Time entry stopped for owner {owner_id}, entry {stopped.id}")
        return stopped

    async def continue_from(self, owner_id: int, template_entry_id: int) -> TimeEntry:
        """
        Stop whatever is running and start a copy of a previous entry.

        Both transitions share one transaction and one sampled now(), so the
        stopped entry ends exactly where the new one starts and no reader ever
        sees either two active entries or a committed stop without the start.

        Raises:
            EntryNotFound: the template is missing or belongs to someone else
        """
        async with self.locks.for_owner(owner_id):
            now = self.clock.now()
            try:
                async with self.unit_of_work() as store:
                    template = await self._owned_entry(store, owner_id, template_entry_id)

                    active = await store.find_active_by_owner(owner_id)
                    if active is not None:
                        await store.update(active.model_copy(update={"end_time": now}))
                        logger.debug(f"Stopped entry {active.id} to continue entry {template.id}")

                    entry = TimeEntry(owner_id=owner_id, title=template.title, start_time=now,
                                      tags=list(template.tags))
                    entry.id = await store.insert(entry)
            except IntegrityError as e:
                active = await self._conflicting_entry(owner_id, e)
                if active is None:
                    raise
                raise ActiveEntryExists(owner_id, active.id) from e

        logger.info(f"Time entry {template_entry_id} continued for owner {owner_id} as entry {entry.id}")
        return entry

    async def edit(self, owner_id: int, entry_id: int,
                   new_title: Optional[str] = None,
                   new_start_time: Optional[datetime.datetime] = None,
                   new_end_time: Optional[datetime.datetime] = None,
                   new_tags: Optional[Sequence[str]] = None) -> TimeEntry:
        """
        Change title, start, end and/or tags of an entry.

        Only supplied (non-None) fields change. The whole edit is rejected if
        any resolved value is invalid; an edit that changes nothing is a no-op.

        Raises:
            EntryNotFound: missing or foreign entry
            EntryValidationError: blank title, or an end time for a running entry
            FutureStartTime: resolved start is after now()
            FutureEndTime: resolved end is after now()
            EndBeforeStart: resolved end is before resolved start
        """
        async with self.locks.for_owner(owner_id):
            now = self.clock.now()
            async with self.unit_of_work() as store:
                entry = await self._owned_entry(store, owner_id, entry_id)

                title = clean_title(new_title) if new_title is not None else entry.title
                start_time = to_utc(new_start_time) if new_start_time is not None else entry.start_time
                if start_time > now:
                    logger.debug(f"Edit of entry {entry_id} rejected: start {start_time} is after {now}")
                    raise FutureStartTime(start_time, now)

                if new_end_time is not None and entry.is_active:
                    raise EntryValidationError("end_time", "A running entry has no end time; stop it instead")
                end_time = to_utc(new_end_time) if new_end_time is not None else entry.end_time
                if end_time is not None and end_time > now:
                    logger.debug(f"Edit of entry {entry_id} rejected: end {end_time} is after {now}")
                    raise FutureEndTime(end_time, now)
                if end_time is not None and end_time < start_time:
                    logger.debug(f"Edit of entry {entry_id} rejected: end {end_time} before start {start_time}")
                    raise EndBeforeStart(start_time, end_time)

                tags = normalize_tags(new_tags) if new_tags is not None else entry.tags

                changes = {"title": title, "start_time": start_time, "end_time": end_time, "tags": tags}
                if all(getattr(entry, field) == value for field, value in changes.items()):
                    logger.debug(f"Edit of entry {entry_id} changes nothing")
                    return entry

                updated = await store.update(entry.model_copy(update=changes))

        logger.info(f"Time entry {entry_id} updated for owner {owner_id}")
        return updated

    async def edit_group(self, owner_id: int, entry_ids: Sequence[int],
                         new_title: Optional[str] = None,
                         new_tags: Optional[Sequence[str]] = None) -> List[TimeEntry]:
        """
        Give every entry of a group the same title and/or tags.

        All entries are checked before anything is written; one missing or
        foreign id rejects the whole edit.

        Raises:
            EntryValidationError: no entry ids, or a blank title
            EntryNotFound: any id is missing or foreign
        """
        ids = list(dict.fromkeys(entry_ids))
        if not ids:
            raise EntryValidationError("entry_ids", "At least one entry is required")
        title = clean_title(new_title) if new_title is not None else None
        tags = normalize_tags(new_tags) if new_tags is not None else None

        async with self.locks.for_owner(owner_id):
            async with self.unit_of_work() as store:
                entries = [await self._owned_entry(store, owner_id, entry_id) for entry_id in ids]

                updated = []
                for entry in entries:
                    changes = {}
                    if title is not None and title != entry.title:
                        changes["title"] = title
                    if tags is not None and tags != entry.tags:
                        changes["tags"] = tags
                    updated.append(await store.update(entry.model_copy(update=changes)) if changes else entry)

        logger.info(f"Updated group of {len(updated)} time entries for owner {owner_id}")
        return updated

    async def delete(self, owner_id: int, entry_id: int) -> None:
        """
        Delete an entry.

        Raises:
            EntryNotFound: missing or foreign entry
        """
        async with self.locks.for_owner(owner_id):
            async with self.unit_of_work() as store:
                await self._owned_entry(store, owner_id, entry_id)
                await store.delete(entry_id)

        logger.info(f"Time entry {entry_id} deleted for owner {owner_id}")

    async def get_active_entry(self, owner_id: int) -> Optional[TimeEntry]:
        async with self.unit_of_work() as store:
            return await store.find_active_by_owner(owner_id)

    async def get_entry(self, owner_id: int, entry_id: int) -> TimeEntry:
        async with self.unit_of_work() as store:
            return await self._owned_entry(store, owner_id, entry_id)

    async def autocomplete(self, owner_id: int, query: str, limit: int = 10) -> List[TimeEntry]:
        """Previous entries (one per title) whose title contains every word of `query`"""
        async with self.unit_of_work() as store:
            return await store.search_titles(owner_id, query, limit)

    async def tag_stats(self, owner_id: int) -> List[TagStat]:
        async with self.unit_of_work() as store:
            return await store.tag_stats(owner_id)

    @staticmethod
    async def _owned_entry(store: EntryStore, owner_id: int, entry_id: int) -> TimeEntry:
        entry = await store.find_by_id(entry_id)
        if entry is None or entry.owner_id != owner_id:
            logger.debug(f"Entry {entry_id} not found for owner {owner_id}")
            raise EntryNotFound(entry_id)
        return entry

    async def _conflicting_entry(self, owner_id: int, error: IntegrityError) -> Optional[TimeEntry]:
        """
        Re-read the active entry once after a storage-level conflict.

        A violation of the active-entry index means another writer got there
        first; the entry it created is returned so the caller can report
        ActiveEntryExists. None means the conflict was something else.
        """
        if not is_active_entry_conflict(error):
            return None
        logger.warning(f"Storage conflict while writing entries of owner {owner_id}: {error.orig}")
        return await self.get_active_entry(owner_id)
