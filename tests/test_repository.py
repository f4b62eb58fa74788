"""
Tests for the SQLAlchemy time entry repository.
"""

import datetime

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from timelog.domain.models import TimeEntry
from timelog.infra.db import TimeEntryModel, is_active_entry_conflict

UTC = datetime.timezone.utc
OWNER = 1


def utc(*args):
    return datetime.datetime(*args, tzinfo=UTC)


async def add(repo, title, start, end=None, owner=OWNER, tags=()):
    entry = TimeEntry(owner_id=owner, title=title, start_time=start, end_time=end, tags=list(tags))
    entry.id = await repo.insert(entry)
    return entry


async def count_active(session, owner_id):
    result = await session.execute(
        select(func.count()).select_from(TimeEntryModel)
        .where(TimeEntryModel.owner_id == owner_id, TimeEntryModel.end_time.is_(None))
    )
    return result.scalar_one()


@pytest.mark.asyncio
async def test_insert_and_read_back_as_utc(repo):
    entry = await add(repo, "Work", utc(2026, 10, 19, 9, 0), utc(2026, 10, 19, 10, 0), tags=["a"])

    stored = await repo.find_by_id(entry.id)

    assert stored.title == "Work"
    assert stored.start_time == utc(2026, 10, 19, 9, 0)
    assert stored.start_time.tzinfo is not None
    assert stored.tags == ["a"]


@pytest.mark.asyncio
async def test_aware_non_utc_values_are_stored_as_utc(repo):
    berlin = datetime.timezone(datetime.timedelta(hours=2))
    entry = await add(repo, "Work", datetime.datetime(2026, 10, 19, 11, 0, tzinfo=berlin))

    stored = await repo.find_by_id(entry.id)

    assert stored.start_time == utc(2026, 10, 19, 9, 0)


@pytest.mark.asyncio
async def test_second_active_entry_violates_unique_index(repo):
    await add(repo, "First", utc(2026, 10, 19, 9, 0))

    with pytest.raises(IntegrityError) as exc_info:
        await add(repo, "Second", utc(2026, 10, 19, 10, 0))

    assert is_active_entry_conflict(exc_info.value)


@pytest.mark.asyncio
async def test_other_constraint_violations_are_not_active_entry_conflicts(db_session):
    db_session.add(TimeEntryModel(owner_id=OWNER, title=None, start_time=utc(2026, 10, 19, 9, 0),
                                  end_time=utc(2026, 10, 19, 10, 0), tags=[]))

    with pytest.raises(IntegrityError) as exc_info:
        await db_session.flush()

    assert not is_active_entry_conflict(exc_info.value)


@pytest.mark.asyncio
async def test_closed_entries_do_not_conflict(repo, db_session):
    await add(repo, "Closed", utc(2026, 10, 19, 8, 0), utc(2026, 10, 19, 9, 0))
    await add(repo, "Running", utc(2026, 10, 19, 9, 0))
    await add(repo, "Theirs", utc(2026, 10, 19, 9, 0), owner=2)

    assert await count_active(db_session, OWNER) == 1
    assert (await repo.find_active_by_owner(OWNER)).title == "Running"


@pytest.mark.asyncio
async def test_find_by_owner_in_range(repo):
    before = await add(repo, "Before", utc(2026, 10, 18, 8, 0), utc(2026, 10, 18, 9, 0))
    crossing = await add(repo, "Crossing", utc(2026, 10, 18, 23, 0), utc(2026, 10, 19, 1, 0))
    inside = await add(repo, "Inside", utc(2026, 10, 20, 9, 0), utc(2026, 10, 20, 10, 0))
    after = await add(repo, "After", utc(2026, 10, 26, 0, 0), utc(2026, 10, 26, 1, 0))
    running = await add(repo, "Running", utc(2026, 10, 17, 9, 0))
    await add(repo, "Theirs", utc(2026, 10, 20, 9, 0), utc(2026, 10, 20, 10, 0), owner=2)

    found = await repo.find_by_owner_in_range(OWNER, utc(2026, 10, 19), utc(2026, 10, 26))

    assert [e.id for e in found] == [inside.id, crossing.id, running.id]
    assert before.id not in [e.id for e in found]
    assert after.id not in [e.id for e in found]


@pytest.mark.asyncio
async def test_update_and_delete(repo):
    entry = await add(repo, "Work", utc(2026, 10, 19, 9, 0))

    updated = await repo.update(entry.model_copy(update={"end_time": utc(2026, 10, 19, 10, 0),
                                                         "tags": ["x"]}))
    assert updated.end_time == utc(2026, 10, 19, 10, 0)
    assert updated.tags == ["x"]
    assert await repo.find_active_by_owner(OWNER) is None

    await repo.delete(entry.id)
    assert await repo.find_by_id(entry.id) is None


@pytest.mark.asyncio
async def test_update_missing_entry(repo):
    missing = TimeEntry(id=404, owner_id=OWNER, title="Ghost", start_time=utc(2026, 10, 19))

    with pytest.raises(LookupError):
        await repo.update(missing)


@pytest.mark.asyncio
async def test_find_by_owner_title_start(repo):
    entry = await add(repo, "Standup", utc(2026, 10, 19, 9, 0), utc(2026, 10, 19, 9, 15))

    assert (await repo.find_by_owner_title_start(OWNER, "Standup", utc(2026, 10, 19, 9, 0))).id == entry.id
    assert await repo.find_by_owner_title_start(OWNER, "Standup", utc(2026, 10, 19, 9, 1)) is None
    assert await repo.find_by_owner_title_start(2, "Standup", utc(2026, 10, 19, 9, 0)) is None


@pytest.mark.asyncio
async def test_search_titles_escapes_wildcards(repo):
    await add(repo, "100% done", utc(2026, 10, 19, 9, 0), utc(2026, 10, 19, 9, 15))
    await add(repo, "1000 things", utc(2026, 10, 19, 10, 0), utc(2026, 10, 19, 10, 15))

    results = await repo.search_titles(OWNER, "0%")

    assert [e.title for e in results] == ["100% done"]


@pytest.mark.asyncio
async def test_search_titles_limit(repo):
    for i in range(5):
        await add(repo, f"Task {i}", utc(2026, 10, 19, 9, i), utc(2026, 10, 19, 9, i, 30))

    results = await repo.search_titles(OWNER, "task", limit=3)

    assert [e.title for e in results] == ["Task 4", "Task 3", "Task 2"]
