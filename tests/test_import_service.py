"""
Tests for importing previously exported entries.
"""

import datetime

import pytest
from pydantic import ValidationError

from timelog.domain.errors import EntryValidationError, FutureEndTime, FutureStartTime
from timelog.domain.models import ImportRow
from timelog.services.import_service import ImportService

UTC = datetime.timezone.utc
OWNER = 1


def row(title, start, end, tags=()):
    return ImportRow(title=title, start=start, end=end, tags=list(tags))


@pytest.fixture
def importer(timeline):
    return ImportService(timeline)


@pytest.mark.asyncio
async def test_rows_are_resolved_in_viewer_timezone(importer, timeline):
    rows = [row("Standup", datetime.datetime(2026, 10, 15, 9, 0),
                datetime.datetime(2026, 10, 15, 9, 15), ["team"])]

    result = await importer.import_rows(OWNER, rows, "Europe/Berlin")

    assert result.imported == 1
    assert result.duplicates == 0
    (entry,) = await timeline.autocomplete(OWNER, "standup")
    assert entry.start_time == datetime.datetime(2026, 10, 15, 7, 0, tzinfo=UTC)
    assert entry.end_time == datetime.datetime(2026, 10, 15, 7, 15, tzinfo=UTC)
    assert entry.tags == ["team"]
    assert not entry.is_active


@pytest.mark.asyncio
async def test_importing_twice_skips_duplicates(importer):
    rows = [
        row("Standup", datetime.datetime(2026, 10, 15, 9, 0), datetime.datetime(2026, 10, 15, 9, 15)),
        row("Review", datetime.datetime(2026, 10, 15, 10, 0), datetime.datetime(2026, 10, 15, 11, 0)),
    ]

    first = await importer.import_rows(OWNER, rows, "UTC")
    second = await importer.import_rows(OWNER, rows, "UTC")

    assert (first.imported, first.duplicates) == (2, 0)
    assert (second.imported, second.duplicates) == (0, 2)


@pytest.mark.asyncio
async def test_duplicates_within_one_batch(importer):
    start = datetime.datetime(2026, 10, 15, 9, 0)
    rows = [
        row("Standup", start, start + datetime.timedelta(minutes=15)),
        row("Standup", start, start + datetime.timedelta(minutes=20)),
        row("Other title", start, start + datetime.timedelta(minutes=20)),
    ]

    result = await importer.import_rows(OWNER, rows, "UTC")

    assert (result.imported, result.duplicates) == (2, 1)


@pytest.mark.asyncio
async def test_same_row_for_another_owner_is_not_a_duplicate(importer):
    rows = [row("Standup", datetime.datetime(2026, 10, 15, 9, 0), datetime.datetime(2026, 10, 15, 9, 15))]

    await importer.import_rows(OWNER, rows, "UTC")
    result = await importer.import_rows(2, rows, "UTC")

    assert result.imported == 1


@pytest.mark.asyncio
async def test_import_does_not_touch_running_entry(importer, timeline):
    running = await timeline.start(OWNER, "Running")
    rows = [row("Old", datetime.datetime(2026, 10, 1, 9, 0), datetime.datetime(2026, 10, 1, 10, 0))]

    await importer.import_rows(OWNER, rows, "UTC")

    assert (await timeline.get_active_entry(OWNER)).id == running.id


@pytest.mark.asyncio
async def test_future_row_rejects_whole_batch(importer, timeline):
    rows = [
        row("Past", datetime.datetime(2026, 10, 1, 9, 0), datetime.datetime(2026, 10, 1, 10, 0)),
        row("Future", datetime.datetime(2027, 1, 1, 9, 0), datetime.datetime(2027, 1, 1, 10, 0)),
    ]

    with pytest.raises(FutureStartTime):
        await importer.import_rows(OWNER, rows, "UTC")

    assert await timeline.autocomplete(OWNER, "Past") == []


@pytest.mark.asyncio
async def test_row_ending_after_now_rejects_whole_batch(importer, timeline):
    # clock stands at 2026-10-19 12:00 UTC
    rows = [
        row("Past", datetime.datetime(2026, 10, 1, 9, 0), datetime.datetime(2026, 10, 1, 10, 0)),
        row("Overrun", datetime.datetime(2026, 10, 19, 11, 0), datetime.datetime(2026, 10, 19, 13, 0)),
    ]

    with pytest.raises(FutureEndTime):
        await importer.import_rows(OWNER, rows, "UTC")

    assert await timeline.autocomplete(OWNER, "Past") == []


@pytest.mark.asyncio
async def test_blank_title_is_rejected(importer):
    rows = [row("   ", datetime.datetime(2026, 10, 1, 9, 0), datetime.datetime(2026, 10, 1, 10, 0))]

    with pytest.raises(EntryValidationError):
        await importer.import_rows(OWNER, rows, "UTC")


def test_row_end_before_start_is_invalid():
    with pytest.raises(ValidationError):
        row("Broken", datetime.datetime(2026, 10, 1, 10, 0), datetime.datetime(2026, 10, 1, 9, 0))
