"""
Import Service - Bulk import of entries exported from other trackers.

Architecture Decision: Rows in, entries out
Reading CSV files is left to the caller; this service receives parsed rows
with local wall-clock times, resolves them in the importing viewer's timezone
and writes all new entries in one transaction. Importing the same export
twice does not duplicate anything.
"""

import datetime
import logging
from typing import Iterable, Union
from zoneinfo import ZoneInfo

from timelog.domain.errors import FutureEndTime, FutureStartTime
from timelog.domain.models import ImportResult, ImportRow, TimeEntry, to_utc
from timelog.services.timeline_service import TimelineService, clean_title

logger = logging.getLogger(__name__)


def resolve_local(value: datetime.datetime, zone: ZoneInfo) -> datetime.datetime:
    """Wall-clock time in `zone` as a UTC instant; aware values keep their offset"""
    if value.tzinfo is None:
        value = value.replace(tzinfo=zone)
    return to_utc(value)


class ImportService:
    """
    Imports closed entries for one owner.

    Shares the timeline's locks and transaction handling so an import never
    interleaves with a start or stop of the same owner.
    """

    def __init__(self, timeline: TimelineService):
        self.timeline = timeline

    async def import_rows(self, owner_id: int, rows: Iterable[ImportRow],
                          timezone: Union[str, ZoneInfo]) -> ImportResult:
        """
        Import rows, skipping those whose title and start instant already exist.

        Raises:
            EntryValidationError: a row has a blank title
            FutureStartTime: a row starts after now(); nothing is imported
            FutureEndTime: a row ends after now(); nothing is imported
        """
        zone = timezone if isinstance(timezone, ZoneInfo) else ZoneInfo(timezone)
        result = ImportResult()

        async with self.timeline.locks.for_owner(owner_id):
            now = self.timeline.clock.now()
            async with self.timeline.unit_of_work() as store:
                for row in rows:
                    title = clean_title(row.title)
                    start_time = resolve_local(row.start, zone)
                    end_time = resolve_local(row.end, zone)
                    if start_time > now:
                        raise FutureStartTime(start_time, now)
                    if end_time > now:
                        raise FutureEndTime(end_time, now)

                    existing = await store.find_by_owner_title_start(owner_id, title, start_time)
                    if existing is not None:
                        logger.debug(f"Skipping duplicate import of '{title}' at {start_time}")
                        result.duplicates += 1
                        continue

                    await store.insert(TimeEntry(
                        owner_id=owner_id,
                        title=title,
                        start_time=start_time,
                        end_time=max(end_time, start_time),
                        tags=row.tags,
                    ))
                    result.imported += 1

        logger.info(f"Imported {result.imported} entries for owner {owner_id}, "
                    f"skipped {result.duplicates} duplicates")
        return result
