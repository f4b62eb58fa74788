"""
Week Service - Day/Week aggregation of time entries.

Architecture Decision: Numeric core, rendering at the edge
The functions in this module only deal with instants, local dates and
durations. Turning them into strings is left to the LocaleFormatter, so the
splitting and week arithmetic can be tested without any locale data.

Week boundaries are local midnights. A week is always seven calendar days;
its length in elapsed seconds depends on DST transitions inside it.
"""

import datetime
import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional
from zoneinfo import ZoneInfo

from timelog.domain.models import (
    SPLIT_BOUNDARY_GAP,
    DayGroup,
    DaySegment,
    RenderedDayGroup,
    SegmentView,
    TimeEntry,
    UserPreferences,
    WeekDay,
    WeekDirection,
    WeekPage,
    WeekView,
    WeekWindow,
    to_utc,
)
from timelog.i18n import language_for_locale, tr
from timelog.infra.db import DatabaseEngine, get_engine
from timelog.infra.repository import TimeEntryRepository
from timelog.services.clock import Clock, SystemClock
from timelog.services.format_service import LocaleFormatter, format_duration
from timelog.services.grouping import detect_overlaps, group_segments

logger = logging.getLogger(__name__)

UTC = datetime.timezone.utc
ONE_DAY = datetime.timedelta(days=1)


def local_midnight(day: datetime.date, zone: ZoneInfo) -> datetime.datetime:
    """UTC instant at which the local calendar day `day` begins"""
    return datetime.datetime.combine(day, datetime.time.min, tzinfo=zone).astimezone(UTC)


def week_start_for(day: datetime.date, start_of_week: WeekDay) -> datetime.date:
    """Most recent `start_of_week` on or before `day`"""
    diff = (day.weekday() - start_of_week.weekday) % 7
    return day - datetime.timedelta(days=diff)


def window_for_first_day(first_day: datetime.date, zone: ZoneInfo) -> WeekWindow:
    return WeekWindow(
        first_day=first_day,
        timezone=zone.key,
        start=local_midnight(first_day, zone),
        end=local_midnight(first_day + datetime.timedelta(days=7), zone),
    )


def week_window(reference: datetime.datetime, zone: ZoneInfo, start_of_week: WeekDay,
                direction: WeekDirection = WeekDirection.CURRENT) -> WeekWindow:
    """
    The week containing `reference` in the viewer's timezone, optionally
    moved one week back or forward.
    """
    local_day = to_utc(reference).astimezone(zone).date()
    first_day = week_start_for(local_day, start_of_week)
    first_day += datetime.timedelta(days=7 * direction.offset)
    return window_for_first_day(first_day, zone)


def shift_window(window: WeekWindow, weeks: int) -> WeekWindow:
    """Move a window by whole weeks, recomputing local midnights"""
    zone = ZoneInfo(window.timezone)
    return window_for_first_day(window.first_day + datetime.timedelta(days=7 * weeks), zone)


def split_entry(entry: TimeEntry, zone: ZoneInfo, now: datetime.datetime) -> List[DaySegment]:
    """
    Cut an entry into one segment per local calendar day it touches.

    A running entry is cut as if it ended at `now`; only its last segment is
    marked active. Segments that stop at a local midnight end one millisecond
    before it, so every segment stays inside its own day.
    """
    effective_end = entry.end_time if entry.end_time is not None else to_utc(now)
    if effective_end < entry.start_time:
        effective_end = entry.start_time

    day = entry.start_time.astimezone(zone).date()
    last_day = effective_end.astimezone(zone).date()

    segments: List[DaySegment] = []
    segment_start = entry.start_time
    while day < last_day:
        next_midnight = local_midnight(day + ONE_DAY, zone)
        segments.append(_segment(entry, day, segment_start, next_midnight - SPLIT_BOUNDARY_GAP, False))
        segment_start = next_midnight
        day += ONE_DAY

    # A closed entry that ends exactly at midnight has nothing left for the next day
    if segments and entry.end_time is not None and segment_start == effective_end:
        return segments

    segments.append(_segment(entry, last_day, segment_start, effective_end, entry.is_active))
    return segments


def _segment(entry: TimeEntry, day: datetime.date, start: datetime.datetime,
             end: datetime.datetime, is_active: bool) -> DaySegment:
    return DaySegment(
        date=day,
        entry_id=entry.id,
        title=entry.title,
        tags=list(entry.tags),
        segment_start=start,
        segment_end=end,
        is_active=is_active,
    )


def aggregate_week(entries: Iterable[TimeEntry], window: WeekWindow,
                   now: datetime.datetime) -> WeekView:
    """
    Group the segments of `entries` that fall into `window` by local day.

    Days are ordered most recent first, segments within a day by start time
    (most recent first). Days without segments are left out.
    """
    zone = ZoneInfo(window.timezone)
    by_day: Dict[datetime.date, List[DaySegment]] = defaultdict(list)
    for entry in entries:
        for segment in split_entry(entry, zone, now):
            if window.contains_day(segment.date):
                by_day[segment.date].append(segment)

    day_groups = []
    for day in sorted(by_day, reverse=True):
        segments = sorted(by_day[day], key=lambda s: (s.segment_start, s.entry_id), reverse=True)
        total = sum((s.duration for s in segments), datetime.timedelta(0))
        day_groups.append(DayGroup(date=day, segments=segments, total_duration=total))

    return WeekView(window=window, day_groups=day_groups)


class WeekService:
    """
    Reads an owner's entries for one week and renders them for a viewer.
    """

    def __init__(self, db: Optional[DatabaseEngine] = None, clock: Optional[Clock] = None):
        self.db = db or get_engine()
        self.clock = clock or SystemClock()

    async def get_week_view(self, owner_id: int, reference: datetime.datetime,
                            direction: WeekDirection, preferences: UserPreferences,
                            now: Optional[datetime.datetime] = None) -> WeekView:
        """Numeric week aggregation, no strings involved"""
        if now is None:
            now = self.clock.now()
        window = week_window(reference, preferences.zone, preferences.start_of_week, direction)
        async with self.db.transaction() as session:
            entries = await TimeEntryRepository(session).find_by_owner_in_range(
                owner_id, window.start, window.end
            )
        logger.debug(f"Aggregating {len(entries)} entries of owner {owner_id} for week of {window.first_day}")
        return aggregate_week(entries, window, now)

    async def list_week(self, owner_id: int, reference: datetime.datetime,
                        direction: WeekDirection = WeekDirection.CURRENT,
                        preferences: Optional[UserPreferences] = None,
                        in_progress_label: Optional[str] = None) -> WeekPage:
        """
        Everything the time log page shows for one week.

        Args:
            owner_id: Whose entries to show
            reference: Any instant inside the week of interest
            direction: Show that week, or the one before/after it
            preferences: Viewer timezone, start of week and locale
            in_progress_label: Caller-translated marker for a running segment's end
        """
        preferences = preferences or UserPreferences()
        now = self.clock.now()
        view = await self.get_week_view(owner_id, reference, direction, preferences, now)
        return render_week(view, preferences, now, in_progress_label)


def render_week(view: WeekView, preferences: UserPreferences, now: datetime.datetime,
                in_progress_label: Optional[str] = None) -> WeekPage:
    """Attach locale-formatted labels to a numeric week view"""
    formatter = LocaleFormatter(preferences.locale, preferences.zone)
    language = language_for_locale(preferences.locale)
    if in_progress_label is None:
        in_progress_label = tr("timeline.in_progress", language=language)

    today = to_utc(now).astimezone(preferences.zone).date()
    day_groups = []
    for group in view.day_groups:
        segments = [
            SegmentView(
                segment=segment,
                start_label=formatter.format_time(segment.segment_start),
                end_label=formatter.format_segment_end(segment, in_progress_label),
                duration_display=format_duration(segment.duration),
            )
            for segment in group.segments
        ]
        day_groups.append(RenderedDayGroup(
            date=group.date,
            label=day_label(group.date, today, formatter, language),
            total_duration=group.total_duration,
            total_display=format_duration(group.total_duration),
            segments=segments,
            groups=group_segments(group.segments),
            overlaps=detect_overlaps(group.segments),
        ))

    return WeekPage(
        window=view.window,
        week_range_label=formatter.format_week_range(view.window.first_day, view.window.last_day),
        total_duration=view.total_duration,
        total_display=format_duration(view.total_duration),
        day_groups=day_groups,
    )


def day_label(day: datetime.date, today: datetime.date, formatter: LocaleFormatter,
              language: str) -> str:
    """Today, Yesterday, or the locale's weekday and date"""
    if day == today:
        return tr("day.today", language=language)
    if day == today - ONE_DAY:
        return tr("day.yesterday", language=language)
    return formatter.format_day_title(day)
