"""
Domain Models using Pydantic for validation.

Architecture Decision: Why Pydantic?
Pydantic provides runtime data validation, ensuring data integrity when loading
from the database or from the caller's request layer. Stored instants are always
normalised to timezone-aware UTC here, so no other layer has to guess.
"""

import datetime
from enum import Enum
from typing import Dict, List, Optional, Union
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

UTC = datetime.timezone.utc

# Closed segments that stop at local midnight end one millisecond before it
SPLIT_BOUNDARY_GAP = datetime.timedelta(milliseconds=1)


def to_utc(value: datetime.datetime) -> datetime.datetime:
    """Naive values are taken as UTC; aware values are converted to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def normalize_tags(tags) -> List[str]:
    """Strip tags, drop blanks and collapse duplicates keeping first occurrence."""
    result: List[str] = []
    for tag in tags or []:
        tag = str(tag).strip()
        if tag and tag not in result:
            result.append(tag)
    return result


def utc_now() -> datetime.datetime:
    return datetime.datetime.now(UTC)


class WeekDay(str, Enum):
    """Configurable first day of the week."""
    MONDAY = "MONDAY"
    TUESDAY = "TUESDAY"
    WEDNESDAY = "WEDNESDAY"
    THURSDAY = "THURSDAY"
    FRIDAY = "FRIDAY"
    SATURDAY = "SATURDAY"
    SUNDAY = "SUNDAY"

    @property
    def weekday(self) -> int:
        """Index compatible with date.weekday() (Monday=0)"""
        return list(WeekDay).index(self)


class WeekDirection(str, Enum):
    CURRENT = "current"
    PREVIOUS = "previous"
    NEXT = "next"

    @property
    def offset(self) -> int:
        return {"current": 0, "previous": -1, "next": 1}[self.value]


class TimeEntry(BaseModel):
    """
    Represents a single time tracking session.

    An entry without end_time is the owner's active (running) entry.
    """
    model_config = ConfigDict(from_attributes=True)

    id: Optional[int] = None
    owner_id: int
    title: str = Field(..., min_length=1, max_length=1000)
    start_time: datetime.datetime
    end_time: Optional[datetime.datetime] = None
    tags: List[str] = Field(default_factory=list)
    created_at: datetime.datetime = Field(default_factory=utc_now)

    @field_validator("start_time", "end_time", "created_at")
    @classmethod
    def _ensure_utc(cls, value: Optional[datetime.datetime]) -> Optional[datetime.datetime]:
        return to_utc(value) if value is not None else None

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return normalize_tags(value)

    @property
    def is_active(self) -> bool:
        return self.end_time is None

    def duration(self, now: datetime.datetime) -> datetime.timedelta:
        """Elapsed time, using `now` as the end of a running entry"""
        end = self.end_time if self.end_time is not None else to_utc(now)
        return max(end - self.start_time, datetime.timedelta(0))


class UserPreferences(BaseModel):
    """
    Viewer preferences owned by the settings subsystem.

    The engine treats an instance as an immutable snapshot per request.
    """
    model_config = ConfigDict(from_attributes=True, frozen=True)

    timezone: str = Field(default="UTC", description="IANA timezone name")
    start_of_week: WeekDay = Field(default=WeekDay.MONDAY)
    locale: str = Field(default="en_US", description="Locale such as 'en_US', 'de_DE' or 'en-GB'")

    @field_validator("timezone")
    @classmethod
    def _check_timezone(cls, value: str) -> str:
        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    @property
    def zone(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)


class DaySegment(BaseModel):
    """
    The part of one entry that falls on one local calendar day.

    Derived for display and summation only, never persisted.
    """
    date: datetime.date
    entry_id: int
    title: str
    tags: List[str] = Field(default_factory=list)
    segment_start: datetime.datetime
    segment_end: datetime.datetime
    is_active: bool = False

    @property
    def duration(self) -> datetime.timedelta:
        return self.segment_end - self.segment_start

    @property
    def duration_seconds(self) -> int:
        return int(self.duration.total_seconds())


class DayGroup(BaseModel):
    date: datetime.date
    segments: List[DaySegment] = Field(default_factory=list)
    total_duration: datetime.timedelta = datetime.timedelta(0)


class WeekWindow(BaseModel):
    """
    Seven local calendar days starting at `first_day`.

    `start` and `end` are the UTC instants of the local midnights bounding the
    window. Across a DST change the elapsed length differs from 7 * 24h.
    """
    model_config = ConfigDict(frozen=True)

    first_day: datetime.date
    timezone: str
    start: datetime.datetime
    end: datetime.datetime

    @property
    def days(self) -> List[datetime.date]:
        return [self.first_day + datetime.timedelta(days=i) for i in range(7)]

    @property
    def last_day(self) -> datetime.date:
        return self.first_day + datetime.timedelta(days=6)

    def contains_day(self, day: datetime.date) -> bool:
        return self.first_day <= day <= self.last_day


class WeekView(BaseModel):
    """Numeric, locale-free aggregation of one week."""
    window: WeekWindow
    day_groups: List[DayGroup] = Field(default_factory=list)

    @property
    def total_duration(self) -> datetime.timedelta:
        return sum((g.total_duration for g in self.day_groups), datetime.timedelta(0))


class EntryGroup(BaseModel):
    """Segments of one day sharing a title and tag set."""
    title: str
    tags: List[str] = Field(default_factory=list)
    segments: List[DaySegment] = Field(default_factory=list)
    start_time: datetime.datetime
    earliest_start_time: datetime.datetime
    end_time: Optional[datetime.datetime] = None
    total_duration: datetime.timedelta = datetime.timedelta(0)

    @property
    def is_active(self) -> bool:
        return self.end_time is None


class SegmentView(BaseModel):
    segment: DaySegment
    start_label: str
    end_label: str
    duration_display: str


class RenderedDayGroup(BaseModel):
    date: datetime.date
    label: str
    total_duration: datetime.timedelta
    total_display: str
    segments: List[SegmentView] = Field(default_factory=list)
    groups: List[Union[EntryGroup, DaySegment]] = Field(default_factory=list)
    overlaps: Dict[int, str] = Field(default_factory=dict)


class WeekPage(BaseModel):
    """What the UI layer needs to render one week"""
    window: WeekWindow
    week_range_label: str
    total_duration: datetime.timedelta
    total_display: str
    day_groups: List[RenderedDayGroup] = Field(default_factory=list)


class TagStat(BaseModel):
    tag: str
    count: int


class ImportRow(BaseModel):
    """
    One already-parsed row of a Toggl-style export.

    `start` and `end` are local wall-clock times in the importing viewer's timezone.
    """
    title: str = Field(..., min_length=1, max_length=1000)
    tags: List[str] = Field(default_factory=list)
    start: datetime.datetime
    end: datetime.datetime

    @field_validator("tags", mode="before")
    @classmethod
    def _normalize_tags(cls, value):
        return normalize_tags(value)

    @model_validator(mode="after")
    def _check_order(self) -> "ImportRow":
        if self.end < self.start:
            raise ValueError("end must not be before start")
        return self


class ImportResult(BaseModel):
    imported: int = 0
    duplicates: int = 0
