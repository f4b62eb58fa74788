"""Domain layer - Pure business entities and errors"""

from .models import TimeEntry, UserPreferences, WeekDay, WeekDirection, DaySegment
from .errors import (
    TimelineError,
    ActiveEntryExists,
    NoActiveEntry,
    EntryNotFound,
    EntryValidationError,
    FutureStartTime,
    FutureEndTime,
    EndBeforeStart,
)

__all__ = [
    "TimeEntry",
    "UserPreferences",
    "WeekDay",
    "WeekDirection",
    "DaySegment",
    "TimelineError",
    "ActiveEntryExists",
    "NoActiveEntry",
    "EntryNotFound",
    "EntryValidationError",
    "FutureStartTime",
    "FutureEndTime",
    "EndBeforeStart",
]
