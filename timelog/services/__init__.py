"""Services layer - Business logic"""

from .clock import Clock, SystemClock, FixedClock
from .timeline_service import TimelineService
from .week_service import WeekService
from .format_service import LocaleFormatter, format_duration
from .import_service import ImportService

__all__ = [
    "Clock",
    "SystemClock",
    "FixedClock",
    "TimelineService",
    "WeekService",
    "LocaleFormatter",
    "format_duration",
    "ImportService",
]
