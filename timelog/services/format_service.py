"""
Format Service - Locale-aware rendering of times, dates and durations.

Architecture Decision: Delegate to QLocale
Month and weekday names, 12/24-hour clocks and day/month order all come from
Qt's CLDR-backed QLocale, the same source the report services use for
numbers and dates. This module only decides which QLocale format to ask for
and converts UTC instants into the viewer's wall-clock time first.
"""

import datetime
from typing import Union
from zoneinfo import ZoneInfo

from PySide6.QtCore import QDate, QDateTime, QLocale, QTime

from timelog.domain.models import DaySegment, to_utc

ShortFormat = QLocale.FormatType.ShortFormat
LongFormat = QLocale.FormatType.LongFormat


def format_duration(value: Union[int, float, datetime.timedelta]) -> str:
    """
    Render a duration as HH:MM:SS.

    Fractions of a second are dropped, negative values are shown as zero and
    hours are not wrapped at 24.
    """
    if isinstance(value, datetime.timedelta):
        value = value.total_seconds()
    total = max(int(value), 0)
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def resolve_locale(name: str) -> QLocale:
    """QLocale for names like 'en_US', 'de-DE' or 'en'"""
    return QLocale((name or "en_US").replace("-", "_"))


def uses_12_hour_format(locale_name: str) -> bool:
    """True when the locale's short time pattern carries an AM/PM marker"""
    return "ap" in resolve_locale(locale_name).timeFormat(ShortFormat).lower()


def _qdate(day: datetime.date) -> QDate:
    return QDate(day.year, day.month, day.day)


def _qtime(moment: datetime.datetime) -> QTime:
    return QTime(moment.hour, moment.minute, moment.second)


class LocaleFormatter:
    """
    Formats instants for one viewer.

    Args:
        locale_name: e.g. 'en_US', 'de_DE', 'en-GB'
        timezone: Viewer timezone; instants are shown as its wall-clock time
    """

    def __init__(self, locale_name: str, timezone: Union[str, ZoneInfo]):
        self.locale_name = locale_name
        self.locale = resolve_locale(locale_name)
        self.zone = timezone if isinstance(timezone, ZoneInfo) else ZoneInfo(timezone)

    def _local(self, moment: datetime.datetime) -> datetime.datetime:
        return to_utc(moment).astimezone(self.zone)

    def format_time(self, moment: datetime.datetime) -> str:
        """Hours and minutes in the locale's clock convention"""
        return self.locale.toString(_qtime(self._local(moment)), ShortFormat)

    def format_time_with_weekday(self, moment: datetime.datetime) -> str:
        local = self._local(moment)
        weekday = self.locale.toString(_qdate(local.date()), "ddd")
        return f"{weekday} {self.locale.toString(_qtime(local), ShortFormat)}"

    def format_datetime(self, moment: datetime.datetime) -> str:
        local = self._local(moment)
        return self.locale.toString(QDateTime(_qdate(local.date()), _qtime(local)), ShortFormat)

    def format_date(self, day: datetime.date) -> str:
        """
        Short month name and day of month in the locale's order,
        e.g. 'Oct 19' (en_US), '19 Oct' (en_GB), '19. Okt.' (de_DE).
        """
        pattern = self.locale.dateFormat(ShortFormat)
        day_first = pattern.lower().find("d") < pattern.lower().find("m")
        if day_first:
            template = "d. MMM" if "." in pattern else "d MMM"
        else:
            template = "MMM d"
        return self.locale.toString(_qdate(day), template)

    def format_day_title(self, day: datetime.date) -> str:
        """Full weekday and date, e.g. 'Monday, October 19, 2026'"""
        return self.locale.toString(_qdate(day), LongFormat)

    def format_week_range(self, first_day: datetime.date, last_day: datetime.date) -> str:
        return f"{self.format_date(first_day)} - {self.format_date(last_day)}"

    def format_segment_end(self, segment: DaySegment, in_progress_label: str) -> str:
        """End time of a segment, or the in-progress marker while it runs"""
        if segment.is_active:
            return in_progress_label
        return self.format_time(segment.segment_end)
