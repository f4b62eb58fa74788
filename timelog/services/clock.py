"""
Clock abstraction.

Architecture Decision: Injected clock
Every operation samples "now" exactly once from a Clock it was given, so
validation and midnight splitting can be tested against a fixed or
fast-forwarded time instead of the wall clock.
"""

import datetime
from abc import ABCMeta, abstractmethod

from timelog.domain.models import to_utc

UTC = datetime.timezone.utc


class Clock(metaclass=ABCMeta):
    """Source of the current instant (always timezone-aware UTC)"""

    @abstractmethod
    def now(self) -> datetime.datetime:
        ...


class SystemClock(Clock):
    def now(self) -> datetime.datetime:
        return datetime.datetime.now(UTC)


class FixedClock(Clock):
    """
    Clock that only moves when told to.

    Args:
        instant: Initial time; naive values are taken as UTC
    """

    def __init__(self, instant: datetime.datetime):
        self._now = to_utc(instant)

    def now(self) -> datetime.datetime:
        return self._now

    def set(self, instant: datetime.datetime) -> None:
        self._now = to_utc(instant)

    def advance(self, delta: datetime.timedelta = None, **kwargs) -> datetime.datetime:
        """Move forward by a timedelta or timedelta keyword arguments (minutes=5)"""
        self._now += delta if delta is not None else datetime.timedelta(**kwargs)
        return self._now
