"""
Timeline error taxonomy.

Every error is local, synchronous and recoverable by the caller. Each carries a
stable `code` plus the minimal structured context needed to render a message;
translating it for the user is the caller's job (see timelog.i18n.error_message).
"""

import datetime
from typing import Any, Dict, Optional


class TimelineError(Exception):
    """Base class for all rejected timeline operations"""

    code = "TIMELINE_ERROR"

    def __init__(self, message: str, **context: Any):
        super().__init__(message)
        self.message = message
        self.context: Dict[str, Any] = context


class ActiveEntryExists(TimelineError):
    code = "ACTIVE_ENTRY_EXISTS"

    def __init__(self, owner_id: int, active_entry_id: Optional[int] = None):
        super().__init__(
            "Cannot start a new entry while another one is active",
            owner_id=owner_id,
            active_entry_id=active_entry_id,
        )
        self.owner_id = owner_id
        self.active_entry_id = active_entry_id


class NoActiveEntry(TimelineError):
    code = "NO_ACTIVE_ENTRY"

    def __init__(self, owner_id: int):
        super().__init__("There is no active entry to stop", owner_id=owner_id)
        self.owner_id = owner_id


class EntryNotFound(TimelineError):
    """Entry is missing or belongs to somebody else. The two are not distinguished."""

    code = "ENTRY_NOT_FOUND"

    def __init__(self, entry_id: int):
        super().__init__(f"Time entry {entry_id} not found", entry_id=entry_id)
        self.entry_id = entry_id


class EntryValidationError(TimelineError):
    code = "VALIDATION_ERROR"

    def __init__(self, field: str, reason: str):
        super().__init__(f"Invalid {field}: {reason}", field=field, reason=reason)
        self.field = field
        self.reason = reason


class FutureStartTime(TimelineError):
    code = "START_TIME_IN_FUTURE"

    def __init__(self, start_time: datetime.datetime, now: datetime.datetime):
        super().__init__(
            "Start time cannot be in the future",
            field="start_time",
            start_time=start_time,
            now=now,
        )
        self.start_time = start_time
        self.now = now


class EndBeforeStart(TimelineError):
    code = "END_TIME_BEFORE_START_TIME"

    def __init__(self, start_time: datetime.datetime, end_time: datetime.datetime):
        super().__init__(
            "End time cannot be before start time",
            field="end_time",
            start_time=start_time,
            end_time=end_time,
        )
        self.start_time = start_time
        self.end_time = end_time


class FutureEndTime(TimelineError):
    code = "END_TIME_IN_FUTURE"

    def __init__(self, end_time: datetime.datetime, now: datetime.datetime):
        super().__init__(
            "End time cannot be in the future",
            field="end_time",
            end_time=end_time,
            now=now,
        )
        self.end_time = end_time
        self.now = now
