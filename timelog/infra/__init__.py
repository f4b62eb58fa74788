"""Infrastructure layer - Database and persistence"""

from .db import DatabaseEngine, get_engine, init_db
from .models import TimeEntryModel
from .repository import EntryStore, TimeEntryRepository

__all__ = ["DatabaseEngine", "get_engine", "init_db", "TimeEntryModel", "EntryStore", "TimeEntryRepository"]
