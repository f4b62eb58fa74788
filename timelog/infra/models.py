"""
SQLAlchemy ORM models.
Separated from db.py for cleaner imports.
"""

from .db import TimeEntryModel, Base, UTCDateTime

__all__ = ["TimeEntryModel", "Base", "UTCDateTime"]
