"""Core functionality for work hour logging."""

from logshift.core.models import Project, User, WorkEntry
from logshift.core.storage import MemoryStorage, SQLiteStorage, Storage, StorageError
from logshift.core.tracker import AddResult, HourTracker

__all__ = [
    "User",
    "Project",
    "WorkEntry",
    "Storage",
    "StorageError",
    "MemoryStorage",
    "SQLiteStorage",
    "AddResult",
    "HourTracker",
]
