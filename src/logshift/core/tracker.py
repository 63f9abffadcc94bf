"""Core work hour tracking engine."""

import logging
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Any, Callable, Optional, Union

from logshift.core.models import Project, User, WorkEntry
from logshift.core.storage import (
    DuplicateKeyError,
    MissingReferenceError,
    SQLiteStorage,
    Storage,
    StorageError,
)

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


class AddResult(Enum):
    """Outcome of an add operation.

    Only CREATED is truthy, so results can be tested like a boolean.
    """

    CREATED = "created"
    DUPLICATE_KEY = "duplicate_key"
    MISSING_REFERENCE = "missing_reference"
    INVALID = "invalid"
    STORAGE_ERROR = "storage_error"

    def __bool__(self) -> bool:
        return self is AddResult.CREATED


def _as_date(value: DateLike) -> date:
    """Reduce datetimes to their calendar day."""
    if isinstance(value, datetime):
        return value.date()
    return value


def week_bounds(day: Optional[DateLike] = None, week_start: str = "monday") -> tuple[date, date]:
    """Get the first and last day of the week containing a day.

    Args:
        day: Any day of the week. Defaults to today
        week_start: 'monday' or 'sunday'

    Returns:
        Tuple of (first day, last day), both inclusive
    """
    current = _as_date(day) if day is not None else date.today()
    if week_start == "sunday":
        offset = (current.weekday() + 1) % 7
    else:
        offset = current.weekday()
    start = current - timedelta(days=offset)
    return start, start + timedelta(days=6)


class HourTracker:
    """CRUD and hour aggregation over users, projects and work entries."""

    def __init__(self, storage: Optional[Storage] = None):
        """Initialize hour tracker.

        Args:
            storage: Storage backend. Creates default SQLite storage if None.
        """
        self.storage = storage or SQLiteStorage()

    def _insert(self, kind: str, insert: Callable[[Any], Any], record: Any) -> AddResult:
        """Validate and insert a record, converting failures to AddResult."""
        try:
            record.validate()
        except ValueError as e:
            logger.warning(f"Rejected {kind}: {e}")
            return AddResult.INVALID

        try:
            insert(record)
        except DuplicateKeyError as e:
            logger.info(f"Duplicate {kind}: {e}")
            return AddResult.DUPLICATE_KEY
        except MissingReferenceError as e:
            logger.warning(f"Dangling reference in {kind}: {e}")
            return AddResult.MISSING_REFERENCE
        except StorageError as e:
            logger.error(f"Failed to store {kind}: {e}")
            return AddResult.STORAGE_ERROR

        return AddResult.CREATED

    # Users

    def add_user(self, username: str) -> AddResult:
        """Add a new user.

        Args:
            username: Unique username

        Returns:
            AddResult.CREATED on success, otherwise the reason for failure
        """
        return self._insert("user", self.storage.insert_user, User(username=username))

    def get_user(self, username: str) -> Optional[User]:
        """Get user by exact username, or None if not found."""
        return self.storage.find_user(username)

    def get_users(self) -> list[User]:
        """Get all users."""
        return self.storage.list_users()

    def user_exists(self, username: str) -> bool:
        """Check whether a username is taken."""
        return self.get_user(username) is not None

    # Projects

    def add_project(self, project_id: str, name: str) -> AddResult:
        """Add a new project.

        Both the id and the name must be unused.

        Args:
            project_id: Project code
            name: Display name

        Returns:
            AddResult.CREATED on success, otherwise the reason for failure
        """
        return self._insert(
            "project", self.storage.insert_project, Project(id=project_id, name=name)
        )

    def get_project(self, project_id: str) -> Optional[Project]:
        """Get project by exact id, or None if not found."""
        return self.storage.find_project(project_id)

    def get_projects(self) -> list[Project]:
        """Get all projects."""
        return self.storage.list_projects()

    def project_exists(self, project_id: str) -> bool:
        """Check whether a project id is taken."""
        return self.get_project(project_id) is not None

    # Work entries

    def add_work_entry(
        self,
        user: User,
        date: DateLike,
        project: Project,
        hours_worked: float,
        description: str,
    ) -> AddResult:
        """Log hours for a user on a project.

        The user and project must come from get_user/get_project. Hours are
        stored as given; callers reject negative values before calling.

        Args:
            user: Stored user who did the work
            date: Day the work was performed
            project: Stored project worked on
            hours_worked: Hours spent
            description: What was done

        Returns:
            AddResult.CREATED on success, otherwise the reason for failure
        """
        if user.id is None:
            logger.warning(f"Rejected work entry: user {user.username} is not stored")
            return AddResult.MISSING_REFERENCE

        entry = WorkEntry(
            user_id=user.id,
            date=_as_date(date),
            project_id=project.id,
            hours_worked=float(hours_worked),
            description=description,
        )
        return self._insert("work entry", self.storage.insert_work_entry, entry)

    def get_work_entries_by_user(self, user: User) -> list[WorkEntry]:
        """Get all entries of a user with their projects resolved."""
        if user.id is None:
            return []
        return self.storage.list_work_entries(user_id=user.id)

    def get_work_entries_by_project(self, project: Project) -> list[WorkEntry]:
        """Get all entries of a project with their users resolved."""
        return self.storage.list_work_entries(project_id=project.id)

    def get_work_entries(
        self,
        start_date: Optional[DateLike] = None,
        end_date: Optional[DateLike] = None,
    ) -> list[WorkEntry]:
        """Get entries dated within an inclusive range.

        Args:
            start_date: First day to include (unbounded if None)
            end_date: Last day to include (unbounded if None)

        Returns:
            Matching entries ordered by date
        """
        return self.storage.list_work_entries(
            start_date=_as_date(start_date) if start_date is not None else None,
            end_date=_as_date(end_date) if end_date is not None else None,
        )

    # Aggregation

    @staticmethod
    def _sum_hours(entries: list[WorkEntry]) -> float:
        return sum((entry.hours_worked for entry in entries), 0.0)

    def get_total_hours_by_user(self, user: User) -> float:
        """Total hours logged by a user (0 if none)."""
        return self._sum_hours(self.get_work_entries_by_user(user))

    def get_total_hours_by_project(self, project: Project) -> float:
        """Total hours logged on a project (0 if none)."""
        return self._sum_hours(self.get_work_entries_by_project(project))

    def get_total_hours_by_week(self, start_date: DateLike, end_date: DateLike) -> float:
        """Total hours of all entries dated from start_date to end_date inclusive."""
        return self._sum_hours(self.get_work_entries(start_date, end_date))

    def close(self) -> None:
        """Close the underlying storage."""
        self.storage.close()
