"""Core data models for work hour logging."""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Optional

USERNAME_MAX_LENGTH = 50
PROJECT_ID_MAX_LENGTH = 20
PROJECT_NAME_MAX_LENGTH = 50
DESCRIPTION_MAX_LENGTH = 250


def _check_text(
    field_name: str, value: str, max_length: int, allow_empty: bool = False
) -> None:
    """Raise ValueError if a text field cannot be stored."""
    if not value and not allow_empty:
        raise ValueError(f"{field_name} must not be empty")
    if len(value) > max_length:
        raise ValueError(f"{field_name} must be at most {max_length} characters")
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        raise ValueError(f"{field_name} contains characters that cannot be stored")


@dataclass(eq=False)
class User:
    """A person who logs work hours.

    Attributes:
        username: Unique login name
        id: Surrogate identifier assigned by storage (None until stored)
    """

    username: str
    id: Optional[int] = None

    def validate(self) -> None:
        """Check field constraints.

        Raises:
            ValueError: If the username cannot be stored
        """
        _check_text("username", self.username, USERNAME_MAX_LENGTH)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):
            return NotImplemented
        if self.id is not None and other.id is not None:
            return self.id == other.id
        return self.id is None and other.id is None and self.username == other.username

    def __hash__(self) -> int:
        return hash(("user", self.id if self.id is not None else self.username))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"id": self.id, "username": self.username}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "User":
        """Create User from a dictionary or database row."""
        return cls(id=data["id"], username=data["username"])


@dataclass(eq=False)
class Project:
    """Project that work hours are booked against.

    Attributes:
        id: Caller supplied project code, used as primary key
        name: Unique display name
    """

    id: str
    name: str

    def validate(self) -> None:
        """Check field constraints.

        Raises:
            ValueError: If the id or name is empty or too long
        """
        _check_text("project id", self.id, PROJECT_ID_MAX_LENGTH)
        _check_text("project name", self.name, PROJECT_NAME_MAX_LENGTH)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Project):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(("project", self.id))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Project":
        """Create Project from a dictionary or database row."""
        return cls(id=data["id"], name=data["name"])


@dataclass
class WorkEntry:
    """Hours one user spent on one project on a given day.

    The entry references its user and project by key. Storage fills in
    ``user`` and ``project`` when entries are read back so callers can show
    names without another lookup.

    Attributes:
        user_id: Key of the user who did the work
        date: Calendar day the work was performed
        project_id: Key of the project worked on
        hours_worked: Hours spent (non-negative, checked by callers)
        description: What was done
        id: Surrogate identifier assigned by storage
        user: Resolved user record (read side only)
        project: Resolved project record (read side only)
    """

    user_id: int
    date: date
    project_id: str
    hours_worked: float
    description: str
    id: Optional[int] = None
    user: Optional[User] = field(default=None, compare=False, repr=False)
    project: Optional[Project] = field(default=None, compare=False, repr=False)

    def validate(self) -> None:
        """Check field constraints.

        Hours are not checked here; negative values are rejected where
        input is parsed.

        Raises:
            ValueError: If the description is too long
        """
        _check_text("description", self.description, DESCRIPTION_MAX_LENGTH, allow_empty=True)

    @property
    def username(self) -> str:
        """Username of the owning user, or empty string if unresolved."""
        return self.user.username if self.user else ""

    @property
    def project_name(self) -> str:
        """Name of the project, or empty string if unresolved."""
        return self.project.name if self.project else ""

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for CSV/JSON serialization."""
        return {
            "id": self.id,
            "user": self.username,
            "date": self.date.isoformat(),
            "project": self.project_name,
            "hours_worked": self.hours_worked,
            "description": self.description,
        }
