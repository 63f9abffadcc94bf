"""Persistence backends for users, projects and work entries."""

import logging
import sqlite3
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from datetime import date
from pathlib import Path
from typing import Any, Optional

from logshift.core.models import Project, User, WorkEntry

logger = logging.getLogger(__name__)

DATABASE_NAME = "logshift.db"


class StorageError(Exception):
    """Raised when the backing store cannot complete an operation."""


class DuplicateKeyError(StorageError):
    """Raised when an insert violates a unique key."""


class MissingReferenceError(StorageError):
    """Raised when a work entry points at an unknown user or project."""


def default_data_dir() -> Path:
    """Get the per-user data directory (~/.logshift/data)."""
    return Path.home() / ".logshift" / "data"


class Storage(ABC):
    """Interface every persistence backend implements.

    Inserts raise ``DuplicateKeyError`` or ``MissingReferenceError`` on
    constraint violations and ``StorageError`` on any other failure.
    Lookups return None when nothing matches.
    """

    @abstractmethod
    def insert_user(self, user: User) -> User:
        """Store a new user and return it with its assigned id."""

    @abstractmethod
    def find_user(self, username: str) -> Optional[User]:
        """Find a user by exact username."""

    @abstractmethod
    def list_users(self) -> list[User]:
        """Return all users in insertion order."""

    @abstractmethod
    def insert_project(self, project: Project) -> Project:
        """Store a new project."""

    @abstractmethod
    def find_project(self, project_id: str) -> Optional[Project]:
        """Find a project by exact id."""

    @abstractmethod
    def list_projects(self) -> list[Project]:
        """Return all projects in insertion order."""

    @abstractmethod
    def insert_work_entry(self, entry: WorkEntry) -> WorkEntry:
        """Store a new work entry and return it with its assigned id."""

    @abstractmethod
    def list_work_entries(
        self,
        user_id: Optional[int] = None,
        project_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[WorkEntry]:
        """Return matching work entries with user and project resolved.

        Args:
            user_id: Only entries of this user
            project_id: Only entries of this project
            start_date: Only entries on or after this day
            end_date: Only entries on or before this day

        Returns:
            Entries ordered by date, then id
        """

    def close(self) -> None:
        """Release any resources held by the backend."""


class MemoryStorage(Storage):
    """Keeps everything in dictionaries keyed by the unique fields."""

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._projects: dict[str, Project] = {}
        self._project_names: set[str] = set()
        self._entries: list[WorkEntry] = []
        self._next_user_id = 1
        self._next_entry_id = 1

    def insert_user(self, user: User) -> User:
        if user.username in self._users:
            raise DuplicateKeyError(f"Username already exists: {user.username}")

        stored = User(username=user.username, id=self._next_user_id)
        self._next_user_id += 1
        self._users[stored.username] = stored
        return replace(stored)

    def find_user(self, username: str) -> Optional[User]:
        user = self._users.get(username)
        return replace(user) if user else None

    def list_users(self) -> list[User]:
        return [replace(u) for u in self._users.values()]

    def insert_project(self, project: Project) -> Project:
        if project.id in self._projects:
            raise DuplicateKeyError(f"Project id already exists: {project.id}")
        if project.name in self._project_names:
            raise DuplicateKeyError(f"Project name already exists: {project.name}")

        stored = Project(id=project.id, name=project.name)
        self._projects[stored.id] = stored
        self._project_names.add(stored.name)
        return replace(stored)

    def find_project(self, project_id: str) -> Optional[Project]:
        project = self._projects.get(project_id)
        return replace(project) if project else None

    def list_projects(self) -> list[Project]:
        return [replace(p) for p in self._projects.values()]

    def _user_by_id(self, user_id: int) -> Optional[User]:
        for user in self._users.values():
            if user.id == user_id:
                return user
        return None

    def insert_work_entry(self, entry: WorkEntry) -> WorkEntry:
        if self._user_by_id(entry.user_id) is None:
            raise MissingReferenceError(f"Unknown user id: {entry.user_id}")
        if entry.project_id not in self._projects:
            raise MissingReferenceError(f"Unknown project id: {entry.project_id}")

        stored = replace(entry, id=self._next_entry_id, user=None, project=None)
        self._next_entry_id += 1
        self._entries.append(stored)
        return self._resolve(stored)

    def _resolve(self, entry: WorkEntry) -> WorkEntry:
        user = self._user_by_id(entry.user_id)
        project = self._projects[entry.project_id]
        return replace(
            entry,
            user=replace(user) if user else None,
            project=replace(project),
        )

    def list_work_entries(
        self,
        user_id: Optional[int] = None,
        project_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[WorkEntry]:
        matched = []
        for entry in self._entries:
            if user_id is not None and entry.user_id != user_id:
                continue
            if project_id is not None and entry.project_id != project_id:
                continue
            if start_date and entry.date < start_date:
                continue
            if end_date and entry.date > end_date:
                continue
            matched.append(self._resolve(entry))

        matched.sort(key=lambda e: (e.date, e.id))
        return matched


class SQLiteStorage(Storage):
    """Durable storage in a single SQLite database file."""

    SCHEMA = """
        CREATE TABLE IF NOT EXISTS users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username VARCHAR(50) NOT NULL
        );
        CREATE UNIQUE INDEX IF NOT EXISTS ix_users_username ON users (username);

        CREATE TABLE IF NOT EXISTS projects (
            id VARCHAR(20) PRIMARY KEY NOT NULL,
            name VARCHAR(50) NOT NULL
        );
        CREATE UNIQUE INDEX IF NOT EXISTS ix_projects_name ON projects (name);

        CREATE TABLE IF NOT EXISTS work_entries (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER NOT NULL REFERENCES users (id),
            date TEXT NOT NULL,
            project_id VARCHAR(20) NOT NULL REFERENCES projects (id),
            hours_worked REAL NOT NULL,
            description VARCHAR(250) NOT NULL
        );
        CREATE INDEX IF NOT EXISTS ix_work_entries_user_id ON work_entries (user_id);
        CREATE INDEX IF NOT EXISTS ix_work_entries_project_id ON work_entries (project_id);
        CREATE INDEX IF NOT EXISTS ix_work_entries_date ON work_entries (date);
    """

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize SQLite storage.

        Args:
            db_path: Database file. Defaults to ~/.logshift/data/logshift.db

        Raises:
            StorageError: If the data directory or database cannot be created
        """
        if db_path is None:
            db_path = default_data_dir() / DATABASE_NAME

        self.db_path = Path(db_path)

        # Ensure directory exists
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create data directory {self.db_path.parent}: {e}")
            raise StorageError(f"Cannot create data directory {self.db_path.parent}: {e}") from e

        self._initialize_schema()

    @contextmanager
    def _connection(self) -> Iterator[sqlite3.Connection]:
        """Open a connection that commits on success and rolls back on error."""
        try:
            conn = sqlite3.connect(self.db_path)
        except sqlite3.Error as e:
            logger.error(f"Cannot open database {self.db_path}: {e}")
            raise StorageError(f"Cannot open database {self.db_path}: {e}") from e

        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON")
            yield conn
            conn.commit()
        except sqlite3.IntegrityError as e:
            conn.rollback()
            raise self._map_integrity_error(e) from e
        except sqlite3.Error as e:
            conn.rollback()
            logger.error(f"Database error on {self.db_path}: {e}")
            raise StorageError(str(e)) from e
        except UnicodeError as e:
            conn.rollback()
            logger.error(f"Cannot encode value for {self.db_path}: {e}")
            raise StorageError(f"Cannot encode value: {e}") from e
        except Exception:
            conn.rollback()
            raise
        finally:
            conn.close()

    @staticmethod
    def _map_integrity_error(error: sqlite3.IntegrityError) -> StorageError:
        message = str(error)
        if "UNIQUE" in message or "PRIMARY KEY" in message:
            logger.warning(f"Unique constraint violated: {message}")
            return DuplicateKeyError(message)
        if "FOREIGN KEY" in message:
            logger.warning(f"Foreign key constraint violated: {message}")
            return MissingReferenceError(message)
        logger.error(f"Integrity error: {message}")
        return StorageError(message)

    def _initialize_schema(self) -> None:
        """Create tables and indexes if they don't exist."""
        with self._connection() as conn:
            conn.executescript(self.SCHEMA)
        logger.debug(f"Database ready at {self.db_path}")

    # User operations

    def insert_user(self, user: User) -> User:
        with self._connection() as conn:
            cursor = conn.execute(
                "INSERT INTO users (username) VALUES (?)",
                (user.username,),
            )
            user_id = cursor.lastrowid

        logger.debug(f"Inserted user {user.username} with id {user_id}")
        return User(username=user.username, id=user_id)

    def find_user(self, username: str) -> Optional[User]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT id, username FROM users WHERE username = ?",
                (username,),
            ).fetchone()
        return User.from_dict(dict(row)) if row else None

    def list_users(self) -> list[User]:
        with self._connection() as conn:
            rows = conn.execute("SELECT id, username FROM users ORDER BY id").fetchall()
        return [User.from_dict(dict(row)) for row in rows]

    # Project operations

    def insert_project(self, project: Project) -> Project:
        with self._connection() as conn:
            conn.execute(
                "INSERT INTO projects (id, name) VALUES (?, ?)",
                (project.id, project.name),
            )

        logger.debug(f"Inserted project {project.id} ({project.name})")
        return Project(id=project.id, name=project.name)

    def find_project(self, project_id: str) -> Optional[Project]:
        with self._connection() as conn:
            row = conn.execute(
                "SELECT id, name FROM projects WHERE id = ?",
                (project_id,),
            ).fetchone()
        return Project.from_dict(dict(row)) if row else None

    def list_projects(self) -> list[Project]:
        with self._connection() as conn:
            rows = conn.execute("SELECT id, name FROM projects ORDER BY rowid").fetchall()
        return [Project.from_dict(dict(row)) for row in rows]

    # Work entry operations

    def insert_work_entry(self, entry: WorkEntry) -> WorkEntry:
        with self._connection() as conn:
            cursor = conn.execute(
                """
                INSERT INTO work_entries (user_id, date, project_id, hours_worked, description)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    entry.user_id,
                    entry.date.isoformat(),
                    entry.project_id,
                    float(entry.hours_worked),
                    entry.description,
                ),
            )
            entry_id = cursor.lastrowid

        logger.debug(f"Inserted work entry {entry_id} for user id {entry.user_id}")
        return replace(entry, id=entry_id)

    def list_work_entries(
        self,
        user_id: Optional[int] = None,
        project_id: Optional[str] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[WorkEntry]:
        clauses = []
        params: list[Any] = []

        if user_id is not None:
            clauses.append("e.user_id = ?")
            params.append(user_id)
        if project_id is not None:
            clauses.append("e.project_id = ?")
            params.append(project_id)
        if start_date:
            clauses.append("e.date >= ?")
            params.append(start_date.isoformat())
        if end_date:
            clauses.append("e.date <= ?")
            params.append(end_date.isoformat())

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        query = f"""
            SELECT e.id, e.user_id, e.date, e.project_id, e.hours_worked, e.description,
                   u.username, p.name AS project_name
            FROM work_entries e
            JOIN users u ON u.id = e.user_id
            JOIN projects p ON p.id = e.project_id
            {where}
            ORDER BY e.date, e.id
        """

        with self._connection() as conn:
            rows = conn.execute(query, params).fetchall()

        return [self._row_to_entry(row) for row in rows]

    @staticmethod
    def _row_to_entry(row: sqlite3.Row) -> WorkEntry:
        return WorkEntry(
            id=row["id"],
            user_id=row["user_id"],
            date=date.fromisoformat(row["date"]),
            project_id=row["project_id"],
            hours_worked=row["hours_worked"],
            description=row["description"],
            user=User(username=row["username"], id=row["user_id"]),
            project=Project(id=row["project_id"], name=row["project_name"]),
        )
