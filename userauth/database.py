"""SQLite-backed persistence for user accounts."""
from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from .errors import StoreError, UniqueConstraintViolation
from .models import UserRecord
from .store import normalize_email

logger = logging.getLogger("userauth.database")


def _ensure_directory(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def resolve_database_path(env_value: Optional[str]) -> Path:
    """Resolve the on-disk path for the user database."""

    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    base_dir = Path(__file__).resolve().parent.parent / "data"
    return (base_dir / "users.sqlite3").resolve(strict=False)


def _serialize_datetime(value: datetime) -> str:
    return value.isoformat()


def _parse_datetime(value: str) -> datetime:
    return datetime.fromisoformat(value)


class Database:
    """Simple wrapper around SQLite implementing the user store contract."""

    def __init__(self, path: Path) -> None:
        _ensure_directory(path)
        self._path = path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def initialize(self) -> None:
        """Create the users table if it does not already exist."""

        try:
            with self._connect() as conn:
                conn.executescript(
                    """
                    CREATE TABLE IF NOT EXISTS users (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        email TEXT UNIQUE NOT NULL,
                        password_hash TEXT NOT NULL,
                        full_name TEXT NOT NULL,
                        phone_number TEXT NOT NULL,
                        birthday TEXT NOT NULL,
                        created_at TEXT NOT NULL
                    );
                    """
                )
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to initialise database at {self._path}: {exc}") from exc
        logger.debug("User table ready at %s", self._path)

    # ------------------------------------------------------------------
    # User store contract
    # ------------------------------------------------------------------
    def create(self, record: UserRecord) -> UserRecord:
        """Insert a new user and return it with the assigned id."""

        email = normalize_email(record.email)
        try:
            with self._connect() as conn:
                cursor = conn.execute(
                    """
                    INSERT INTO users (
                        email,
                        password_hash,
                        full_name,
                        phone_number,
                        birthday,
                        created_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (
                        email,
                        record.password_hash,
                        record.full_name,
                        record.phone_number,
                        record.birthday,
                        _serialize_datetime(record.created_at),
                    ),
                )
                user_id = cursor.lastrowid
        except sqlite3.IntegrityError as exc:
            raise UniqueConstraintViolation("A user with that email already exists") from exc
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to insert user: {exc}") from exc

        return UserRecord(
            id=int(user_id),
            email=email,
            password_hash=record.password_hash,
            full_name=record.full_name,
            phone_number=record.phone_number,
            birthday=record.birthday,
            created_at=record.created_at,
        )

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        return self._fetch_one("SELECT * FROM users WHERE email = ?", (normalize_email(email),))

    def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        return self._fetch_one("SELECT * FROM users WHERE id = ?", (user_id,))

    def update(self, record: UserRecord) -> None:
        """Update the email and profile fields of an existing user.

        The password hash and creation time are left untouched. Unknown ids
        are ignored.
        """

        if record.id is None:
            raise StoreError("Cannot update a record without an id")
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    UPDATE users
                    SET email = ?, full_name = ?, phone_number = ?, birthday = ?
                    WHERE id = ?
                    """,
                    (
                        normalize_email(record.email),
                        record.full_name,
                        record.phone_number,
                        record.birthday,
                        record.id,
                    ),
                )
        except sqlite3.IntegrityError as exc:
            raise UniqueConstraintViolation("A user with that email already exists") from exc
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to update user {record.id}: {exc}") from exc

    def delete(self, user_id: int) -> None:
        try:
            with self._connect() as conn:
                conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to delete user {user_id}: {exc}") from exc

    def list_users(self) -> List[UserRecord]:
        try:
            with self._connect() as conn:
                rows = conn.execute("SELECT * FROM users ORDER BY id").fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to list users: {exc}") from exc
        return [self._row_to_user(row) for row in rows]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _fetch_one(self, query: str, params: tuple) -> Optional[UserRecord]:
        try:
            with self._connect() as conn:
                row = conn.execute(query, params).fetchone()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to load user: {exc}") from exc
        if row is None:
            return None
        return self._row_to_user(row)

    def _row_to_user(self, row: sqlite3.Row) -> UserRecord:
        return UserRecord(
            id=int(row["id"]),
            email=str(row["email"]),
            password_hash=str(row["password_hash"]),
            full_name=str(row["full_name"]),
            phone_number=str(row["phone_number"]),
            birthday=str(row["birthday"]),
            created_at=_parse_datetime(str(row["created_at"])),
        )


__all__ = ["Database", "resolve_database_path"]
