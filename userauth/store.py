"""User store contract and an in-memory implementation."""

from __future__ import annotations

import threading
from typing import Dict, List, Optional, Protocol

from .errors import StoreError, UniqueConstraintViolation
from .models import UserRecord


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserStore(Protocol):
    """Row-level persistence for user records.

    Lookups return ``None`` for unknown rows. ``update`` and ``delete`` succeed
    silently when the id does not exist. Implementations enforce uniqueness of
    the email address and raise ``UniqueConstraintViolation`` on conflicts.
    """

    def create(self, record: UserRecord) -> UserRecord: ...

    def get_by_email(self, email: str) -> Optional[UserRecord]: ...

    def get_by_id(self, user_id: int) -> Optional[UserRecord]: ...

    def update(self, record: UserRecord) -> None: ...

    def delete(self, user_id: int) -> None: ...

    def list_users(self) -> List[UserRecord]: ...


class InMemoryUserStore:
    """Thread-safe dictionary-backed store for tests and ephemeral runs."""

    def __init__(self) -> None:
        self._records: Dict[int, UserRecord] = {}
        self._ids_by_email: Dict[str, int] = {}
        self._next_id = 1
        self._lock = threading.Lock()

    def create(self, record: UserRecord) -> UserRecord:
        email = normalize_email(record.email)
        if not email:
            raise StoreError("Email must not be empty")
        with self._lock:
            if email in self._ids_by_email:
                raise UniqueConstraintViolation("A user with that email already exists")
            user_id = self._next_id
            self._next_id += 1
            stored = record.with_id(user_id)
            self._records[user_id] = stored
            self._ids_by_email[email] = user_id
        return stored

    def get_by_email(self, email: str) -> Optional[UserRecord]:
        with self._lock:
            user_id = self._ids_by_email.get(normalize_email(email))
            if user_id is None:
                return None
            return self._records[user_id]

    def get_by_id(self, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            return self._records.get(user_id)

    def update(self, record: UserRecord) -> None:
        if record.id is None:
            raise StoreError("Cannot update a record without an id")
        email = normalize_email(record.email)
        with self._lock:
            current = self._records.get(record.id)
            if current is None:
                return
            owner = self._ids_by_email.get(email)
            if owner is not None and owner != record.id:
                raise UniqueConstraintViolation("A user with that email already exists")
            # password and creation time are not updatable
            updated = UserRecord(
                id=current.id,
                email=record.email,
                password_hash=current.password_hash,
                full_name=record.full_name,
                phone_number=record.phone_number,
                birthday=record.birthday,
                created_at=current.created_at,
            )
            self._ids_by_email.pop(normalize_email(current.email), None)
            self._ids_by_email[email] = record.id
            self._records[record.id] = updated

    def delete(self, user_id: int) -> None:
        with self._lock:
            record = self._records.pop(user_id, None)
            if record is not None:
                self._ids_by_email.pop(normalize_email(record.email), None)

    def list_users(self) -> List[UserRecord]:
        with self._lock:
            return [self._records[key] for key in sorted(self._records)]


__all__ = ["InMemoryUserStore", "UserStore", "normalize_email"]
