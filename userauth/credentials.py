"""Registration and authentication of user accounts."""

from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Optional

from .errors import (
    DuplicateEmail,
    HashError,
    HashFailure,
    InvalidBirthdayFormat,
    InvalidCredentials,
    NotFound,
    PersistenceFailure,
    StoreError,
    UniqueConstraintViolation,
    ValidationError,
)
from .models import UserRecord
from .passwords import PasswordHasher
from .store import UserStore, normalize_email

logger = logging.getLogger("userauth.credentials")

_BIRTHDAY_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def validate_birthday(value: str) -> str:
    """Return ``value`` if it is a real calendar date in ``YYYY-MM-DD`` form."""

    if not isinstance(value, str) or not _BIRTHDAY_PATTERN.fullmatch(value):
        raise InvalidBirthdayFormat()
    try:
        datetime.strptime(value, "%Y-%m-%d")
    except ValueError as exc:
        raise InvalidBirthdayFormat() from exc
    return value


def _require(value: str, field: str) -> str:
    stripped = value.strip() if isinstance(value, str) else ""
    if not stripped:
        raise ValidationError(f"{field} must not be empty")
    return stripped


class CredentialService:
    """Orchestrates registration, login and lookup against a user store."""

    def __init__(
        self,
        store: UserStore,
        hasher: Optional[PasswordHasher] = None,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._hasher = hasher or PasswordHasher()
        self._clock = clock

    def register(
        self,
        email: str,
        password: str,
        full_name: str,
        phone_number: str,
        birthday: str,
    ) -> UserRecord:
        """Create a new account and return it without its password hash."""

        normalized_email = normalize_email(_require(email, "email"))
        if not isinstance(password, str) or not password:
            raise ValidationError("password must not be empty")
        full_name = _require(full_name, "full name")
        phone_number = _require(phone_number, "phone number")

        try:
            existing = self._store.get_by_email(normalized_email)
        except StoreError as exc:
            raise PersistenceFailure("failed to load user") from exc
        if existing is not None:
            raise DuplicateEmail()

        validate_birthday(birthday)

        try:
            password_hash = self._hasher.hash(password)
        except HashError as exc:
            logger.error("Password hashing failed: %s", exc)
            raise HashFailure() from exc

        record = UserRecord(
            id=None,
            email=normalized_email,
            password_hash=password_hash,
            full_name=full_name,
            phone_number=phone_number,
            birthday=birthday,
            created_at=self._clock(),
        )

        try:
            saved = self._store.create(record)
        except UniqueConstraintViolation as exc:
            # lost a race with a concurrent registration for the same email
            raise DuplicateEmail() from exc
        except StoreError as exc:
            logger.error("Failed to persist user %s: %s", normalized_email, exc)
            raise PersistenceFailure() from exc

        logger.info("Registered user #%s <%s>", saved.id, saved.email)
        return saved.without_password()

    def authenticate(self, email: str, password: str) -> UserRecord:
        """Return the account matching the credentials.

        Unknown emails and wrong passwords raise the same
        ``InvalidCredentials`` error.
        """

        normalized_email = normalize_email(email) if isinstance(email, str) else ""
        try:
            user = self._store.get_by_email(normalized_email) if normalized_email else None
        except StoreError as exc:
            raise PersistenceFailure("failed to load user") from exc

        if user is None:
            self._hasher.dummy_verify()
            logger.warning("Failed login for %s", normalized_email or "<empty>")
            raise InvalidCredentials()

        try:
            matches = self._hasher.verify(password, user.password_hash)
        except HashError as exc:
            logger.error("Stored password hash for user #%s is unreadable: %s", user.id, exc)
            matches = False

        if not matches:
            logger.warning("Failed login for %s", normalized_email)
            raise InvalidCredentials()

        logger.info("User #%s authenticated", user.id)
        return user.without_password()

    def get_by_id(self, user_id: int) -> UserRecord:
        try:
            user = self._store.get_by_id(user_id)
        except StoreError as exc:
            raise PersistenceFailure("failed to load user") from exc
        if user is None:
            raise NotFound()
        return user.without_password()


__all__ = ["CredentialService", "validate_birthday"]
