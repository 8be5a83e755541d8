"""Domain models for user accounts and token claims."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class UserRecord:
    """Represents a user account stored in the user database."""

    id: Optional[int]
    email: str
    password_hash: str
    full_name: str
    phone_number: str
    birthday: str
    created_at: datetime

    def without_password(self) -> "UserRecord":
        """Return a copy that is safe to hand out past the service boundary."""

        return replace(self, password_hash="")

    def with_id(self, user_id: int) -> "UserRecord":
        return replace(self, id=user_id)


def _require_int(payload: Mapping[str, Any], key: str) -> int:
    value = payload.get(key)
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"Claim {key!r} must be an integer")
    return value


@dataclass(frozen=True)
class TokenClaims:
    """Identity asserted by a signed bearer token."""

    user_id: int
    email: str
    issued_at: datetime
    expires_at: datetime

    def to_payload(self) -> Dict[str, Any]:
        return {
            "sub": str(self.user_id),
            "user_id": self.user_id,
            "email": self.email,
            "iat": int(self.issued_at.timestamp()),
            "exp": int(self.expires_at.timestamp()),
        }

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TokenClaims":
        """Build claims from a decoded JWT claim set.

        Raises ``ValueError`` when a claim is missing or has the wrong type.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("Token claims must be a JSON object")

        user_id = _require_int(payload, "user_id")
        issued_at = _require_int(payload, "iat")
        expires_at = _require_int(payload, "exp")
        email = payload.get("email")
        if not isinstance(email, str):
            raise ValueError("Claim 'email' must be a string")

        try:
            issued = datetime.fromtimestamp(issued_at, tz=timezone.utc)
            expires = datetime.fromtimestamp(expires_at, tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as exc:
            raise ValueError("Token timestamps are out of range") from exc

        return cls(user_id=user_id, email=email, issued_at=issued, expires_at=expires)


__all__ = ["TokenClaims", "UserRecord"]
