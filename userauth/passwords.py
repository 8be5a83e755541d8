"""Password hashing backed by passlib."""

from __future__ import annotations

from passlib.context import CryptContext

from .errors import HashError

DEFAULT_ROUNDS = 600_000
_SCHEME = "pbkdf2_sha256"


class PasswordHasher:
    """Salted PBKDF2-SHA256 hashing with a configurable work factor."""

    def __init__(self, *, rounds: int = DEFAULT_ROUNDS) -> None:
        if rounds < 1:
            raise ValueError("Password hashing rounds must be positive")
        self._rounds = rounds
        self._context = CryptContext(
            schemes=[_SCHEME],
            pbkdf2_sha256__default_rounds=rounds,
            pbkdf2_sha256__min_rounds=rounds,
        )

    @property
    def rounds(self) -> int:
        return self._rounds

    def hash(self, password: str) -> str:
        try:
            return self._context.hash(password)
        except (ValueError, TypeError, OSError) as exc:
            raise HashError("Unable to hash password") from exc

    def verify(self, password: str, hashed: str) -> bool:
        """Return ``True`` when ``password`` matches ``hashed``.

        Comparison is constant-time. An empty stored hash never matches;
        a stored value that is not a recognisable hash raises ``HashError``.
        """

        if not hashed:
            return False
        try:
            return bool(self._context.verify(password, hashed))
        except (ValueError, TypeError) as exc:
            raise HashError("Stored password hash could not be parsed") from exc

    def dummy_verify(self) -> None:
        """Burn the time of one verification for accounts that do not exist."""

        self._context.dummy_verify()


__all__ = ["DEFAULT_ROUNDS", "PasswordHasher"]
