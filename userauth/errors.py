"""Error types raised by the credential and token services."""

from __future__ import annotations

from typing import Optional


class UserAuthError(Exception):
    """Base class for errors the HTTP layer maps to a response."""

    code = "internal_error"
    default_message = "Internal error"

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)

    @property
    def public_message(self) -> str:
        return self.message


class ValidationError(UserAuthError):
    """Raised for malformed input before the store is touched."""

    code = "validation_error"
    default_message = "Invalid input"


class InvalidBirthdayFormat(ValidationError):
    code = "invalid_birthday_format"
    default_message = "invalid birthday format, should be YYYY-MM-DD"


class DuplicateEmail(UserAuthError):
    code = "duplicate_email"
    default_message = "user with this email already exists"


class InvalidCredentials(UserAuthError):
    """Raised for unknown emails and wrong passwords alike."""

    code = "invalid_credentials"
    default_message = "invalid credentials"


class NotFound(UserAuthError):
    code = "not_found"
    default_message = "user not found"


class HashFailure(UserAuthError):
    code = "hash_failure"
    default_message = "failed to hash password"


class PersistenceFailure(UserAuthError):
    code = "persistence_failure"
    default_message = "failed to save user"


class TokenGenerationFailure(UserAuthError):
    code = "token_generation_failure"
    default_message = "failed to generate token"


class TokenError(UserAuthError):
    """Base class for bearer token validation failures."""

    code = "invalid_token"
    default_message = "Invalid token"

    @property
    def public_message(self) -> str:
        return "Invalid token"


class MalformedToken(TokenError):
    code = "malformed_token"
    default_message = "token is malformed"


class InvalidSignatureAlgorithm(TokenError):
    code = "invalid_signature_algorithm"
    default_message = "unexpected token signing algorithm"


class InvalidSignature(TokenError):
    code = "invalid_signature"
    default_message = "token signature is invalid"


class TokenExpired(TokenError):
    code = "token_expired"
    default_message = "token has expired"


class AuthHeaderError(UserAuthError):
    """Base class for a missing or misshapen ``Authorization`` header."""

    code = "unauthorized"
    default_message = "Unauthorized"


class MissingHeader(AuthHeaderError):
    code = "missing_header"
    default_message = "Authorization header required"


class MissingBearerPrefix(AuthHeaderError):
    code = "missing_bearer_prefix"
    default_message = "Bearer token required"


class EmptyToken(AuthHeaderError):
    code = "empty_token"
    default_message = "Token required"


class HashError(RuntimeError):
    """Raised when a password cannot be hashed or a stored hash cannot be parsed."""


class StoreError(RuntimeError):
    """Raised by user stores for storage failures."""


class UniqueConstraintViolation(StoreError):
    """Raised when a write would duplicate a unique email address."""


class ConfigurationError(RuntimeError):
    """Raised when the service is misconfigured."""


__all__ = [
    "AuthHeaderError",
    "ConfigurationError",
    "DuplicateEmail",
    "EmptyToken",
    "HashError",
    "HashFailure",
    "InvalidBirthdayFormat",
    "InvalidCredentials",
    "InvalidSignature",
    "InvalidSignatureAlgorithm",
    "MalformedToken",
    "MissingBearerPrefix",
    "MissingHeader",
    "NotFound",
    "PersistenceFailure",
    "StoreError",
    "TokenError",
    "TokenExpired",
    "TokenGenerationFailure",
    "UniqueConstraintViolation",
    "UserAuthError",
    "ValidationError",
]
