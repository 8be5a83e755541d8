"""Issuing and validating signed bearer tokens.

Tokens are compact JWTs signed with HMAC-SHA256 using ``python-jose``. They
are self-contained: no server-side session table exists, so a token stays
valid until its ``exp`` claim passes.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Tuple, Union

from jose import JWSError, JWTError, jws, jwt

from .errors import (
    ConfigurationError,
    InvalidSignature,
    InvalidSignatureAlgorithm,
    MalformedToken,
    TokenExpired,
    TokenGenerationFailure,
)
from .models import TokenClaims

logger = logging.getLogger("userauth.tokens")

ALGORITHM = "HS256"
TOKEN_TTL = timedelta(hours=24)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issue and validate HS256 tokens carrying a user's id and email."""

    def __init__(
        self,
        secret: Union[str, bytes],
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        if not isinstance(secret, (str, bytes)) or not secret.strip():
            raise ConfigurationError("Token signing secret must not be empty")
        self._secret = secret
        self._clock = clock

    def __repr__(self) -> str:
        return f"{type(self).__name__}(algorithm={ALGORITHM!r})"

    def issue_token(self, user_id: int, email: str) -> Tuple[str, datetime]:
        """Return a signed token and the moment it expires."""

        issued_at = self._clock().replace(microsecond=0)
        claims = TokenClaims(
            user_id=user_id,
            email=email,
            issued_at=issued_at,
            expires_at=issued_at + TOKEN_TTL,
        )
        try:
            token = jwt.encode(claims.to_payload(), self._secret, algorithm=ALGORITHM)
        except (JWSError, JWTError, TypeError, ValueError) as exc:
            logger.error("Failed to sign token for user #%s: %s", user_id, exc)
            raise TokenGenerationFailure() from exc
        return token, claims.expires_at

    def validate_token(self, token: str) -> TokenClaims:
        """Decode ``token`` and return its claims.

        Checks run in order: structure, algorithm, signature, claims, expiry.
        """

        if not isinstance(token, str) or not token:
            raise MalformedToken()

        try:
            header = jwt.get_unverified_header(token)
        except JWTError as exc:
            raise MalformedToken() from exc

        algorithm = header.get("alg") if isinstance(header, dict) else None
        if algorithm != ALGORITHM:
            logger.warning("Rejected token signed with algorithm %r", algorithm)
            raise InvalidSignatureAlgorithm()

        try:
            payload = jws.verify(token, self._secret, algorithms=[ALGORITHM])
        except JWSError as exc:
            raise InvalidSignature() from exc

        try:
            claims = TokenClaims.from_payload(json.loads(payload))
        except ValueError as exc:
            raise MalformedToken(str(exc)) from exc

        if not claims.expires_at > self._clock():
            raise TokenExpired()
        return claims


__all__ = ["ALGORITHM", "TOKEN_TTL", "TokenService"]
