"""Bearer token authentication for protected routes."""
from __future__ import annotations

from typing import Callable, Optional

from fastapi import Request, Security
from fastapi.security import APIKeyHeader

from .errors import EmptyToken, MissingBearerPrefix, MissingHeader
from .models import TokenClaims
from .tokens import TokenService

_BEARER_PREFIX = "Bearer "


class AuthGate:
    """Turn an ``Authorization`` header into validated token claims."""

    def __init__(self, tokens: TokenService) -> None:
        self._tokens = tokens

    def authenticate(self, header: Optional[str]) -> TokenClaims:
        if not header:
            raise MissingHeader()
        if not header.startswith(_BEARER_PREFIX):
            raise MissingBearerPrefix()

        token = header[len(_BEARER_PREFIX):].strip()
        if not token:
            raise EmptyToken()

        return self._tokens.validate_token(token)


def build_auth_dependency(gate: AuthGate) -> Callable[..., TokenClaims]:
    """Return a FastAPI dependency that injects the caller's claims."""

    header_scheme = APIKeyHeader(
        name="Authorization",
        auto_error=False,
        scheme_name="BearerAuth",
        description='Type "Bearer" followed by a space and the token.',
    )

    def dependency(
        request: Request,
        authorization: Optional[str] = Security(header_scheme),
    ) -> TokenClaims:
        claims = gate.authenticate(authorization)
        request.state.claims = claims
        return claims

    return dependency


__all__ = ["AuthGate", "build_auth_dependency"]
