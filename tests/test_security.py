from __future__ import annotations

import pytest

from userauth.errors import (
    EmptyToken,
    InvalidSignature,
    MalformedToken,
    MissingBearerPrefix,
    MissingHeader,
    TokenError,
)
from userauth.security import AuthGate
from userauth.tokens import TokenService


@pytest.fixture()
def tokens() -> TokenService:
    return TokenService("gate-secret")


@pytest.fixture()
def gate(tokens: TokenService) -> AuthGate:
    return AuthGate(tokens)


def test_valid_bearer_header_yields_claims(gate: AuthGate, tokens: TokenService) -> None:
    token, _ = tokens.issue_token(42, "gate@example.com")
    claims = gate.authenticate(f"Bearer {token}")
    assert claims.user_id == 42
    assert claims.email == "gate@example.com"


@pytest.mark.parametrize("header", [None, ""])
def test_missing_header(gate: AuthGate, header) -> None:
    with pytest.raises(MissingHeader) as excinfo:
        gate.authenticate(header)
    assert excinfo.value.public_message == "Authorization header required"


@pytest.mark.parametrize("header", ["Basic dXNlcjpwYXNz", "bearer abc", "Token abc", "Bearer"])
def test_missing_bearer_prefix(gate: AuthGate, header: str) -> None:
    with pytest.raises(MissingBearerPrefix) as excinfo:
        gate.authenticate(header)
    assert excinfo.value.public_message == "Bearer token required"


@pytest.mark.parametrize("header", ["Bearer ", "Bearer    "])
def test_empty_token(gate: AuthGate, header: str) -> None:
    with pytest.raises(EmptyToken) as excinfo:
        gate.authenticate(header)
    assert excinfo.value.public_message == "Token required"


def test_invalid_tokens_use_generic_message(gate: AuthGate) -> None:
    with pytest.raises(MalformedToken) as excinfo:
        gate.authenticate("Bearer garbage")
    assert excinfo.value.public_message == "Invalid token"


def test_token_signed_elsewhere_is_rejected(gate: AuthGate) -> None:
    foreign, _ = TokenService("other-secret").issue_token(42, "gate@example.com")
    with pytest.raises(InvalidSignature) as excinfo:
        gate.authenticate(f"Bearer {foreign}")
    assert isinstance(excinfo.value, TokenError)
    assert excinfo.value.public_message == "Invalid token"
