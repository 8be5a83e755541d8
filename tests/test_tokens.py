"""Tests for bearer token issuance and validation."""

from __future__ import annotations

import base64
import json
from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from userauth.errors import (
    ConfigurationError,
    InvalidSignature,
    InvalidSignatureAlgorithm,
    MalformedToken,
    TokenExpired,
)
from userauth.tokens import ALGORITHM, TOKEN_TTL, TokenService


SECRET = "tests-signing-secret"
ISSUED = datetime(2024, 1, 1, 9, 30, tzinfo=timezone.utc)


def _b64(data: dict) -> str:
    raw = json.dumps(data, separators=(",", ":")).encode()
    return base64.urlsafe_b64encode(raw).rstrip(b"=").decode()


def _tamper_signature(token: str) -> str:
    head, signature = token.rsplit(".", 1)
    index = len(signature) // 2
    replacement = "A" if signature[index] != "A" else "B"
    return f"{head}.{signature[:index]}{replacement}{signature[index + 1:]}"


def _payload(**overrides) -> dict:
    payload = {
        "sub": "7",
        "user_id": 7,
        "email": "a@b.co",
        "iat": int(ISSUED.timestamp()),
        "exp": int((ISSUED + TOKEN_TTL).timestamp()),
    }
    payload.update(overrides)
    return payload


@pytest.fixture()
def service() -> TokenService:
    return TokenService(SECRET)


def test_issue_and_validate_round_trip(service: TokenService) -> None:
    before = datetime.now(timezone.utc)
    token, expires_at = service.issue_token(7, "a@b.co")

    claims = service.validate_token(token)
    assert claims.user_id == 7
    assert claims.email == "a@b.co"
    assert claims.expires_at == expires_at
    assert claims.expires_at - claims.issued_at == timedelta(hours=24)
    assert before - timedelta(seconds=1) <= claims.issued_at <= datetime.now(timezone.utc)


def test_token_header_uses_hs256(service: TokenService) -> None:
    token, _ = service.issue_token(1, "x@y.co")
    assert jwt.get_unverified_header(token)["alg"] == ALGORITHM == "HS256"
    assert jwt.get_unverified_claims(token)["sub"] == "1"


def test_tampered_signature_is_rejected(service: TokenService) -> None:
    token, _ = service.issue_token(7, "a@b.co")
    with pytest.raises(InvalidSignature):
        service.validate_token(_tamper_signature(token))


def test_tampered_payload_is_rejected(service: TokenService) -> None:
    token, _ = service.issue_token(7, "a@b.co")
    header, _, signature = token.split(".")
    forged = f"{header}.{_b64(_payload(user_id=1))}.{signature}"
    with pytest.raises(InvalidSignature):
        service.validate_token(forged)


def test_token_from_other_secret_is_rejected(service: TokenService) -> None:
    token, _ = TokenService("a-different-secret").issue_token(7, "a@b.co")
    with pytest.raises(InvalidSignature):
        service.validate_token(token)


@pytest.mark.parametrize("algorithm", ["HS384", "HS512"])
def test_other_algorithms_are_rejected(service: TokenService, algorithm: str) -> None:
    token = jwt.encode(_payload(), SECRET, algorithm=algorithm)
    with pytest.raises(InvalidSignatureAlgorithm):
        service.validate_token(token)


def test_unsigned_token_is_rejected(service: TokenService) -> None:
    token = f"{_b64({'alg': 'none', 'typ': 'JWT'})}.{_b64(_payload())}."
    with pytest.raises(InvalidSignatureAlgorithm):
        service.validate_token(token)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c", "only.two"])
def test_malformed_tokens(service: TokenService, token: str) -> None:
    with pytest.raises(MalformedToken):
        service.validate_token(token)


def test_signed_token_with_missing_claims_is_malformed(service: TokenService) -> None:
    payload = _payload()
    del payload["user_id"]
    token = jwt.encode(payload, SECRET, algorithm=ALGORITHM)
    with pytest.raises(MalformedToken):
        service.validate_token(token)


@pytest.mark.parametrize("claim", ["iat", "exp"])
def test_signed_token_with_out_of_range_timestamp_is_malformed(service: TokenService, claim: str) -> None:
    token = jwt.encode(_payload(**{claim: 10**20}), SECRET, algorithm=ALGORITHM)
    with pytest.raises(MalformedToken):
        service.validate_token(token)


def test_expired_token_is_rejected(service: TokenService) -> None:
    past = datetime.now(timezone.utc) - timedelta(days=2)
    token, expires_at = TokenService(SECRET, clock=lambda: past).issue_token(7, "a@b.co")

    assert expires_at < datetime.now(timezone.utc)
    with pytest.raises(TokenExpired):
        service.validate_token(token)


def test_expiry_is_strict() -> None:
    token, expires_at = TokenService(SECRET, clock=lambda: ISSUED).issue_token(7, "a@b.co")

    just_before = TokenService(SECRET, clock=lambda: expires_at - timedelta(seconds=1))
    assert just_before.validate_token(token).user_id == 7

    at_expiry = TokenService(SECRET, clock=lambda: expires_at)
    with pytest.raises(TokenExpired):
        at_expiry.validate_token(token)


def test_signature_is_checked_before_expiry() -> None:
    past = datetime.now(timezone.utc) - timedelta(days=2)
    token, _ = TokenService("another-secret", clock=lambda: past).issue_token(7, "a@b.co")
    with pytest.raises(InvalidSignature):
        TokenService(SECRET).validate_token(token)


def test_issue_truncates_to_whole_seconds() -> None:
    now = datetime(2024, 1, 1, 9, 30, 15, 987654, tzinfo=timezone.utc)
    _, expires_at = TokenService(SECRET, clock=lambda: now).issue_token(7, "a@b.co")
    assert expires_at == datetime(2024, 1, 2, 9, 30, 15, tzinfo=timezone.utc)


@pytest.mark.parametrize("secret", ["", "   ", b""])
def test_empty_secret_is_a_configuration_error(secret) -> None:
    with pytest.raises(ConfigurationError):
        TokenService(secret)


def test_secret_is_not_exposed_in_repr(service: TokenService) -> None:
    assert SECRET not in repr(service)
