"""HTTP API for user registration, login and profile retrieval."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import List, Optional, Tuple, Type

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from .config import Settings, load_settings
from .credentials import CredentialService
from .database import Database
from .errors import (
    AuthHeaderError,
    DuplicateEmail,
    InvalidCredentials,
    NotFound,
    TokenError,
    TokenGenerationFailure,
    UserAuthError,
    ValidationError,
)
from .models import TokenClaims, UserRecord
from .passwords import PasswordHasher
from .security import AuthGate, build_auth_dependency
from .store import UserStore
from .tokens import TokenService

logger = logging.getLogger("userauth.service")

API_VERSION = "2.0.0"


class RegisterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    password: str = Field(..., min_length=6, max_length=128)
    full_name: str = Field(..., alias="fullName", min_length=2, max_length=128)
    phone_number: str = Field(..., alias="phoneNumber", min_length=10, max_length=32)
    birthday: str = Field(..., description="Date of birth formatted as YYYY-MM-DD")


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)


class UserResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    email: str
    full_name: str = Field(..., alias="fullName")
    phone_number: str = Field(..., alias="phoneNumber")
    birthday: str
    created_at: datetime = Field(..., alias="createdAt")


class UserEnvelope(BaseModel):
    message: str
    data: UserResponse


class LoginResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    token: str
    expires_at: datetime = Field(..., alias="expiresAt")
    user: UserResponse


class ErrorResponse(BaseModel):
    error: str
    code: str
    message: str


class IndexResponse(BaseModel):
    message: str
    version: str


# Checked in order; the first matching class wins.
_ERROR_STATUS: List[Tuple[Type[UserAuthError], int, str]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST, "Validation failed"),
    (DuplicateEmail, status.HTTP_409_CONFLICT, "Registration failed"),
    (InvalidCredentials, status.HTTP_401_UNAUTHORIZED, "Authentication failed"),
    (TokenError, status.HTTP_401_UNAUTHORIZED, "Unauthorized"),
    (AuthHeaderError, status.HTTP_401_UNAUTHORIZED, "Unauthorized"),
    (NotFound, status.HTTP_404_NOT_FOUND, "User not found"),
    (TokenGenerationFailure, status.HTTP_500_INTERNAL_SERVER_ERROR, "Token generation failed"),
]


def _classify(exc: UserAuthError) -> Tuple[int, str]:
    for error_type, status_code, label in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code, label
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error"


def _error_response(status_code: int, label: str, code: str, message: str, headers=None) -> JSONResponse:
    body = ErrorResponse(error=label, code=code, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump(), headers=headers)


def _format_validation_errors(exc: RequestValidationError) -> str:
    messages: List[str] = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        prefix = ".".join(location)
        text = str(error.get("msg", "invalid value"))
        messages.append(f"{prefix}: {text}" if prefix else text)
    return "; ".join(messages) or "Invalid request body"


def user_to_response(user: UserRecord) -> UserResponse:
    return UserResponse(
        id=int(user.id or 0),
        email=user.email,
        full_name=user.full_name,
        phone_number=user.phone_number,
        birthday=user.birthday,
        created_at=user.created_at,
    )


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(UserAuthError)
    async def _handle_user_auth_error(request: Request, exc: UserAuthError) -> JSONResponse:
        status_code, label = _classify(exc)
        headers = None
        if isinstance(exc, (TokenError, AuthHeaderError)):
            logger.info("Rejected request to %s: %s", request.url.path, exc.code)
            headers = {"WWW-Authenticate": "Bearer"}
        elif status_code >= 500:
            logger.error("Request to %s failed: %s", request.url.path, exc.code)
        return _error_response(status_code, label, exc.code, exc.public_message, headers)

    @app.exception_handler(RequestValidationError)
    async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            "Validation failed",
            ValidationError.code,
            _format_validation_errors(exc),
        )


def register_routes(
    app: FastAPI,
    credentials: CredentialService,
    tokens: TokenService,
    gate: AuthGate,
) -> None:
    current_claims = build_auth_dependency(gate)
    error_responses = {
        status.HTTP_400_BAD_REQUEST: {"model": ErrorResponse},
        status.HTTP_401_UNAUTHORIZED: {"model": ErrorResponse},
        status.HTTP_500_INTERNAL_SERVER_ERROR: {"model": ErrorResponse},
    }

    @app.get("/", response_model=IndexResponse, tags=["general"])
    def index() -> IndexResponse:
        return IndexResponse(message="User authentication service", version=API_VERSION)

    @app.post(
        "/register",
        response_model=UserEnvelope,
        status_code=status.HTTP_201_CREATED,
        tags=["authentication"],
        responses={**error_responses, status.HTTP_409_CONFLICT: {"model": ErrorResponse}},
    )
    def register(payload: RegisterRequest) -> UserEnvelope:
        """Register a new user account."""

        user = credentials.register(
            payload.email,
            payload.password,
            payload.full_name,
            payload.phone_number,
            payload.birthday,
        )
        return UserEnvelope(message="User registered successfully", data=user_to_response(user))

    @app.post(
        "/login",
        response_model=LoginResponse,
        tags=["authentication"],
        responses=error_responses,
    )
    def login(payload: LoginRequest) -> LoginResponse:
        """Authenticate with email and password and receive a bearer token."""

        user = credentials.authenticate(payload.email, payload.password)
        token, expires_at = tokens.issue_token(int(user.id or 0), user.email)
        return LoginResponse(
            message="Login successful",
            token=token,
            expires_at=expires_at,
            user=user_to_response(user),
        )

    @app.get(
        "/me",
        response_model=UserEnvelope,
        tags=["user"],
        responses={**error_responses, status.HTTP_404_NOT_FOUND: {"model": ErrorResponse}},
    )
    def me(claims: TokenClaims = Depends(current_claims)) -> UserEnvelope:
        """Return the profile of the user identified by the bearer token."""

        user = credentials.get_by_id(claims.user_id)
        return UserEnvelope(message="User information retrieved successfully", data=user_to_response(user))


def create_app(
    *,
    store: Optional[UserStore] = None,
    settings: Optional[Settings] = None,
    token_service: Optional[TokenService] = None,
    hasher: Optional[PasswordHasher] = None,
) -> FastAPI:
    """Instantiate the FastAPI application with explicitly wired services."""

    settings = settings or load_settings()

    if store is None:
        database = Database(settings.database_path)
        database.initialize()
        store = database

    tokens = token_service or TokenService(settings.require_secret())
    credentials = CredentialService(store, hasher or PasswordHasher(rounds=settings.password_rounds))
    gate = AuthGate(tokens)

    app = FastAPI(
        title="User Authentication API",
        version=API_VERSION,
        description="User registration, login and profile retrieval with bearer tokens.",
    )
    app.state.store = store
    app.state.credentials = credentials
    app.state.tokens = tokens

    register_exception_handlers(app)
    register_routes(app, credentials, tokens, gate)

    return app


__all__ = [
    "LoginRequest",
    "LoginResponse",
    "RegisterRequest",
    "UserEnvelope",
    "UserResponse",
    "create_app",
    "user_to_response",
]
