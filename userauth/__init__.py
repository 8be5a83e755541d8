"""Credential and token core for the user authentication service."""

from __future__ import annotations

from typing import Any

from .credentials import CredentialService
from .database import Database, resolve_database_path
from .passwords import PasswordHasher
from .store import InMemoryUserStore, UserStore
from .tokens import TokenService


def create_app(*args: Any, **kwargs: Any):
    """Factory function that returns the HTTP application."""

    from .service import create_app as _create_app

    return _create_app(*args, **kwargs)


__all__ = [
    "CredentialService",
    "Database",
    "InMemoryUserStore",
    "PasswordHasher",
    "TokenService",
    "UserStore",
    "create_app",
    "resolve_database_path",
]
