"""Configuration management for the user authentication service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .database import resolve_database_path
from .errors import ConfigurationError
from .passwords import DEFAULT_ROUNDS

CONFIG_ENV = "USERAUTH_CONFIG"

_ENV_KEYS = {
    "host": "USERAUTH_HOST",
    "port": "USERAUTH_PORT",
    "database_path": "USERAUTH_DB_PATH",
    "jwt_secret": "USERAUTH_JWT_SECRET",
    "password_rounds": "USERAUTH_PASSWORD_ROUNDS",
    "log_level": "USERAUTH_LOG_LEVEL",
}

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass(frozen=True)
class Settings:
    """Runtime settings for the HTTP service and CLI."""

    database_path: Path
    host: str = "0.0.0.0"
    port: int = 3000
    jwt_secret: Optional[str] = None
    password_rounds: int = DEFAULT_ROUNDS
    log_level: str = "INFO"

    def __repr__(self) -> str:
        secret = "<set>" if self.jwt_secret else None
        return (
            f"Settings(database_path={str(self.database_path)!r}, host={self.host!r}, "
            f"port={self.port!r}, jwt_secret={secret!r}, "
            f"password_rounds={self.password_rounds!r}, log_level={self.log_level!r})"
        )

    def require_secret(self) -> str:
        """Return the token signing secret or fail if none is configured."""

        if not self.jwt_secret or not self.jwt_secret.strip():
            raise ConfigurationError(
                f"A token signing secret is required; set {_ENV_KEYS['jwt_secret']}"
            )
        return self.jwt_secret


def _parse_int(raw: Any, field: str, *, minimum: int) -> int:
    if isinstance(raw, bool):
        raise ConfigurationError(f"Invalid integer value {raw!r} for {field}")
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"Invalid integer value {raw!r} for {field}") from exc
    if value < minimum:
        raise ConfigurationError(f"{field} must be at least {minimum}")
    return value


def _load_file(config_path: Path) -> Dict[str, Any]:
    try:
        with config_path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {config_path}") from exc
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Failed to read {config_path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ConfigurationError("Configuration file must contain a mapping at the top level")

    unknown = set(raw) - set(_ENV_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
    return raw


def load_settings(
    environ: Optional[Mapping[str, str]] = None,
    config_path: Optional[Path] = None,
) -> Settings:
    """Build settings from defaults, an optional YAML file, then the environment."""

    env = os.environ if environ is None else environ

    values: Dict[str, Any] = {}
    file_path = config_path
    if file_path is None and env.get(CONFIG_ENV):
        file_path = Path(env[CONFIG_ENV]).expanduser()
    if file_path is not None:
        values.update(_load_file(file_path))

    for field, key in _ENV_KEYS.items():
        raw = env.get(key)
        if raw is not None and raw.strip() != "":
            values[field] = raw.strip()

    settings = Settings(database_path=resolve_database_path(None))
    updates: Dict[str, Any] = {}
    if "database_path" in values:
        updates["database_path"] = resolve_database_path(str(values["database_path"]))
    if "host" in values:
        updates["host"] = str(values["host"])
    if "port" in values:
        port = _parse_int(values["port"], "port", minimum=1)
        if port > 65535:
            raise ConfigurationError("port must be at most 65535")
        updates["port"] = port
    if "jwt_secret" in values:
        updates["jwt_secret"] = str(values["jwt_secret"])
    if "password_rounds" in values:
        updates["password_rounds"] = _parse_int(values["password_rounds"], "password_rounds", minimum=1)
    if "log_level" in values:
        level = str(values["log_level"]).upper()
        if level not in _LOG_LEVELS:
            raise ConfigurationError(f"Unsupported log level {values['log_level']!r}")
        updates["log_level"] = level

    return replace(settings, **updates)


__all__ = ["CONFIG_ENV", "Settings", "load_settings"]
