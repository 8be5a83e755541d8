"""Command-line interface for the user authentication service."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from dataclasses import replace
from getpass import getpass
from pathlib import Path
from typing import Optional, Sequence

from userauth.config import Settings, load_settings
from userauth.credentials import CredentialService
from userauth.database import Database, resolve_database_path
from userauth.errors import ConfigurationError, StoreError, UserAuthError
from userauth.passwords import PasswordHasher

logger = logging.getLogger("userauth.main")

_MIN_PASSWORD_LENGTH = 6


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--config",
        default=None,
        help="Path to a YAML settings file (defaults to USERAUTH_CONFIG when set)",
    )
    common.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Path to the SQLite database (defaults to USERAUTH_DB_PATH or data/users.sqlite3)",
    )

    parser = argparse.ArgumentParser(description="User authentication service utilities")
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="serve")

    subparsers.add_parser("init-db", parents=[common], help="Initialise the user database")

    serve_parser = subparsers.add_parser("serve", parents=[common], help="Start the HTTP service")
    serve_parser.add_argument("--host", default=None, help="Bind address for the API")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port for the HTTP API (default: 3000)",
    )

    create_parser = subparsers.add_parser(
        "create-user", parents=[common], help="Register a user account interactively"
    )
    create_parser.add_argument("email", help="Unique email address used to log in")

    subparsers.add_parser("list-users", parents=[common], help="List registered users")

    args_list = list(argv) if argv is not None else sys.argv[1:]
    known_commands = {"serve", "init-db", "create-user", "list-users"}

    if not args_list:
        args_list = ["serve"]
    else:
        first = args_list[0]
        if first in ("-h", "--help"):
            return parser.parse_args(args_list)
        if first not in known_commands:
            args_list = ["serve", *args_list]

    return parser.parse_args(args_list)


def _load_settings(args: argparse.Namespace) -> Settings:
    config_path = Path(args.config).expanduser() if args.config else None
    settings = load_settings(config_path=config_path)
    if args.db_path:
        settings = replace(settings, database_path=resolve_database_path(args.db_path))
    return settings


def _initialise_database(settings: Settings) -> Database:
    database = Database(settings.database_path)
    database.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return database


def _serve(*, database: Database, settings: Settings, host: str | None, port: int | None) -> None:
    from userauth.service import create_app
    import uvicorn

    bind_host = host or settings.host
    bind_port = port or settings.port
    app = create_app(store=database, settings=settings)

    logger.info("Starting user authentication API on http://%s:%s", bind_host, bind_port)
    uvicorn.run(
        app,
        host=bind_host,
        port=bind_port,
        log_level=settings.log_level.lower(),
    )


def _prompt(label: str) -> str:
    return input(f"{label}: ").strip()


def _prompt_for_password() -> Optional[str]:
    for _ in range(3):
        password = getpass(f"Password (min {_MIN_PASSWORD_LENGTH} characters): ")
        if len(password) < _MIN_PASSWORD_LENGTH:
            print("Password is too short. Please try again.")
            continue
        confirmation = getpass("Confirm password: ")
        if password != confirmation:
            print("Passwords do not match. Please try again.")
            continue
        return password
    return None


def _create_user(database: Database, settings: Settings, email: str) -> int:
    full_name = _prompt("Full name")
    phone_number = _prompt("Phone number")
    birthday = _prompt("Birthday (YYYY-MM-DD)")

    password = _prompt_for_password()
    if password is None:
        print("Aborted creating user.", file=sys.stderr)
        return 1

    service = CredentialService(database, PasswordHasher(rounds=settings.password_rounds))
    try:
        user = service.register(email, password, full_name, phone_number, birthday)
    except UserAuthError as exc:
        print(f"Failed to create user: {exc}", file=sys.stderr)
        return 1

    print(f"Created user #{user.id}: {user.full_name} <{user.email}>")
    return 0


def _list_users(database: Database) -> int:
    users = database.list_users()
    if not users:
        print("No users are currently registered.")
        return 0

    print(f"{len(users)} user(s) found:")
    print(f"{'ID':>4}  {'Name':<24}  {'Email':<32}  {'Birthday':<10}  Created")
    print("-" * 96)
    for user in users:
        created = user.created_at.strftime("%Y-%m-%d %H:%M:%S %Z")
        print(f"{user.id:>4}  {user.full_name:<24}  {user.email:<32}  {user.birthday:<10}  {created}")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    args = _parse_args(argv)

    try:
        settings = _load_settings(args)
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
    )

    try:
        database = _initialise_database(settings)
    except StoreError as exc:
        print(f"Database error: {exc}", file=sys.stderr)
        return 1

    if args.command == "serve":
        try:
            settings.require_secret()
        except ConfigurationError as exc:
            print(f"Configuration error: {exc}", file=sys.stderr)
            return 2
        _serve(database=database, settings=settings, host=args.host, port=args.port)
    elif args.command == "create-user":
        return _create_user(database, settings, args.email)
    elif args.command == "list-users":
        return _list_users(database)
    elif args.command == "init-db":
        print(f"Database initialisation complete ({os.fspath(settings.database_path)}).")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
