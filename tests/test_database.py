from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path

import pytest

from userauth.database import Database, resolve_database_path
from userauth.errors import UniqueConstraintViolation
from userauth.models import UserRecord
from userauth.store import InMemoryUserStore


CREATED_AT = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)


def _record(email: str = "owner@example.com", **overrides) -> UserRecord:
    values = dict(
        id=None,
        email=email,
        password_hash="$pbkdf2-sha256$1000$c2FsdA$aGFzaA",
        full_name="Store Owner",
        phone_number="0812345678",
        birthday="1990-01-15",
        created_at=CREATED_AT,
    )
    values.update(overrides)
    return UserRecord(**values)


@pytest.fixture(params=["sqlite", "memory"])
def store(request, tmp_path: Path):
    if request.param == "sqlite":
        db = Database(tmp_path / "users.sqlite3")
        db.initialize()
        return db
    return InMemoryUserStore()


def test_create_assigns_incrementing_ids(store) -> None:
    first = store.create(_record("first@example.com"))
    second = store.create(_record("second@example.com"))

    assert first.id is not None and first.id > 0
    assert second.id == first.id + 1
    assert first.password_hash == _record().password_hash


def test_lookup_by_email_and_id(store) -> None:
    created = store.create(_record())

    by_email = store.get_by_email("Owner@Example.com ")
    assert by_email == created
    assert store.get_by_id(created.id) == created
    assert by_email.created_at == CREATED_AT


def test_unknown_rows_return_none(store) -> None:
    assert store.get_by_email("missing@example.com") is None
    assert store.get_by_id(999) is None


def test_duplicate_email_violates_unique_constraint(store) -> None:
    store.create(_record("dup@example.com"))
    with pytest.raises(UniqueConstraintViolation):
        store.create(_record("DUP@example.com", full_name="Someone Else"))


def test_update_changes_profile_but_not_password(store) -> None:
    created = store.create(_record())
    store.update(
        _record(
            "renamed@example.com",
            id=created.id,
            password_hash="ignored",
            full_name="Renamed Owner",
            phone_number="0899999999",
            birthday="1985-12-31",
        )
    )

    updated = store.get_by_id(created.id)
    assert updated.email == "renamed@example.com"
    assert updated.full_name == "Renamed Owner"
    assert updated.phone_number == "0899999999"
    assert updated.birthday == "1985-12-31"
    assert updated.password_hash == created.password_hash
    assert store.get_by_email("owner@example.com") is None


def test_update_to_taken_email_is_rejected(store) -> None:
    store.create(_record("taken@example.com"))
    other = store.create(_record("other@example.com"))
    with pytest.raises(UniqueConstraintViolation):
        store.update(_record("taken@example.com", id=other.id))


def test_update_and_delete_of_missing_rows_are_noops(store) -> None:
    store.update(_record(id=4242))
    store.delete(4242)
    assert store.list_users() == []


def test_delete_removes_row(store) -> None:
    created = store.create(_record())
    store.delete(created.id)

    assert store.get_by_id(created.id) is None
    assert store.get_by_email(created.email) is None
    # the email becomes available again
    store.create(_record())


def test_list_users_is_ordered_by_id(store) -> None:
    emails = ["c@example.com", "a@example.com", "b@example.com"]
    for email in emails:
        store.create(_record(email))

    assert [user.email for user in store.list_users()] == emails


def test_resolve_database_path(tmp_path: Path) -> None:
    explicit = resolve_database_path(str(tmp_path / "custom.sqlite3"))
    assert explicit == (tmp_path / "custom.sqlite3").resolve()

    default = resolve_database_path(None)
    assert default.name == "users.sqlite3"
    assert default.parent.name == "data"
