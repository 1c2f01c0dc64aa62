"""
auth/store.py -- SQLAlchemy Core persistence layer for user credentials.

Pattern: Repository + Data Mapper (same as catalog/store.py).
UserStore is the repository; _row_to_user is the mapper. The service and
route code never touch SQL directly.

CredentialStore is the contract AuthService depends on. Any backend that can
create a user, surface a ConflictError on a duplicate email, and look a user
up by normalized email satisfies it; UserStore is the shipped implementation.

Uniqueness:
  UNIQUE(email) in the schema is the authoritative duplicate guard. The
  service's lookup-before-insert is only a fast path -- two concurrent
  registrations can both pass it, and the loser is caught here when the
  INSERT hits the constraint and re-raised as ConflictError.

Emails arrive already normalized (lowercase) from AuthService. The store
does not normalize again; it stores and compares exactly what it is given.

Security:
  All queries use bound parameters. No f-strings in SQL.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol

from sqlalchemy import Boolean, Column, MetaData, String, Table, Text, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import User
from core.config import get_settings
from core.db import make_engine
from core.errors import ConflictError, InternalError

# ---------------------------------------------------------------------------
# Contract
# ---------------------------------------------------------------------------


class CredentialStore(Protocol):
    def create(self, user: User) -> User: ...

    def get_by_email(self, email: str) -> User | None: ...

    def get_by_id(self, user_id: str) -> User | None: ...


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(36), primary_key=True),  # UUID4 string
    Column("email", String(320), nullable=False, unique=True),  # normalized lowercase
    Column("username", String(100), nullable=False),
    Column("password_hash", Text, nullable=False),
    Column("first_name", String(100)),
    Column("last_name", String(100)),
    Column("created_at", String(32), nullable=False),  # ISO 8601 UTC
    Column("updated_at", String(32), nullable=False),
    Column("is_active", Boolean, nullable=False, server_default="1"),
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _to_iso(value: datetime) -> str:
    return value.astimezone(timezone.utc).isoformat()


def _from_iso(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///gatehouse.db")
        store.create(User(email="a@b.com", username="a", password_hash=hasher.hash("secret")))
        user = store.get_by_email("a@b.com")
        store.close()
    """

    def __init__(self, db_url: str | None = None) -> None:
        self.engine: Engine = make_engine(db_url or get_settings().database_url)
        _metadata.create_all(self.engine)

    def create(self, user: User) -> User:
        """Insert a new user and return it.

        Raises ConflictError if the email is already taken and InternalError
        for any other constraint violation. Nothing is written in either
        case -- the INSERT is a single statement, so a failed insert leaves
        no partial record.
        """
        try:
            with self.engine.begin() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user.id,
                        email=user.email,
                        username=user.username,
                        password_hash=user.password_hash,
                        first_name=user.first_name,
                        last_name=user.last_name,
                        created_at=_to_iso(user.created_at),
                        updated_at=_to_iso(user.updated_at),
                        is_active=user.is_active,
                    )
                )
        except IntegrityError as exc:
            # Only a clash on email is a conflict the caller can act on. Any
            # other constraint (primary key, NOT NULL) is a server fault.
            if self.get_by_email(user.email) is not None:
                raise ConflictError("User with this email already exists.") from exc
            raise InternalError("Could not store user.") from exc
        return user

    def get_by_email(self, email: str) -> User | None:
        """Look up a user by normalized email. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    def get_by_id(self, user_id: str) -> User | None:
        """Look up a user by primary key. Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    def set_active(self, user_id: str, is_active: bool) -> bool:
        """Enable or disable a user. Returns False if user_id was not found.

        Deactivation is the only removal this service performs; rows are never
        deleted. updated_at is refreshed on every call.
        """
        with self.engine.begin() as conn:
            result = conn.execute(
                _users.update()
                .where(_users.c.id == user_id)
                .values(is_active=is_active, updated_at=_to_iso(datetime.now(timezone.utc)))
            )
        return result.rowcount > 0

    def ping(self) -> bool:
        """Return True if the database answers a trivial query. Used by /health."""
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        username=row.username,
        password_hash=row.password_hash,
        first_name=row.first_name,
        last_name=row.last_name,
        created_at=_from_iso(row.created_at),
        updated_at=_from_iso(row.updated_at),
        is_active=bool(row.is_active),
    )
