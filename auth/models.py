"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Mirrors the approach
in catalog/models.py -- dataclasses own domain shape; stores, the service and
routes do the work.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class User:
    """A registered identity.

    email is always stored in its normalized (lowercase) form and is the
    lookup key; two users may never share it. username is a display name
    only and is not unique.

    password_hash is the full bcrypt string (salt and cost embedded). It must
    never appear in an HTTP response -- api/models.py maps User to response
    models field by field for that reason.

    Users are never hard-deleted; is_active=False disables login.
    """

    email: str
    username: str
    password_hash: str
    id: str = field(default_factory=_new_id)
    first_name: str | None = None
    last_name: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    is_active: bool = True


@dataclass(frozen=True)
class AuthResponse:
    """Result of a successful login. Transient -- never persisted."""

    token: str
    user_id: str
    email: str
    username: str
    expires_at: datetime
