"""
auth/service.py -- Registration and login orchestration.

AuthService is stateless across calls: it holds references to the credential
store, the password hasher and the token issuer, and every call does a fresh
store lookup. Failures are raised as typed errors from core.errors:

  register() -> ConflictError           duplicate normalized email
                ValidationError         password over 72 UTF-8 bytes
  login()    -> InvalidCredentialsError unknown email, inactive user, or
                                        wrong password (one signal for all)

Duplicate protection is two-layered. The lookup before insert answers the
common case cheaply; the store's UNIQUE constraint is the authoritative
guard and its ConflictError is passed through unchanged, so a registration
that loses a race gets the same answer as one that arrived second.

Timing equalization: when the email is unknown, login still runs a bcrypt
verify against a dummy hash so response time does not reveal whether the
account exists.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from auth.models import AuthResponse, User
from auth.passwords import MAX_PASSWORD_BYTES, PasswordHasher, password_too_long
from auth.store import CredentialStore
from auth.tokens import TokenIssuer
from core.errors import ConflictError, InvalidCredentialsError, ValidationError

logger = logging.getLogger("gatehouse.auth")


def normalize_email(email: str) -> str:
    """Canonical form used for storage, lookup and uniqueness."""
    return email.strip().lower()


class AuthService:
    def __init__(self, store: CredentialStore, hasher: PasswordHasher, issuer: TokenIssuer) -> None:
        self._store = store
        self._hasher = hasher
        self._issuer = issuer
        # Computed once so the first unknown-email login is not measurably
        # slower than later ones. Same cost factor as real hashes.
        self._dummy_hash = hasher.hash(secrets.token_urlsafe(16))

    def get_user_by_email(self, email: str) -> User | None:
        return self._store.get_by_email(normalize_email(email))

    def register(
        self,
        email: str,
        username: str,
        password: str,
        first_name: str | None = None,
        last_name: str | None = None,
    ) -> User:
        """Create a new user.

        Raises ConflictError if the email is taken and ValidationError if the
        password is longer than bcrypt accepts.
        """
        if password_too_long(password):
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded.")

        normalized = normalize_email(email)
        if self._store.get_by_email(normalized) is not None:
            logger.info("Registration rejected: email already registered")
            raise ConflictError("User with this email already exists.")

        now = datetime.now(timezone.utc)
        user = User(
            email=normalized,
            username=username,
            password_hash=self._hasher.hash(password),
            first_name=first_name,
            last_name=last_name,
            created_at=now,
            updated_at=now,
        )
        try:
            created = self._store.create(user)
        except ConflictError:
            logger.info("Registration rejected: concurrent insert won the email")
            raise
        logger.info("Registered user %s", created.id)
        return created

    def login(self, email: str, password: str) -> AuthResponse:
        """Verify credentials and issue a token.

        Raises InvalidCredentialsError for an unknown email, an inactive
        account, or a wrong password -- callers cannot tell which.
        """
        user = self._store.get_by_email(normalize_email(email))
        if user is None:
            # Equalize timing -- do NOT return before running bcrypt.
            self._hasher.verify(password, self._dummy_hash)
            raise InvalidCredentialsError()
        if not self._hasher.verify(password, user.password_hash):
            raise InvalidCredentialsError()
        if not user.is_active:
            logger.info("Login refused for inactive user %s", user.id)
            raise InvalidCredentialsError()

        token, expires_at = self._issuer.issue(user)
        logger.info("User %s logged in", user.id)
        return AuthResponse(
            token=token,
            user_id=user.id,
            email=user.email,
            username=user.username,
            expires_at=expires_at,
        )
