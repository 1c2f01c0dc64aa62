"""
auth/tokens.py -- JWT issuance and verification.

Security design decisions:
  JWT: python-jose with HS256. Tokens are signed with the shared SECRET_KEY
       and carry sub (user id), email, username, iss, aud, iat and exp.
       TokenIssuer and TokenVerifier both take the same frozen TokenSettings
       value, built once at startup (core.config.Settings.token_settings()).

  Expiry: checked here rather than by python-jose. jose treats exp == now as
       still valid; this service rejects a token whose exp is AT or before
       the verification time, with zero clock-skew tolerance. Doing the
       comparison ourselves also lets tests inject a clock.

  Statelessness: nothing about an issued token is stored server-side. A token
       is valid iff its signature, issuer, audience and time window check out
       at verification time. There is no revocation list.

  Failure kinds: verify() raises InvalidTokenError or TokenExpiredError, both
       AuthenticationError subclasses. auth/gate.py turns them into Rejected
       results; nothing here builds HTTP responses.

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING, Any

from jose import JWTError, jwt

from core.config import TokenSettings
from core.errors import AuthenticationError

if TYPE_CHECKING:
    from auth.models import User

logger = logging.getLogger("gatehouse.auth")

Clock = Callable[[], datetime]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InvalidTokenError(AuthenticationError):
    """Signature, issuer, audience or claim-shape check failed."""

    code = "invalid_token"
    message = "Invalid token."


class TokenExpiredError(AuthenticationError):
    """The token was genuine but its exp is at or before now."""

    code = "token_expired"
    message = "Token expired."


# ---------------------------------------------------------------------------
# Issuer
# ---------------------------------------------------------------------------


class TokenIssuer:
    """Create signed, time-bounded tokens asserting a user's identity."""

    def __init__(self, settings: TokenSettings, clock: Clock = _utcnow) -> None:
        self._settings = settings
        self._clock = clock

    @property
    def lifetime(self) -> timedelta:
        return timedelta(minutes=self._settings.lifetime_minutes)

    def issue(self, user: User) -> tuple[str, datetime]:
        """Encode a signed JWT for the user and return (token, expires_at).

        now is truncated to whole seconds because iat/exp are integer claims.
        That keeps the returned expires_at identical to the exp inside the
        token, so callers can report it without decoding.
        """
        issued_at = self._clock().replace(microsecond=0)
        expires_at = issued_at + self.lifetime
        payload = {
            "sub": user.id,
            "email": user.email,
            "username": user.username,
            "iss": self._settings.issuer,
            "aud": self._settings.audience,
            "iat": int(issued_at.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        token = jwt.encode(payload, self._settings.secret_key, algorithm=self._settings.algorithm)
        return token, expires_at


# ---------------------------------------------------------------------------
# Verifier
# ---------------------------------------------------------------------------


class TokenVerifier:
    """Validate signature, issuer, audience and expiry; return the claims."""

    # verify_exp is off: expiry is compared below with zero skew and an
    # injectable clock. exp must stay out of the require_* list: jose turns
    # verify_exp back on for every required claim. A missing or non-numeric
    # exp is rejected by the type check in verify().
    _DECODE_OPTIONS = {
        "verify_exp": False,
        "require_iat": True,
        "require_sub": True,
        "require_iss": True,
        "require_aud": True,
    }

    def __init__(self, settings: TokenSettings, clock: Clock = _utcnow) -> None:
        self._settings = settings
        self._clock = clock

    def verify(self, token: str) -> dict[str, Any]:
        """Decode and fully verify a token. Returns the claims dict.

        Raises InvalidTokenError for a bad signature, malformed token,
        issuer/audience mismatch or missing claims; TokenExpiredError when
        exp <= now.
        """
        try:
            claims = jwt.decode(
                token,
                self._settings.secret_key,
                algorithms=[self._settings.algorithm],
                audience=self._settings.audience,
                issuer=self._settings.issuer,
                options=self._DECODE_OPTIONS,
            )
        except JWTError as exc:
            raise InvalidTokenError() from exc

        sub = claims.get("sub")
        if not isinstance(sub, str) or not sub:
            raise InvalidTokenError()

        exp = claims.get("exp")
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise InvalidTokenError()
        if exp <= self._clock().timestamp():
            raise TokenExpiredError()
        return claims
