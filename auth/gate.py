"""
auth/gate.py -- Bearer-token gate for protected endpoints.

AuthGate.evaluate() turns an inbound request's path and Authorization header
into one of two values:

  Admitted(user_id)          -- token verified; user_id is the sub claim.
                                Health paths are admitted with user_id=None.
  Rejected(reason, response) -- response is a ready-made 401 JSON response.

Evaluation order (first match wins):
  1. path is a health path           -> Admitted(None), no header inspected
  2. header missing or blank         -> Rejected(MISSING_HEADER)
  3. not "Bearer <single credential>" -> Rejected(INVALID_FORMAT)
  4. signature / iss / aud / claims  -> Rejected(INVALID_TOKEN)
  5. exp <= now                      -> Rejected(EXPIRED)
  6. otherwise                       -> Admitted(sub)

The gate never aborts the request itself. The result is handed BY VALUE to
the route handler (auth/dependencies.authenticate), and the handler must
return Rejected.response verbatim before doing any protected work. There is
no per-request mutable context object.

Layer rule: no imports from api/ or catalog/. Starlette is allowed here for
the pre-built response, as in auth/dependencies.py.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from fastapi.responses import JSONResponse

from auth.tokens import TokenExpiredError, TokenVerifier
from core.errors import AuthenticationError

logger = logging.getLogger("gatehouse.gate")

_BEARER = "bearer"
HEALTH_PATHS = ("/health", "/api/v1/health")


class RejectReason(str, Enum):
    MISSING_HEADER = "missing authorization header"
    INVALID_FORMAT = "invalid token format"
    INVALID_TOKEN = "invalid token"
    EXPIRED = "token expired"

    @property
    def code(self) -> str:
        return {
            RejectReason.MISSING_HEADER: "missing_authorization",
            RejectReason.INVALID_FORMAT: "invalid_token_format",
            RejectReason.INVALID_TOKEN: "invalid_token",
            RejectReason.EXPIRED: "token_expired",
        }[self]

    @property
    def message(self) -> str:
        return self.value.capitalize()


def unauthorized_response(reason: RejectReason) -> JSONResponse:
    """Build the 401 a handler returns for a rejected request."""
    return JSONResponse(
        status_code=401,
        content={"error": {"code": reason.code, "message": reason.message}},
        headers={"WWW-Authenticate": "Bearer"},
    )


@dataclass(frozen=True)
class Admitted:
    user_id: str | None
    claims: dict = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason
    response: JSONResponse = field(compare=False, repr=False)

    @classmethod
    def because(cls, reason: RejectReason) -> "Rejected":
        return cls(reason=reason, response=unauthorized_response(reason))


AuthResult = Union[Admitted, Rejected]


def extract_bearer_token(header: str) -> str | None:
    """Return the credential from "Bearer <token>", or None if unusable.

    The scheme is matched case-insensitively. A missing credential, or one
    containing whitespace, is unusable.
    """
    scheme, _, credentials = header.strip().partition(" ")
    credentials = credentials.strip()
    if scheme.lower() != _BEARER or not credentials:
        return None
    if any(ch.isspace() for ch in credentials):
        return None
    return credentials


class AuthGate:
    """Evaluate requests against the token verifier."""

    def __init__(self, verifier: TokenVerifier, health_paths: tuple[str, ...] = HEALTH_PATHS) -> None:
        self._verifier = verifier
        self._health_paths = frozenset(health_paths)

    def is_health_path(self, path: str) -> bool:
        """Exact match only; /api/v1/products/health-check is not a health path."""
        return (path.rstrip("/") or "/") in self._health_paths

    def evaluate(self, path: str, authorization: str | None) -> AuthResult:
        if self.is_health_path(path):
            return Admitted(user_id=None)

        if authorization is None or not authorization.strip():
            return self._reject(path, RejectReason.MISSING_HEADER)

        token = extract_bearer_token(authorization)
        if token is None:
            return self._reject(path, RejectReason.INVALID_FORMAT)

        try:
            claims = self._verifier.verify(token)
        except TokenExpiredError:
            return self._reject(path, RejectReason.EXPIRED)
        except AuthenticationError:
            return self._reject(path, RejectReason.INVALID_TOKEN)

        return Admitted(user_id=claims["sub"], claims=claims)

    def _reject(self, path: str, reason: RejectReason) -> Rejected:
        logger.warning("Rejected request to %s: %s", path, reason.value)
        return Rejected.because(reason)
