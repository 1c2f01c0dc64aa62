"""
core/errors.py -- Application error taxonomy.

Every error the service raises on purpose is an AppError subclass carrying
its HTTP status and a stable machine-readable code. api/main.py registers one
exception handler for AppError that renders the shared ErrorResponse envelope,
so routes and services never build error JSON by hand.

  ValidationError      400  malformed or missing fields (user-correctable)
  ConflictError        409  duplicate email on registration
  AuthenticationError  401  bad credentials, unusable token -- deliberately vague
  NotFoundError        404  catalog lookup misses
  InternalError        500  store unavailable, hashing failure

Anything that is NOT an AppError is unexpected and falls through to the
catch-all handler, which logs the traceback and returns a generic 500.

Layer rule: core/ is the kernel. No imports from api/, auth/, or catalog/.
"""

from __future__ import annotations


class AppError(Exception):
    """Base class for expected, client-reportable failures."""

    status_code: int = 500
    code: str = "internal_error"
    message: str = "An unexpected error occurred."

    def __init__(self, message: str | None = None, *, errors: list[str] | None = None) -> None:
        self.message = message or self.message
        self.errors = errors
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    code = "validation_error"
    message = "Validation failed."


class ConflictError(AppError):
    status_code = 409
    code = "conflict"
    message = "Resource already exists."


class AuthenticationError(AppError):
    status_code = 401
    code = "unauthorized"
    message = "Authentication required."


class InvalidCredentialsError(AuthenticationError):
    """Raised for an unknown email, a wrong password, or an inactive account.

    All three collapse into this one error with one message so the response
    does not reveal whether an account exists.
    """

    code = "bad_credentials"
    message = "Invalid email or password."


class NotFoundError(AppError):
    status_code = 404
    code = "not_found"
    message = "Resource not found."


class InternalError(AppError):
    status_code = 500
    code = "internal_error"
    message = "An unexpected error occurred."
