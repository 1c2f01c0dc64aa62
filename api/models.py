"""
API request and response models for Gatehouse REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
catalog/models.py, which own the internal domain representation. Route
handlers map between the two -- which is also what keeps User.password_hash
out of every response body.

Wire names are camelCase (userId, userName, expiresAt, firstName) to match
the existing web client. Request models accept either spelling
(populate_by_name); response models serialize by alias.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_serializer, field_validator

from auth.passwords import MAX_PASSWORD_BYTES, password_too_long


def _check_password_bytes(value: str) -> str:
    if password_too_long(value):
        raise ValueError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes when UTF-8 encoded.")
    return value


# ---------------------------------------------------------------------------
# Shared envelopes
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload.

    errors carries one message per failed field on validation failures and
    is omitted otherwise.
    """

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    errors: Optional[list[str]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Auth -- requests
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /api/v1/auth/register.

    Passwords are taken verbatim; only the display fields are stripped.
    """

    model_config = ConfigDict(populate_by_name=True)

    email: EmailStr
    username: str = Field(min_length=3, max_length=50, alias="userName")
    password: str = Field(min_length=8)
    first_name: Optional[str] = Field(default=None, max_length=100, alias="firstName")
    last_name: Optional[str] = Field(default=None, max_length=100, alias="lastName")

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)

    @field_validator("username", "first_name", "last_name", mode="before")
    @classmethod
    def strip_display_fields(cls, value):
        return value.strip() if isinstance(value, str) else value


class LoginRequest(BaseModel):
    """Request body for POST /api/v1/auth/login.

    No minimum length beyond non-empty: a short wrong password should get the
    ordinary 401, not a validation error that hints at the password policy.
    """

    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        return _check_password_bytes(value)


# ---------------------------------------------------------------------------
# Auth -- responses
# ---------------------------------------------------------------------------


class RegisterResponse(BaseModel):
    """201 body for a successful registration. Never includes the hash."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(serialization_alias="userId")
    email: str
    username: str = Field(serialization_alias="userName")


class LoginResponse(BaseModel):
    """200 body for a successful login."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    token: str
    token_type: str = Field(default="bearer", serialization_alias="tokenType")
    user_id: str = Field(serialization_alias="userId")
    email: str
    username: str = Field(serialization_alias="userName")
    expires_at: datetime = Field(serialization_alias="expiresAt")


class MeResponse(BaseModel):
    """Identity of the authenticated caller."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    user_id: str = Field(serialization_alias="userId")
    email: str
    username: str = Field(serialization_alias="userName")
    first_name: Optional[str] = Field(default=None, serialization_alias="firstName")
    last_name: Optional[str] = Field(default=None, serialization_alias="lastName")
    is_active: bool = Field(serialization_alias="isActive")
    created_at: datetime = Field(serialization_alias="createdAt")


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


class ProductCreate(BaseModel):
    """Request body for POST /api/v1/products."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=3, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    price: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    category: Optional[str] = Field(default=None, max_length=100)
    stock: int = Field(default=0, ge=0)


class ProductResponse(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    name: str
    description: Optional[str] = None
    price: Decimal
    category: Optional[str] = None
    stock: int
    is_active: bool = Field(serialization_alias="isActive")
    created_by: str = Field(serialization_alias="createdBy")
    created_at: datetime = Field(serialization_alias="createdAt")
    updated_at: datetime = Field(serialization_alias="updatedAt")

    @field_serializer("price")
    def price_as_text(self, value: Decimal) -> str:
        """Two-place decimal string; a JSON float would round cents."""
        return f"{value:.2f}"
