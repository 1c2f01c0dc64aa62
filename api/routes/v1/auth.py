"""
api/routes/v1/auth.py -- Registration, login and identity REST endpoints.

Routes:
  POST /api/v1/auth/register  -- create an account; 201 / 409 / 400
  POST /api/v1/auth/login     -- password login; returns a bearer token
  GET  /api/v1/auth/me        -- current user info (requires auth)

Security:
  Login returns the same generic 401 ("bad_credentials") for an unknown
  email, a wrong password and an inactive account. AuthService.login()
  also equalizes bcrypt timing between those cases -- use it, never inline
  get_user_by_email() + verify().
  Cache-Control: no-store on every login response, success or failure.

register and login are plain def routes: bcrypt is CPU-bound, and FastAPI
runs sync routes in its thread pool instead of on the event loop.

Errors are raised as core.errors.AppError subclasses; the handler in
api/main.py renders them into the shared ErrorResponse envelope.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from api.models import LoginRequest, LoginResponse, MeResponse, RegisterRequest, RegisterResponse
from auth.dependencies import require_user
from auth.models import User
from auth.service import AuthService
from core.errors import InvalidCredentialsError

logger = logging.getLogger("gatehouse.api")

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public -- login endpoint must be unauthenticated
# - GET  /api/v1/auth/me:       requires auth (require_user)
router = APIRouter()


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> RegisterResponse:
    """Create a user account.

    Duplicate emails (case-insensitive) raise ConflictError -> 409 with no
    detail beyond "already exists". The response never carries the hash.
    """
    service: AuthService = request.app.state.auth_service
    user = service.register(
        email=body.email,
        username=body.username,
        password=body.password,
        first_name=body.first_name,
        last_name=body.last_name,
    )
    return RegisterResponse(user_id=user.id, email=user.email, username=user.username)


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password; return a signed bearer token."""
    service: AuthService = request.app.state.auth_service
    try:
        result = service.login(body.email, body.password)
    except InvalidCredentialsError as exc:
        resp = JSONResponse(
            status_code=exc.status_code,
            content={"error": {"code": exc.code, "message": exc.message}},
        )
        resp.headers["Cache-Control"] = "no-store"
        return resp

    resp = JSONResponse(
        status_code=200,
        content=LoginResponse(
            token=result.token,
            user_id=result.user_id,
            email=result.email,
            username=result.username,
            expires_at=result.expires_at,
        ).model_dump(mode="json", by_alias=True),
    )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
def me(current_user: User = Depends(require_user)) -> MeResponse:
    """Return identity information for the currently authenticated user."""
    return MeResponse(
        user_id=current_user.id,
        email=current_user.email,
        username=current_user.username,
        first_name=current_user.first_name,
        last_name=current_user.last_name,
        is_active=current_user.is_active,
        created_at=current_user.created_at,
    )
