"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

authenticate() is the soft variant: it never raises and returns the gate's
AuthResult. Protected handlers take it as a parameter and check it first:

    @router.get("/protected")
    def route(auth: AuthResult = Depends(authenticate)):
        if isinstance(auth, Rejected):
            return auth.response
        ...

require_user() is the hard variant for handlers that want the User record:
it turns a rejection into HTTP 401 and also refuses tokens whose subject no
longer exists or has been deactivated since the token was issued.

Layer rule: no imports from api/ or catalog/.
  auth/dependencies.py may import from fastapi (for Depends/HTTPException/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from auth.gate import AuthGate, AuthResult, Rejected
from auth.models import User
from auth.store import UserStore


def authenticate(request: Request) -> AuthResult:
    """Run the app's AuthGate for this request and return the result by value."""
    gate: AuthGate = request.app.state.gate
    return gate.evaluate(request.url.path, request.headers.get("Authorization"))


def require_user(request: Request, auth: AuthResult = Depends(authenticate)) -> User:
    """Require an authenticated, still-active user. Raises HTTP 401 otherwise."""
    if isinstance(auth, Rejected):
        raise HTTPException(
            status_code=401,
            detail={"code": auth.reason.code, "message": auth.reason.message},
            headers={"WWW-Authenticate": "Bearer"},
        )
    user_store: UserStore = request.app.state.user_store
    user = user_store.get_by_id(auth.user_id) if auth.user_id else None
    if user is None or not user.is_active:
        raise HTTPException(
            status_code=401,
            detail={"code": "unauthorized", "message": "Authentication required."},
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user
