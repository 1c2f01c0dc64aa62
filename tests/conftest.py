"""
tests/conftest.py -- Shared test fixtures for Gatehouse unit and integration tests.

This module provides:
  - token_settings / hasher / user_store / auth_service: unit-level building
    blocks with a fixed test secret and the minimum bcrypt cost
  - FixedClock: a settable clock for deterministic expiry tests
  - api_client: TestClient over the real FastAPI app with isolated stores
  - new_account: factory that registers + logs in through the real HTTP routes

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the API fixture because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format shares one in-memory instance across
all connections in the same process.

The env vars below must be set before any api/ import: api/main.py reads
get_settings() at import time for the middleware configuration.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: set before any core/auth/api import so get_settings() sees them.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver", "localhost"]')

import pytest
from fastapi.testclient import TestClient

from api.main import app, build_state
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer
from catalog.store import ProductStore
from core.config import TokenSettings

TEST_SECRET = "test-secret-key-that-is-at-least-32-characters-long"


class FixedClock:
    """Callable clock for TokenIssuer/TokenVerifier. Move it with advance()."""

    def __init__(self, now: datetime | None = None) -> None:
        self.now = now or datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def token_settings() -> TokenSettings:
    return TokenSettings(
        secret_key=TEST_SECRET,
        issuer="gatehouse-test",
        audience="gatehouse-test-api",
        lifetime_minutes=30,
    )


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


@pytest.fixture
def user_store() -> Generator[UserStore, None, None]:
    """Single-threaded in-memory store -- fine for direct method calls."""
    store = UserStore("sqlite:///:memory:")
    yield store
    store.close()


@pytest.fixture
def auth_service(user_store, hasher, token_settings, clock) -> AuthService:
    return AuthService(user_store, hasher, TokenIssuer(token_settings, clock=clock))


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(user_store: UserStore, product_store: ProductStore):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state via build_state(), so the
    TestClient exercises the real hasher / issuer / gate with isolated DBs.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        build_state(app, user_store, product_store)
        yield

    return test_lifespan


@pytest.fixture(scope="module")
def api_client() -> Generator[TestClient, None, None]:
    """Yield a TestClient bound to fresh shared-memory stores for this module."""
    suffix = uuid.uuid4().hex[:8]
    user_store = UserStore(f"sqlite:///file:test_users_{suffix}?mode=memory&cache=shared&uri=true")
    product_store = ProductStore(f"sqlite:///file:test_products_{suffix}?mode=memory&cache=shared&uri=true")

    app.router.lifespan_context = _patch_lifespan(user_store, product_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client

    product_store.close()
    user_store.close()


@pytest.fixture
def new_account(api_client: TestClient):
    """Return a factory that registers and logs in a fresh account over HTTP.

    Each call uses a unique email so module-scoped stores never collide.
    The factory returns a dict with email, password, user_id and token.
    """

    def _create(password: str = "Secret123", username: str = "tester") -> dict:
        email = f"user-{uuid.uuid4().hex[:10]}@x.com"
        resp = api_client.post(
            "/api/v1/auth/register",
            json={"email": email, "username": username, "password": password},
        )
        assert resp.status_code == 201, resp.text
        login = api_client.post("/api/v1/auth/login", json={"email": email, "password": password})
        assert login.status_code == 200, login.text
        return {
            "email": email,
            "password": password,
            "user_id": resp.json()["userId"],
            "token": login.json()["token"],
        }

    return _create
