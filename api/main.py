"""
api/main.py -- FastAPI application entry point for Gatehouse.

Install deps:  pip install -e .
Run with:      uvicorn asgi:app --reload

Middleware stack (outermost to innermost):
  1. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  2. CORSMiddleware        -- adds CORS headers for allowed browser origins
  3. log_requests          -- one access-log line per request

Authentication is NOT a middleware here. The AuthGate built in lifespan is
evaluated per request by auth.dependencies.authenticate, and its result is
passed by value into each protected handler.

Lifespan builds every long-lived object once -- settings, stores, hasher,
token issuer/verifier, auth service, gate -- and tears the stores down
symmetrically on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.v1.auth import router as auth_router
from api.routes.v1.products import router as products_router
from auth.gate import AuthGate
from auth.passwords import PasswordHasher
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import TokenIssuer, TokenVerifier
from catalog.store import ProductStore
from core.config import get_settings
from core.errors import AppError, ValidationError

VERSION = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("gatehouse.api")

# ---------------------------------------------------------------------------
# Lifespan -- modern startup / shutdown pattern (replaces @app.on_event)
# ---------------------------------------------------------------------------


def build_state(app: FastAPI, user_store: UserStore, product_store: ProductStore) -> None:
    """Wire the auth components onto app.state around the given stores.

    Split out of lifespan so tests can supply in-memory stores and still get
    the real hasher / issuer / verifier / gate wiring.
    """
    settings = get_settings()
    token_settings = settings.token_settings()
    hasher = PasswordHasher(rounds=settings.bcrypt_rounds)

    app.state.user_store = user_store
    app.state.product_store = product_store
    app.state.auth_service = AuthService(user_store, hasher, TokenIssuer(token_settings))
    app.state.gate = AuthGate(TokenVerifier(token_settings))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application-level resources across the full server lifetime.

    Everything before yield runs on startup; everything after yield runs on
    shutdown.
    """
    logger.info("Gatehouse API starting up")
    settings = get_settings()
    build_state(app, UserStore(settings.database_url), ProductStore(settings.database_url))
    logger.info(
        "Auth initialized (issuer=%s, audience=%s, lifetime=%dm)",
        settings.token_issuer,
        settings.token_audience,
        settings.token_lifetime_minutes,
    )

    yield

    app.state.product_store.close()
    app.state.user_store.close()
    logger.info("Gatehouse API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Gatehouse API",
    description="User registration, password login and bearer-token protected catalog endpoints.",
    version=VERSION,
    lifespan=lifespan,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() wraps the app, so the LAST middleware added is the
# outermost. Register innermost-first: CORS, then TrustedHost.
# ---------------------------------------------------------------------------

app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
    max_age=3600,
)

app.add_middleware(
    TrustedHostMiddleware,
    allowed_hosts=get_settings().allowed_hosts,
)

# ---------------------------------------------------------------------------
# Request logging middleware
#
# Every request passes through this coroutine before reaching any route
# handler. The Authorization header is never logged.
# ---------------------------------------------------------------------------


@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.perf_counter()
    response = await call_next(request)
    ms = (time.perf_counter() - start) * 1000
    logger.info(
        "%s %s %d %.1fms %s",
        request.method,
        request.url.path,
        response.status_code,
        ms,
        request.client.host if request.client else "unknown",
    )
    return response


# ---------------------------------------------------------------------------
# Router registration
# ---------------------------------------------------------------------------

app.include_router(auth_router, prefix="/api/v1", tags=["Auth"])
app.include_router(products_router, prefix="/api/v1", tags=["Products"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so API clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _field_error(err: dict) -> str:
    loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
    message = err.get("msg", "Invalid value")
    return f"{loc}: {message}" if loc else message


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 400 with one message per failed field.

    A body that is not JSON at all (json_invalid) is reported as an invalid
    request body rather than a field-level failure.
    """
    errors = exc.errors()
    if any(err.get("type") == "json_invalid" for err in errors):
        detail = ErrorDetail(code="invalid_body", message="Invalid request body.")
    else:
        detail = ErrorDetail(
            code=ValidationError.code,
            message=ValidationError.message,
            errors=[_field_error(err) for err in errors],
        )
    return JSONResponse(status_code=400, content=ErrorResponse(error=detail).model_dump(exclude_none=True))


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render expected domain failures (conflict, not found, ...) as JSON."""
    if exc.status_code >= 500:
        logger.error("Internal error on %s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(code=exc.code, message=exc.message, errors=exc.errors)
        ).model_dump(exclude_none=True),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Return a structured error for all FastAPI/Starlette HTTP exceptions.

    When detail is already a structured dict, use it directly as the error
    field rather than stringifying it -- str(dict) produces a Python repr,
    not JSON.
    """
    if isinstance(exc.detail, dict):
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=exc.headers,
        )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=ErrorDetail(
                code=f"http_{exc.status_code}",
                message=str(exc.detail),
            )
        ).model_dump(exclude_none=True),
        headers=exc.headers,
    )


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all handler for unexpected server errors.

    The raw exception is written to the log only, never to the response body.
    The client receives only a generic message.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error=ErrorDetail(
                code="internal_error",
                message="An unexpected error occurred.",
            )
        ).model_dump(exclude_none=True),
    )


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py (not in a router) so it is always reachable.
# Never gated: health checks from load balancers carry no token.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["Health"])
def health(request: Request) -> HealthResponse:
    """Return API liveness, version and database reachability."""
    try:
        database = "ok" if request.app.state.user_store.ping() else "error"
    except Exception:
        logger.exception("Health check: database unreachable")
        database = "error"
    return HealthResponse(version=VERSION, components={"app": "ok", "database": database})
