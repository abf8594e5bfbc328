"""
api/main.py -- FastAPI application entry point for Taskify.

Exposes the auth.* and tasks.* remote procedures under /rpc plus a health
endpoint under /api/v1. The browser client talks to this app only; it never
sees or manages the session id -- that lives in an httpOnly cookie.

Run with:      uvicorn asgi:app --reload
               python main.py serve

Middleware stack (outermost to innermost):
  1. log_requests          -- method, path, status, latency (also logs rejections)
  2. security_headers      -- nosniff / frame deny / referrer policy
  3. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  4. CORSMiddleware        -- credentialed CORS for the configured client origins
  5. SlowAPIASGIMiddleware -- fixed-window rate limit per client IP; awaits the
                              async 429 handler so rejections share the envelope

Lifespan builds one engine, the stores and the services on app.state and
disposes the engine on shutdown.
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from datetime import datetime

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIASGIMiddleware
from sqlalchemy.engine import Engine
from starlette.exceptions import HTTPException as StarletteHTTPException

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.rpc.auth import router as auth_router
from api.routes.rpc.tasks import router as tasks_router
from auth.service import AuthService
from auth.sessions import SessionManager
from auth.store import SessionStore, UserStore
from core.config import Settings, get_settings
from core.db import make_engine, ping, utcnow
from core.errors import TaskifyError
from tasks.service import TaskService
from tasks.store import TaskStore

__version__ = "0.1.0"

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger("taskify.api")

_settings = get_settings()

# ---------------------------------------------------------------------------
# Application state
# ---------------------------------------------------------------------------


def init_state(
    app: FastAPI,
    engine: Engine,
    settings: Settings | None = None,
    clock: Callable[[], datetime] = utcnow,
) -> None:
    """Wire stores and services onto app.state for the given engine.

    Used by the real lifespan and by the test suite, which passes a
    shared-memory SQLite engine and, where needed, a controllable clock.
    """
    settings = settings or get_settings()
    user_store = UserStore(engine)
    session_store = SessionStore(engine)
    session_manager = SessionManager(session_store, user_store, settings=settings, clock=clock)

    app.state.engine = engine
    app.state.user_store = user_store
    app.state.session_store = session_store
    app.state.session_manager = session_manager
    app.state.auth_service = AuthService(user_store, session_manager)
    app.state.task_service = TaskService(TaskStore(engine), clock=clock)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Create the engine and services on startup; dispose the engine on shutdown."""
    logger.info("Taskify API starting up (environment=%s)", _settings.environment)
    engine = make_engine(_settings.database_url)
    init_state(app, engine, _settings)
    logger.info("Stores initialized")

    yield

    engine.dispose()
    logger.info("Taskify API shutdown complete")


# ---------------------------------------------------------------------------
# App instantiation
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Taskify API",
    description="Session-authenticated personal task lists.",
    version=__version__,
    lifespan=lifespan,
    docs_url=None if _settings.is_production else "/docs",
    redoc_url=None,
)

# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() prepends, so the last one registered is the outermost.
# Registered innermost-first: SlowAPI -> CORS -> TrustedHost. The
# @app.middleware functions below are registered later and wrap all three.
# ---------------------------------------------------------------------------

app.add_middleware(SlowAPIASGIMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type"],
    max_age=3600,
)

app.add_middleware(TrustedHostMiddleware, allowed_hosts=_settings.allowed_hosts)

# SlowAPI looks for app.state.limiter by convention.
app.state.limiter = limiter


@app.middleware("http")
async def security_headers(request: Request, call_next):
    """Set conservative browser security headers on every response."""
    response = await call_next(request)
    response.headers.setdefault("X-Content-Type-Options", "nosniff")
    response.headers.setdefault("X-Frame-Options", "DENY")
    response.headers.setdefault("Referrer-Policy", "no-referrer")
    if _settings.is_production:
        response.headers.setdefault("Strict-Transport-Security", "max-age=15552000; includeSubDomains")
    return response


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

app.include_router(auth_router, prefix="/rpc", tags=["auth"])
app.include_router(tasks_router, prefix="/rpc", tags=["tasks"])


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _error_response(status_code: int, detail: ErrorDetail) -> JSONResponse:
    response = JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=detail).model_dump(exclude_none=True),
    )
    response.headers["Cache-Control"] = "no-store"
    return response


@app.exception_handler(TaskifyError)
async def taskify_error_handler(request: Request, exc: TaskifyError) -> JSONResponse:
    """Map the domain error taxonomy onto HTTP. The code field is the stable kind."""
    if exc.status_code >= 500:
        logger.error("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.__cause__ or exc)
    return _error_response(
        exc.status_code,
        ErrorDetail(code=exc.code, message=exc.message, fields=exc.fields or None),
    )


@app.exception_handler(RateLimitExceeded)
async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """Return 429 with a structured error when the fixed window is exhausted."""
    response = _error_response(
        429,
        ErrorDetail(code="rate_limited", message="Too many requests. Try again later.", detail=str(exc.detail)),
    )
    response.headers["Retry-After"] = str(int(getattr(exc, "retry_after", 60) or 60))
    return response


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Return 422 with per-field messages when the request body fails validation."""
    fields: dict[str, str] = {}
    for err in exc.errors():
        loc = [str(p) for p in err.get("loc", ()) if p != "body"]
        fields[".".join(loc) or "body"] = err.get("msg", "Invalid value.")
    return _error_response(
        422,
        ErrorDetail(code="validation_error", message="Request validation failed.", fields=fields),
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Structured envelope for framework-level errors (unknown route, wrong method)."""
    return _error_response(exc.status_code, ErrorDetail(code=f"http_{exc.status_code}", message=str(exc.detail)))


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Catch-all for unexpected server errors.

    The traceback goes to the server log only. The client receives a generic
    message that does not leak internals.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
    return _error_response(500, ErrorDetail(code="internal_error", message="An unexpected error occurred."))


# ---------------------------------------------------------------------------
# Health endpoint
#
# Defined directly in main.py so it is always reachable regardless of router
# registration state.
# ---------------------------------------------------------------------------


@app.get("/api/v1/health", tags=["health"])
async def health(request: Request) -> HealthResponse:
    """Return API liveness, version, and database reachability."""
    db_ok = ping(request.app.state.engine)
    return HealthResponse(
        status="healthy" if db_ok else "degraded",
        version=__version__,
        components={"app": "ok", "database": "ok" if db_ok else "error"},
    )
