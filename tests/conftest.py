"""
tests/conftest.py -- Shared test fixtures for Taskify.

This module provides:
  - FakeClock / clock: a controllable UTC clock so session expiry can be tested
    without sleeping
  - engine and the store fixtures: isolated in-memory SQLite per test
  - session_manager / auth_service / task_service: services over those stores
  - api_client: TestClient over the real app with a patched lifespan

Design: the API fixture uses named shared-memory SQLite URIs (not plain
:memory:) because TestClient runs sync route handlers in a thread pool. Plain
:memory: DBs are per-connection and would present a blank schema to each
worker thread. The named URI format shares one in-memory instance across all
connections in the same process; a per-test suffix keeps tests isolated.

Environment must be set before any api/auth/core import: get_settings() is
cached on first call, and api/limiter.py reads it at import time.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone

# CRITICAL: configure before importing the app.
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("DATABASE_URL", "sqlite:///file:taskify_unused?mode=memory&cache=shared&uri=true")
os.environ.setdefault("ALLOWED_HOSTS", '["testserver"]')
os.environ.setdefault("RATE_LIMIT_ENABLED", "false")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from api.main import app, init_state
from auth.service import AuthService
from auth.sessions import SessionManager
from auth.store import SessionStore, UserStore
from core.db import make_engine
from tasks.service import TaskService
from tasks.store import TaskStore


class FakeClock:
    """Deterministic replacement for core.db.utcnow.

    Starts at the real current time so cookies issued against it are not
    already expired from the HTTP client's point of view.
    """

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def engine():
    eng = make_engine("sqlite:///:memory:")
    yield eng
    eng.dispose()


@pytest.fixture
def user_store(engine) -> UserStore:
    return UserStore(engine)


@pytest.fixture
def session_store(engine) -> SessionStore:
    return SessionStore(engine)


@pytest.fixture
def task_store(engine) -> TaskStore:
    return TaskStore(engine)


@pytest.fixture
def session_manager(session_store, user_store, clock) -> SessionManager:
    return SessionManager(session_store, user_store, clock=clock)


@pytest.fixture
def auth_service(user_store, session_manager) -> AuthService:
    return AuthService(user_store, session_manager)


@pytest.fixture
def task_service(task_store, clock) -> TaskService:
    return TaskService(task_store, clock=clock)


# ---------------------------------------------------------------------------
# API fixture
# ---------------------------------------------------------------------------


def _patch_lifespan(engine, clock: FakeClock):
    """Return an async context manager that replaces the real lifespan.

    Wires the test engine and clock into app.state through the same
    init_state() the production lifespan uses.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        init_state(app, engine, clock=clock)
        yield

    return test_lifespan


@pytest.fixture
def api_client() -> Generator[tuple[TestClient, FakeClock], None, None]:
    """Yield (client, clock) over a fresh shared-memory database.

    The client keeps cookies between requests, so registering or logging in
    through it authenticates subsequent calls. For a second identity, create
    another TestClient(app) inside the test -- app.state is already wired, and
    each client has its own cookie jar.
    """
    engine = make_engine(f"sqlite:///file:test_api_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true")
    clock = FakeClock()
    app.router.lifespan_context = _patch_lifespan(engine, clock)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, clock

    engine.dispose()
