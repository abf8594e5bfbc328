"""
auth/store.py -- SQLAlchemy Core persistence layer for auth entities.

Pattern: Repository + Data Mapper (same as tasks/store.py).
UserStore and SessionStore are the repositories; _row_to_user /
_row_to_session are the mappers. Route and service code never touches SQL
directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

  users.email carries a UNIQUE constraint. It is the source of truth for
  email uniqueness -- the service layer's existence pre-check is only a fast
  path and can race with a concurrent registration. create_user() maps the
  constraint violation to ConflictError so both paths look the same to callers.

Both stores share one engine and one MetaData. The engine is owned by the
application (api/main.py lifespan) and disposed there.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import Column, ForeignKey, MetaData, String, Table, Text, func, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError

from auth.models import Session, User
from core.db import iso, parse_iso, translate_errors, utcnow
from core.errors import ConflictError

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

_metadata = MetaData()

_users = Table(
    "users",
    _metadata,
    Column("id", String(32), primary_key=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("name", String(255), nullable=False),
    Column("created_at", String(32), nullable=False),
)

_sessions = Table(
    "sessions",
    _metadata,
    Column("id", String(64), primary_key=True),  # opaque bearer value from the cookie
    Column("user_id", String(32), ForeignKey("users.id"), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("expires_at", String(32), nullable=False, index=True),
)


def create_schema(engine: Engine) -> None:
    """Create the users and sessions tables if they do not exist. Idempotent."""
    _metadata.create_all(engine)


# ---------------------------------------------------------------------------
# Credential store
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User records.

    Usage:
        store = UserStore(engine)
        user_id = store.create_user(User(email="a@x.com", name="A", hashed_password=hash_password("secret1")))
        user = store.get_by_email("a@x.com")
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        create_schema(engine)

    @translate_errors
    def create_user(self, user: User) -> str:
        """Insert a new user and return its generated opaque id.

        Raises ConflictError if the email already exists. This covers the
        check-then-insert race in registration: whichever request loses the
        race hits the UNIQUE constraint here.
        """
        user_id = uuid.uuid4().hex
        try:
            with self.engine.connect() as conn:
                conn.execute(
                    _users.insert().values(
                        id=user_id,
                        email=user.email,
                        hashed_password=user.hashed_password,
                        name=user.name,
                        created_at=iso(utcnow()),
                    )
                )
                conn.commit()
        except IntegrityError as exc:
            raise ConflictError("User already exists") from exc
        return user_id

    @translate_errors
    def email_exists(self, email: str) -> bool:
        with self.engine.connect() as conn:
            row = conn.execute(select(_users.c.id).where(_users.c.email == email).limit(1)).fetchone()
        return row is not None

    @translate_errors
    def get_by_email(self, email: str) -> User | None:
        """Look up a user by exact email (case-sensitive). Returns None if not found."""
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.email == email)).fetchone()
        return _row_to_user(row) if row is not None else None

    @translate_errors
    def get_by_id(self, user_id: str) -> User | None:
        with self.engine.connect() as conn:
            row = conn.execute(_users.select().where(_users.c.id == user_id)).fetchone()
        return _row_to_user(row) if row is not None else None

    @translate_errors
    def count_by_email(self, email: str) -> int:
        """Inspection helper: how many user rows hold this exact email. Not used by request paths."""
        with self.engine.connect() as conn:
            result = conn.execute(select(func.count()).select_from(_users).where(_users.c.email == email)).scalar()
        return result or 0


# ---------------------------------------------------------------------------
# Session store
# ---------------------------------------------------------------------------


class SessionStore:
    """Repository for Session records.

    Expiry filtering happens in SQL: get_active() only returns rows whose
    expires_at is still in the future relative to the caller's clock.
    Expired rows are never returned but stay in the table until
    purge_expired() runs (operator CLI); no background reaper exists.
    """

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        create_schema(engine)

    @translate_errors
    def create(self, session: Session, now: datetime) -> None:
        with self.engine.connect() as conn:
            conn.execute(
                _sessions.insert().values(
                    id=session.id,
                    user_id=session.user_id,
                    created_at=iso(now),
                    expires_at=iso(session.expires_at),
                )
            )
            conn.commit()
        session.created_at = now

    @translate_errors
    def get_active(self, session_id: str, now: datetime) -> Session | None:
        """Return the session if it exists and has not expired at `now`, else None."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _sessions.select().where((_sessions.c.id == session_id) & (_sessions.c.expires_at > iso(now)))
            ).fetchone()
        return _row_to_session(row) if row is not None else None

    @translate_errors
    def delete(self, session_id: str) -> bool:
        """Delete a session row. Returns False if it did not exist."""
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.id == session_id))
            conn.commit()
        return result.rowcount > 0

    @translate_errors
    def count_for_user(self, user_id: str) -> int:
        """Inspection helper: how many session rows (expired or not) reference user_id.

        Not used by request paths.
        """
        with self.engine.connect() as conn:
            result = conn.execute(
                select(func.count()).select_from(_sessions).where(_sessions.c.user_id == user_id)
            ).scalar()
        return result or 0

    @translate_errors
    def purge_expired(self, now: datetime) -> int:
        """Delete all sessions that expired at or before `now`. Returns rows removed."""
        with self.engine.connect() as conn:
            result = conn.execute(_sessions.delete().where(_sessions.c.expires_at <= iso(now)))
            conn.commit()
        return result.rowcount


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        email=row.email,
        name=row.name,
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )


def _row_to_session(row) -> Session:
    return Session(
        id=row.id,
        user_id=row.user_id,
        expires_at=parse_iso(row.expires_at),
        created_at=parse_iso(row.created_at),
    )
