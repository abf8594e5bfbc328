"""
core/db.py -- Shared SQLAlchemy engine and store helpers.

Both auth/store.py and tasks/store.py build their engines here so SQLite
connections get the same treatment (WAL mode, cross-thread access) and both
stores translate driver failures into the same domain error.

Timestamps are stored as fixed-width ISO 8601 UTC strings. isoformat() drops
the fractional part when microsecond == 0, which would break lexicographic
ordering in SQL, so iso() always pins timespec="microseconds".

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations

import functools
import logging
from datetime import datetime, timezone

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from core.errors import PersistenceError

logger = logging.getLogger("taskify.db")


def _set_wal_mode(dbapi_conn, connection_record) -> None:
    """Enable WAL journal mode for concurrent read safety.

    Set per-connection because SQLite PRAGMAs are not inherited by new
    connections from the pool.
    """
    dbapi_conn.execute("PRAGMA journal_mode=WAL")


def make_engine(db_url: str) -> Engine:
    """Create an engine for db_url with SQLite-specific connection settings."""
    connect_args: dict = {}
    if db_url.startswith("sqlite"):
        connect_args["check_same_thread"] = False
    engine = create_engine(db_url, connect_args=connect_args)
    if db_url.startswith("sqlite"):
        event.listen(engine, "connect", _set_wal_mode)
    return engine


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def iso(moment: datetime) -> str:
    """Serialize a timezone-aware datetime as a sortable UTC string."""
    return moment.astimezone(timezone.utc).isoformat(timespec="microseconds")


def parse_iso(value: str) -> datetime:
    return datetime.fromisoformat(value)


def translate_errors(method):
    """Re-raise SQLAlchemy failures from a store method as PersistenceError.

    Domain errors raised inside the method (e.g. ConflictError for a UNIQUE
    violation the method classified itself) pass through untouched.
    """

    @functools.wraps(method)
    def wrapper(*args, **kwargs):
        try:
            return method(*args, **kwargs)
        except SQLAlchemyError as exc:
            logger.error("Store call %s failed: %s", method.__qualname__, exc.__class__.__name__)
            raise PersistenceError() from exc

    return wrapper


def ping(engine: Engine) -> bool:
    """Return True if a trivial query succeeds. Used by the health endpoint."""
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")
        return True
    except SQLAlchemyError:
        return False
