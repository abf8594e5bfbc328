"""
tasks/store.py -- SQLAlchemy-backed persistence layer for tasks.

Uses SQLAlchemy Core (not ORM) so the Task dataclass in tasks/models.py
remains the authoritative domain representation. Swapping SQLite for
PostgreSQL is a connection string change, not a rewrite.

Pattern: Repository + Data Mapper. TaskStore is the repository; _row_to_task
is the mapper. Route handlers never touch SQL directly.

Owner scoping: every read, update and delete takes the caller's user_id and
puts it in the WHERE clause next to the task id. There is no method that
touches a task by id alone, so a foreign task is indistinguishable from a
missing one.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = TaskStore(engine)
    task = store.create_task(Task(title="buy milk", user_id=uid), now)
    tasks = store.list_for_owner(uid)
    store.update_owned(task.id, uid, now, completed=True)
    store.delete_owned(task.id, uid)
"""

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, Column, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from core.db import iso, translate_errors
from tasks.models import Task

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

metadata = MetaData()

_tasks = Table(
    "tasks",
    metadata,
    Column("id", String(32), primary_key=True),
    Column("title", Text, nullable=False),
    Column("description", Text),
    Column("completed", Boolean, nullable=False, server_default="0"),
    # References users.id. The users table lives in auth/store.py's MetaData,
    # so the link is by value only -- no cross-metadata ForeignKey.
    Column("user_id", String(32), nullable=False, index=True),
    Column("created_at", String(32), nullable=False),
    Column("updated_at", String(32), nullable=False),
)

_MUTABLE_FIELDS = {"title", "description", "completed"}


class TaskStore:
    """Repository for Task records, always scoped to an owning user."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        metadata.create_all(engine)

    @translate_errors
    def create_task(self, task: Task, now: datetime) -> Task:
        """Insert a task and return it with id and timestamps filled in."""
        task.id = uuid.uuid4().hex
        task.created_at = task.updated_at = iso(now)
        with self.engine.connect() as conn:
            conn.execute(
                _tasks.insert().values(
                    id=task.id,
                    title=task.title,
                    description=task.description,
                    completed=task.completed,
                    user_id=task.user_id,
                    created_at=task.created_at,
                    updated_at=task.updated_at,
                )
            )
            conn.commit()
        return task

    @translate_errors
    def list_for_owner(self, user_id: str) -> list[Task]:
        """Return the owner's tasks, oldest first. Ties on created_at fall back to id."""
        with self.engine.connect() as conn:
            rows = conn.execute(
                _tasks.select().where(_tasks.c.user_id == user_id).order_by(_tasks.c.created_at, _tasks.c.id)
            ).fetchall()
        return [_row_to_task(r) for r in rows]

    @translate_errors
    def get_owned(self, task_id: str, user_id: str) -> Optional[Task]:
        """Existence and ownership in one filtered lookup. None if either fails."""
        with self.engine.connect() as conn:
            row = conn.execute(
                _tasks.select().where((_tasks.c.id == task_id) & (_tasks.c.user_id == user_id))
            ).fetchone()
        return _row_to_task(row) if row is not None else None

    @translate_errors
    def update_owned(self, task_id: str, user_id: str, now: datetime, **fields) -> bool:
        """Apply a subset of title/description/completed and refresh updated_at.

        Unknown field names raise ValueError -- column names never come from
        raw user input. Returns True if a row was updated, False if the task
        does not exist or belongs to someone else.
        """
        unknown = set(fields) - _MUTABLE_FIELDS
        if unknown:
            raise ValueError(f"Unknown task fields: {unknown!r}")
        with self.engine.connect() as conn:
            result = conn.execute(
                _tasks.update()
                .where((_tasks.c.id == task_id) & (_tasks.c.user_id == user_id))
                .values(updated_at=iso(now), **fields)
            )
            conn.commit()
        return result.rowcount > 0

    @translate_errors
    def delete_owned(self, task_id: str, user_id: str) -> bool:
        """Delete a task only if user_id owns it. Returns False when nothing matched."""
        with self.engine.connect() as conn:
            result = conn.execute(_tasks.delete().where((_tasks.c.id == task_id) & (_tasks.c.user_id == user_id)))
            conn.commit()
        return result.rowcount > 0


# ---------------------------------------------------------------------------
# Row mappers (Data Mapper pattern -- DB row -> domain dataclass)
# ---------------------------------------------------------------------------


def _row_to_task(row) -> Task:
    return Task(
        id=row.id,
        title=row.title,
        description=row.description,
        completed=bool(row.completed),
        user_id=row.user_id,
        created_at=row.created_at,
        updated_at=row.updated_at,
    )
