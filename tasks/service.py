"""
tasks/service.py -- Owner-scoped task operations.

Every method takes the caller's RequestContext and uses context.user.id as the
owner filter. Authentication itself is not checked here beyond a guard: routes
depend on auth.dependencies.require_user, which rejects anonymous callers
before this code runs.

Not-found policy is strict and uniform: update and delete both raise
NotFoundError when no task with that id is owned by the caller, so repeating a
delete is an error rather than a silent success.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from core.db import utcnow
from core.errors import NotFoundError, UnauthorizedError, ValidationError
from tasks.models import Task

if TYPE_CHECKING:
    from auth.dependencies import RequestContext
    from tasks.store import TaskStore

logger = logging.getLogger("taskify.tasks")


def _owner_id(context: RequestContext) -> str:
    if context.user is None or context.user.id is None:
        raise UnauthorizedError()
    return context.user.id


def _clean_title(title: str) -> str:
    title = title.strip()
    if not title:
        raise ValidationError(fields={"title": "Title is required."})
    return title


class TaskService:
    def __init__(self, store: TaskStore, clock: Callable[[], datetime] = utcnow) -> None:
        self.store = store
        self.clock = clock

    def create(self, context: RequestContext, title: str, description: Optional[str] = None) -> Task:
        task = Task(title=_clean_title(title), description=description, user_id=_owner_id(context))
        return self.store.create_task(task, self.clock())

    def list(self, context: RequestContext) -> list[Task]:
        return self.store.list_for_owner(_owner_id(context))

    def update(
        self,
        context: RequestContext,
        task_id: str,
        title: Optional[str] = None,
        description: Optional[str] = None,
        completed: Optional[bool] = None,
    ) -> Task:
        """Apply the provided fields to an owned task and return the fresh row.

        Fields left as None are untouched. updated_at is refreshed even when no
        field is provided.
        """
        owner = _owner_id(context)
        changes: dict = {}
        if title is not None:
            changes["title"] = _clean_title(title)
        if description is not None:
            changes["description"] = description
        if completed is not None:
            changes["completed"] = completed

        if self.store.get_owned(task_id, owner) is None:
            raise NotFoundError("Task not found")

        # The write is owner-filtered too; a concurrent delete between the
        # lookup and the write surfaces as NotFoundError, not a phantom success.
        if not self.store.update_owned(task_id, owner, self.clock(), **changes):
            raise NotFoundError("Task not found")
        updated = self.store.get_owned(task_id, owner)
        if updated is None:
            raise NotFoundError("Task not found")
        return updated

    def delete(self, context: RequestContext, task_id: str) -> None:
        if not self.store.delete_owned(task_id, _owner_id(context)):
            raise NotFoundError("Task not found")
        logger.info("Task %s deleted", task_id)
