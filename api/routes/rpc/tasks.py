"""
api/routes/rpc/tasks.py -- tasks.* remote procedures.

Routes (all require auth):
  POST /rpc/tasks.create   -- new task owned by the caller
  GET  /rpc/tasks.list     -- caller's tasks, oldest first
  POST /rpc/tasks.update   -- partial update; 404 if not owned
  POST /rpc/tasks.delete   -- delete; 404 if not owned

IDOR guard: the owner id always comes from the resolved RequestContext, never
from the request body. TaskService passes it into every store WHERE clause.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.models import SuccessResponse, TaskCreate, TaskDelete, TaskResponse, TaskUpdate
from auth.dependencies import RequestContext, require_user
from tasks.service import TaskService

router = APIRouter()


def get_task_service(request: Request) -> TaskService:
    return request.app.state.task_service


@router.post("/tasks.create", response_model=TaskResponse)
def create_task(
    body: TaskCreate,
    context: RequestContext = Depends(require_user),
    tasks: TaskService = Depends(get_task_service),
) -> TaskResponse:
    task = tasks.create(context, body.title, body.description)
    return TaskResponse.from_task(task)


@router.get("/tasks.list", response_model=list[TaskResponse])
def list_tasks(
    context: RequestContext = Depends(require_user),
    tasks: TaskService = Depends(get_task_service),
) -> list[TaskResponse]:
    return [TaskResponse.from_task(t) for t in tasks.list(context)]


@router.post("/tasks.update", response_model=TaskResponse)
def update_task(
    body: TaskUpdate,
    context: RequestContext = Depends(require_user),
    tasks: TaskService = Depends(get_task_service),
) -> TaskResponse:
    """Apply the provided fields. Existence and ownership are checked in one filtered lookup."""
    task = tasks.update(
        context,
        body.id,
        title=body.title,
        description=body.description,
        completed=body.completed,
    )
    return TaskResponse.from_task(task)


@router.post("/tasks.delete", response_model=SuccessResponse)
def delete_task(
    body: TaskDelete,
    context: RequestContext = Depends(require_user),
    tasks: TaskService = Depends(get_task_service),
) -> SuccessResponse:
    tasks.delete(context, body.id)
    return SuccessResponse()
