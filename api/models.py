"""
API request and response models for Taskify remote procedures.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
tasks/models.py, which own the internal domain representation. Route handlers
map between the two.

Each procedure has its own typed response. Only fields listed here are ever
serialized -- PublicUser has no password field, so a hash cannot leak through
a response by accident.

Request models enforce shape and length caps only. Domain rules (email format,
password minimum, non-empty title) live in the services so they hold for every
caller, not just HTTP.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from auth.models import User
from tasks.models import Task

# ---------------------------------------------------------------------------
# Errors and health
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    """Machine-readable error payload. fields carries per-field validation messages."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None
    fields: Optional[dict[str, str]] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /api/v1/health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]


class SuccessResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool = True


# ---------------------------------------------------------------------------
# auth.*
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Input for auth.register. Passwords are capped at bcrypt's 72-byte input window."""

    email: str = Field(max_length=255)
    password: str = Field(max_length=72)
    name: str = Field(max_length=255)


class LoginRequest(BaseModel):
    email: str = Field(max_length=255)
    password: str = Field(max_length=72)


class PublicUser(BaseModel):
    """Public projection of a user: id, email, name. Never the password hash."""

    model_config = ConfigDict(frozen=True)

    id: str
    email: str
    name: str

    @classmethod
    def from_user(cls, user: User) -> "PublicUser":
        return cls(**user.public_view())


class AuthResponse(BaseModel):
    """Output of auth.register and auth.login."""

    model_config = ConfigDict(frozen=True)

    success: bool = True
    user: PublicUser


class MeResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    user: PublicUser


# ---------------------------------------------------------------------------
# tasks.*
# ---------------------------------------------------------------------------


class TaskCreate(BaseModel):
    title: str = Field(max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)


class TaskUpdate(BaseModel):
    """Input for tasks.update. Omitted fields are left unchanged."""

    id: str = Field(min_length=1, max_length=64)
    title: Optional[str] = Field(default=None, max_length=500)
    description: Optional[str] = Field(default=None, max_length=5000)
    completed: Optional[bool] = None


class TaskDelete(BaseModel):
    id: str = Field(min_length=1, max_length=64)


class TaskResponse(BaseModel):
    """A task as the client sees it. Serialized with camelCase keys (userId, createdAt, updatedAt)."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    id: str
    title: str
    description: Optional[str]
    completed: bool
    user_id: str
    created_at: str
    updated_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskResponse":
        """Factory Method -- the mapping lives here, colocated with the output model."""
        return cls(
            id=task.id or "",
            title=task.title,
            description=task.description,
            completed=task.completed,
            user_id=task.user_id,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )
