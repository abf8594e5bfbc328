"""
core/errors.py -- Domain error taxonomy for Taskify.

Every failure a caller can observe is one of these classes. Each carries a
stable machine-readable code and the HTTP status the API layer maps it to, so
route handlers never pick status codes themselves -- api/main.py has a single
exception handler for TaskifyError.

Nothing here is retried. Every error is terminal for the request.

Layer rule: core/ is the kernel. No imports from api/, auth/, or tasks/.
"""

from __future__ import annotations


class TaskifyError(Exception):
    """Base class for errors surfaced to API callers."""

    code = "internal_error"
    status_code = 500
    default_message = "An unexpected error occurred."

    def __init__(self, message: str | None = None, fields: dict[str, str] | None = None) -> None:
        self.message = message or self.default_message
        self.fields = fields or {}
        super().__init__(self.message)


class ValidationError(TaskifyError):
    """Malformed input. Raised before any store access."""

    code = "validation_error"
    status_code = 422
    default_message = "Request validation failed."


class ConflictError(TaskifyError):
    """A unique field (user email) already exists."""

    code = "conflict"
    status_code = 409
    default_message = "Resource already exists."


class UnauthorizedError(TaskifyError):
    """Missing or invalid session, or bad credentials.

    Login failures always use the same message so callers cannot tell an
    unknown email from a wrong password.
    """

    code = "unauthorized"
    status_code = 401
    default_message = "Authentication required."


class NotFoundError(TaskifyError):
    """Owner-scoped lookup miss. Foreign rows are indistinguishable from missing ones."""

    code = "not_found"
    status_code = 404
    default_message = "Resource not found."


class PersistenceError(TaskifyError):
    """The store is unavailable or rejected a write for an unclassified reason."""

    code = "persistence_error"
    status_code = 503
    default_message = "The data store is unavailable. Try again later."
