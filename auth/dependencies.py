"""
auth/dependencies.py -- FastAPI Depends() helpers that build the request context.

The resolved identity is never stored on a global or on the request object
for later lookup. build_request_context() produces an immutable RequestContext
once per request and FastAPI threads it explicitly into every route and
service call that needs it.

build_request_context() is the soft variant (identity may be None).
require_user() wraps it and is the single authentication gate: it raises
UnauthorizedError before any protected route body runs.

Layer rule: no imports from api/ or tasks/.
  auth/dependencies.py may import from fastapi (for Depends/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request

from auth.models import User
from auth.sessions import SessionManager
from core.errors import UnauthorizedError


@dataclass(frozen=True)
class RequestContext:
    """Per-request caller identity.

    session_id is the raw cookie value as received. It is kept even when it
    did not resolve so logout can clear whatever the client sent.
    """

    user: User | None = None
    session_id: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def build_request_context(
    request: Request,
    sessions: SessionManager = Depends(get_session_manager),
) -> RequestContext:
    """Resolve the session cookie into a RequestContext. Never raises on bad cookies."""
    session_id = request.cookies.get(sessions.cookie_name)
    user = sessions.resolve_session(session_id)
    return RequestContext(user=user, session_id=session_id)


def require_user(context: RequestContext = Depends(build_request_context)) -> RequestContext:
    """Require an authenticated caller.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(context: RequestContext = Depends(require_user)): ...
    """
    if not context.is_authenticated:
        raise UnauthorizedError("Authentication required. Log in to continue.")
    return context
