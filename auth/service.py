"""
auth/service.py -- Registration, login, logout and identity lookup.

AuthService owns credential checks and delegates every session side effect
(row + cookie) to SessionManager. Route handlers stay thin: they parse the
body, call one method here, and serialize the returned User's public view.

Validation runs before any store access and raises ValidationError with
per-field messages. Login failures are deliberately undifferentiated -- an
unknown email and a wrong password produce the same UnauthorizedError so the
endpoint cannot be used to enumerate accounts.

Register-then-create-session is two independent writes. If the session write
fails the user row remains; the caller recovers by logging in.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from auth.models import User
from auth.tokens import authenticate_user, hash_password
from core.errors import ConflictError, UnauthorizedError, ValidationError

if TYPE_CHECKING:
    from starlette.responses import Response

    from auth.dependencies import RequestContext
    from auth.sessions import SessionManager
    from auth.store import UserStore

logger = logging.getLogger("taskify.auth")

_EMAIL_ADAPTER = TypeAdapter(EmailStr)

MIN_PASSWORD_LENGTH = 6
# bcrypt only accepts 72 bytes of input; longer passwords are rejected, not truncated.
MAX_PASSWORD_BYTES = 72

_INVALID_CREDENTIALS = "Invalid credentials"


def _normalize_email(email: str) -> str | None:
    """Return the normalized address, or None if email is not a bare valid address.

    EmailStr also accepts a `Name <addr>` form and strips surrounding
    whitespace. Both are refused here, so the stored value matches what the
    caller sent apart from domain case, which email-validator lowercases.
    """
    try:
        normalized = _EMAIL_ADAPTER.validate_python(email)
    except PydanticValidationError:
        return None
    if normalized.lower() != email.lower():
        return None
    return normalized


class AuthService:
    def __init__(self, user_store: UserStore, session_manager: SessionManager) -> None:
        self.users = user_store
        self.sessions = session_manager

    def register(self, email: str, password: str, name: str, response: Response | None = None) -> User:
        """Create an account and log it in.

        Raises ValidationError for malformed input and ConflictError when the
        email is taken -- either by the pre-check or, under a concurrent
        registration race, by the store's UNIQUE constraint.
        """
        name = name.strip()
        errors: dict[str, str] = {}
        normalized = _normalize_email(email)
        if normalized is None:
            errors["email"] = "Invalid email address."
        if len(password) < MIN_PASSWORD_LENGTH:
            errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        elif len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            errors["password"] = f"Password must be at most {MAX_PASSWORD_BYTES} bytes."
        if not name:
            errors["name"] = "Name is required."
        if errors:
            raise ValidationError(fields=errors)
        email = normalized

        if self.users.email_exists(email):
            raise ConflictError("User already exists")

        user = User(email=email, name=name, hashed_password=hash_password(password))
        user.id = self.users.create_user(user)
        logger.info("User registered: %s", user.id)

        self.sessions.create_session(user.id, response)
        return user

    def login(self, email: str, password: str, response: Response | None = None) -> User:
        errors: dict[str, str] = {}
        normalized = _normalize_email(email)
        if normalized is None:
            errors["email"] = "Invalid email address."
        if not password:
            errors["password"] = "Password is required."
        if errors:
            raise ValidationError(fields=errors)

        user = authenticate_user(self.users, normalized, password)
        if user is None:
            logger.info("Login failed")
            raise UnauthorizedError(_INVALID_CREDENTIALS)

        self.sessions.create_session(user.id, response)
        logger.info("User logged in: %s", user.id)
        return user

    def logout(self, context: RequestContext, response: Response | None = None) -> None:
        """End the caller's current session. Safe to repeat."""
        if context.user is None:
            raise UnauthorizedError()
        self.sessions.destroy_session(context.session_id, response)

    def me(self, context: RequestContext) -> User:
        if context.user is None:
            raise UnauthorizedError()
        return context.user
