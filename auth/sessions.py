"""
auth/sessions.py -- Session lifecycle: create, resolve, destroy.

Session state lives server-side. The cookie carries only the opaque session
id, so logout and expiry take effect immediately without any revocation list:
once the row is gone or expires_at has passed, resolve_session() returns None.

Cookie directive (set on create, cleared on destroy with the same attributes):
  name      Settings.session_cookie_name ("taskify-session-id")
  httponly  always -- client JS never reads the session id
  secure    Settings.secure_cookies (forced on in production)
  samesite  "strict"
  path      "/"
  expires   the session's expires_at (epoch 0 when clearing)

The clock is injectable so tests can move time past the TTL without sleeping.

Layer rule: no imports from api/ or tasks/. Starlette's Response type is the
only web-framework dependency and is used for typing only.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TYPE_CHECKING

from auth.models import Session, User
from auth.tokens import generate_session_id
from core.config import Settings, get_settings
from core.db import utcnow

if TYPE_CHECKING:
    from starlette.responses import Response

    from auth.store import SessionStore, UserStore

logger = logging.getLogger("taskify.auth.sessions")


class SessionManager:
    """Creates, validates and destroys sessions and issues the session cookie."""

    def __init__(
        self,
        session_store: SessionStore,
        user_store: UserStore,
        settings: Settings | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.sessions = session_store
        self.users = user_store
        self.settings = settings or get_settings()
        self.clock = clock

    @property
    def cookie_name(self) -> str:
        return self.settings.session_cookie_name

    @property
    def ttl(self) -> timedelta:
        return timedelta(days=self.settings.session_ttl_days)

    def create_session(self, user_id: str, response: Response | None = None) -> Session:
        """Persist a new session for user_id and set the session cookie.

        PersistenceError from the store propagates unchanged; no row is
        written and no cookie is set in that case.
        """
        now = self.clock()
        session = Session(id=generate_session_id(), user_id=user_id, expires_at=now + self.ttl)
        self.sessions.create(session, now)
        if response is not None:
            self._set_cookie(response, session)
        logger.info("Session created for user %s (expires %s)", user_id, session.expires_at.isoformat())
        return session

    def resolve_session(self, cookie_value: str | None) -> User | None:
        """Return the user behind a session cookie value, or None.

        None covers every unauthenticated case: no cookie, unknown id, expired
        session, or a session whose user no longer exists. None is not an error.
        """
        if not cookie_value:
            return None
        session = self.sessions.get_active(cookie_value, self.clock())
        if session is None:
            return None
        return self.users.get_by_id(session.user_id)

    def destroy_session(self, session_id: str | None, response: Response | None = None) -> None:
        """Delete the session row if present and clear the cookie. Idempotent."""
        if session_id:
            deleted = self.sessions.delete(session_id)
            logger.info("Session destroyed (row_present=%s)", deleted)
        if response is not None:
            response.delete_cookie(
                self.cookie_name,
                path="/",
                secure=self.settings.secure_cookies,
                httponly=True,
                samesite="strict",
            )

    def purge_expired(self) -> int:
        return self.sessions.purge_expired(self.clock())

    def _set_cookie(self, response: Response, session: Session) -> None:
        response.set_cookie(
            self.cookie_name,
            value=session.id,
            expires=session.expires_at,
            path="/",
            secure=self.settings.secure_cookies,
            httponly=True,
            samesite="strict",
        )
