"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; stores, the session manager and routes do the work.

Layer rule: no imports from api/ or tasks/.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass
class User:
    """A registered identity.

    email is matched exactly (case-sensitive as stored). hashed_password is a
    bcrypt hash and never leaves the server -- public_view() is the only shape
    routes serialize.
    """

    email: str
    name: str
    hashed_password: str
    id: str | None = None
    created_at: str | None = None

    def public_view(self) -> dict[str, str]:
        return {"id": self.id or "", "email": self.email, "name": self.name}


@dataclass
class Session:
    """Server-side proof of authentication.

    id is the opaque bearer value carried in the session cookie. user_id is a
    reference, not ownership: deleting a session never touches the user.
    A session is valid only while the row exists and now < expires_at.
    """

    id: str
    user_id: str
    expires_at: datetime
    created_at: datetime | None = None
