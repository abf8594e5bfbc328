"""
tasks/models.py -- Domain dataclass for to-do items.

Pure data container with zero logic. Owner scoping lives in tasks/store.py
(every query filters on user_id) and tasks/service.py.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class Task:
    """A unit of work owned by exactly one user.

    id, created_at and updated_at are None/"" before the record is written to
    the database. Timestamps are ISO 8601 UTC strings set by the service.
    """

    title: str
    user_id: str
    description: Optional[str] = None
    completed: bool = False
    id: Optional[str] = None
    created_at: str = ""
    updated_at: str = ""
