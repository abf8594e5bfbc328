"""
asgi.py -- Application assembly for Taskify.

The single import point ASGI servers load. api/main.py builds the app; this
module only re-exports it so deployment config never references api/ paths.

Run with:  uvicorn asgi:app --reload
           python main.py serve
"""

from api.main import app

__all__ = ["app"]
