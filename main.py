#!/usr/bin/env python3
"""
Taskify -- operator command line.

Usage:
  python main.py serve
  python main.py serve --host 0.0.0.0 --port 3001
  python main.py serve --reload
  python main.py init-db
  python main.py purge-sessions

Environment variables (see core/config.py for the full list):
  DATABASE_URL   SQLAlchemy URL. Optional in development (falls back to
                 ./taskify.db); required when ENVIRONMENT=production.
  ENVIRONMENT    "development" (default) or "production".
"""

import argparse
import logging
import sys

from auth.sessions import SessionManager
from auth.store import SessionStore, UserStore
from core.config import get_settings
from core.db import make_engine
from tasks.store import TaskStore


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("asgi:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def _cmd_init_db(args: argparse.Namespace) -> int:
    """Create every table. Safe to re-run -- create_all skips existing tables."""
    engine = make_engine(get_settings().database_url)
    try:
        UserStore(engine)
        SessionStore(engine)
        TaskStore(engine)
    finally:
        engine.dispose()
    print("Database schema is up to date.")
    return 0


def _cmd_purge_sessions(args: argparse.Namespace) -> int:
    """Delete session rows whose expiry has passed.

    Expired sessions are already rejected at lookup time; this only reclaims
    space. Nothing runs it automatically.
    """
    settings = get_settings()
    engine = make_engine(settings.database_url)
    try:
        manager = SessionManager(SessionStore(engine), UserStore(engine), settings=settings)
        removed = manager.purge_expired()
    finally:
        engine.dispose()
    print(f"Removed {removed} expired session(s).")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        prog="taskify",
        description="Taskify backend operator commands.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py serve --port 3001
  DATABASE_URL=postgresql://localhost/taskify python main.py init-db
  python main.py purge-sessions
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the API with uvicorn")
    serve.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    serve.add_argument("--port", type=int, default=3001, help="Port (default: 3001)")
    serve.add_argument("--reload", action="store_true", help="Restart on code changes (development only)")
    serve.set_defaults(func=_cmd_serve)

    init_db = sub.add_parser("init-db", help="Create database tables")
    init_db.set_defaults(func=_cmd_init_db)

    purge = sub.add_parser("purge-sessions", help="Delete expired session rows")
    purge.set_defaults(func=_cmd_purge_sessions)

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)-5s %(name)s %(message)s")
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
