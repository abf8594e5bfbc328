"""
api/limiter.py -- Shared slowapi rate limiter instance.

Import this in both api/main.py (to mount as middleware) and
api/routes/rpc/auth.py (to apply the stricter credential limit with
@limiter.limit()).

default_limits applies one fixed-window counter per client IP to every route
that does not declare its own limit. Using a single shared instance ensures
all routes share the same in-memory counter store.

RATE_LIMIT_ENABLED=false turns every limit off (the test suite does this so
hundreds of requests from the single "testclient" address are not throttled).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

_settings = get_settings()

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[_settings.rate_limit],
    strategy="fixed-window",
    storage_uri="memory://",
    enabled=_settings.rate_limit_enabled,
)
