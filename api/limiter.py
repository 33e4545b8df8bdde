"""
api/limiter.py -- Shared slowapi rate limiter and per-route limit providers.

Import the limiter in both api/main.py (to mount as middleware) and
api/routes/v1/passport.py (to apply per-route limits with @limiter.limit()).
One shared instance means every route counts against the same in-memory store.

Limits are passed to @limiter.limit() as callables, so slowapi reads them from
Settings when a request arrives rather than when the route module is imported.
RATE_LIMIT_ENABLED=false turns limiting off entirely (test suites, trusted
internal deployments behind their own throttling).
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

from core.config import get_settings

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri="memory://",
    enabled=get_settings().rate_limit_enabled,
)


def login_limit() -> str:
    """[H2] brute-force mitigation on password login."""
    return get_settings().login_rate_limit


def captcha_limit() -> str:
    return get_settings().captcha_rate_limit
