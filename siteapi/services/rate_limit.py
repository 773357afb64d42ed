"""Per-client sliding-window rate limiting for public forms."""

import time
from collections import defaultdict

from siteapi.config import get_settings

# {scope: {ip: [timestamps]}}
_rate_limits: dict[str, dict[str, list[float]]] = defaultdict(
    lambda: defaultdict(list)
)


def check_rate_limit(scope: str, ip: str) -> bool:
    """Return True if the request is allowed, False if rate limited.

    Each form (*scope*) has its own window per client IP.
    """
    settings = get_settings()
    now = time.time()
    cutoff = now - settings.form_rate_limit_window
    hits = [ts for ts in _rate_limits[scope][ip] if ts > cutoff]
    if len(hits) >= settings.form_rate_limit_max:
        _rate_limits[scope][ip] = hits
        return False
    hits.append(now)
    _rate_limits[scope][ip] = hits
    return True


def reset_rate_limits() -> None:
    _rate_limits.clear()
