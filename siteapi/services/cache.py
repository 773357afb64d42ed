"""In-memory TTL cache that keeps expired values for stale reads."""

import time
from typing import Any


class TTLCache:
    """Process-local key/value cache with a time-to-live.

    Entries are never evicted, only replaced, so ``get_stale`` can serve
    the last value when a fresh read fails::

        cache = TTLCache(ttl=300)
        cache.set("site_stats", stats)
        cache.get("site_stats")        # None once expired
        cache.get_stale("site_stats")  # still the last value
    """

    def __init__(self, ttl: float = 300) -> None:
        self._ttl = ttl
        self._entries: dict[str, tuple[Any, float]] = {}

    def get(self, key: str) -> Any | None:
        """Return the value if present and fresh, else None."""
        value, expires_at = self._entries.get(key, (None, 0.0))
        return value if time.monotonic() < expires_at else None

    def get_stale(self, key: str) -> Any | None:
        value, _ = self._entries.get(key, (None, 0.0))
        return value

    def set(self, key: str, value: Any) -> None:
        self._entries[key] = (value, time.monotonic() + self._ttl)

    def clear(self) -> None:
        self._entries.clear()
