"""Public site statistics: a single document with headline counters.

Reads are cached with a 5-minute TTL. If storage is unreachable a stale
cached copy is served rather than failing the public page.
"""

import logging
from datetime import datetime, timezone

from siteapi.errors import StoreUnavailable, UniquenessViolation
from siteapi.models.stats import SiteStats, StatsUpdate
from siteapi.services.blob_storage import read_model, write_model
from siteapi.services.cache import TTLCache

logger = logging.getLogger(__name__)

STATS_BLOB = "stats.json"
_CACHE_KEY = "site_stats"

_cache = TTLCache(ttl=300)


async def _load_or_create() -> SiteStats:
    stats = await read_model(STATS_BLOB, SiteStats)
    if stats is not None:
        return stats

    stats = SiteStats(last_updated=datetime.now(timezone.utc))
    try:
        await write_model(STATS_BLOB, stats, create_only=True)
        logger.info("Created default site stats")
    except UniquenessViolation:
        # Another request created the defaults first
        stats = await read_model(STATS_BLOB, SiteStats) or stats
    return stats


async def get_site_stats() -> SiteStats:
    """Return the site stats, creating the defaults on first read."""
    cached = _cache.get(_CACHE_KEY)
    if cached is not None:
        return cached

    try:
        stats = await _load_or_create()
    except StoreUnavailable:
        stale = _cache.get_stale(_CACHE_KEY)
        if stale is not None:
            logger.warning("Serving stale site stats, storage unavailable")
            return stale
        raise

    _cache.set(_CACHE_KEY, stats)
    return stats


async def update_site_stats(update: StatsUpdate, updated_by: str) -> SiteStats:
    """Apply a partial update and refresh the cache."""
    current = await _load_or_create()
    changes = update.model_dump(exclude_none=True)
    changes["last_updated"] = datetime.now(timezone.utc)
    changes["updated_by"] = updated_by
    stats = current.model_copy(update=changes)
    await write_model(STATS_BLOB, stats)
    _cache.set(_CACHE_KEY, stats)
    logger.info("Site stats updated by %s", updated_by)
    return stats
