"""Public site statistics endpoint."""

from fastapi import APIRouter, Depends

from siteapi.auth import require_admin
from siteapi.models.stats import SiteStats, StatsUpdate
from siteapi.services.stats import get_site_stats, update_site_stats

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=SiteStats)
async def site_stats():
    """Get the headline counters shown on the marketing site."""
    return await get_site_stats()


@router.put("", response_model=SiteStats)
async def edit_site_stats(update: StatsUpdate, admin: str = Depends(require_admin)):
    """Update one or more counters."""
    return await update_site_stats(update, admin)
