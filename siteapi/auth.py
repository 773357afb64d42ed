"""Admin guard: a shared API key sent as ``X-Admin-Key``."""

import hmac

from fastapi import Header, HTTPException

from siteapi.config import get_settings


async def require_admin(x_admin_key: str = Header(default="")) -> str:
    """FastAPI dependency returning the admin identity for a valid key."""
    settings = get_settings()
    if not settings.admin_api_key or not hmac.compare_digest(
        x_admin_key, settings.admin_api_key
    ):
        raise HTTPException(status_code=403, detail="Invalid admin key")
    return settings.admin_name
