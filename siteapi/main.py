"""
Bahoju Site API

REST backend for the marketing site: blog, stats, contact form, newsletter.
"""

import logging
import time
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from siteapi.config import get_settings
from siteapi.errors import SiteError
from siteapi.middleware import (
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
    configure_logging,
    request_id_var,
)
from siteapi.routers import blog, contact, newsletter, stats
from siteapi.services.blob_storage import check_storage_connectivity

logger = logging.getLogger(__name__)

settings = get_settings()

# Health check cache: (result_dict, timestamp)
_health_cache: tuple[dict[str, Any], float] | None = None
_HEALTH_CACHE_TTL = 30  # seconds


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan: startup and shutdown."""
    configure_logging(get_settings().log_level)
    logger.info("Site API starting (%s)", get_settings().environment)
    yield


app = FastAPI(
    title="Bahoju Site API",
    description="Blog, statistics, contact and newsletter backend for bahoju.com",
    version="1.0.0",
    lifespan=lifespan,
)

# Security headers (innermost)
app.add_middleware(SecurityHeadersMiddleware)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Admin-Key", "X-Request-ID"],
)

# Request ID (added last, so outermost)
app.add_middleware(RequestIDMiddleware)

# Routers
app.include_router(blog.router, prefix="/api")
app.include_router(contact.router, prefix="/api")
app.include_router(newsletter.router, prefix="/api")
app.include_router(stats.router, prefix="/api")


@app.exception_handler(SiteError)
async def site_error_handler(request: Request, exc: SiteError) -> JSONResponse:
    """Turn storage/content errors into JSON responses with a ``kind``."""
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", exc.kind, request.url.path, exc.message)
    else:
        logger.warning("%s on %s: %s", exc.kind, request.url.path, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "detail": exc.message,
            "kind": exc.kind,
            "requestId": request_id_var.get(),
        },
    )


def _check_config() -> str:
    """Verify required configuration is loaded. Returns 'ok' or 'fail'."""
    s = get_settings()
    if s.azure_storage_account and s.azure_content_container and s.admin_api_key:
        return "ok"
    return "fail"


def _run_health_checks() -> dict[str, Any]:
    """Run all health checks, returning the full response body."""
    global _health_cache
    now = time.time()
    if _health_cache is not None:
        cached_result, cached_at = _health_cache
        if now - cached_at < _HEALTH_CACHE_TTL:
            return cached_result

    config_status = _check_config()
    storage_status = "ok" if check_storage_connectivity() else "fail"

    checks = {"config": config_status, "storage": storage_status}
    failed = [k for k, v in checks.items() if v != "ok"]

    if failed:
        overall = "degraded"
        logger.warning("Health check degraded, failed: %s", ", ".join(failed))
    else:
        overall = "ok"

    result: dict[str, Any] = {
        "status": overall,
        "service": "bahoju-site-api",
        "version": app.version,
        "checks": checks,
    }
    _health_cache = (result, now)
    return result


@app.get("/api/health")
async def health_check() -> JSONResponse:
    """Health check verifying service dependencies."""
    result = _run_health_checks()
    return JSONResponse(content=result, status_code=200)
