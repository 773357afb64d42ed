"""Public site statistics models."""

from datetime import datetime

from pydantic import Field

from siteapi.models.base import CamelModel


class SiteStats(CamelModel):
    """Headline counters shown on the marketing site. Single document."""

    clients: int = Field(300, ge=0)
    projects: int = Field(500, ge=0)
    support_hours: int = Field(1250, ge=0)
    employees: int = Field(14, ge=0)
    last_updated: datetime | None = None
    updated_by: str | None = None


class StatsUpdate(CamelModel):
    clients: int | None = Field(None, ge=0)
    projects: int | None = Field(None, ge=0)
    support_hours: int | None = Field(None, ge=0)
    employees: int | None = Field(None, ge=0)
