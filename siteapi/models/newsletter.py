"""Newsletter subscriber and campaign models."""

from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, EmailStr, Field, computed_field, field_validator

from siteapi.models.base import CamelModel

SubscriberSource = Literal["website", "admin", "api"]
NewsletterStatus = Literal["draft", "scheduled", "sent", "failed"]
NewsletterCategory = Literal[
    "general", "tech-insights", "project-updates", "offers", "announcements"
]


class SubscriptionRequest(CamelModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def _lowercase(cls, v: str) -> str:
        return v.strip().lower()


class Subscriber(CamelModel):
    email: str
    is_active: bool = True
    source: SubscriberSource = "website"
    subscribed_at: datetime
    unsubscribed_at: datetime | None = None

    @computed_field
    @property
    def subscription_status(self) -> str:
        return "active" if self.is_active else "unsubscribed"


class SubscriptionResponse(CamelModel):
    message: str
    subscriber: Subscriber | None = None


class SubscriberIndex(CamelModel):
    subscribers: list[Subscriber]
    total: int
    active: int
    inactive: int


class RecipientStats(CamelModel):
    total: int = 0
    sent: int = 0
    failed: int = 0


class NewsletterSendRequest(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, max_length=200)
    subject: str = Field(..., min_length=1, max_length=1500)
    content: str = Field(..., min_length=1)
    html_content: str = Field(..., min_length=1)
    category: NewsletterCategory = "general"
    scheduled_at: datetime | None = None


class NewsletterPost(CamelModel):
    id: str
    title: str
    subject: str
    content: str
    html_content: str
    author: str
    status: NewsletterStatus = "draft"
    category: NewsletterCategory = "general"
    scheduled_at: datetime | None = None
    sent_at: datetime | None = None
    recipients: RecipientStats = RecipientStats()
    created_at: datetime
    updated_at: datetime


class NewsletterSendResponse(CamelModel):
    message: str
    post: NewsletterPost


class NewsletterPostIndex(CamelModel):
    posts: list[NewsletterPost]
    total: int


class NewsletterStats(CamelModel):
    subscribers: dict[str, int]
    posts: dict[str, int]
