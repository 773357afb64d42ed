"""Newsletter subscribers and campaigns.

Subscribers are keyed by a hash of their lowercased email, so the
create-only write is what keeps an address from being subscribed twice.
"""

import hashlib
import logging
import uuid
from datetime import datetime, timezone

from siteapi.errors import UniquenessViolation
from siteapi.models.newsletter import (
    NewsletterPost,
    NewsletterSendRequest,
    RecipientStats,
    Subscriber,
    SubscriberSource,
)
from siteapi.services.blob_storage import list_models, read_model, write_model
from siteapi.services.email import EmailDeliveryError, send_email

logger = logging.getLogger(__name__)

SUBSCRIBER_PREFIX = "subscribers/"
NEWSLETTER_PREFIX = "newsletters/"


class SubscriptionError(Exception):
    """A subscribe/unsubscribe request that conflicts with current state."""


class AlreadySubscribed(SubscriptionError):
    pass


class AlreadyUnsubscribed(SubscriptionError):
    pass


class UnknownSubscriber(SubscriptionError):
    pass


def _subscriber_blob(email: str) -> str:
    digest = hashlib.sha256(email.strip().lower().encode("utf-8")).hexdigest()
    return f"{SUBSCRIBER_PREFIX}{digest}.json"


def _newsletter_blob(post_id: str) -> str:
    return f"{NEWSLETTER_PREFIX}{post_id}.json"


async def get_subscriber(email: str) -> Subscriber | None:
    return await read_model(_subscriber_blob(email), Subscriber)


async def subscribe(
    email: str, source: SubscriberSource = "website"
) -> tuple[Subscriber, bool]:
    """Subscribe *email*, reactivating a lapsed subscription.

    Returns ``(subscriber, created)``. Raises AlreadySubscribed if the
    address is active, including when a concurrent request created it first.
    """
    existing = await get_subscriber(email)
    if existing is not None:
        if existing.is_active:
            raise AlreadySubscribed(f"{email} is already subscribed")
        reactivated = existing.model_copy(
            update={"is_active": True, "unsubscribed_at": None}
        )
        await write_model(_subscriber_blob(email), reactivated)
        logger.info("Reactivated newsletter subscription for %s", email)
        return reactivated, False

    subscriber = Subscriber(
        email=email, source=source, subscribed_at=datetime.now(timezone.utc)
    )
    try:
        await write_model(_subscriber_blob(email), subscriber, create_only=True)
    except UniquenessViolation as e:
        raise AlreadySubscribed(f"{email} is already subscribed") from e
    logger.info("New newsletter subscriber %s (%s)", email, source)
    return subscriber, True


async def unsubscribe(email: str) -> Subscriber:
    existing = await get_subscriber(email)
    if existing is None:
        raise UnknownSubscriber(f"{email} is not on the newsletter list")
    if not existing.is_active:
        raise AlreadyUnsubscribed(f"{email} is already unsubscribed")
    updated = existing.model_copy(
        update={"is_active": False, "unsubscribed_at": datetime.now(timezone.utc)}
    )
    await write_model(_subscriber_blob(email), updated)
    logger.info("Unsubscribed %s from newsletter", email)
    return updated


async def list_subscribers() -> list[Subscriber]:
    """All subscribers, most recent first."""
    subscribers = await list_models(SUBSCRIBER_PREFIX, Subscriber)
    subscribers.sort(key=lambda s: s.subscribed_at, reverse=True)
    return subscribers


async def create_newsletter(
    request: NewsletterSendRequest, author: str
) -> NewsletterPost:
    """Store a newsletter as a draft, or as scheduled if it has a send time."""
    now = datetime.now(timezone.utc)
    post = NewsletterPost(
        id=uuid.uuid4().hex,
        title=request.title,
        subject=request.subject,
        content=request.content,
        html_content=request.html_content,
        author=author,
        category=request.category,
        scheduled_at=request.scheduled_at,
        status="scheduled" if request.scheduled_at else "draft",
        created_at=now,
        updated_at=now,
    )
    await write_model(_newsletter_blob(post.id), post, create_only=True)
    return post


async def send_newsletter(
    post: NewsletterPost, subscribers: list[Subscriber]
) -> NewsletterPost:
    """Email *post* to each subscriber and record the delivery counts.

    A run where every delivery failed is marked ``failed``.
    """
    sent = failed = 0
    for subscriber in subscribers:
        try:
            await send_email(subscriber.email, post.subject, post.html_content)
            sent += 1
        except EmailDeliveryError as e:
            logger.error("Newsletter %s: %s", post.id, e)
            failed += 1

    now = datetime.now(timezone.utc)
    post = post.model_copy(
        update={
            "status": "sent" if sent or not failed else "failed",
            "sent_at": now,
            "recipients": RecipientStats(
                total=len(subscribers), sent=sent, failed=failed
            ),
            "updated_at": now,
        }
    )
    await write_model(_newsletter_blob(post.id), post)
    logger.info("Newsletter %s delivered: %d sent, %d failed", post.id, sent, failed)
    return post


async def list_newsletters() -> list[NewsletterPost]:
    """All newsletter posts, newest first."""
    posts = await list_models(NEWSLETTER_PREFIX, NewsletterPost)
    posts.sort(key=lambda p: p.created_at, reverse=True)
    return posts
