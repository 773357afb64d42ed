"""Newsletter subscription and campaign endpoints."""

import logging
from typing import Literal

from fastapi import (
    APIRouter,
    BackgroundTasks,
    Depends,
    HTTPException,
    Query,
    Request,
    Response,
)

from siteapi.auth import require_admin
from siteapi.models.newsletter import (
    NewsletterPostIndex,
    NewsletterSendRequest,
    NewsletterSendResponse,
    NewsletterStats,
    SubscriberIndex,
    SubscriptionRequest,
    SubscriptionResponse,
)
from siteapi.services.email import send_in_background, welcome_email
from siteapi.services.newsletter import (
    AlreadySubscribed,
    AlreadyUnsubscribed,
    UnknownSubscriber,
    create_newsletter,
    list_newsletters,
    list_subscribers,
    send_newsletter,
    subscribe,
    unsubscribe,
)
from siteapi.services.rate_limit import check_rate_limit

router = APIRouter(prefix="/newsletter", tags=["newsletter"])
logger = logging.getLogger(__name__)


@router.post("/subscribe", response_model=SubscriptionResponse, status_code=201)
async def subscribe_to_newsletter(
    body: SubscriptionRequest,
    request: Request,
    response: Response,
    background_tasks: BackgroundTasks,
):
    """Subscribe an email. A lapsed subscription is reactivated (200)."""
    client_ip = request.client.host if request.client else "unknown"
    if not check_rate_limit("newsletter", client_ip):
        raise HTTPException(
            status_code=429, detail="Too many requests. Try again later."
        )

    try:
        subscriber, created = await subscribe(body.email)
    except AlreadySubscribed:
        raise HTTPException(
            status_code=400,
            detail="Email is already subscribed to our newsletter",
        )

    if not created:
        response.status_code = 200
        return SubscriptionResponse(
            message="Welcome back! Your subscription has been reactivated.",
            subscriber=subscriber,
        )

    subject, html_body = welcome_email()
    background_tasks.add_task(
        send_in_background, subscriber.email, subject, html_body
    )
    return SubscriptionResponse(
        message=(
            "Successfully subscribed to newsletter! "
            "Check your email for confirmation."
        ),
        subscriber=subscriber,
    )


@router.post("/unsubscribe", response_model=SubscriptionResponse)
async def unsubscribe_from_newsletter(body: SubscriptionRequest):
    try:
        await unsubscribe(body.email)
    except UnknownSubscriber:
        raise HTTPException(
            status_code=404, detail="Email not found in our newsletter list"
        )
    except AlreadyUnsubscribed:
        raise HTTPException(status_code=400, detail="Email is already unsubscribed")
    return SubscriptionResponse(message="Successfully unsubscribed from newsletter")


@router.get("/subscribers", response_model=SubscriberIndex)
async def get_subscribers(
    status: Literal["all", "active", "inactive"] = Query(default="all"),
    _admin: str = Depends(require_admin),
):
    """List subscribers with active/inactive counts across the whole list."""
    subscribers = await list_subscribers()
    active = sum(1 for s in subscribers if s.is_active)
    if status == "active":
        selected = [s for s in subscribers if s.is_active]
    elif status == "inactive":
        selected = [s for s in subscribers if not s.is_active]
    else:
        selected = subscribers
    return SubscriberIndex(
        subscribers=selected,
        total=len(selected),
        active=active,
        inactive=len(subscribers) - active,
    )


@router.post("/send", response_model=NewsletterSendResponse)
async def send_newsletter_to_subscribers(
    body: NewsletterSendRequest,
    response: Response,
    author: str = Depends(require_admin),
):
    """Send a newsletter now, or store it as scheduled if ``scheduledAt`` is set."""
    if body.scheduled_at is not None:
        post = await create_newsletter(body, author)
        response.status_code = 201
        return NewsletterSendResponse(
            message="Newsletter scheduled successfully", post=post
        )

    recipients = [s for s in await list_subscribers() if s.is_active]
    if not recipients:
        raise HTTPException(status_code=400, detail="No active subscribers found")

    post = await create_newsletter(body, author)
    post = await send_newsletter(post, recipients)
    return NewsletterSendResponse(
        message=f"Newsletter sent successfully to {post.recipients.sent} subscribers",
        post=post,
    )


@router.get("/posts", response_model=NewsletterPostIndex)
async def get_newsletter_posts(_admin: str = Depends(require_admin)):
    posts = await list_newsletters()
    return NewsletterPostIndex(posts=posts, total=len(posts))


@router.get("/stats", response_model=NewsletterStats)
async def get_newsletter_stats(_admin: str = Depends(require_admin)):
    """Subscriber and campaign counts for the admin dashboard."""
    subscribers = await list_subscribers()
    posts = await list_newsletters()
    active = sum(1 for s in subscribers if s.is_active)
    post_counts = {"total": len(posts)}
    for status in ("sent", "draft", "scheduled", "failed"):
        post_counts[status] = sum(1 for p in posts if p.status == status)
    return NewsletterStats(
        subscribers={
            "total": len(subscribers),
            "active": active,
            "inactive": len(subscribers) - active,
        },
        posts=post_counts,
    )
