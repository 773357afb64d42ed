"""Slug assignment, publication stamping and read-time estimates for blog posts.

Everything here is computed before a post is written. ``prepare_for_save``
takes the previously stored state (``None`` for a new post) and the proposed
state and returns the state to persist. The only I/O is the collision lookup,
passed in as ``find_slug_owner`` so the pipeline runs without a live store.

The lookup is a best-effort check. Correctness under concurrent writes comes
from the create-only slug reservation in ``blog_store``.
"""

import logging
import math
import re
from collections.abc import Awaitable, Callable
from datetime import datetime, timezone

from siteapi.errors import SlugAssignmentExhausted
from siteapi.models.blog import BlogPost

logger = logging.getLogger(__name__)

WORDS_PER_MINUTE = 200
MAX_SUFFIX_ATTEMPTS = 1000
FALLBACK_SLUG_PREFIX = "post"
MAX_SLUG_LENGTH = 200
# Room kept after the base for "-<counter>" or "-<epoch millis>"
_SUFFIX_ROOM = 20

_DISALLOWED_RE = re.compile(r"[^a-z0-9 ]")
_WHITESPACE_RE = re.compile(r"\s+")

# (slug, exclude_id) -> id of the post holding the slug, or None
SlugOwnerLookup = Callable[[str, str | None], Awaitable[str | None]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _epoch_millis(now: datetime) -> int:
    return int(now.timestamp() * 1000)


def derive_slug(title: str, now: datetime | None = None) -> str:
    """Turn a title into a lowercase, hyphen-separated slug base.

    Characters outside ``[a-z0-9 ]`` are dropped after lowercasing, and the
    base is cut short enough that any suffix keeps the slug within
    MAX_SLUG_LENGTH. A title with nothing left falls back to
    ``post-<epoch millis>``.
    """
    base = _DISALLOWED_RE.sub("", (title or "").lower())
    base = _WHITESPACE_RE.sub("-", base).strip("-")
    base = base[: MAX_SLUG_LENGTH - _SUFFIX_ROOM].rstrip("-")
    if not base:
        base = f"{FALLBACK_SLUG_PREFIX}-{_epoch_millis(now or _utcnow())}"
    return base


async def assign_unique_slug(
    title: str,
    content_id: str | None,
    find_slug_owner: SlugOwnerLookup,
    now: datetime | None = None,
    max_attempts: int = MAX_SUFFIX_ATTEMPTS,
) -> str:
    """Return a slug for *title* not held by any post other than *content_id*.

    Tries ``base``, then ``base-1`` .. ``base-<max_attempts>``. Past that,
    a ``base-<epoch millis>`` suffix is tried once. Store errors raised by
    the lookup propagate unchanged.
    """
    now = now or _utcnow()
    base = derive_slug(title, now=now)

    if await find_slug_owner(base, content_id) is None:
        return base

    for counter in range(1, max_attempts + 1):
        candidate = f"{base}-{counter}"
        if await find_slug_owner(candidate, content_id) is None:
            return candidate

    candidate = f"{base}-{_epoch_millis(now)}"
    logger.warning(
        "Slug %r exhausted %d numeric suffixes, trying %r",
        base,
        max_attempts,
        candidate,
    )
    if await find_slug_owner(candidate, content_id) is None:
        return candidate
    raise SlugAssignmentExhausted(f"Could not find a free slug for {base!r}")


def stamp_publication(
    status: str, published_at: datetime | None, now: datetime | None = None
) -> datetime | None:
    """Return the publication timestamp a post should carry.

    Stamps ``now`` the first time a post is saved as published. An existing
    stamp is never changed, including when the post is later archived.
    """
    if published_at is not None:
        return published_at
    if status == "published":
        return now or _utcnow()
    return None


def compute_read_time(content: str) -> int:
    """Estimated reading time in whole minutes, rounded up."""
    word_count = len(content.split())
    return math.ceil(word_count / WORDS_PER_MINUTE)


async def prepare_for_save(
    previous: BlogPost | None,
    proposed: BlogPost,
    find_slug_owner: SlugOwnerLookup,
    now: datetime | None = None,
    max_attempts: int = MAX_SUFFIX_ATTEMPTS,
) -> BlogPost:
    """Compute the derived fields of *proposed* against *previous*.

    - slug: re-derived when the post is new, the title changed, or no slug
      is set; otherwise kept.
    - published_at: carried over from *previous*, stamped on first publish.
    - read_time: recomputed only when the content changed.
    - created_at / updated_at: set from *now*.
    """
    now = now or _utcnow()
    updates: dict = {}

    title_changed = previous is None or previous.title != proposed.title
    if title_changed or not proposed.slug:
        updates["slug"] = await assign_unique_slug(
            proposed.title,
            proposed.id,
            find_slug_owner,
            now=now,
            max_attempts=max_attempts,
        )

    prior_stamp = previous.published_at if previous is not None else None
    updates["published_at"] = stamp_publication(proposed.status, prior_stamp, now)

    if previous is None or previous.content != proposed.content:
        updates["read_time"] = compute_read_time(proposed.content)
    else:
        updates["read_time"] = previous.read_time

    updates["created_at"] = (
        previous.created_at if previous is not None and previous.created_at else now
    )
    updates["updated_at"] = now

    return proposed.model_copy(update=updates)
