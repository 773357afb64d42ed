"""Blog post persistence.

Posts are stored as ``blogs/<id>.json``. Each slug in use has a reservation
blob ``slugs/<slug>`` whose body is the owning post id. Reservations are
created with create-only writes, so two concurrent saves that both pick the
same slug cannot both succeed: the loser gets UniquenessViolation.
Post documents are rewritten only if unchanged since they were read.
"""

import logging
from datetime import datetime

from siteapi.errors import StoreUnavailable, UniquenessViolation
from siteapi.models.blog import BlogPost
from siteapi.services.blob_storage import (
    TEXT_CONTENT,
    delete_blob,
    list_models,
    read_blob,
    read_model_versioned,
    validate_blob_path_segment,
    write_blob,
    write_model,
)
from siteapi.services.content_identity import prepare_for_save

logger = logging.getLogger(__name__)

BLOG_PREFIX = "blogs/"
SLUG_PREFIX = "slugs/"


def _blog_blob(blog_id: str) -> str:
    return f"{BLOG_PREFIX}{validate_blob_path_segment(blog_id)}.json"


def _slug_blob(slug: str) -> str:
    return f"{SLUG_PREFIX}{validate_blob_path_segment(slug)}"


async def find_slug_owner(slug: str, exclude_id: str | None) -> str | None:
    """Collision lookup: id of the post holding *slug*, ignoring *exclude_id*."""
    data = await read_blob(_slug_blob(slug))
    if data is None:
        return None
    owner = data.decode("utf-8").strip()
    if exclude_id is not None and owner == exclude_id:
        return None
    return owner


async def _release_slug(slug: str, owner_id: str) -> None:
    """Drop a slug reservation if *owner_id* still holds it.

    A reservation that cannot be dropped only makes the slug unavailable;
    lookups treat it as taken and suffix around it.
    """
    try:
        if await find_slug_owner(slug, None) == owner_id:
            await delete_blob(_slug_blob(slug))
    except StoreUnavailable:
        logger.warning("Could not release slug %r held by %s", slug, owner_id)


async def get_blog(blog_id: str) -> BlogPost | None:
    """Read a single post by ID, remembering the version that was read."""
    try:
        name = _blog_blob(blog_id)
    except ValueError:
        return None
    found = await read_model_versioned(name, BlogPost)
    if found is None:
        return None
    post, etag = found
    post._etag = etag
    return post


async def get_blog_by_slug(slug: str) -> BlogPost | None:
    """Resolve a slug through its reservation to the owning post."""
    try:
        owner = await find_slug_owner(slug, None)
    except ValueError:
        return None
    if owner is None:
        return None
    post = await get_blog(owner)
    if post is None or post.slug != slug:
        return None
    return post


async def list_blogs() -> list[BlogPost]:
    """Every stored post, in no particular order."""
    return await list_models(BLOG_PREFIX, BlogPost)


async def save_blog(
    previous: BlogPost | None,
    proposed: BlogPost,
    now: datetime | None = None,
) -> BlogPost:
    """Derive slug/timestamps/read time and persist the post.

    The document write is conditional on *previous* being the stored
    version, so a save computed from a stale read cannot overwrite a newer
    one. Raises UniquenessViolation if another save claimed the slug
    between the lookup and the reservation or changed the post since it was
    read, and StoreUnavailable if storage fails. In every case nothing is
    left behind for this save.
    """
    post = await prepare_for_save(previous, proposed, find_slug_owner, now=now)

    old_slug = previous.slug if previous is not None else ""
    reserved = post.slug != old_slug
    if reserved:
        try:
            await write_blob(
                _slug_blob(post.slug),
                post.id,
                content_settings=TEXT_CONTENT,
                create_only=True,
            )
        except UniquenessViolation as e:
            logger.warning("Slug %r claimed concurrently, rejecting save", post.slug)
            raise UniquenessViolation(
                f"Slug {post.slug!r} was taken by another post; retry the request"
            ) from e

    try:
        etag = await write_model(
            _blog_blob(post.id),
            post,
            create_only=previous is None,
            etag=previous._etag if previous is not None else None,
        )
    except UniquenessViolation as e:
        if reserved:
            await _release_slug(post.slug, post.id)
        logger.warning(
            "Blog post %s changed since it was read, rejecting save", post.id
        )
        raise UniquenessViolation(
            f"Blog post {post.id} was changed by another request; retry the request"
        ) from e
    except StoreUnavailable:
        if reserved:
            await _release_slug(post.slug, post.id)
        raise
    post._etag = etag

    if reserved and old_slug:
        await _release_slug(old_slug, post.id)

    logger.info("Saved blog post %s as %r (%s)", post.id, post.slug, post.status)
    return post


async def delete_blog(blog_id: str) -> bool:
    """Delete a post and release its slug. Returns False if it did not exist."""
    post = await get_blog(blog_id)
    if post is None:
        return False
    await delete_blob(_blog_blob(post.id))
    if post.slug:
        await _release_slug(post.slug, post.id)
    logger.info("Deleted blog post %s (%r)", post.id, post.slug)
    return True
