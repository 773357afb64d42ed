"""Blog post endpoints: public reads and admin content management."""

import logging
import uuid
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, HTTPException, Path, Query

from siteapi.auth import require_admin
from siteapi.errors import UniquenessViolation
from siteapi.models.blog import (
    BlogCreate,
    BlogIndex,
    BlogPost,
    BlogSummary,
    BlogUpdate,
    CategoryList,
)
from siteapi.services.blog_store import (
    delete_blog,
    get_blog,
    get_blog_by_slug,
    list_blogs,
    save_blog,
)
from siteapi.services.content_identity import MAX_SLUG_LENGTH

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/blog", tags=["blog"])

_OLDEST = datetime.min.replace(tzinfo=timezone.utc)

# Fields an update may explicitly set to null
_NULLABLE_FIELDS = {"featured_image", "seo"}


def _summaries(posts: list[BlogPost]) -> list[BlogSummary]:
    return [BlogSummary(**p.model_dump(exclude={"content"})) for p in posts]


async def _published_posts() -> list[BlogPost]:
    """Published posts, most recently published first."""
    posts = [p for p in await list_blogs() if p.status == "published"]
    posts.sort(key=lambda p: p.published_at or _OLDEST, reverse=True)
    return posts


@router.get("", response_model=BlogIndex)
async def list_blog_posts():
    """Get all published posts (without body content)."""
    posts = await _published_posts()
    return BlogIndex(posts=_summaries(posts), total=len(posts))


@router.get("/featured/posts", response_model=BlogIndex)
async def list_featured_posts(limit: int = Query(default=3, ge=1, le=20)):
    """Get the most recent featured posts."""
    posts = [p for p in await _published_posts() if p.featured][:limit]
    return BlogIndex(posts=_summaries(posts), total=len(posts))


@router.get("/categories/list", response_model=CategoryList)
async def list_categories():
    """Distinct categories that have at least one published post."""
    categories = sorted({p.category for p in await _published_posts()})
    return CategoryList(categories=categories)


@router.get("/admin/all", response_model=BlogIndex)
async def list_all_blog_posts(_admin: str = Depends(require_admin)):
    """Get every post regardless of status, newest first."""
    posts = await list_blogs()
    posts.sort(key=lambda p: p.created_at or _OLDEST, reverse=True)
    return BlogIndex(posts=_summaries(posts), total=len(posts))


@router.get("/admin/{post_id}", response_model=BlogPost)
async def get_blog_post_admin(
    post_id: str = Path(..., pattern=r"^[a-zA-Z0-9_-]+$", max_length=64),
    _admin: str = Depends(require_admin),
):
    """Get any post by ID, including drafts."""
    post = await get_blog(post_id)
    if post is None:
        raise HTTPException(status_code=404, detail="Blog post not found")
    return post


async def _published_by_slug(slug: str) -> BlogPost:
    post = await get_blog_by_slug(slug)
    if post is None or post.status != "published":
        raise HTTPException(status_code=404, detail="Blog post not found")
    return post


@router.get("/{slug}", response_model=BlogPost)
async def get_blog_post(
    slug: str = Path(..., pattern=r"^[a-z0-9][a-z0-9-]*$", max_length=MAX_SLUG_LENGTH),
):
    """Get a published post by slug and count the view."""
    post = await _published_by_slug(slug)
    try:
        return await save_blog(post, post.model_copy(update={"views": post.views + 1}))
    except UniquenessViolation:
        # Edited after our read; serve the current version uncounted
        logger.info("Post %s changed during view count, view not recorded", post.id)
    return await _published_by_slug(slug)


@router.post("", response_model=BlogPost, status_code=201)
async def create_blog_post(body: BlogCreate, author: str = Depends(require_admin)):
    """Create a post. The slug, read time and publish stamp are derived."""
    proposed = BlogPost(id=uuid.uuid4().hex, author=author, **body.model_dump())
    post = await save_blog(None, proposed)
    logger.info("Created blog post %s by %s", post.slug, author)
    return post


@router.put("/{post_id}", response_model=BlogPost)
async def update_blog_post(
    body: BlogUpdate,
    post_id: str = Path(..., pattern=r"^[a-zA-Z0-9_-]+$", max_length=64),
    _admin: str = Depends(require_admin),
):
    """Apply a partial update to a post."""
    previous = await get_blog(post_id)
    if previous is None:
        raise HTTPException(status_code=404, detail="Blog post not found")

    changes = {
        k: v
        for k, v in body.model_dump(exclude_unset=True).items()
        if v is not None or k in _NULLABLE_FIELDS
    }
    proposed = BlogPost.model_validate({**previous.model_dump(), **changes})
    return await save_blog(previous, proposed)


@router.delete("/{post_id}")
async def delete_blog_post(
    post_id: str = Path(..., pattern=r"^[a-zA-Z0-9_-]+$", max_length=64),
    _admin: str = Depends(require_admin),
):
    """Delete a post and free its slug."""
    if not await delete_blog(post_id):
        raise HTTPException(status_code=404, detail="Blog post not found")
    return {"status": "deleted", "id": post_id}
