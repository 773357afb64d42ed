"""Blog post data models."""

from datetime import datetime
from typing import Literal

from pydantic import ConfigDict, Field, PrivateAttr, field_validator

from siteapi.models.base import CamelModel

BlogCategory = Literal[
    "Digital Marketing",
    "Software Development",
    "Cloud Computing",
    "Training",
    "Business Branding",
    "Technology",
    "Innovation",
    "General",
]

BlogStatus = Literal["draft", "published", "archived"]


def _normalize_keywords(values: list[str]) -> list[str]:
    """Trim and lowercase keywords, dropping blanks."""
    return [v.strip().lower() for v in values if v and v.strip()]


class SeoMeta(CamelModel):
    """Search-engine metadata attached to a post."""

    meta_title: str | None = Field(None, max_length=60)
    meta_description: str | None = Field(None, max_length=160)
    keywords: list[str] = []

    @field_validator("keywords")
    @classmethod
    def _clean_keywords(cls, v: list[str]) -> list[str]:
        return _normalize_keywords(v)


class BlogSummary(CamelModel):
    """Blog post metadata for list views (no body)."""

    id: str
    title: str = Field(..., min_length=1, max_length=200)
    slug: str = ""
    excerpt: str = Field(..., max_length=500)
    author: str
    category: BlogCategory = "General"
    tags: list[str] = []
    featured_image: str | None = None
    status: BlogStatus = "draft"
    featured: bool = False
    views: int = Field(0, ge=0)
    likes: int = Field(0, ge=0)
    read_time: int = 0  # minutes
    seo: SeoMeta | None = None
    published_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("tags")
    @classmethod
    def _clean_tags(cls, v: list[str]) -> list[str]:
        return _normalize_keywords(v)


class BlogPost(BlogSummary):
    """Full blog post as persisted."""

    content: str

    # Storage etag of the version this object was read as (None if unsaved)
    _etag: str | None = PrivateAttr(default=None)


class BlogCreate(CamelModel):
    """Request body for creating a post."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=5, max_length=200)
    excerpt: str = Field(..., min_length=10, max_length=500)
    content: str = Field(..., min_length=50)
    category: BlogCategory = "General"
    tags: list[str] = []
    featured_image: str | None = None
    status: BlogStatus = "draft"
    featured: bool = False
    seo: SeoMeta | None = None


class BlogUpdate(CamelModel):
    """Request body for a partial update. Only fields sent are applied."""

    model_config = ConfigDict(str_strip_whitespace=True)

    title: str | None = Field(None, min_length=5, max_length=200)
    excerpt: str | None = Field(None, min_length=10, max_length=500)
    content: str | None = Field(None, min_length=50)
    category: BlogCategory | None = None
    tags: list[str] | None = None
    featured_image: str | None = None
    status: BlogStatus | None = None
    featured: bool | None = None
    seo: SeoMeta | None = None


class BlogIndex(CamelModel):
    """Blog post index."""

    posts: list[BlogSummary]
    total: int


class CategoryList(CamelModel):
    categories: list[str]
