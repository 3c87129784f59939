"""
# Blog Post Models

This module defines the data structures for the blog: the stored post document, the ingestion
webhook payload and the JSON response envelopes of the public API.

## Domain Model Overview

- **Post**: one document per `slug` in the `blogPosts` collection. Field names are camelCase
  because the same documents are read by the browser front end.
- **Author**: embedded `{name, avatar}`; the name falls back to the site's team name.
- **Webhook payload**: the content platform posts either the legacy schema
  (`title`/`content`/`excerpt`/`featuredImage`) or its own schema
  (`headline`/`html`/`metaDescription`/`image`). Both are accepted and resolved by
  `resolved_*` helpers; tag and category objects are unwrapped to their titles.

## Usage Examples

```python
payload = WebhookPostPayload.model_validate({
    "headline": "Stop Impulse Buying",
    "html": "<p>Before you click buy...</p>",
    "tags": [{"title": "budgeting"}, "habits"],
    "category": {"title": "Guides"},
})
payload.resolved_title()   # "Stop Impulse Buying"
payload.tags               # ["budgeting", "habits"]
payload.category           # "Guides"
```

## Module Attributes

Attributes:
    DEFAULT_AUTHOR_NAME (str): Author name used when the payload carries none.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_AUTHOR_NAME = "ImpulseLog Team"


def _unwrap_title(value: Any) -> Optional[str]:
    """Return the human-readable name of a tag/category that may arrive as an object."""
    if value is None:
        return None
    if isinstance(value, dict):
        for key in ("title", "name", "slug"):
            if value.get(key):
                return str(value[key])
        return None
    text = str(value).strip()
    return text or None


class AuthorInfo(BaseModel):
    """Embedded author block of a post."""

    name: str = Field(DEFAULT_AUTHOR_NAME, description="Display name")
    avatar: Optional[str] = Field(None, description="Avatar image URL")


class BlogPostDocument(BaseModel):
    """
    MongoDB document model for the `blogPosts` collection.

    `slug` is the natural key: the ingestion webhook upserts by slug, so at most one document
    exists per slug. `createdAt` never changes after the first insert; `publishedAt` is `None`
    while the post is unpublished.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "title": "Stop Impulse Buying in 5 Steps",
                "slug": "stop-impulse-buying-in-5-steps",
                "excerpt": "A practical checklist before you hit the buy button...",
                "content": "<p>Before you click buy...</p>",
                "featuredImage": "https://cdn.example.com/cover.png",
                "author": {"name": "ImpulseLog Team", "avatar": None},
                "tags": ["budgeting", "habits"],
                "category": "Guides",
                "published": True,
                "publishedAt": "2026-10-17T09:30:00.000Z",
                "createdAt": "2026-10-17T09:30:00.000Z",
                "updatedAt": "2026-10-17T09:30:00.000Z",
                "seoTitle": "Stop Impulse Buying in 5 Steps",
                "seoDescription": "A practical checklist before you hit the buy button",
                "readingTime": 4,
            }
        },
    )

    title: str
    slug: str
    excerpt: str
    content: str
    markdown: Optional[str] = None
    featuredImage: Optional[str] = None
    author: AuthorInfo = Field(default_factory=AuthorInfo)
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    published: bool = True
    publishedAt: Optional[datetime] = None
    createdAt: datetime
    updatedAt: datetime
    seoTitle: str
    seoDescription: str
    readingTime: int = 0
    metaKeywords: Optional[Any] = None
    outline: Optional[Any] = None

    def to_document(self) -> Dict[str, Any]:
        """Dump for storage, leaving out passthrough fields that were not supplied."""
        unset_passthrough = {
            name for name in ("markdown", "metaKeywords", "outline") if getattr(self, name) is None
        }
        return self.model_dump(exclude=unset_passthrough)


class WebhookAuthor(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: Optional[str] = None
    avatar: Optional[str] = None


class WebhookPostPayload(BaseModel):
    """
    Request model for the ingestion webhook.

    Accepts both field-name schemas; unknown fields are tolerated so upstream schema additions
    never break ingestion. Only `title`/`headline` and `content`/`html` are required, and that
    check happens in the route so it can answer with a specific message.
    """

    model_config = ConfigDict(extra="allow")

    # Legacy schema
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    featuredImage: Optional[str] = None
    seoTitle: Optional[str] = None
    seoDescription: Optional[str] = None

    # Content platform schema
    headline: Optional[str] = None
    html: Optional[str] = None
    metaDescription: Optional[str] = None
    image: Optional[str] = None
    markdown: Optional[str] = None
    metaKeywords: Optional[Any] = None
    outline: Optional[Any] = None

    # Shared
    slug: Optional[str] = None
    author: Optional[WebhookAuthor] = None
    tags: List[str] = Field(default_factory=list)
    category: Optional[str] = None
    published: Optional[bool] = None
    readingTime: Optional[int] = Field(None, ge=0)

    @field_validator("tags", mode="before")
    @classmethod
    def unwrap_tags(cls, v: Any) -> List[str]:
        if not isinstance(v, list):
            return []
        tags = [_unwrap_title(item) for item in v]
        return [tag for tag in tags if tag]

    @field_validator("category", mode="before")
    @classmethod
    def unwrap_category(cls, v: Any) -> Optional[str]:
        return _unwrap_title(v)

    @field_validator("author", mode="before")
    @classmethod
    def coerce_author(cls, v: Any) -> Any:
        if isinstance(v, str):
            return {"name": v}
        return v if isinstance(v, dict) else None

    @field_validator("slug", mode="before")
    @classmethod
    def blank_slug_is_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    def resolved_title(self) -> Optional[str]:
        return self.title or self.headline

    def resolved_content(self) -> Optional[str]:
        return self.content or self.html

    def resolved_excerpt(self) -> Optional[str]:
        return self.excerpt or self.metaDescription

    def resolved_image(self) -> Optional[str]:
        return self.featuredImage or self.image


class WebhookResponse(BaseModel):
    """Response body of a successful webhook call (200 updated, 201 created)."""

    success: bool = True
    id: str
    slug: str
    message: str


class BlogPostListResponse(BaseModel):
    posts: List[Dict[str, Any]]


class BlogPostLookupResponse(BaseModel):
    post: Optional[Dict[str, Any]]


class BlogErrorResponse(BaseModel):
    """
    Error envelope shared by every endpoint.

    `details` is only present for client errors that need a hint (e.g. missing fields); server
    errors never echo exception text.
    """

    error: str
    details: Optional[Any] = None
