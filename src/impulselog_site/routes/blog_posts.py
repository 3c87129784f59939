"""
# Public Blog Posts API

Read-only JSON API over published posts, consumed by the browser front end and by
`BlogApiClient`.

## API Endpoints

- `GET /api/blog-posts?slug=S`: a single published post, `{"post": {...}}`, or 404 `{"post": null}`.
- `GET /api/blog-posts?tag=T&category=C&exclude=S&limit=N`: `{"posts": [...]}`, newest
  `publishedAt` first.

## Query Parameters

| Parameter | Effect |
|-----------|--------|
| `slug` | Point lookup; every other parameter is ignored |
| `tag` | Only posts whose `tags` contain the value |
| `category` | Only posts in the category |
| `exclude` | Drop the post with this slug (over-fetches by one so the page stays full) |
| `limit` | Page size, default 50, capped at 100; non-numeric or non-positive values fall back to 50 |

Responses are cacheable for 5 minutes by browsers and shared caches, with an hour of
stale-while-revalidate. Other methods answer 405.

## Module Attributes

Attributes:
    router (APIRouter): FastAPI router with `/api` prefix
"""

import re
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from impulselog_site.database.post_store import PostStore
from impulselog_site.managers.logging_manager import get_logger
from impulselog_site.models.blog_models import (
    BlogErrorResponse,
    BlogPostListResponse,
    BlogPostLookupResponse,
)
from impulselog_site.routes.dependencies import get_post_store
from impulselog_site.utils.serialization import serialize_post

logger = get_logger(prefix="[Blog Posts API]")

router = APIRouter(prefix="/api", tags=["blog"])

DEFAULT_LIMIT = 50
MAX_LIMIT = 100
CACHE_CONTROL = "public, max-age=300, s-maxage=300, stale-while-revalidate=3600"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def clamp_limit(value: Optional[str], fallback: int = DEFAULT_LIMIT) -> int:
    """
    Parse the `limit` query value from its leading integer, ignoring any trailing text.

    Unparseable or non-positive values give `fallback`; anything above `MAX_LIMIT` is capped.
    """
    match = _LEADING_INT.match(value or "")
    if not match:
        return fallback
    parsed = int(match.group(1))
    if parsed <= 0:
        return fallback
    return min(parsed, MAX_LIMIT)


def _cached_json(content: dict, status_code: int = 200) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers={"Cache-Control": CACHE_CONTROL})


@router.get(
    "/blog-posts",
    responses={
        200: {"model": BlogPostListResponse, "description": "Listing, or `{\"post\": ...}` for a slug lookup"},
        404: {"model": BlogPostLookupResponse, "description": "No published post with that slug"},
        500: {"model": BlogErrorResponse},
    },
)
async def get_blog_posts(
    slug: Optional[str] = Query(None),
    tag: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    exclude: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    store: PostStore = Depends(get_post_store),
):
    """
    Look up one published post by slug, or list published posts.

    Args:
        slug (str, optional): Slug of the post to return.
        tag (str, optional): Tag filter for listings.
        category (str, optional): Category filter for listings.
        exclude (str, optional): Slug to leave out of listings.
        limit (str, optional): Page size for listings.

    Returns:
        JSONResponse: `{"post": ...}` for lookups, `{"posts": [...]}` for listings.

    Raises:
        HTTPException(500): If the store fails.
    """
    query_limit = clamp_limit(limit)

    try:
        if slug:
            post = await store.get_published_post(slug)
            if post is None:
                return _cached_json({"post": None}, status_code=404)
            return _cached_json({"post": serialize_post(post)})

        fetch_limit = query_limit + 1 if exclude else query_limit
        posts = await store.list_published_posts(limit=fetch_limit, tag=tag, category=category)

        if exclude:
            posts = [post for post in posts if post.get("slug") != exclude][:query_limit]

        return _cached_json({"posts": [serialize_post(post) for post in posts]})

    except Exception as e:
        logger.error("Failed to fetch blog posts: %s", e, exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to fetch blog posts")


@router.api_route("/blog-posts", methods=["POST", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def blog_posts_method_not_allowed():
    return JSONResponse(
        status_code=405,
        content={"error": "Method not allowed"},
        headers={"Allow": "GET", "Cache-Control": CACHE_CONTROL},
    )
