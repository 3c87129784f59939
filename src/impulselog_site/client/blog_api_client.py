"""
# Blog API Client

Async client for the public `GET /api/blog-posts` endpoint, mirroring the helpers the site's
front end uses to render listings, related posts and single posts.

## Usage

```python
async with BlogApiClient("https://www.impulselog.com") as client:
    latest = await client.get_published_blog_posts(limit=10)
    post = await client.get_blog_post_by_slug("stop-impulse-buying")
    related = await client.get_recent_blog_posts(count=3, exclude_slug=post["slug"])
```

Non-2xx answers raise `BlogApiError`, except a 404 slug lookup which returns `None`.
"""

from typing import Any, Dict, List, Optional

import httpx

from impulselog_site.exceptions import BlogApiError
from impulselog_site.managers.logging_manager import get_logger

logger = get_logger(prefix="[BlogApiClient]")

BLOG_POSTS_PATH = "/api/blog-posts"


class BlogApiClient:
    """
    Client for the blog posts read API.

    Args:
        base_url: Site origin, e.g. `https://www.impulselog.com`.
        http_client: Optional shared `httpx.AsyncClient`; one is created (and later closed)
            when omitted.
        timeout: Request timeout for the owned client, in seconds.
    """

    def __init__(
        self,
        base_url: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def __aenter__(self) -> "BlogApiClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()

    async def fetch_blog_posts(self, **params: Any) -> Dict[str, Any]:
        """
        Call the read API with the given query parameters.

        `None` and empty-string values are left out of the query string.

        Raises:
            BlogApiError: If the API answers with a non-2xx status.
        """
        query = {key: str(value) for key, value in params.items() if value is not None and value != ""}
        response = await self.http_client.get(
            f"{self.base_url}{BLOG_POSTS_PATH}",
            params=query,
            headers={"Accept": "application/json"},
        )
        if not response.is_success:
            logger.warning("Blog API %s answered HTTP %d", query, response.status_code)
            raise BlogApiError(response.status_code)
        return response.json()

    async def get_published_blog_posts(self, limit: int = 50) -> List[Dict[str, Any]]:
        data = await self.fetch_blog_posts(limit=limit)
        return data.get("posts") or []

    async def get_blog_post_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        try:
            data = await self.fetch_blog_posts(slug=slug)
        except BlogApiError as e:
            if e.status_code == 404:
                return None
            raise
        return data.get("post")

    async def get_recent_blog_posts(self, count: int = 3, exclude_slug: Optional[str] = None) -> List[Dict[str, Any]]:
        data = await self.fetch_blog_posts(limit=count, exclude=exclude_slug)
        return data.get("posts") or []

    async def get_blog_posts_by_tag(self, tag: str, limit: int = 20) -> List[Dict[str, Any]]:
        data = await self.fetch_blog_posts(tag=tag, limit=limit)
        return data.get("posts") or []

    async def get_blog_posts_by_category(self, category: str, limit: int = 20) -> List[Dict[str, Any]]:
        data = await self.fetch_blog_posts(category=category, limit=limit)
        return data.get("posts") or []
