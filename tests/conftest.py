from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient
from pydantic import SecretStr

from impulselog_site.config import settings
from impulselog_site.database.post_store import PostStore
from impulselog_site.exceptions import PostStoreError
from impulselog_site.main import app
from impulselog_site.services.seo_injector import SeoSiteConfig
from impulselog_site.services.template_fetcher import TemplateFetcher

BASE_TIME = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)

BLOG_POST_TEMPLATE = """<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="UTF-8">
  <title>Blog Post - ImpulseLog</title>
  <meta name="description" content="Read this post on ImpulseLog">
  <link rel="canonical" href="https://www.impulselog.com/blog-post.html">
  <meta property="og:title" content="Blog Post">
  <meta content="Generic description" property="og:description">
  <meta property="og:url" content="https://www.impulselog.com/blog">
  <meta property="og:image" content="https://www.impulselog.com/assets/images/social-preview.png">
  <meta name="twitter:title" content="Blog Post">
  <meta name="twitter:description" content="Generic description">
  <meta name="twitter:image" content="https://www.impulselog.com/assets/images/social-preview.png">
</head>
<body><article id="post"></article></body>
</html>"""

BLOG_LISTING_TEMPLATE = "<!DOCTYPE html><html><head><title>Blog - ImpulseLog</title></head><body>listing</body></html>"


class FakePostStore(PostStore):
    """In-memory post store with the same ordering and filter semantics as the real backends."""

    def __init__(self, posts: Optional[List[Dict[str, Any]]] = None):
        self.docs: Dict[str, Dict[str, Any]] = {}
        self.fail = False
        self.closed = False
        for post in posts or []:
            self.docs[post.get("id") or uuid4().hex] = {k: v for k, v in post.items() if k != "id"}

    def _check(self):
        if self.fail:
            raise PostStoreError("store unavailable")

    def _with_id(self, post_id: str) -> Dict[str, Any]:
        return {"id": post_id, **self.docs[post_id]}

    async def get_published_post(self, slug):
        self._check()
        for post_id, doc in self.docs.items():
            if doc.get("slug") == slug and doc.get("published") is True:
                return self._with_id(post_id)
        return None

    async def list_published_posts(self, limit=None, tag=None, category=None):
        self._check()
        posts = [
            self._with_id(post_id)
            for post_id, doc in self.docs.items()
            if doc.get("published") is True
            and (not tag or tag in (doc.get("tags") or []))
            and (not category or doc.get("category") == category)
        ]
        posts.sort(key=lambda p: p.get("publishedAt") or datetime.min.replace(tzinfo=timezone.utc), reverse=True)
        return posts[:limit] if limit else posts

    async def find_post_by_slug(self, slug):
        self._check()
        for post_id, doc in self.docs.items():
            if doc.get("slug") == slug:
                return self._with_id(post_id)
        return None

    async def insert_post(self, data):
        self._check()
        post_id = uuid4().hex
        self.docs[post_id] = dict(data)
        return post_id

    async def update_post(self, post_id, fields):
        self._check()
        self.docs[post_id].update(fields)

    async def close(self):
        self.closed = True


def make_post(slug: str, days_ago: int = 0, **overrides) -> Dict[str, Any]:
    published_at = BASE_TIME - timedelta(days=days_ago)
    post = {
        "title": slug.replace("-", " ").title(),
        "slug": slug,
        "excerpt": f"Excerpt of {slug}",
        "content": f"<p>Content of {slug}</p>",
        "featuredImage": None,
        "author": {"name": "ImpulseLog Team", "avatar": None},
        "tags": [],
        "category": None,
        "published": True,
        "publishedAt": published_at,
        "createdAt": published_at,
        "updatedAt": published_at,
        "seoTitle": slug.replace("-", " ").title(),
        "seoDescription": f"Description of {slug}",
        "readingTime": 1,
    }
    post.update(overrides)
    return post


@pytest.fixture
def site_config():
    return SeoSiteConfig(
        base_url="https://www.impulselog.com",
        site_name="ImpulseLog",
        default_author="ImpulseLog Team",
        default_image="https://www.impulselog.com/assets/images/social-preview.png",
        publisher_logo="https://www.impulselog.com/assets/icons/logo.svg",
    )


@pytest.fixture
def post_store():
    return FakePostStore()


@pytest.fixture
def template_routes():
    """Path -> (status, body) served by the mocked template origin; tests may edit it."""
    return {
        "/blog-post.html": (200, BLOG_POST_TEMPLATE),
        "/blog.html": (200, BLOG_LISTING_TEMPLATE),
    }


@pytest.fixture
def template_fetcher(template_routes):
    def handler(request: httpx.Request) -> httpx.Response:
        status, body = template_routes.get(request.url.path, (404, "Not Found"))
        return httpx.Response(status, text=body, headers={"Content-Type": "text/html; charset=utf-8"})

    return TemplateFetcher(httpx.AsyncClient(transport=httpx.MockTransport(handler)))


@pytest.fixture
def webhook_key(monkeypatch):
    monkeypatch.setattr(settings, "WEBHOOK_API_KEY", SecretStr("test-webhook-key"))
    monkeypatch.setattr(settings, "WEBHOOK_ALLOWED_ORIGIN", None)
    return "test-webhook-key"


@pytest.fixture
def client(post_store, template_fetcher, site_config):
    app.state.post_store = post_store
    app.state.edge_store = post_store
    app.state.template_fetcher = template_fetcher
    app.state.site_config = site_config
    try:
        yield TestClient(app)
    finally:
        for name in ("post_store", "edge_store", "template_fetcher", "site_config"):
            setattr(app.state, name, None)
