"""
FastAPI dependencies handing out the process-wide handles created in the application lifespan.

Handlers never build stores or HTTP clients themselves; tests swap the handles by assigning
`app.state` attributes or through `app.dependency_overrides`.
"""

from typing import Optional

from fastapi import HTTPException, Request

from impulselog_site.database.post_store import PostStore
from impulselog_site.services.seo_injector import SeoSiteConfig
from impulselog_site.services.template_fetcher import TemplateFetcher


def _state_attr(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise HTTPException(status_code=503, detail="Service not ready")
    return value


def get_post_store(request: Request) -> PostStore:
    """Store used by the read API, the webhook and the sitemap."""
    return _state_attr(request, "post_store")


def get_template_fetcher(request: Request) -> TemplateFetcher:
    return _state_attr(request, "template_fetcher")


def get_site_config(request: Request) -> SeoSiteConfig:
    return _state_attr(request, "site_config")


def get_optional_post_store(request: Request) -> Optional[PostStore]:
    """Like `get_post_store`, but `None` instead of 503 for routes that degrade without a store."""
    return getattr(request.app.state, "post_store", None)


def get_optional_edge_store(request: Request) -> Optional[PostStore]:
    """Store used by the edge SEO route (HTTP query protocol where available), or `None`."""
    return getattr(request.app.state, "edge_store", None)
