"""
`GET /sitemap.xml`: static pages plus one entry per published post.

The endpoint never fails: when the store is unavailable the static pages alone are returned,
still with status 200.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Response

from impulselog_site.config import settings
from impulselog_site.database.post_store import PostStore
from impulselog_site.exceptions import PostStoreError
from impulselog_site.managers.logging_manager import get_logger
from impulselog_site.routes.dependencies import get_optional_post_store, get_site_config
from impulselog_site.services.seo_injector import SeoSiteConfig
from impulselog_site.services.sitemap import generate_sitemap_xml, post_entries, static_pages

logger = get_logger(prefix="[Sitemap]")

router = APIRouter(tags=["seo"])

XML_CONTENT_TYPE = "application/xml; charset=utf-8"
SITEMAP_CACHE_CONTROL = "public, max-age=3600, s-maxage=3600, stale-while-revalidate=86400"


@router.get("/sitemap.xml", include_in_schema=False)
async def get_sitemap(
    store: Optional[PostStore] = Depends(get_optional_post_store),
    site: SeoSiteConfig = Depends(get_site_config),
):
    """
    Generate the XML sitemap.

    Returns:
        Response: `application/xml`, cached for an hour; static pages only if the store fails.
    """
    pages = static_pages(site.base_url)
    try:
        if store is None:
            raise PostStoreError("No post store is configured")
        posts = await store.list_published_posts()
        today = datetime.now(timezone.utc).date()
        entries = pages + post_entries(
            posts, site.base_url, today=today, force_today=settings.SITEMAP_FORCE_TODAY_LASTMOD
        )
        return Response(
            content=generate_sitemap_xml(entries),
            media_type=XML_CONTENT_TYPE,
            headers={"Cache-Control": SITEMAP_CACHE_CONTROL},
        )
    except Exception as e:
        logger.error("Failed to generate sitemap, serving static pages only: %s", e, exc_info=True)
        return Response(content=generate_sitemap_xml(pages), media_type=XML_CONTENT_TYPE)
