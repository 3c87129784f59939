"""
# Blog Post SEO Route

Serves `/blog/{slug}` to browsers and crawlers alike: the shared `blog-post.html` template with
every SEO tag rewritten for the requested post, so crawlers see unique metadata without running
the page's scripts.

## Request Flow

1. The slug is the last path segment. `/blog`, `/blog/` and `/blog/blog` pass the static listing
   page (`/blog.html`) through unchanged.
2. The post is looked up among **published** posts through the edge store. Unknown slugs get a
   plain 404 and no template, so non-existent posts are never indexed.
3. The template is fetched from the template origin; a non-2xx answer is a 500.
4. `inject_post_metadata()` rewrites title, description, canonical, Open Graph and Twitter tags
   and adds the `Article` JSON-LD block.

## Diagnostic Headers

| Header | Value |
|--------|-------|
| `X-Edge-Function` | `blog-post` |
| `X-Post-Status` | `validated`, `not-found` or `fallback-error` |
| `X-Canonical-Injected` | Canonical URL written into the page |
| `X-Post-Title` | First 50 characters of the escaped title |

## Failure Handling

Any unexpected error (store outage included) degrades to the unmodified template with a
5-minute cache and `X-Post-Status: fallback-error`. If even the template cannot be loaded the
answer is a plain-text 500.

## Module Attributes

Attributes:
    router (APIRouter): FastAPI router with `/blog` prefix
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, PlainTextResponse, Response

from impulselog_site.database.post_store import PostStore
from impulselog_site.exceptions import PostStoreError, TemplateFetchError
from impulselog_site.managers.logging_manager import get_logger
from impulselog_site.routes.dependencies import (
    get_optional_edge_store,
    get_site_config,
    get_template_fetcher,
)
from impulselog_site.services.seo_injector import (
    SeoSiteConfig,
    build_canonical_url,
    escape_html,
    extract_slug,
    inject_post_metadata,
    is_listing_request,
)
from impulselog_site.services.template_fetcher import (
    LISTING_TEMPLATE_PATH,
    POST_TEMPLATE_PATH,
    TemplateFetcher,
)

logger = get_logger(prefix="[Blog Edge]")

router = APIRouter(prefix="/blog", tags=["blog-pages"])

EDGE_FUNCTION_NAME = "blog-post"
HTML_CONTENT_TYPE = "text/html; charset=utf-8"
POST_CACHE_CONTROL = "public, max-age=3600, s-maxage=3600, stale-while-revalidate=86400"
FALLBACK_CACHE_CONTROL = "public, max-age=300"
TITLE_HEADER_LENGTH = 50


def request_origin(request: Request) -> str:
    return f"{request.url.scheme}://{request.url.netloc}"


def header_safe(value: str) -> str:
    """Header values must be latin-1; anything else is replaced by `?`."""
    return value.encode("latin-1", "replace").decode("latin-1")


async def _serve_listing(fetcher: TemplateFetcher, origin: str) -> Response:
    upstream = await fetcher.fetch(LISTING_TEMPLATE_PATH, origin)
    return Response(
        content=upstream.content,
        status_code=upstream.status_code,
        media_type=upstream.headers.get("content-type", HTML_CONTENT_TYPE),
    )


async def _serve_fallback(fetcher: TemplateFetcher, origin: str) -> Response:
    try:
        upstream = await fetcher.fetch(POST_TEMPLATE_PATH, origin)
        return HTMLResponse(
            content=upstream.text,
            status_code=200,
            headers={
                "Content-Type": HTML_CONTENT_TYPE,
                "Cache-Control": FALLBACK_CACHE_CONTROL,
                "X-Edge-Function": EDGE_FUNCTION_NAME,
                "X-Post-Status": "fallback-error",
            },
        )
    except Exception as e:
        logger.error("Fallback template fetch failed: %s", e, exc_info=True)
        return PlainTextResponse("Internal Server Error", status_code=500)


async def render_blog_page(
    request: Request,
    store: Optional[PostStore],
    fetcher: TemplateFetcher,
    site: SeoSiteConfig,
) -> Response:
    """Resolve the slug from the request path and build the page response."""
    origin = request_origin(request)
    try:
        slug = extract_slug(request.url.path)
        if is_listing_request(slug):
            return await _serve_listing(fetcher, origin)

        if store is None:
            raise PostStoreError("No edge post store is configured")

        post = await store.get_published_post(slug)
        if post is None:
            logger.info("No published post for slug %s", slug)
            return HTMLResponse(
                content="Blog post not found",
                status_code=404,
                headers={
                    "Content-Type": HTML_CONTENT_TYPE,
                    "X-Edge-Function": EDGE_FUNCTION_NAME,
                    "X-Post-Status": "not-found",
                },
            )

        try:
            template = await fetcher.fetch_text(POST_TEMPLATE_PATH, origin)
        except TemplateFetchError as e:
            logger.error("Failed to fetch post template: %s", e)
            return PlainTextResponse("Blog post template not found", status_code=500)

        post = {**post, "slug": slug}
        html = inject_post_metadata(template, post, site, now=datetime.now(timezone.utc))
        canonical_url = build_canonical_url(site.base_url, slug)
        title = escape_html(post.get("seoTitle") or post.get("title") or "Blog Post")

        return HTMLResponse(
            content=html,
            status_code=200,
            headers={
                "Content-Type": HTML_CONTENT_TYPE,
                "Cache-Control": POST_CACHE_CONTROL,
                "X-Edge-Function": EDGE_FUNCTION_NAME,
                "X-Canonical-Injected": header_safe(canonical_url),
                "X-Post-Status": "validated",
                "X-Post-Title": header_safe(title[:TITLE_HEADER_LENGTH]),
            },
        )

    except Exception as e:
        logger.error("Blog page rendering failed for %s: %s", request.url.path, e, exc_info=True)
        return await _serve_fallback(fetcher, origin)


@router.get("", include_in_schema=False)
@router.get("/{page_path:path}", include_in_schema=False)
async def blog_page(
    request: Request,
    store: Optional[PostStore] = Depends(get_optional_edge_store),
    fetcher: TemplateFetcher = Depends(get_template_fetcher),
    site: SeoSiteConfig = Depends(get_site_config),
):
    """
    Serve a post page with server-side SEO metadata, or the listing page.

    Returns:
        Response: Rewritten HTML (200), plain 404 for unknown slugs, listing passthrough, or the
        fallback template.
    """
    return await render_blog_page(request, store, fetcher, site)
