"""
# ImpulseLog Site Service - Application Entry Point

FastAPI application serving the dynamic parts of the ImpulseLog site: the public blog posts API,
the content ingestion webhook, server-side SEO metadata for blog post pages and the sitemap.

## Routes

| Route | Router | Purpose |
|-------|--------|---------|
| `GET /api/blog-posts` | `routes.blog_posts` | Published posts as JSON |
| `POST, OPTIONS /api/blog-webhook` | `routes.blog_webhook` | Post ingestion (upsert by slug) |
| `GET /blog`, `GET /blog/{slug}` | `routes.blog_edge` | Template with per-post SEO tags |
| `GET /sitemap.xml` | `routes.sitemap` | Sitemap protocol document |
| `GET /health` | `routes.health` | Probe |
| `GET /metrics` | Prometheus instrumentator | Request metrics |

## Lifespan

**Startup:**
1. Connect to MongoDB and verify indexes when `MONGODB_URL` is set.
2. Create the shared `httpx.AsyncClient` (templates and Data API calls).
3. Resolve the two post stores: `post_store` (server handlers, prefers Motor) and `edge_store`
   (SEO route, prefers the Data API). Both land on `app.state`.

A missing store is not fatal: the routes that need one answer 503, the SEO route and sitemap
degrade to their fallbacks.

**Shutdown:** stores, HTTP client and database connection are closed in reverse order.

## Errors

Every `HTTPException`, including the framework's own 404/405, is rendered as
`{"error": detail}`.

## Running

```bash
uvicorn impulselog_site.main:app --reload --host 0.0.0.0 --port 8000
```

Attributes:
    app (FastAPI): The application instance.
"""

from contextlib import asynccontextmanager
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import httpx
from prometheus_fastapi_instrumentator import Instrumentator
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.cors import CORSMiddleware
import uvicorn

from impulselog_site.config import settings
from impulselog_site.database import create_post_store, db_manager
from impulselog_site.exceptions import PostStoreError
from impulselog_site.managers.logging_manager import get_logger
from impulselog_site.routes.blog_edge import router as blog_edge_router
from impulselog_site.routes.blog_posts import router as blog_posts_router
from impulselog_site.routes.blog_webhook import router as blog_webhook_router
from impulselog_site.routes.health import router as health_router
from impulselog_site.routes.sitemap import router as sitemap_router
from impulselog_site.services.seo_injector import SeoSiteConfig
from impulselog_site.services.template_fetcher import TemplateFetcher
from impulselog_site.utils.logging_utils import (
    RequestLoggingMiddleware,
    log_application_lifecycle,
    log_error_with_context,
)

logger = get_logger(prefix="[Main]")

APP_NAME = "ImpulseLog Site API"
APP_VERSION = "1.0.0"


def _resolve_store(name: str, backend: str, prefer: str, http_client: httpx.AsyncClient):
    try:
        return create_post_store(backend, prefer=prefer, db_manager=db_manager, http_client=http_client)
    except PostStoreError as e:
        logger.warning("%s unavailable: %s", name, e)
        return None


@asynccontextmanager
async def lifespan(_app: FastAPI):
    """
    Application lifespan manager.

    Opens the database connection and the shared HTTP client, builds the post stores and the
    template fetcher, and releases everything on shutdown.

    Args:
        _app (FastAPI): The FastAPI application instance.

    Yields:
        None: Control is yielded to the application to start serving requests.
    """
    startup_start_time = time.time()
    log_application_lifecycle(
        "startup_initiated",
        {
            "app_name": APP_NAME,
            "version": APP_VERSION,
            "environment": "production" if settings.is_production else "development",
            "debug_mode": settings.DEBUG,
        },
    )

    if settings.mongodb_configured:
        try:
            db_connect_start = time.time()
            await db_manager.connect()
            await db_manager.create_indexes()
            log_application_lifecycle(
                "database_connected",
                {
                    "connection_duration": f"{time.time() - db_connect_start:.3f}s",
                    "database_name": settings.MONGODB_DATABASE,
                },
            )
        except Exception as e:
            log_error_with_context(e, {"operation": "database_connection"})
            logger.error("Database unavailable at startup; Motor-backed features are disabled")
    else:
        logger.info("MONGODB_URL not set; skipping database connection")

    http_client = httpx.AsyncClient(timeout=settings.TEMPLATE_FETCH_TIMEOUT, follow_redirects=True)
    _app.state.http_client = http_client
    _app.state.site_config = SeoSiteConfig.from_settings(settings)
    _app.state.template_fetcher = TemplateFetcher(http_client, origin=settings.TEMPLATE_ORIGIN)
    _app.state.post_store = _resolve_store("Post store", settings.POST_STORE_BACKEND, "motor", http_client)
    _app.state.edge_store = _resolve_store("Edge store", settings.EDGE_STORE_BACKEND, "data_api", http_client)

    log_application_lifecycle(
        "startup_completed",
        {
            "startup_duration": f"{time.time() - startup_start_time:.3f}s",
            "post_store": type(_app.state.post_store).__name__ if _app.state.post_store else None,
            "edge_store": type(_app.state.edge_store).__name__ if _app.state.edge_store else None,
        },
    )

    yield

    shutdown_start_time = time.time()
    log_application_lifecycle("shutdown_initiated")

    for store in (_app.state.edge_store, _app.state.post_store):
        if store is not None:
            try:
                await store.close()
            except Exception as e:
                log_error_with_context(e, {"operation": "post_store_close"})

    await http_client.aclose()

    if db_manager.is_connected:
        try:
            await db_manager.disconnect()
        except Exception as e:
            log_error_with_context(e, {"operation": "database_disconnection"})

    log_application_lifecycle(
        "shutdown_completed", {"shutdown_duration": f"{time.time() - shutdown_start_time:.3f}s"}
    )


app = FastAPI(
    title=APP_NAME,
    description="Blog posts API, ingestion webhook, server-side SEO pages and sitemap for ImpulseLog.",
    version=APP_VERSION,
    lifespan=lifespan,
    redirect_slashes=False,
)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(_request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail}, headers=exc.headers)


cors_origins = [settings.SITE_BASE_URL]
if settings.CORS_ORIGINS:
    cors_origins.extend(origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip())
if settings.WEBHOOK_ALLOWED_ORIGIN and settings.WEBHOOK_ALLOWED_ORIGIN not in cors_origins:
    cors_origins.append(settings.WEBHOOK_ALLOWED_ORIGIN)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type", "x-api-key"],
    max_age=3600,
)
app.add_middleware(RequestLoggingMiddleware)
log_application_lifecycle(
    "middleware_configured",
    {"middleware": ["CORSMiddleware", "RequestLoggingMiddleware"], "cors_origins": cors_origins},
)

routers_config = [
    ("blog_posts", blog_posts_router, "Public blog posts API"),
    ("blog_webhook", blog_webhook_router, "Content ingestion webhook"),
    ("blog_edge", blog_edge_router, "Blog pages with server-side SEO metadata"),
    ("sitemap", sitemap_router, "XML sitemap"),
    ("health", health_router, "Health probe"),
]

included_routers = []
for router_name, router, description in routers_config:
    app.include_router(router)
    included_routers.append({"name": router_name, "description": description})

log_application_lifecycle("routers_configured", {"total_routers": len(routers_config), "routers": included_routers})

try:
    Instrumentator(
        should_group_status_codes=True,
        should_ignore_untemplated=True,
        should_respect_env_var=False,
        excluded_handlers=["/metrics"],
    ).instrument(app).expose(app, include_in_schema=False, endpoint="/metrics")
except Exception as e:
    log_error_with_context(e, {"operation": "prometheus_setup"})
    logger.error("Failed to configure Prometheus metrics: %s", e)


if __name__ == "__main__":
    uvicorn.run(
        "impulselog_site.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level="info",
    )
