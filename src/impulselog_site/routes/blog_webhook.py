"""
# Blog Ingestion Webhook

Receives posts pushed by the content platform and upserts them into the `blogPosts` collection.

## Request

```
POST /api/blog-webhook
x-api-key: <WEBHOOK_API_KEY>
Content-Type: application/json

{"headline": "Stop Impulse Buying", "html": "<p>...</p>", "tags": [{"title": "habits"}]}
```

Both the legacy field names (`title`, `content`, `excerpt`, `featuredImage`) and the platform's
own (`headline`, `html`, `metaDescription`, `image`) are accepted; see `WebhookPostPayload`.

## Responses

| Status | Body | When |
|--------|------|------|
| 201 | `{"success": true, "id", "slug", "message": "Blog post created successfully"}` | New slug |
| 200 | `{"success": true, "id", "slug", "message": "Blog post updated successfully"}` | Existing slug |
| 400 | `{"error": "Missing required fields", "details": ...}` | No title or no content |
| 400 | `{"error": "Invalid JSON" \\| "Invalid payload", ...}` | Unparseable or mistyped body |
| 401 | `{"error": "Unauthorized"}` | Wrong or missing `x-api-key` |
| 415 | `{"error": "Unsupported Media Type"}` | Body is not `application/json` |
| 500 | `{"error": "Webhook is not configured"}` | `WEBHOOK_API_KEY` unset |
| 500 | `{"error": "Failed to process blog post"}` | Store failure (details only in the log) |

`OPTIONS` answers 200 for CORS preflight. Every response carries the webhook's CORS headers,
allowing `WEBHOOK_ALLOWED_ORIGIN` (default: the site's own origin).

## Module Attributes

Attributes:
    router (APIRouter): FastAPI router with `/api` prefix
"""

import hmac
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from impulselog_site.config import settings
from impulselog_site.database.post_store import PostStore
from impulselog_site.managers.logging_manager import get_logger
from impulselog_site.models.blog_models import BlogErrorResponse, WebhookPostPayload, WebhookResponse
from impulselog_site.routes.dependencies import get_post_store
from impulselog_site.services.post_normalizer import (
    MissingRequiredFieldsError,
    normalize_webhook_payload,
    upsert_post,
)

logger = get_logger(prefix="[Blog Webhook]")

router = APIRouter(prefix="/api", tags=["blog-webhook"])

API_KEY_HEADER = "x-api-key"


def cors_headers() -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.WEBHOOK_ALLOWED_ORIGIN or settings.SITE_BASE_URL,
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": f"Content-Type, {API_KEY_HEADER}",
        "Vary": "Origin",
    }


def _json(content: Dict[str, Any], status_code: int) -> JSONResponse:
    return JSONResponse(content=content, status_code=status_code, headers=cors_headers())


def _error(status_code: int, error: str, details: Optional[Any] = None) -> JSONResponse:
    content: Dict[str, Any] = {"error": error}
    if details is not None:
        content["details"] = details
    return _json(content, status_code)


def verify_api_key(provided: Optional[str], expected: str) -> bool:
    """Constant-time comparison of the request key against the configured secret."""
    if not provided:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def _is_json_request(request: Request) -> bool:
    content_type = request.headers.get("content-type", "")
    return content_type.split(";", 1)[0].strip().lower() == "application/json"


@router.options("/blog-webhook", include_in_schema=False)
async def blog_webhook_preflight():
    return Response(status_code=200, headers=cors_headers())


@router.post(
    "/blog-webhook",
    status_code=201,
    response_model=WebhookResponse,
    responses={code: {"model": BlogErrorResponse} for code in (400, 401, 415, 500)},
)
async def blog_webhook(request: Request, store: PostStore = Depends(get_post_store)):
    """
    Create or update a post from a webhook delivery.

    The post is keyed by its slug (explicit, or generated from the title). An existing post keeps
    its `createdAt`; every other field is overwritten.

    Returns:
        JSONResponse: 201 when created, 200 when updated, error envelope otherwise.
    """
    if settings.WEBHOOK_API_KEY is None:
        logger.error("WEBHOOK_API_KEY is not configured; rejecting delivery")
        return _error(500, "Webhook is not configured")

    if not verify_api_key(request.headers.get(API_KEY_HEADER), settings.WEBHOOK_API_KEY.get_secret_value()):
        logger.warning("Rejected webhook delivery with invalid API key from %s", request.client.host if request.client else "unknown")
        return _error(401, "Unauthorized")

    if not _is_json_request(request):
        return _error(415, "Unsupported Media Type", "Content-Type must be application/json")

    try:
        body = await request.json()
    except ValueError:
        return _error(400, "Invalid JSON", "Request body is not valid JSON")

    if not isinstance(body, dict):
        return _error(400, "Invalid payload", "Request body must be a JSON object")

    try:
        payload = WebhookPostPayload.model_validate(body)
    except ValidationError as e:
        details = [{"loc": list(err["loc"]), "msg": err["msg"]} for err in e.errors()]
        return _error(400, "Invalid payload", details)

    try:
        post = normalize_webhook_payload(payload, default_author=settings.DEFAULT_AUTHOR_NAME)
    except MissingRequiredFieldsError as e:
        return _error(400, "Missing required fields", str(e))

    try:
        post_id, created = await upsert_post(store, post)
    except Exception as e:
        logger.error("Failed to process blog post %s: %s", post.get("slug"), e, exc_info=True)
        return _error(500, "Failed to process blog post")

    response = WebhookResponse(
        id=post_id,
        slug=post["slug"],
        message="Blog post created successfully" if created else "Blog post updated successfully",
    )
    return _json(response.model_dump(), 201 if created else 200)


@router.api_route("/blog-webhook", methods=["GET", "PUT", "PATCH", "DELETE"], include_in_schema=False)
async def blog_webhook_method_not_allowed():
    headers = {**cors_headers(), "Allow": "POST, OPTIONS"}
    return JSONResponse(status_code=405, content={"error": "Method not allowed"}, headers=headers)
