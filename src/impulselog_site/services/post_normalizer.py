"""
# Post Normalizer Service

Turns an ingestion webhook payload into the stored `blogPosts` document and upserts it by slug.

## Field Resolution

| Stored field | Resolution order |
|--------------|------------------|
| `title` | `title` → `headline` |
| `content` | `content` → `html` |
| `slug` | explicit `slug` → `generate_slug(title)` → `fallback_slug(title)` when the title has no ASCII letters or digits |
| `excerpt` | `excerpt` → `metaDescription` → first 200 characters of the stripped content + `...` |
| `featuredImage` | `featuredImage` → `image` → `None` |
| `seoTitle` | `seoTitle` → title |
| `seoDescription` | `seoDescription` → `metaDescription` → `excerpt` → first 160 stripped characters |
| `readingTime` | explicit `readingTime` → word count at 200 wpm |
| `published` | explicit value → `True` |
| `publishedAt` | now when published, otherwise `None` |

## Upsert Semantics

`upsert_post()` looks the slug up first. An existing document is overwritten field by field
except `createdAt`, which keeps its original value; otherwise a new document is inserted.
Both paths stamp `updatedAt` with the current time.

Two deliveries of a new slug can race past the lookup; the loser of the unique-index insert
re-reads the winner and updates it instead.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from impulselog_site.database.post_store import PostStore
from impulselog_site.exceptions import DuplicateSlugError
from impulselog_site.managers.logging_manager import get_logger
from impulselog_site.models.blog_models import (
    DEFAULT_AUTHOR_NAME,
    AuthorInfo,
    BlogPostDocument,
    WebhookPostPayload,
)
from impulselog_site.utils.text import (
    calculate_reading_time,
    derive_excerpt,
    derive_seo_description,
    fallback_slug,
    generate_slug,
)

logger = get_logger(prefix="[PostNormalizer]")


class MissingRequiredFieldsError(ValueError):
    """Title or content could not be resolved from the payload."""


def normalize_webhook_payload(
    payload: WebhookPostPayload,
    now: Optional[datetime] = None,
    default_author: str = DEFAULT_AUTHOR_NAME,
) -> Dict[str, Any]:
    """
    Build the stored post document from a webhook payload.

    Args:
        payload: The validated webhook body (either field schema).
        now: Timestamp applied to `publishedAt`, `createdAt` and `updatedAt`.
        default_author: Author name used when the payload has none.

    Returns:
        Dict[str, Any]: The document ready for `insert_post`/`update_post`.

    Raises:
        MissingRequiredFieldsError: If the title or the content is missing.
    """
    title = payload.resolved_title()
    content = payload.resolved_content()
    if not title or not content:
        raise MissingRequiredFieldsError("Title and content are required")

    now = now or datetime.now(timezone.utc)
    slug = payload.slug or generate_slug(title) or fallback_slug(title)
    excerpt = payload.resolved_excerpt() or derive_excerpt(content)
    published = payload.published if payload.published is not None else True

    author = payload.author
    document = BlogPostDocument(
        title=title,
        slug=slug,
        excerpt=excerpt,
        content=content,
        markdown=payload.markdown,
        featuredImage=payload.resolved_image(),
        author=AuthorInfo(
            name=(author.name if author and author.name else default_author),
            avatar=author.avatar if author else None,
        ),
        tags=payload.tags,
        category=payload.category,
        published=published,
        publishedAt=now if published else None,
        createdAt=now,
        updatedAt=now,
        seoTitle=payload.seoTitle or title,
        seoDescription=(
            payload.seoDescription
            or payload.metaDescription
            or payload.excerpt
            or derive_seo_description(content)
        ),
        readingTime=(
            payload.readingTime if payload.readingTime is not None else calculate_reading_time(content)
        ),
        metaKeywords=payload.metaKeywords,
        outline=payload.outline,
    )
    return document.to_document()


async def upsert_post(store: PostStore, post: Dict[str, Any]) -> Tuple[str, bool]:
    """
    Insert or update the post keyed by its slug.

    Returns:
        Tuple[str, bool]: The document id and `True` when a new document was created.
    """
    existing = await store.find_post_by_slug(post["slug"])
    if existing:
        return await _update_existing(store, existing, post), False

    try:
        post_id = await store.insert_post(post)
    except DuplicateSlugError:
        existing = await store.find_post_by_slug(post["slug"])
        if not existing:
            raise
        logger.warning("Slug %s was created concurrently, updating it instead", post["slug"])
        return await _update_existing(store, existing, post), False

    logger.info("Created post %s (%s)", post["slug"], post_id)
    return post_id, True


async def _update_existing(store: PostStore, existing: Dict[str, Any], post: Dict[str, Any]) -> str:
    fields = dict(post)
    if existing.get("createdAt") is not None:
        fields["createdAt"] = existing["createdAt"]
    await store.update_post(existing["id"], fields)
    logger.info("Updated post %s (%s)", post["slug"], existing["id"])
    return existing["id"]
