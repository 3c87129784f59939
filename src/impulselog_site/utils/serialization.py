"""
JSON serialization for stored blog posts.

Timestamps are rendered as ISO-8601 UTC strings with millisecond precision and a `Z` suffix
(`2026-10-17T09:30:00.000Z`), the format browsers produce with `Date.toISOString()`.
"""

from datetime import datetime, timezone
from typing import Any, Dict

TIMESTAMP_FIELDS = ("publishedAt", "createdAt", "updatedAt")


def serialize_timestamp(value: Any) -> Any:
    """Render datetimes as ISO-8601 strings; every other value is returned unchanged."""
    if not isinstance(value, datetime):
        return value
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


def serialize_post(doc: Dict[str, Any]) -> Dict[str, Any]:
    """
    Convert a store document into the read API's JSON shape.

    The document id is exposed as `id`; the three lifecycle timestamps are normalized.
    """
    data = {key: value for key, value in doc.items() if key not in ("_id", "id")}
    post_id = doc.get("id", doc.get("_id"))
    result: Dict[str, Any] = {"id": str(post_id) if post_id is not None else None, **data}
    for field in TIMESTAMP_FIELDS:
        if field in result:
            result[field] = serialize_timestamp(result[field])
    return result
