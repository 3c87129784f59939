"""
# Text Helpers

Pure functions shared by the ingestion webhook, the SEO injector and the client library.

## Functions

- **HTML**: `strip_html()` removes markup with `bleach` and decodes entities, giving the same text
  a browser exposes as `textContent`.
- **Derived fields**: `generate_slug()`, `fallback_slug()`, `count_words()`, `calculate_reading_time()`,
  `derive_excerpt()`, `derive_seo_description()`.
- **Display**: `truncate_text()`, `format_date()`, `format_relative_date()`.

## Examples

```python
generate_slug("Hello, World!")          # "hello-world"
calculate_reading_time("<p>one</p>")    # 1
truncate_text("a" * 300, 10)            # "aaaaaaaaaa..."
```
"""

import hashlib
import html
import math
import re
from datetime import datetime, timezone
from typing import Any, Optional, Union

import bleach

WORDS_PER_MINUTE = 200
EXCERPT_LENGTH = 200
SEO_DESCRIPTION_LENGTH = 160
ELLIPSIS = "..."

_NON_ALPHANUMERIC = re.compile(r"[^a-z0-9]+")


def strip_html(markup: Optional[str]) -> str:
    """Remove every tag from `markup` and decode HTML entities."""
    if not markup:
        return ""
    cleaned = bleach.clean(markup, tags=[], attributes={}, strip=True, strip_comments=True)
    return html.unescape(cleaned)


def generate_slug(title: str) -> str:
    """
    Build a URL-safe slug from a title.

    Lowercases, collapses every run of non-alphanumeric characters into one hyphen and trims
    hyphens from both ends: `"Hello, World!"` becomes `"hello-world"`.
    """
    return _NON_ALPHANUMERIC.sub("-", title.lower()).strip("-")


def fallback_slug(title: str) -> str:
    """
    Stable slug for titles that `generate_slug()` reduces to nothing (non-Latin scripts, pure
    punctuation): `post-` plus the first 10 hex digits of the title's SHA-1.

    The same title always maps to the same slug, so redeliveries still update in place.
    """
    digest = hashlib.sha1(title.strip().encode("utf-8")).hexdigest()
    return f"post-{digest[:10]}"


def count_words(markup: Optional[str]) -> int:
    """Count whitespace-separated words in the tag-stripped text."""
    return len(strip_html(markup).split())


def calculate_reading_time(markup: Optional[str], words_per_minute: int = WORDS_PER_MINUTE) -> int:
    """
    Estimate reading time in whole minutes.

    Returns `ceil(words / words_per_minute)`, at least 1 when there is any text and 0 when the
    content is empty after stripping tags.
    """
    words = count_words(markup)
    if words == 0:
        return 0
    return max(1, math.ceil(words / words_per_minute))


def truncate_text(text: str, max_length: int = EXCERPT_LENGTH) -> str:
    """Shorten `text` to `max_length` characters with a trailing ellipsis when it is longer."""
    if len(text) <= max_length:
        return text
    return text[:max_length].strip() + ELLIPSIS


def derive_excerpt(markup: Optional[str], length: int = EXCERPT_LENGTH) -> str:
    """Excerpt taken from the tag-stripped content; the ellipsis is always appended."""
    return strip_html(markup)[:length] + ELLIPSIS


def derive_seo_description(markup: Optional[str], length: int = SEO_DESCRIPTION_LENGTH) -> str:
    return strip_html(markup)[:length]


def coerce_datetime(value: Any) -> Optional[datetime]:
    """
    Interpret `value` as a timezone-aware datetime.

    Accepts `datetime` objects (naive values are treated as UTC) and ISO-8601 strings, including
    the `Z` suffix produced by the read API. Anything else yields `None`.
    """
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, str) and value:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def format_date(value: Union[datetime, str, None]) -> str:
    """Long-form date such as `October 17, 2026`; `Draft` when there is no date."""
    date = coerce_datetime(value)
    if date is None:
        return "Draft"
    return f"{date.strftime('%B')} {date.day}, {date.year}"


def format_relative_date(value: Union[datetime, str, None], now: Optional[datetime] = None) -> str:
    """
    Relative description of a date: `Today`, `Yesterday`, `3 days ago`, `2 weeks ago`,
    `5 months ago` or `1 years ago`. Returns `Draft` when there is no date.
    """
    date = coerce_datetime(value)
    if date is None:
        return "Draft"

    now = coerce_datetime(now) or datetime.now(timezone.utc)
    diff_days = math.floor((now - date).total_seconds() / 86400)

    if diff_days <= 0:
        return "Today"
    if diff_days == 1:
        return "Yesterday"
    if diff_days < 7:
        return f"{diff_days} days ago"
    if diff_days < 30:
        return f"{diff_days // 7} weeks ago"
    if diff_days < 365:
        return f"{diff_days // 30} months ago"
    return f"{diff_days // 365} years ago"
