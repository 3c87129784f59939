"""
# SEO Metadata Injector

Rewrites the shared `blog-post.html` template so that crawlers receive the metadata of one
specific post without executing any client-side code.

## Rewritten Tags

Each tag is located by its name/property (attribute order and case do not matter) and replaced
as a whole by a canonical form that carries a fixed `id`:

| Tag | Canonical form |
|-----|----------------|
| `<title>` | `<title id="page-title">{title} - {site}</title>` |
| meta description | `<meta name="description" id="page-description" content="...">` |
| canonical link | `<link rel="canonical" id="canonical-url" href="...">` |
| `og:title` / `og:description` / `og:url` / `og:image` | `<meta property="og:*" id="og-*" content="...">` |
| `twitter:title` / `twitter:description` / `twitter:image` | `<meta name="twitter:*" id="twitter-*" content="...">` |

An `Article` JSON-LD block (`<script type="application/ld+json" id="article-structured-data">`)
is inserted before `</head>`; when the block is already present it is replaced in place.
Running the injector on its own output therefore changes nothing.

## Escaping

- HTML attribute and text values use `escape_html()` (`& < > " '`).
- JSON-LD string values use `escape_json_ld()` (backslash, double quote, `\\n`, `\\r`, `\\t`).
  Angle brackets are left alone: the result is only valid inside the script block.
"""

import html
import re
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Pattern, Tuple

from pydantic import BaseModel

from impulselog_site.config import Settings
from impulselog_site.utils.serialization import serialize_timestamp

LISTING_ROUTE = "blog"
JSON_LD_ID = "article-structured-data"

TITLE_PATTERN = re.compile(r"<title\b[^>]*>.*?</title\s*>", re.IGNORECASE | re.DOTALL)
HEAD_CLOSE_PATTERN = re.compile(r"</head\s*>", re.IGNORECASE)
JSON_LD_PATTERN = re.compile(
    r"<script\b(?=[^>]*?\sid\s*=\s*[\"']" + re.escape(JSON_LD_ID) + r"[\"'])[^>]*>.*?</script\s*>",
    re.IGNORECASE | re.DOTALL,
)


def _tag_pattern(tag: str, attribute: str, value: str) -> Pattern[str]:
    """Match a `<tag ...>` whose `attribute` equals `value`, wherever the attribute sits."""
    return re.compile(
        rf"<{tag}\b(?=[^>]*?\s{attribute}\s*=\s*[\"']{re.escape(value)}[\"'])[^>]*>",
        re.IGNORECASE,
    )


class SeoSiteConfig(BaseModel):
    """Site-wide values used when building tags and structured data."""

    base_url: str
    site_name: str
    default_author: str
    default_image: str
    publisher_logo: str

    @classmethod
    def from_settings(cls, config: Settings) -> "SeoSiteConfig":
        return cls(
            base_url=config.SITE_BASE_URL,
            site_name=config.SITE_NAME,
            default_author=config.DEFAULT_AUTHOR_NAME,
            default_image=config.DEFAULT_OG_IMAGE,
            publisher_logo=config.PUBLISHER_LOGO_URL,
        )


def escape_html(text: Any) -> str:
    """Escape `& < > " '` for use in HTML text and attribute values."""
    if not text:
        return ""
    return html.escape(str(text), quote=True)


def escape_json_ld(text: Any) -> str:
    """Escape a value for a double-quoted JSON string inside a script block."""
    if not text:
        return ""
    return (
        str(text)
        .replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
    )


def extract_slug(path: str) -> str:
    """Last non-empty path segment (`/blog/hello-world/` gives `hello-world`)."""
    parts = [part for part in path.split("/") if part]
    return parts[-1] if parts else ""


def is_listing_request(slug: str) -> bool:
    return not slug or slug == LISTING_ROUTE


def build_canonical_url(base_url: str, slug: str) -> str:
    return f"{base_url.rstrip('/')}/blog/{slug}"


def build_article_json_ld(
    post: Dict[str, Any],
    canonical_url: str,
    site: SeoSiteConfig,
    now: Optional[datetime] = None,
) -> str:
    """
    Render the `Article` structured-data script for a post.

    `datePublished` and `dateModified` both use the post's `publishedAt`, or `now` when the post
    has none.
    """
    title = escape_json_ld(post.get("seoTitle") or post.get("title") or "")
    description = escape_json_ld(post.get("seoDescription") or post.get("excerpt") or "")
    image = escape_json_ld(post.get("featuredImage") or site.default_image)
    url = escape_json_ld(canonical_url)

    published_at = post.get("publishedAt") or now or datetime.now(timezone.utc)
    date_published = escape_json_ld(serialize_timestamp(published_at))

    author = post.get("author") or {}
    author_name = escape_json_ld(author.get("name") if isinstance(author, dict) else None) or escape_json_ld(
        site.default_author
    )

    return f"""<script type="application/ld+json" id="{JSON_LD_ID}">
{{
  "@context": "https://schema.org",
  "@type": "Article",
  "headline": "{title}",
  "description": "{description}",
  "image": "{image}",
  "url": "{url}",
  "datePublished": "{date_published}",
  "dateModified": "{date_published}",
  "author": {{
    "@type": "Person",
    "name": "{author_name}"
  }},
  "publisher": {{
    "@type": "Organization",
    "name": "{escape_json_ld(site.site_name)}",
    "logo": {{
      "@type": "ImageObject",
      "url": "{escape_json_ld(site.publisher_logo)}"
    }}
  }},
  "mainEntityOfPage": {{
    "@type": "WebPage",
    "@id": "{url}"
  }}
}}
</script>"""


def _replacements(
    title: str, description: str, canonical_url: str, image: str, site_name: str
) -> List[Tuple[Pattern[str], str, int]]:
    """Ordered (pattern, canonical tag, count) triples; count 0 replaces every match."""
    return [
        (TITLE_PATTERN, f'<title id="page-title">{title} - {site_name}</title>', 1),
        (
            _tag_pattern("meta", "name", "description"),
            f'<meta name="description" id="page-description" content="{description}">',
            1,
        ),
        (
            _tag_pattern("link", "rel", "canonical"),
            f'<link rel="canonical" id="canonical-url" href="{canonical_url}">',
            0,
        ),
        (
            _tag_pattern("meta", "property", "og:title"),
            f'<meta property="og:title" id="og-title" content="{title}">',
            1,
        ),
        (
            _tag_pattern("meta", "property", "og:description"),
            f'<meta property="og:description" id="og-description" content="{description}">',
            1,
        ),
        (
            _tag_pattern("meta", "property", "og:url"),
            f'<meta property="og:url" id="og-url" content="{canonical_url}">',
            1,
        ),
        (
            _tag_pattern("meta", "property", "og:image"),
            f'<meta property="og:image" id="og-image" content="{image}">',
            1,
        ),
        (
            _tag_pattern("meta", "name", "twitter:title"),
            f'<meta name="twitter:title" id="twitter-title" content="{title}">',
            1,
        ),
        (
            _tag_pattern("meta", "name", "twitter:description"),
            f'<meta name="twitter:description" id="twitter-description" content="{description}">',
            1,
        ),
        (
            _tag_pattern("meta", "name", "twitter:image"),
            f'<meta name="twitter:image" id="twitter-image" content="{image}">',
            1,
        ),
    ]


def _literal(replacement: str) -> Callable[[re.Match], str]:
    # re.sub would otherwise interpret backslashes in post data
    return lambda _match: replacement


def inject_post_metadata(
    template: str,
    post: Dict[str, Any],
    site: SeoSiteConfig,
    now: Optional[datetime] = None,
) -> str:
    """
    Return `template` with every SEO tag rewritten for `post`.

    Args:
        template: The `blog-post.html` source.
        post: Store document of the post (needs at least `slug` and `title`).
        site: Site-wide values (base URL, names, fallback images).
        now: Timestamp used for the structured data when the post has no `publishedAt`.

    Returns:
        str: The rewritten HTML.
    """
    canonical_url = build_canonical_url(site.base_url, post.get("slug", ""))
    title = escape_html(post.get("seoTitle") or post.get("title") or "Blog Post")
    description = escape_html(post.get("seoDescription") or post.get("excerpt") or "")
    image = escape_html(post.get("featuredImage") or site.default_image)
    canonical_attr = escape_html(canonical_url)

    html_out = template
    for pattern, replacement, count in _replacements(
        title, description, canonical_attr, image, escape_html(site.site_name)
    ):
        html_out = pattern.sub(_literal(replacement), html_out, count=count)

    json_ld = build_article_json_ld(post, canonical_url, site, now=now)
    if JSON_LD_PATTERN.search(html_out):
        html_out = JSON_LD_PATTERN.sub(_literal(json_ld), html_out, count=1)
    else:
        html_out = HEAD_CLOSE_PATTERN.sub(lambda match: f"{json_ld}\n{match.group(0)}", html_out, count=1)

    return html_out
