"""
# Sitemap Builder

Builds the `sitemap.xml` document (Sitemap Protocol 0.9) from the static site pages and the
published posts.

Static pages carry the dates their content last changed. Post entries are stamped with today's
date while `SITEMAP_FORCE_TODAY_LASTMOD` is on, so crawlers revisit every post after a metadata
change; with the flag off the post's own `updatedAt`/`publishedAt` is used.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional
from xml.sax.saxutils import escape

SITEMAP_NAMESPACE = "http://www.sitemaps.org/schemas/sitemap/0.9"

POST_CHANGEFREQ = "monthly"
POST_PRIORITY = "0.7"


@dataclass(frozen=True)
class SitemapEntry:
    loc: str
    lastmod: str
    changefreq: str
    priority: str


def static_pages(base_url: str) -> List[SitemapEntry]:
    base = base_url.rstrip("/")
    return [
        SitemapEntry(f"{base}/", "2025-10-27", "weekly", "1.0"),
        SitemapEntry(f"{base}/blog", "2025-10-27", "daily", "0.9"),
        SitemapEntry(f"{base}/privacy", "2025-10-05", "monthly", "0.3"),
        SitemapEntry(f"{base}/terms", "2025-10-05", "monthly", "0.3"),
    ]


def _post_lastmod(post: Dict[str, Any], today: date) -> str:
    for field in ("updatedAt", "publishedAt"):
        value = post.get(field)
        if isinstance(value, datetime):
            return value.date().isoformat()
        if isinstance(value, str) and len(value) >= 10:
            return value[:10]
    return today.isoformat()


def post_entries(
    posts: Iterable[Dict[str, Any]],
    base_url: str,
    today: Optional[date] = None,
    force_today: bool = True,
) -> List[SitemapEntry]:
    """One entry per post that has a slug, under `/blog/{slug}`."""
    today = today or date.today()
    base = base_url.rstrip("/")
    entries = []
    for post in posts:
        slug = post.get("slug")
        if not slug:
            continue
        lastmod = today.isoformat() if force_today else _post_lastmod(post, today)
        entries.append(SitemapEntry(f"{base}/blog/{slug}", lastmod, POST_CHANGEFREQ, POST_PRIORITY))
    return entries


def generate_sitemap_xml(entries: Iterable[SitemapEntry]) -> str:
    sitemap_xml = '<?xml version="1.0" encoding="UTF-8"?>\n'
    sitemap_xml += f'<urlset xmlns="{SITEMAP_NAMESPACE}">\n'

    for entry in entries:
        sitemap_xml += "  <url>\n"
        sitemap_xml += f"    <loc>{escape(entry.loc)}</loc>\n"
        sitemap_xml += f"    <lastmod>{entry.lastmod}</lastmod>\n"
        sitemap_xml += f"    <changefreq>{entry.changefreq}</changefreq>\n"
        sitemap_xml += f"    <priority>{entry.priority}</priority>\n"
        sitemap_xml += "  </url>\n"

    sitemap_xml += "</urlset>"
    return sitemap_xml
