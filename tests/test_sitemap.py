from datetime import date, datetime, timezone
from xml.etree import ElementTree

from impulselog_site.config import settings
from impulselog_site.main import app
from impulselog_site.services.sitemap import (
    SitemapEntry,
    generate_sitemap_xml,
    post_entries,
    static_pages,
)

from conftest import make_post

NS = {"sm": "http://www.sitemaps.org/schemas/sitemap/0.9"}
BASE = "https://www.impulselog.com"
STATIC_LOCS = [f"{BASE}/", f"{BASE}/blog", f"{BASE}/privacy", f"{BASE}/terms"]


def locs(xml_text):
    root = ElementTree.fromstring(xml_text.encode("utf-8"))
    return [el.text for el in root.findall("sm:url/sm:loc", NS)]


def test_static_pages():
    pages = static_pages(BASE + "/")
    assert [p.loc for p in pages] == STATIC_LOCS
    assert pages[0] == SitemapEntry(f"{BASE}/", "2025-10-27", "weekly", "1.0")
    assert pages[1].changefreq == "daily" and pages[1].priority == "0.9"
    assert pages[3].lastmod == "2025-10-05"


def test_post_entries_force_today():
    posts = [make_post("a"), make_post("b"), {"title": "no slug"}]
    entries = post_entries(posts, BASE, today=date(2026, 10, 17))

    assert [e.loc for e in entries] == [f"{BASE}/blog/a", f"{BASE}/blog/b"]
    assert all(e.lastmod == "2026-10-17" for e in entries)
    assert all(e.changefreq == "monthly" and e.priority == "0.7" for e in entries)


def test_post_entries_use_post_dates_when_not_forced():
    post = make_post("a", updatedAt=datetime(2026, 3, 4, tzinfo=timezone.utc))
    entries = post_entries([post], BASE, today=date(2026, 10, 17), force_today=False)
    assert entries[0].lastmod == "2026-03-04"


def test_xml_document_shape_and_escaping():
    xml = generate_sitemap_xml([SitemapEntry(f"{BASE}/blog/a&b", "2026-10-17", "monthly", "0.7")])

    assert xml.startswith('<?xml version="1.0" encoding="UTF-8"?>\n<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">')
    assert "<loc>https://www.impulselog.com/blog/a&amp;b</loc>" in xml
    assert locs(xml) == [f"{BASE}/blog/a&b"]


def test_sitemap_route_lists_published_posts(client, post_store, monkeypatch):
    monkeypatch.setattr(settings, "SITEMAP_FORCE_TODAY_LASTMOD", True)
    post_store.docs["1"] = make_post("first", days_ago=1)
    post_store.docs["2"] = make_post("second")
    post_store.docs["3"] = make_post("draft", published=False)

    response = client.get("/sitemap.xml")

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/xml; charset=utf-8"
    assert response.headers["cache-control"] == "public, max-age=3600, s-maxage=3600, stale-while-revalidate=86400"
    assert locs(response.text) == STATIC_LOCS + [f"{BASE}/blog/second", f"{BASE}/blog/first"]


def test_sitemap_survives_store_failure(client, post_store):
    post_store.fail = True

    response = client.get("/sitemap.xml")

    assert response.status_code == 200
    assert locs(response.text) == STATIC_LOCS


def test_sitemap_without_store(client):
    app.state.post_store = None

    response = client.get("/sitemap.xml")

    assert response.status_code == 200
    assert locs(response.text) == STATIC_LOCS
