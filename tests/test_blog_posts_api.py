import pytest

from impulselog_site.routes.blog_posts import CACHE_CONTROL, clamp_limit

from conftest import make_post


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, 50),
        ("", 50),
        ("abc", 50),
        ("0", 50),
        ("-5", 50),
        ("10", 10),
        ("12abc", 12),
        ("100", 100),
        ("101", 100),
        ("5000", 100),
    ],
)
def test_clamp_limit(raw, expected):
    assert clamp_limit(raw) == expected


def seed(post_store, *posts):
    for post in posts:
        post_store.docs[post["slug"]] = post


def test_lookup_by_slug(client, post_store):
    seed(post_store, make_post("hello-world"))

    response = client.get("/api/blog-posts", params={"slug": "hello-world"})

    assert response.status_code == 200
    assert response.headers["cache-control"] == CACHE_CONTROL
    post = response.json()["post"]
    assert post["id"] == "hello-world"
    assert post["slug"] == "hello-world"
    assert post["publishedAt"] == "2026-10-01T12:00:00.000Z"
    assert post["createdAt"] == "2026-10-01T12:00:00.000Z"


def test_lookup_of_missing_or_unpublished_slug_is_404(client, post_store):
    seed(post_store, make_post("draft", published=False, publishedAt=None))

    for slug in ("draft", "nope"):
        response = client.get("/api/blog-posts", params={"slug": slug})
        assert response.status_code == 404
        assert response.json() == {"post": None}


def test_listing_is_newest_first_and_published_only(client, post_store):
    seed(
        post_store,
        make_post("older", days_ago=5),
        make_post("newest", days_ago=0),
        make_post("middle", days_ago=2),
        make_post("hidden", days_ago=1, published=False),
    )

    response = client.get("/api/blog-posts")

    assert response.status_code == 200
    assert [p["slug"] for p in response.json()["posts"]] == ["newest", "middle", "older"]


def test_listing_filters_by_tag_and_category(client, post_store):
    seed(
        post_store,
        make_post("a", tags=["budgeting", "habits"], category="Guides"),
        make_post("b", days_ago=1, tags=["habits"], category="News"),
        make_post("c", days_ago=2, tags=["budgeting"], category="News"),
    )

    by_tag = client.get("/api/blog-posts", params={"tag": "budgeting"}).json()["posts"]
    by_category = client.get("/api/blog-posts", params={"category": "News"}).json()["posts"]
    both = client.get("/api/blog-posts", params={"tag": "habits", "category": "News"}).json()["posts"]

    assert [p["slug"] for p in by_tag] == ["a", "c"]
    assert [p["slug"] for p in by_category] == ["b", "c"]
    assert [p["slug"] for p in both] == ["b"]


def test_exclude_keeps_page_full(client, post_store):
    seed(post_store, *(make_post(f"post-{i}", days_ago=i) for i in range(5)))

    response = client.get("/api/blog-posts", params={"exclude": "post-0", "limit": "3"})

    assert [p["slug"] for p in response.json()["posts"]] == ["post-1", "post-2", "post-3"]


def test_exclude_of_slug_outside_page_truncates_to_limit(client, post_store):
    seed(post_store, *(make_post(f"post-{i}", days_ago=i) for i in range(5)))

    response = client.get("/api/blog-posts", params={"exclude": "post-4", "limit": "3"})

    assert [p["slug"] for p in response.json()["posts"]] == ["post-0", "post-1", "post-2"]


def test_limit_is_applied(client, post_store):
    seed(post_store, *(make_post(f"post-{i}", days_ago=i) for i in range(5)))

    assert len(client.get("/api/blog-posts", params={"limit": "2"}).json()["posts"]) == 2
    assert len(client.get("/api/blog-posts", params={"limit": "zero"}).json()["posts"]) == 5


def test_store_error_is_generic_500(client, post_store):
    post_store.fail = True

    response = client.get("/api/blog-posts")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch blog posts"}


@pytest.mark.parametrize("method", ["post", "put", "delete"])
def test_other_methods_are_rejected(client, method):
    response = getattr(client, method)("/api/blog-posts")

    assert response.status_code == 405
    assert response.json() == {"error": "Method not allowed"}


def test_missing_store_is_503(client):
    from impulselog_site.main import app

    app.state.post_store = None

    response = client.get("/api/blog-posts")

    assert response.status_code == 503
    assert response.json() == {"error": "Service not ready"}
