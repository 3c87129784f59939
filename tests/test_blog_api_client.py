import httpx
import pytest

from impulselog_site.client import BlogApiClient
from impulselog_site.exceptions import BlogApiError


def make_client(handler):
    return BlogApiClient(
        "https://www.impulselog.com/",
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


class Recorder:
    def __init__(self, status=200, payload=None):
        self.status = status
        self.payload = payload if payload is not None else {"posts": []}
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        return httpx.Response(self.status, json=self.payload)

    @property
    def params(self):
        return dict(self.requests[-1].url.params)


@pytest.mark.asyncio
async def test_fetch_drops_empty_params_and_sends_accept_header():
    recorder = Recorder()
    client = make_client(recorder)

    await client.fetch_blog_posts(limit=3, exclude=None, tag="", category="Guides")

    request = recorder.requests[-1]
    assert request.url.path == "/api/blog-posts"
    assert request.headers["accept"] == "application/json"
    assert recorder.params == {"limit": "3", "category": "Guides"}


@pytest.mark.asyncio
async def test_helpers_build_expected_queries():
    recorder = Recorder(payload={"posts": [{"slug": "a"}]})
    client = make_client(recorder)

    assert await client.get_published_blog_posts() == [{"slug": "a"}]
    assert recorder.params == {"limit": "50"}

    await client.get_recent_blog_posts(exclude_slug="current")
    assert recorder.params == {"limit": "3", "exclude": "current"}

    await client.get_recent_blog_posts()
    assert recorder.params == {"limit": "3"}

    await client.get_blog_posts_by_tag("habits")
    assert recorder.params == {"tag": "habits", "limit": "20"}

    await client.get_blog_posts_by_category("Guides", limit=5)
    assert recorder.params == {"category": "Guides", "limit": "5"}


@pytest.mark.asyncio
async def test_get_by_slug():
    client = make_client(Recorder(payload={"post": {"slug": "a"}}))
    assert await client.get_blog_post_by_slug("a") == {"slug": "a"}


@pytest.mark.asyncio
async def test_get_by_slug_returns_none_on_404():
    client = make_client(Recorder(status=404, payload={"post": None}))
    assert await client.get_blog_post_by_slug("missing") is None


@pytest.mark.asyncio
async def test_server_error_raises_with_status():
    client = make_client(Recorder(status=500, payload={"error": "Failed to fetch blog posts"}))

    with pytest.raises(BlogApiError) as exc_info:
        await client.get_published_blog_posts()

    assert exc_info.value.status_code == 500
    assert str(exc_info.value) == "Blog API error: 500"


@pytest.mark.asyncio
async def test_context_manager_closes_owned_client():
    async with BlogApiClient("https://www.impulselog.com") as client:
        http_client = client.http_client
    assert http_client.is_closed
