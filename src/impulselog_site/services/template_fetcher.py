"""
Fetches the static HTML templates the edge route rewrites.

Templates live on the static site origin (`TEMPLATE_ORIGIN`). When no origin is configured the
origin of the incoming request is used, which is how the pages are served in a single-host
deployment.
"""

from typing import Optional

import httpx

from impulselog_site.exceptions import TemplateFetchError
from impulselog_site.managers.logging_manager import get_logger

logger = get_logger(prefix="[TemplateFetcher]")

POST_TEMPLATE_PATH = "/blog-post.html"
LISTING_TEMPLATE_PATH = "/blog.html"


class TemplateFetcher:
    """Loads templates through a shared `httpx.AsyncClient`."""

    def __init__(self, client: httpx.AsyncClient, origin: Optional[str] = None):
        self.client = client
        self.origin = origin.rstrip("/") if origin else None

    def build_url(self, path: str, request_origin: str) -> str:
        origin = self.origin or request_origin.rstrip("/")
        return f"{origin}{path}"

    async def fetch(self, path: str, request_origin: str) -> httpx.Response:
        """Return the raw upstream response, whatever its status."""
        url = self.build_url(path, request_origin)
        logger.debug("Fetching template %s", url)
        return await self.client.get(url)

    async def fetch_text(self, path: str, request_origin: str) -> str:
        """
        Return the template body.

        Raises:
            TemplateFetchError: If the origin answers with a non-2xx status.
            httpx.HTTPError: If the origin cannot be reached.
        """
        response = await self.fetch(path, request_origin)
        if not response.is_success:
            logger.warning("Template %s returned HTTP %d", path, response.status_code)
            raise TemplateFetchError(path, response.status_code)
        return response.text
