"""
Domain exceptions shared across routes, services and the client library.
"""

from typing import Optional


class PostStoreError(Exception):
    """The document store could not be reached or rejected the operation."""


class TemplateFetchError(Exception):
    """The static template origin answered with a non-2xx status."""

    def __init__(self, path: str, status_code: int):
        super().__init__(f"Failed to fetch template {path}: HTTP {status_code}")
        self.path = path
        self.status_code = status_code


class BlogApiError(Exception):
    """The public read API answered with a non-2xx status."""

    def __init__(self, status_code: int, message: Optional[str] = None):
        super().__init__(message or f"Blog API error: {status_code}")
        self.status_code = status_code


class DuplicateSlugError(PostStoreError):
    """An insert collided with an existing document on the unique `slug` index."""
