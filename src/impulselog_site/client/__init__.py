"""Async client for the public blog posts API."""

from impulselog_site.client.blog_api_client import BlogApiClient

__all__ = ["BlogApiClient"]
