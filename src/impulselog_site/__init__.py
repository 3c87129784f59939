"""
# ImpulseLog Site

Server side of the ImpulseLog website: a FastAPI service that exposes the published blog posts,
ingests posts from the content platform, serves blog post pages with server-side SEO metadata
and generates the sitemap.

## Layout

```
impulselog_site/
├── config.py        Settings (pydantic-settings)
├── main.py          FastAPI app, lifespan, router wiring
├── database/        Motor manager and the PostStore backends (Motor, Data API)
├── models/          Pydantic models for posts and webhook payloads
├── routes/          HTTP endpoints
├── services/        Normalizer, SEO injector, template fetcher, sitemap builder
├── client/          Async client for the read API
├── cli/             Maintenance commands
├── managers/        Logging
└── utils/           Text, serialization and credential helpers
```
"""

__version__ = "1.0.0"
