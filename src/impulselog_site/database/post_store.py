"""
# Post Store

One read/write interface over the `blogPosts` collection with two interchangeable backends.

## Backends

| Backend | Transport | Used by |
|---------|-----------|---------|
| `MotorPostStore` | Native MongoDB driver (Motor) | Read API, webhook, sitemap, CLI |
| `DataApiPostStore` | HTTPS + Extended JSON (Data API `action/*` endpoints) | Edge SEO route, or any context without a driver connection |

Both return documents as plain dicts: the `_id` is exposed as a string `id`, timestamps are
timezone-aware `datetime` objects. Handlers never know which backend they talk to.

## Selection

`create_post_store(backend, prefer=...)` resolves `auto` by capability: the preferred backend
when it is usable, otherwise the other one. Explicitly requesting a backend that is not usable
raises `PostStoreError`.

## Data API Protocol

MongoDB retired the hosted Atlas Data API on 2025-09-30. `DATA_API_URL` must point at a
self-hosted endpoint that speaks the same `action/*` protocol (a Data API compatible proxy in
front of the cluster); otherwise leave it unset and `auto` resolves to Motor.

```
POST {DATA_API_URL}/action/find
api-key: <DATA_API_KEY>
Content-Type: application/ejson

{"dataSource": "Cluster0", "database": "impulselog", "collection": "blogPosts",
 "filter": {"slug": "hello-world", "published": true}, "limit": 1}
```
"""

from abc import ABC, abstractmethod
from datetime import timezone
from typing import Any, Dict, List, Optional

import httpx
from bson import ObjectId, json_util
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from impulselog_site.config import Settings, settings
from impulselog_site.exceptions import DuplicateSlugError, PostStoreError
from impulselog_site.managers.logging_manager import get_logger

logger = get_logger(prefix="[PostStore]")

EJSON_OPTIONS = json_util.JSONOptions(
    json_mode=json_util.JSONMode.RELAXED,
    tz_aware=True,
    tzinfo=timezone.utc,
)

# Server error code for unique index violations, echoed in Data API error bodies
DUPLICATE_KEY_CODE = "E11000"


def published_filter(
    slug: Optional[str] = None, tag: Optional[str] = None, category: Optional[str] = None
) -> Dict[str, Any]:
    """Query filter for published posts; `tag` matches array membership."""
    query: Dict[str, Any] = {"published": True}
    if slug is not None:
        query["slug"] = slug
    if tag:
        query["tags"] = tag
    if category:
        query["category"] = category
    return query


def normalize_document(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Replace the driver's `_id` with a string `id`."""
    if doc is None:
        return None
    data = dict(doc)
    raw_id = data.pop("_id", None)
    if raw_id is not None:
        data["id"] = str(raw_id)
    return data


def to_object_id(post_id: str) -> Any:
    return ObjectId(post_id) if ObjectId.is_valid(post_id) else post_id


class PostStore(ABC):
    """Abstract access to blog post documents."""

    @abstractmethod
    async def get_published_post(self, slug: str) -> Optional[Dict[str, Any]]:
        """Return the published post with `slug`, or `None`."""

    @abstractmethod
    async def list_published_posts(
        self,
        limit: Optional[int] = None,
        tag: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """Return published posts, newest `publishedAt` first."""

    @abstractmethod
    async def find_post_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        """Return the post with `slug` whatever its publish state."""

    @abstractmethod
    async def insert_post(self, data: Dict[str, Any]) -> str:
        """Insert a new post and return its id."""

    @abstractmethod
    async def update_post(self, post_id: str, fields: Dict[str, Any]) -> None:
        """Merge `fields` into an existing post."""

    async def close(self) -> None:
        """Release transport resources owned by the store."""


class MotorPostStore(PostStore):
    """Post store backed by a Motor collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def get_published_post(self, slug: str) -> Optional[Dict[str, Any]]:
        try:
            doc = await self.collection.find_one(published_filter(slug=slug))
        except PyMongoError as e:
            raise PostStoreError(f"Failed to load post {slug!r}") from e
        return normalize_document(doc)

    async def list_published_posts(
        self,
        limit: Optional[int] = None,
        tag: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        try:
            cursor = self.collection.find(published_filter(tag=tag, category=category)).sort(
                "publishedAt", DESCENDING
            )
            if limit:
                cursor = cursor.limit(limit)
            docs = await cursor.to_list(length=limit)
        except PyMongoError as e:
            raise PostStoreError("Failed to list published posts") from e
        return [normalize_document(doc) for doc in docs]

    async def find_post_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        try:
            doc = await self.collection.find_one({"slug": slug})
        except PyMongoError as e:
            raise PostStoreError(f"Failed to look up slug {slug!r}") from e
        return normalize_document(doc)

    async def insert_post(self, data: Dict[str, Any]) -> str:
        try:
            result = await self.collection.insert_one(dict(data))
        except DuplicateKeyError as e:
            raise DuplicateSlugError(f"Slug {data.get('slug')!r} already exists") from e
        except PyMongoError as e:
            raise PostStoreError(f"Failed to insert post {data.get('slug')!r}") from e
        return str(result.inserted_id)

    async def update_post(self, post_id: str, fields: Dict[str, Any]) -> None:
        try:
            await self.collection.update_one({"_id": to_object_id(post_id)}, {"$set": fields})
        except PyMongoError as e:
            raise PostStoreError(f"Failed to update post {post_id}") from e


class DataApiPostStore(PostStore):
    """
    Post store speaking the Data API's HTTP protocol.

    Requests and responses are Extended JSON, so dates and ObjectIds survive the round trip
    with the same types the Motor backend produces.
    """

    def __init__(
        self,
        base_url: str,
        api_key: str,
        data_source: str,
        database: str,
        collection: str,
        http_client: Optional[httpx.AsyncClient] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.data_source = data_source
        self.database = database
        self.collection = collection
        self._owns_client = http_client is None
        self.http_client = http_client or httpx.AsyncClient(timeout=timeout)

    async def _action(self, action: str, body: Dict[str, Any]) -> Dict[str, Any]:
        payload = {
            "dataSource": self.data_source,
            "database": self.database,
            "collection": self.collection,
            **body,
        }
        try:
            response = await self.http_client.post(
                f"{self.base_url}/action/{action}",
                content=json_util.dumps(payload, json_options=EJSON_OPTIONS),
                headers={
                    "api-key": self.api_key,
                    "Content-Type": "application/ejson",
                    "Accept": "application/ejson",
                },
            )
        except httpx.HTTPError as e:
            raise PostStoreError(f"Data API {action} request failed") from e

        if response.status_code >= 400:
            if action == "insertOne" and DUPLICATE_KEY_CODE in response.text:
                raise DuplicateSlugError("Data API insertOne hit the unique slug index")
            logger.error("Data API %s failed with HTTP %d", action, response.status_code)
            raise PostStoreError(f"Data API {action} failed: HTTP {response.status_code}")

        try:
            return json_util.loads(response.text, json_options=EJSON_OPTIONS)
        except ValueError as e:
            raise PostStoreError(f"Data API {action} returned invalid JSON") from e

    async def get_published_post(self, slug: str) -> Optional[Dict[str, Any]]:
        result = await self._action("findOne", {"filter": published_filter(slug=slug)})
        return normalize_document(result.get("document"))

    async def list_published_posts(
        self,
        limit: Optional[int] = None,
        tag: Optional[str] = None,
        category: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        body: Dict[str, Any] = {
            "filter": published_filter(tag=tag, category=category),
            "sort": {"publishedAt": -1},
        }
        if limit:
            body["limit"] = limit
        result = await self._action("find", body)
        return [normalize_document(doc) for doc in result.get("documents") or []]

    async def find_post_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        result = await self._action("findOne", {"filter": {"slug": slug}})
        return normalize_document(result.get("document"))

    async def insert_post(self, data: Dict[str, Any]) -> str:
        result = await self._action("insertOne", {"document": data})
        inserted_id = result.get("insertedId")
        if inserted_id is None:
            raise PostStoreError("Data API insertOne returned no insertedId")
        return str(inserted_id)

    async def update_post(self, post_id: str, fields: Dict[str, Any]) -> None:
        await self._action(
            "updateOne", {"filter": {"_id": to_object_id(post_id)}, "update": {"$set": fields}}
        )

    async def close(self) -> None:
        if self._owns_client:
            await self.http_client.aclose()


def create_post_store(
    backend: str = "auto",
    *,
    prefer: str = "motor",
    db_manager: Any = None,
    http_client: Optional[httpx.AsyncClient] = None,
    config: Settings = settings,
) -> PostStore:
    """
    Build the post store for a given backend name.

    Args:
        backend: `"motor"`, `"data_api"` or `"auto"`.
        prefer: Backend tried first when resolving `"auto"`.
        db_manager: A `DatabaseManager`; the Motor backend needs it connected.
        http_client: Shared HTTP client for the Data API backend.
        config: Settings to read the Data API endpoint and collection names from.

    Returns:
        PostStore: The selected backend.

    Raises:
        PostStoreError: If no requested backend is usable.
    """
    motor_ready = db_manager is not None and db_manager.is_connected
    data_api_ready = config.data_api_configured

    def build(name: str) -> PostStore:
        if name == "motor":
            return MotorPostStore(db_manager.get_collection(config.BLOG_COLLECTION))
        return DataApiPostStore(
            base_url=config.DATA_API_URL,
            api_key=config.DATA_API_KEY.get_secret_value(),
            data_source=config.DATA_API_DATA_SOURCE,
            database=config.MONGODB_DATABASE,
            collection=config.BLOG_COLLECTION,
            http_client=http_client,
            timeout=config.DATA_API_TIMEOUT,
        )

    available = {"motor": motor_ready, "data_api": data_api_ready}

    if backend != "auto":
        if not available.get(backend):
            raise PostStoreError(f"Post store backend {backend!r} is not available")
        return build(backend)

    order = [prefer] + [name for name in ("motor", "data_api") if name != prefer]
    for name in order:
        if available.get(name):
            logger.info("Using %s post store backend", name)
            return build(name)

    raise PostStoreError("No post store backend is configured (set MONGODB_URL or DATA_API_URL/DATA_API_KEY)")
