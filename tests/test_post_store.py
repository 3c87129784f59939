import json
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from bson import ObjectId, json_util
from pymongo.errors import DuplicateKeyError, ServerSelectionTimeoutError

from impulselog_site.config import Settings
from impulselog_site.database.post_store import (
    EJSON_OPTIONS,
    DataApiPostStore,
    MotorPostStore,
    create_post_store,
    normalize_document,
    published_filter,
)
from impulselog_site.exceptions import DuplicateSlugError, PostStoreError

OID = ObjectId("65f1a2b3c4d5e6f708192a3b")
PUBLISHED_AT = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


def test_published_filter():
    assert published_filter() == {"published": True}
    assert published_filter(slug="s", tag="t", category="c") == {
        "published": True,
        "slug": "s",
        "tags": "t",
        "category": "c",
    }


def test_normalize_document():
    assert normalize_document({"_id": OID, "slug": "a"}) == {"id": str(OID), "slug": "a"}
    assert normalize_document(None) is None


# --- Motor backend ---


def motor_cursor(docs):
    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=docs)
    return cursor


@pytest.mark.asyncio
async def test_motor_get_published_post():
    collection = MagicMock()
    collection.find_one = AsyncMock(return_value={"_id": OID, "slug": "a", "published": True})

    post = await MotorPostStore(collection).get_published_post("a")

    collection.find_one.assert_awaited_once_with({"published": True, "slug": "a"})
    assert post["id"] == str(OID)


@pytest.mark.asyncio
async def test_motor_list_sorts_and_limits():
    collection = MagicMock()
    cursor = motor_cursor([{"_id": OID, "slug": "a"}])
    collection.find.return_value = cursor

    posts = await MotorPostStore(collection).list_published_posts(limit=5, tag="habits")

    collection.find.assert_called_once_with({"published": True, "tags": "habits"})
    cursor.sort.assert_called_once_with("publishedAt", -1)
    cursor.limit.assert_called_once_with(5)
    cursor.to_list.assert_awaited_once_with(length=5)
    assert posts == [{"id": str(OID), "slug": "a"}]


@pytest.mark.asyncio
async def test_motor_insert_and_update():
    collection = MagicMock()
    collection.insert_one = AsyncMock(return_value=SimpleNamespace(inserted_id=OID))
    collection.update_one = AsyncMock()
    store = MotorPostStore(collection)

    assert await store.insert_post({"slug": "a"}) == str(OID)
    await store.update_post(str(OID), {"title": "New"})

    collection.update_one.assert_awaited_once_with({"_id": OID}, {"$set": {"title": "New"}})


@pytest.mark.asyncio
async def test_motor_errors_are_wrapped():
    collection = MagicMock()
    collection.find_one = AsyncMock(side_effect=ServerSelectionTimeoutError("no servers"))

    with pytest.raises(PostStoreError):
        await MotorPostStore(collection).find_post_by_slug("a")


@pytest.mark.asyncio
async def test_motor_duplicate_slug_is_reported():
    collection = MagicMock()
    collection.insert_one = AsyncMock(side_effect=DuplicateKeyError("E11000 duplicate key error"))

    with pytest.raises(DuplicateSlugError):
        await MotorPostStore(collection).insert_post({"slug": "a"})


# --- Data API backend ---


def data_api_store(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    store = DataApiPostStore(
        base_url="https://data.example.com/app/data-abc/endpoint/data/v1/",
        api_key="public-key",
        data_source="Cluster0",
        database="impulselog",
        collection="blogPosts",
        http_client=client,
    )
    return store


def ejson_response(payload, status=200):
    return httpx.Response(status, text=json_util.dumps(payload), headers={"Content-Type": "application/ejson"})


@pytest.mark.asyncio
async def test_data_api_find_one_protocol():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return ejson_response({"document": {"_id": OID, "slug": "a", "publishedAt": PUBLISHED_AT}})

    post = await data_api_store(handler).get_published_post("a")

    assert seen["url"] == "https://data.example.com/app/data-abc/endpoint/data/v1/action/findOne"
    assert seen["headers"]["api-key"] == "public-key"
    assert seen["headers"]["content-type"] == "application/ejson"
    assert seen["body"] == {
        "dataSource": "Cluster0",
        "database": "impulselog",
        "collection": "blogPosts",
        "filter": {"published": True, "slug": "a"},
    }
    assert post["id"] == str(OID)
    assert post["publishedAt"] == PUBLISHED_AT


@pytest.mark.asyncio
async def test_data_api_find_one_missing():
    store = data_api_store(lambda request: ejson_response({"document": None}))
    assert await store.get_published_post("missing") is None


@pytest.mark.asyncio
async def test_data_api_list_sends_sort_and_limit():
    seen = {}

    def handler(request):
        seen["body"] = json.loads(request.content)
        return ejson_response({"documents": [{"_id": OID, "slug": "a"}]})

    posts = await data_api_store(handler).list_published_posts(limit=3, category="Guides")

    assert seen["body"]["filter"] == {"published": True, "category": "Guides"}
    assert seen["body"]["sort"] == {"publishedAt": -1}
    assert seen["body"]["limit"] == 3
    assert posts == [{"id": str(OID), "slug": "a"}]


@pytest.mark.asyncio
async def test_data_api_insert_and_update_encode_extended_json():
    bodies = []

    def handler(request):
        bodies.append((request.url.path.rsplit("/", 1)[-1], json_util.loads(request.content, json_options=EJSON_OPTIONS)))
        if request.url.path.endswith("insertOne"):
            return ejson_response({"insertedId": OID})
        return ejson_response({"matchedCount": 1, "modifiedCount": 1})

    store = data_api_store(handler)
    post_id = await store.insert_post({"slug": "a", "createdAt": PUBLISHED_AT})
    await store.update_post(post_id, {"updatedAt": PUBLISHED_AT})

    assert post_id == str(OID)
    action, body = bodies[0]
    assert action == "insertOne"
    assert body["document"]["createdAt"] == PUBLISHED_AT
    action, body = bodies[1]
    assert action == "updateOne"
    assert body["filter"] == {"_id": OID}
    assert "$set" in body["update"]


@pytest.mark.asyncio
async def test_data_api_http_error_raises():
    store = data_api_store(lambda request: httpx.Response(401, json={"error": "invalid key"}))
    with pytest.raises(PostStoreError):
        await store.find_post_by_slug("a")


@pytest.mark.asyncio
async def test_data_api_duplicate_slug_is_reported():
    def handler(request):
        return httpx.Response(400, json={"error": "E11000 duplicate key error collection: impulselog.blogPosts"})

    with pytest.raises(DuplicateSlugError):
        await data_api_store(handler).insert_post({"slug": "a"})


@pytest.mark.asyncio
async def test_data_api_transport_error_raises():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(PostStoreError):
        await data_api_store(handler).list_published_posts()


@pytest.mark.asyncio
async def test_data_api_store_does_not_close_shared_client():
    store = data_api_store(lambda request: ejson_response({}))
    await store.close()
    assert not store.http_client.is_closed


# --- Backend selection ---


def make_settings(**overrides):
    values = {"MONGODB_URL": "", "DATA_API_URL": None, "DATA_API_KEY": None}
    values.update(overrides)
    return Settings(**values)


def connected_manager():
    manager = MagicMock()
    manager.is_connected = True
    manager.get_collection.return_value = MagicMock()
    return manager


def test_auto_prefers_motor_when_connected():
    config = make_settings(DATA_API_URL="https://data.example.com", DATA_API_KEY="public-key")
    store = create_post_store("auto", prefer="motor", db_manager=connected_manager(), config=config)
    assert isinstance(store, MotorPostStore)


def test_auto_prefers_data_api_for_edge():
    config = make_settings(DATA_API_URL="https://data.example.com", DATA_API_KEY="public-key")
    store = create_post_store("auto", prefer="data_api", db_manager=connected_manager(), config=config)
    assert isinstance(store, DataApiPostStore)


def test_auto_falls_back_to_available_backend():
    store = create_post_store("auto", prefer="data_api", db_manager=connected_manager(), config=make_settings())
    assert isinstance(store, MotorPostStore)


def test_explicit_unavailable_backend_raises():
    with pytest.raises(PostStoreError):
        create_post_store("motor", db_manager=None, config=make_settings())


def test_nothing_configured_raises():
    with pytest.raises(PostStoreError):
        create_post_store("auto", db_manager=None, config=make_settings())
