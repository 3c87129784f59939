"""
# Database Management Module

This module provides the **MongoDB infrastructure** for the site service. The `DatabaseManager`
class owns the Motor client used by every server-side handler.

## Key Features

### 1. Connection Lifecycle Management
- **Async initialization** during application startup (`connect()`), idempotent when called
  again on an open connection.
- **Graceful shutdown** via `disconnect()`.

### 2. Authentication
- Username/password from `MONGODB_USERNAME` / `MONGODB_PASSWORD`.
- X.509 client certificate from `MONGODB_CLIENT_PEM`; the PEM text is normalized with
  `format_private_key()` so escaped or single-line values from hosting dashboards work.

### 3. Indexes
`create_indexes()` makes `slug` unique (the upsert key) and indexes the published listing order
plus the tag and category filters.

## Usage

```python
from impulselog_site.database import db_manager

await db_manager.connect()
posts = db_manager.get_collection("blogPosts")
await db_manager.disconnect()
```

## Module Attributes

Attributes:
    db_manager (DatabaseManager): Process-wide manager instance.
"""

import os
import time
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection, AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from impulselog_site.config import settings
from impulselog_site.managers.logging_manager import get_logger
from impulselog_site.utils.credentials import write_pem_tempfile

db_logger = get_logger(prefix="[DATABASE]")
perf_logger = get_logger(prefix="[DB_PERFORMANCE]")
health_logger = get_logger(prefix="[DB_HEALTH]")


class DatabaseManager:
    """
    Manages the MongoDB connection and collection access.

    **Lifecycle:**
    1. **Instantiation**: no I/O, `client` and `database` are `None`.
    2. **Connection**: `connect()` builds the Motor client and pings the server.
    3. **Operations**: `get_collection()` hands out collections.
    4. **Shutdown**: `disconnect()` closes the pool.

    Attributes:
        client (Optional[AsyncIOMotorClient]): The Motor client, `None` until connected.
        database (Optional[AsyncIOMotorDatabase]): The selected database.
    """

    def __init__(self):
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None
        self._pem_path: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return self.client is not None and self.database is not None

    def _client_options(self) -> dict:
        options = {
            "serverSelectionTimeoutMS": settings.MONGODB_SERVER_SELECTION_TIMEOUT,
            "connectTimeoutMS": settings.MONGODB_CONNECTION_TIMEOUT,
            "tz_aware": True,
        }

        if settings.MONGODB_CLIENT_PEM:
            if not self._pem_path:
                self._pem_path = write_pem_tempfile(settings.MONGODB_CLIENT_PEM.get_secret_value())
            options.update(
                tls=True,
                tlsCertificateKeyFile=self._pem_path,
                authMechanism="MONGODB-X509",
            )
            db_logger.debug("Using X.509 client certificate authentication")
        elif settings.MONGODB_USERNAME and settings.MONGODB_PASSWORD:
            options.update(
                username=settings.MONGODB_USERNAME,
                password=settings.MONGODB_PASSWORD.get_secret_value(),
            )
            db_logger.debug("Using username/password authentication")
        else:
            db_logger.debug("Using unauthenticated connection to MongoDB")

        return options

    async def connect(self):
        """
        Establish the MongoDB connection.

        Calling this on an already connected manager is a no-op, so repeated startup hooks in
        the same process never create a second client.

        Raises:
            ConnectionError: If `MONGODB_URL` is not configured.
            pymongo.errors.PyMongoError: If the server cannot be reached.
        """
        if self.is_connected:
            db_logger.debug("connect() called on an open connection; reusing client")
            return

        if not settings.mongodb_configured:
            raise ConnectionError("MONGODB_URL is not configured")

        start_time = time.time()
        db_logger.info(
            "Connecting to MongoDB database %s (server timeout %dms, connect timeout %dms)",
            settings.MONGODB_DATABASE,
            settings.MONGODB_SERVER_SELECTION_TIMEOUT,
            settings.MONGODB_CONNECTION_TIMEOUT,
        )

        client = AsyncIOMotorClient(settings.MONGODB_URL, **self._client_options())
        try:
            await client.admin.command("ping")
        except Exception:
            client.close()
            perf_logger.error("MongoDB connection failed after %.3fs", time.time() - start_time)
            raise

        self.client = client
        self.database = client[settings.MONGODB_DATABASE]
        perf_logger.info("MongoDB connection established in %.3fs", time.time() - start_time)

    async def disconnect(self):
        """Close the Motor client and forget the connection state."""
        if self.client is None:
            db_logger.warning("Disconnect called but no active MongoDB connection found")
            return

        self.client.close()
        self.client = None
        self.database = None
        if self._pem_path:
            try:
                os.unlink(self._pem_path)
            except OSError:
                db_logger.warning("Could not remove temporary client certificate %s", self._pem_path)
            self._pem_path = None
        db_logger.info("Disconnected from MongoDB")

    async def health_check(self) -> bool:
        """
        Ping the server.

        Returns:
            bool: `True` if the database answers, `False` otherwise (never raises).
        """
        if self.client is None:
            health_logger.warning("Health check failed: No database client available")
            return False
        try:
            start_time = time.time()
            await self.client.admin.command("ping")
            perf_logger.debug("Health check ping completed in %.3fs", time.time() - start_time)
            return True
        except Exception as e:
            health_logger.error("Database health check failed: %s", e)
            return False

    def get_collection(self, collection_name: str) -> AsyncIOMotorCollection:
        """
        Retrieve a collection from the connected database.

        Raises:
            ConnectionError: If `connect()` has not been called.
        """
        if self.database is None:
            db_logger.error("Attempted to get collection '%s' without database connection", collection_name)
            raise ConnectionError("Database not connected. Call connect() first.")
        return self.database[collection_name]

    async def create_indexes(self):
        """Create the indexes the blog queries rely on (idempotent)."""
        start_time = time.time()
        posts = self.get_collection(settings.BLOG_COLLECTION)

        await posts.create_index("slug", unique=True, name="slug_unique")
        await posts.create_index(
            [("published", ASCENDING), ("publishedAt", DESCENDING)], name="published_listing"
        )
        await posts.create_index("tags", name="tags")
        await posts.create_index("category", name="category")

        perf_logger.info("Blog indexes verified in %.3fs", time.time() - start_time)


# Global database manager instance
db_manager = DatabaseManager()
