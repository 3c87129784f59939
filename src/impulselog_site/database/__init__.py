"""
# Database Package

Persistence layer for blog posts.

## Components

- **`manager`**: `DatabaseManager` and its process-wide instance `db_manager` (Motor client
  lifecycle, indexes, health checks).
- **`post_store`**: the `PostStore` interface with two backends, `MotorPostStore` for the
  server context and `DataApiPostStore` for contexts that only have HTTP. `create_post_store()`
  picks one by configuration and runtime capability.

## Usage

```python
from impulselog_site.database import create_post_store, db_manager

await db_manager.connect()
store = create_post_store("auto", db_manager=db_manager)
post = await store.get_published_post("hello-world")
```
"""

from impulselog_site.database.manager import DatabaseManager, db_manager
from impulselog_site.database.post_store import (
    DataApiPostStore,
    MotorPostStore,
    PostStore,
    create_post_store,
)

__all__ = [
    "DatabaseManager",
    "DataApiPostStore",
    "MotorPostStore",
    "PostStore",
    "create_post_store",
    "db_manager",
]
