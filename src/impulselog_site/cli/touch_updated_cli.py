"""
Command-line tool that bumps `updatedAt` on every published post.

A fresh `updatedAt` tells crawlers the content changed, which speeds up re-crawling after a
site-wide metadata fix.

Usage:
    impulselog-touch-updated [--dry-run]
"""

import argparse
import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
import sys
from typing import List, Optional

from impulselog_site.config import settings
from impulselog_site.database import create_post_store, db_manager
from impulselog_site.database.post_store import PostStore
from impulselog_site.managers.logging_manager import get_logger

logger = get_logger(prefix="[TouchUpdatedCLI]")


@dataclass
class TouchSummary:
    total: int = 0
    updated: int = 0
    errors: int = 0

    @property
    def success(self) -> bool:
        return self.errors == 0


class TouchUpdatedCLI:
    """Updates the `updatedAt` timestamp of published posts."""

    def __init__(self, store: PostStore):
        self.store = store

    async def run(self, dry_run: bool = False, now: Optional[datetime] = None) -> TouchSummary:
        """
        Touch every published post.

        Args:
            dry_run: Only list the posts that would be updated.
            now: Timestamp written to `updatedAt` (defaults to the current time).

        Returns:
            TouchSummary: Counts of posts found, updated (or that would be) and failed.
        """
        if dry_run:
            logger.warning("DRY RUN MODE - no changes will be made")

        posts = await self.store.list_published_posts()
        summary = TouchSummary(total=len(posts))
        logger.info("Found %d published blog posts", summary.total)

        if not posts:
            logger.warning("No published posts found")
            return summary

        now = now or datetime.now(timezone.utc)
        for post in posts:
            slug = post.get("slug") or "unknown"
            if dry_run:
                logger.info("Would update: %s", slug)
                summary.updated += 1
                continue
            try:
                await self.store.update_post(post["id"], {"updatedAt": now})
                logger.info("Updated: %s", slug)
                summary.updated += 1
            except Exception as e:
                logger.error("Failed to update %s: %s", slug, e)
                summary.errors += 1

        return summary


def log_summary(summary: TouchSummary, dry_run: bool) -> None:
    logger.info("Total posts: %d", summary.total)
    logger.info("Updated: %d", summary.updated)
    if summary.errors:
        logger.error("Errors: %d", summary.errors)
    if dry_run:
        logger.warning("This was a dry run. Run without --dry-run to apply changes")


async def touch_published_posts(dry_run: bool) -> bool:
    """Open a store from the current settings, touch the posts and close everything."""
    try:
        if settings.mongodb_configured:
            await db_manager.connect()
        store = create_post_store(settings.POST_STORE_BACKEND, prefer="motor", db_manager=db_manager)
    except Exception as e:
        logger.error("Failed to open the post store: %s", e, exc_info=True)
        if db_manager.is_connected:
            await db_manager.disconnect()
        return False

    try:
        summary = await TouchUpdatedCLI(store).run(dry_run=dry_run)
        log_summary(summary, dry_run)
        return summary.success
    except Exception as e:
        logger.error("Updating posts failed: %s", e, exc_info=True)
        return False
    finally:
        await store.close()
        if db_manager.is_connected:
            await db_manager.disconnect()


def main(argv: Optional[List[str]] = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Bump updatedAt on all published ImpulseLog blog posts",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show what would be updated without making changes",
    )
    args = parser.parse_args(argv)

    success = asyncio.run(touch_published_posts(dry_run=args.dry_run))
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
