"""Invalidation coordinator for the related-articles cache.

A change to any article can change other articles' recommendations (a new tag
on A can make A a match for B), so every mutation clears the mutated article's
own entry and then every related:* entry. Invalidation runs on background
tasks: the caller's mutation never waits on it and never sees its errors.
A missed invalidation is bounded by the cache TTL.
"""
import asyncio
import logging
from typing import Optional

from related_articles.processing.cache import RecommendationCache

logger = logging.getLogger(__name__)

ARTICLE_EVENTS = ("created", "updated", "deleted", "published", "unpublished")


class InvalidationCoordinator:
    def __init__(self, cache: RecommendationCache):
        self.cache = cache
        # Live tasks are held here until done so they are not garbage-collected mid-flight.
        self._pending: set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def on_article_created(self, article_id: int) -> Optional[asyncio.Task]:
        return self.dispatch(article_id, "created")

    def on_article_updated(self, article_id: int) -> Optional[asyncio.Task]:
        return self.dispatch(article_id, "updated")

    def on_article_deleted(self, article_id: int) -> Optional[asyncio.Task]:
        return self.dispatch(article_id, "deleted")

    def on_article_status_changed(
        self, article_id: int, old_status: Optional[str] = None, new_status: Optional[str] = None
    ) -> Optional[asyncio.Task]:
        """Publish-state transition (draft → published, published → archived, scheduled release...)."""
        if old_status is not None and old_status == new_status:
            return self.dispatch(article_id, "updated")
        event = "published" if new_status == "published" else "unpublished"
        return self.dispatch(article_id, event)

    def dispatch(self, article_id: int, event: str) -> Optional[asyncio.Task]:
        """Schedule targeted + broad invalidation on the running loop and return at once."""
        if event not in ARTICLE_EVENTS:
            raise ValueError(f"Unknown article event '{event}'")
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.error(
                f"No running event loop; related cache not invalidated for article {article_id} ({event})"
            )
            return None
        task = loop.create_task(self.invalidate(article_id, event))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def invalidate(self, article_id: int, reason: str = "updated") -> bool:
        """Targeted then broad invalidation. Returns False if either step failed; never raises."""
        ok = True
        try:
            await self.cache.invalidate(article_id)
            logger.debug(f"Invalidated related cache for article {article_id} ({reason})")
        except Exception as exc:
            ok = False
            logger.error(f"Failed to invalidate related cache for article {article_id}: {exc}")

        try:
            removed = await self.cache.invalidate_all()
            logger.info(f"Article {article_id} {reason}: cleared {removed} related cache entries")
        except Exception as exc:
            ok = False
            logger.error(f"Failed to invalidate all related caches after article {article_id} {reason}: {exc}")

        return ok

    async def drain(self) -> None:
        """Wait for in-flight invalidations (shutdown, tests)."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
