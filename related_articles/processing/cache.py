"""Related-articles cache clients.

One entry per source article under `related:{article_id}`. Entries are written
whole after a full computation and removed either by TTL or by the
invalidation coordinator; nothing updates them in place.

Redis is used in production. The in-memory client serves local development
(REDIS_URL unset) and tests.
"""
import logging
import time
from typing import Callable, Optional, Protocol

import redis.asyncio as redis
from pydantic import ValidationError
from redis.exceptions import RedisError

from related_articles.processing.results import RecommendationResult

logger = logging.getLogger(__name__)

RELATED_CACHE_PREFIX = "related:"
RELATED_CACHE_TTL_SECONDS = 3600  # 1 hour

_DELETE_BATCH = 500


class CacheUnavailableError(RuntimeError):
    """The cache backend could not be reached."""


def cache_key(article_id: int) -> str:
    return f"{RELATED_CACHE_PREFIX}{article_id}"


class RecommendationCache(Protocol):
    async def get(self, article_id: int) -> Optional[RecommendationResult]: ...

    async def put(
        self, article_id: int, result: RecommendationResult, ttl: int = RELATED_CACHE_TTL_SECONDS
    ) -> None: ...

    async def invalidate(self, article_id: int) -> None: ...

    async def invalidate_all(self) -> int: ...

    async def close(self) -> None: ...


class InMemoryRecommendationCache:
    """Process-local cache with TTL; values are stored serialized like in Redis."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._entries: dict[str, tuple[float, str]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, article_id: int) -> Optional[RecommendationResult]:
        key = cache_key(article_id)
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if self._clock() >= expires_at:
            self._entries.pop(key, None)
            return None
        return RecommendationResult.model_validate_json(payload)

    async def put(
        self, article_id: int, result: RecommendationResult, ttl: int = RELATED_CACHE_TTL_SECONDS
    ) -> None:
        now = self._clock()
        for key in [k for k, (expires_at, _) in self._entries.items() if now >= expires_at]:
            del self._entries[key]
        self._entries[cache_key(article_id)] = (now + ttl, result.model_dump_json())

    async def invalidate(self, article_id: int) -> None:
        self._entries.pop(cache_key(article_id), None)

    async def invalidate_all(self) -> int:
        removed = len(self._entries)
        self._entries.clear()
        return removed

    async def close(self) -> None:
        self._entries.clear()


class RedisRecommendationCache:
    """Redis-backed cache. Every backend failure surfaces as CacheUnavailableError."""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisRecommendationCache":
        return cls(redis.from_url(url, decode_responses=True))

    async def get(self, article_id: int) -> Optional[RecommendationResult]:
        key = cache_key(article_id)
        try:
            raw = await self.client.get(key)
        except (RedisError, OSError) as exc:
            raise CacheUnavailableError(f"GET {key} failed: {exc}") from exc
        if raw is None:
            return None
        try:
            return RecommendationResult.model_validate_json(raw)
        except ValidationError as exc:
            # Unreadable payload (e.g. older schema): treat as a miss; the next put replaces it.
            logger.warning(f"Discarding unreadable cache entry {key}: {exc}")
            return None

    async def put(
        self, article_id: int, result: RecommendationResult, ttl: int = RELATED_CACHE_TTL_SECONDS
    ) -> None:
        key = cache_key(article_id)
        try:
            await self.client.set(key, result.model_dump_json(), ex=ttl)
        except (RedisError, OSError) as exc:
            raise CacheUnavailableError(f"SET {key} failed: {exc}") from exc

    async def invalidate(self, article_id: int) -> None:
        key = cache_key(article_id)
        try:
            await self.client.delete(key)
        except (RedisError, OSError) as exc:
            raise CacheUnavailableError(f"DEL {key} failed: {exc}") from exc

    async def invalidate_all(self) -> int:
        """Delete every related:* key. Uses SCAN, never KEYS, so Redis is not blocked."""
        removed = 0
        batch: list[str] = []
        try:
            async for key in self.client.scan_iter(match=f"{RELATED_CACHE_PREFIX}*", count=_DELETE_BATCH):
                batch.append(key)
                if len(batch) >= _DELETE_BATCH:
                    removed += await self.client.delete(*batch)
                    batch = []
            if batch:
                removed += await self.client.delete(*batch)
        except (RedisError, OSError) as exc:
            raise CacheUnavailableError(f"Broad invalidation failed: {exc}") from exc
        return removed

    async def close(self) -> None:
        await self.client.aclose()


def build_cache(redis_url: str) -> RecommendationCache:
    if redis_url:
        logger.info("Related-articles cache: Redis")
        return RedisRecommendationCache.from_url(redis_url)
    logger.warning("REDIS_URL not set, using in-process related-articles cache")
    return InMemoryRecommendationCache()
