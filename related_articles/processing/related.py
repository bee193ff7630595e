"""Related-articles read path: cache lookup, then fetch → score → fallback → cache store."""
import logging
from typing import Optional

from related_articles.processing.cache import (
    CacheUnavailableError,
    RecommendationCache,
    RELATED_CACHE_TTL_SECONDS,
)
from related_articles.processing.candidates import ArticleStore
from related_articles.processing.fallback import apply_fallback, MIN_RESULTS, MAX_RESULTS
from related_articles.processing.results import RecommendationResult
from related_articles.processing.scoring import rank_candidates

logger = logging.getLogger(__name__)

DEFAULT_POOL_SIZE = 50


class ArticleNotFoundError(LookupError):
    """Source article does not exist or is not published."""


class RelatedArticlesService:
    def __init__(
        self,
        store: ArticleStore,
        cache: Optional[RecommendationCache] = None,
        pool_size: int = DEFAULT_POOL_SIZE,
    ):
        self.store = store
        self.cache = cache
        self.pool_size = max(pool_size, MAX_RESULTS)

    async def get_related_articles(self, article_id: int) -> RecommendationResult:
        """
        Return 3–6 related articles for a published source article.

        The source is resolved first so a missing or unpublished article never
        reads or writes a cache entry. Cache failures degrade to a direct
        computation (and skip the write); store failures propagate and leave
        the cache untouched.
        """
        source = await self.store.get_source(article_id)
        if source is None:
            raise ArticleNotFoundError(f"Article {article_id} not found")

        use_cache = self.cache is not None
        if use_cache:
            try:
                cached = await self.cache.get(article_id)
            except CacheUnavailableError as exc:
                logger.warning(f"Related cache unavailable, computing directly: {exc}")
                use_cache = False
            else:
                if cached is not None:
                    logger.debug(f"Related articles cache hit for: {article_id}")
                    return cached
                logger.debug(f"Related articles cache miss for: {article_id}")

        result = await self._compute(source)

        if use_cache:
            try:
                await self.cache.put(article_id, result, RELATED_CACHE_TTL_SECONDS)
            except CacheUnavailableError as exc:
                logger.warning(f"Failed to cache related articles for {article_id}: {exc}")

        return result

    async def _compute(self, source) -> RecommendationResult:
        candidates = await self.store.fetch_candidates(source, self.pool_size)
        ranked = rank_candidates(source, candidates)
        selection = await apply_fallback(source, ranked, self.store, MIN_RESULTS, MAX_RESULTS)
        logger.info(
            f"Computed {len(selection)} related articles for {source.id} "
            f"({len(candidates)} candidates)"
        )
        return RecommendationResult.from_selection(selection)
