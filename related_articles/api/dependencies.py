"""FastAPI dependencies wiring the related-articles service to per-request and app-wide state.

The cache client and invalidation coordinator are built once in the app
lifespan and kept on app.state; tests swap them through dependency_overrides.
"""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from related_articles.config import settings
from related_articles.db import get_db
from related_articles.processing.cache import RecommendationCache
from related_articles.processing.candidates import ArticleStore, SqlArticleStore
from related_articles.processing.invalidation import InvalidationCoordinator
from related_articles.processing.related import RelatedArticlesService


def get_related_cache(request: Request) -> RecommendationCache:
    return request.app.state.related_cache


def get_invalidation_coordinator(request: Request) -> InvalidationCoordinator:
    return request.app.state.invalidation_coordinator


async def get_article_store(db: AsyncSession = Depends(get_db)) -> ArticleStore:
    return SqlArticleStore(db)


def get_related_service(
    store: ArticleStore = Depends(get_article_store),
    cache: RecommendationCache = Depends(get_related_cache),
) -> RelatedArticlesService:
    return RelatedArticlesService(store=store, cache=cache, pool_size=settings.candidate_pool_size)
