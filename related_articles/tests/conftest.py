"""
Shared fixtures.

os.environ.setdefault() calls must appear BEFORE any related_articles import because
`settings = get_settings()` runs at module import time via @lru_cache.
"""
import os

os.environ.setdefault("ADMIN_API_KEY", "test-admin-key")
os.environ.setdefault("INTERNAL_API_KEY", "test-internal-key")
os.environ.setdefault("REDIS_URL", "")

import pytest
from httpx import AsyncClient, ASGITransport

from related_articles.processing.cache import InMemoryRecommendationCache
from related_articles.processing.invalidation import InvalidationCoordinator
from related_articles.tests.factories import FakeArticleStore, FakeClock

TEST_ADMIN_KEY = os.environ["ADMIN_API_KEY"]
TEST_INTERNAL_KEY = os.environ["INTERNAL_API_KEY"]


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return InMemoryRecommendationCache(clock=clock)


@pytest.fixture
def store():
    return FakeArticleStore()


@pytest.fixture
async def coordinator(cache):
    coord = InvalidationCoordinator(cache)
    yield coord
    await coord.drain()


@pytest.fixture
async def client(store, cache, coordinator):
    """HTTP client wired to the FastAPI app with the store, cache and coordinator swapped for fakes."""
    from related_articles.api.main import app
    from related_articles.api.dependencies import (
        get_article_store,
        get_invalidation_coordinator,
        get_related_cache,
    )

    app.dependency_overrides[get_article_store] = lambda: store
    app.dependency_overrides[get_related_cache] = lambda: cache
    app.dependency_overrides[get_invalidation_coordinator] = lambda: coordinator
    try:
        async with AsyncClient(
            transport=ASGITransport(app=app, raise_app_exceptions=True),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.clear()
