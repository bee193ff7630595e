"""Invalidation coordinator: targeted + broad clears, background dispatch, error isolation."""
from unittest.mock import AsyncMock, MagicMock

import pytest

from related_articles.processing.cache import CacheUnavailableError
from related_articles.processing.invalidation import InvalidationCoordinator
from related_articles.processing.results import RecommendationResult


def _recording_cache():
    cache = MagicMock()
    cache.invalidate = AsyncMock()
    cache.invalidate_all = AsyncMock(return_value=0)
    return cache


@pytest.mark.parametrize("hook", ["on_article_created", "on_article_updated", "on_article_deleted"])
async def test_every_mutation_clears_own_entry_then_everything(hook):
    cache = _recording_cache()
    calls = []
    cache.invalidate.side_effect = lambda article_id: calls.append(("one", article_id))
    cache.invalidate_all.side_effect = lambda: calls.append(("all",)) or 0
    coordinator = InvalidationCoordinator(cache)

    task = getattr(coordinator, hook)(42)
    assert await task is True

    assert calls == [("one", 42), ("all",)]


async def test_dispatch_returns_before_invalidation_runs():
    cache = _recording_cache()
    coordinator = InvalidationCoordinator(cache)

    coordinator.on_article_updated(1)

    cache.invalidate.assert_not_awaited()
    assert coordinator.pending == 1
    await coordinator.drain()
    cache.invalidate.assert_awaited_once_with(1)
    assert coordinator.pending == 0


async def test_targeted_failure_still_runs_broad_and_is_swallowed():
    cache = _recording_cache()
    cache.invalidate.side_effect = CacheUnavailableError("down")
    coordinator = InvalidationCoordinator(cache)

    ok = await coordinator.on_article_deleted(5)

    assert ok is False
    cache.invalidate_all.assert_awaited_once()


async def test_unexpected_errors_are_swallowed_too():
    cache = _recording_cache()
    cache.invalidate.side_effect = RuntimeError("boom")
    cache.invalidate_all.side_effect = RuntimeError("boom")
    coordinator = InvalidationCoordinator(cache)

    assert await coordinator.on_article_updated(5) is False


async def test_mutation_path_survives_cache_outage(cache):
    """A caller that commits, then notifies, is never interrupted by the cache."""
    async def broken(*args):
        raise CacheUnavailableError("down")

    cache.invalidate = broken
    cache.invalidate_all = broken
    coordinator = InvalidationCoordinator(cache)

    committed = []

    async def update_article():
        committed.append(7)
        coordinator.on_article_updated(7)
        return "ok"

    assert await update_article() == "ok"
    await coordinator.drain()
    assert committed == [7]


async def test_clears_real_cache_entries(cache, coordinator):
    for i in (1, 2, 3):
        await cache.put(i, RecommendationResult())

    coordinator.on_article_updated(2)
    await coordinator.drain()

    assert len(cache) == 0


@pytest.mark.parametrize(
    "old,new,event",
    [
        ("draft", "published", "published"),
        ("scheduled", "published", "published"),
        ("published", "archived", "unpublished"),
        ("published", "draft", "unpublished"),
        ("published", "published", "updated"),
    ],
)
async def test_status_transitions(old, new, event):
    coordinator = InvalidationCoordinator(_recording_cache())
    coordinator.dispatch = MagicMock(return_value=None)

    coordinator.on_article_status_changed(3, old, new)

    coordinator.dispatch.assert_called_once_with(3, event)


async def test_unknown_event_rejected():
    coordinator = InvalidationCoordinator(_recording_cache())
    with pytest.raises(ValueError):
        coordinator.dispatch(1, "renamed")


def test_dispatch_without_running_loop_is_logged_not_raised():
    cache = _recording_cache()
    coordinator = InvalidationCoordinator(cache)

    assert coordinator.on_article_updated(1) is None
    cache.invalidate.assert_not_called()
