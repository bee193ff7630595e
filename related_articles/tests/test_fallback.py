"""Fallback selector: popularity padding and result bounds."""
from related_articles.processing.fallback import MAX_RESULTS, MIN_RESULTS, apply_fallback
from related_articles.processing.scoring import rank_candidates
from related_articles.tests.factories import FakeArticleStore, candidate

LLM, OTHER = 1, 2


def _source():
    return candidate(1, category=LLM, tags={10}, title="Source article")


async def test_bounds_constants():
    assert (MIN_RESULTS, MAX_RESULTS) == (3, 6)


async def test_long_ranked_list_is_truncated_without_padding():
    src = _source()
    pool = [candidate(i, category=LLM, views=i) for i in range(2, 12)]
    store = FakeArticleStore([src, *pool])

    selected = await apply_fallback(src, rank_candidates(src, pool), store)

    assert len(selected) == MAX_RESULTS
    assert store.calls["fetch_popular"] == 0
    assert all(s.match == "relevance" for s in selected)


async def test_short_list_padded_to_minimum_by_popularity():
    src = _source()
    match = candidate(2, category=LLM, views=1)
    unrelated = [candidate(i, category=OTHER, views=i * 10) for i in range(3, 10)]
    store = FakeArticleStore([src, match, *unrelated])

    selected = await apply_fallback(src, rank_candidates(src, [match]), store)

    ids = [s.candidate.id for s in selected]
    assert ids == [2, 9, 8]  # the match, then the two most-viewed others
    assert len(set(ids)) == len(ids)
    assert src.id not in ids
    assert [s.match for s in selected] == ["relevance", "popularity", "popularity"]


async def test_padding_never_duplicates_selected_candidates():
    src = _source()
    # The matches are also the most popular articles, so the popularity query would return them first.
    matches = [candidate(2, category=LLM, views=900), candidate(3, category=LLM, views=800)]
    others = [candidate(4, category=OTHER, views=5), candidate(5, category=OTHER, views=4)]
    store = FakeArticleStore([src, *matches, *others])

    selected = await apply_fallback(src, rank_candidates(src, matches), store)

    assert [s.candidate.id for s in selected] == [2, 3, 4]


async def test_between_minimum_and_maximum_is_left_alone():
    src = _source()
    matches = [candidate(i, category=LLM) for i in range(2, 6)]
    store = FakeArticleStore([src, *matches, candidate(50, category=OTHER, views=1000)])

    selected = await apply_fallback(src, rank_candidates(src, matches), store)

    assert len(selected) == 4
    assert store.calls["fetch_popular"] == 0


async def test_small_store_is_exhausted():
    src = _source()
    only = candidate(2, category=OTHER, views=3)
    store = FakeArticleStore([src, only])

    selected = await apply_fallback(src, [], store)

    assert [s.candidate.id for s in selected] == [2]


async def test_empty_store_returns_nothing():
    src = _source()
    store = FakeArticleStore([src])

    assert await apply_fallback(src, [], store) == []


async def test_padding_skips_ineligible_articles():
    src = _source()
    draft = candidate(2, category=OTHER, views=10_000)
    live = candidate(3, category=OTHER, views=1)
    store = FakeArticleStore([src, draft, live], hidden={draft.id})

    selected = await apply_fallback(src, [], store)

    assert [s.candidate.id for s in selected] == [3]
