"""Result bounds for related articles, with popularity padding for thin matches."""
import logging
from dataclasses import replace

from related_articles.processing.candidates import ArticleStore, CandidateArticle
from related_articles.processing.scoring import ScoredCandidate, score_candidate, tokenize

logger = logging.getLogger(__name__)

MIN_RESULTS = 3
MAX_RESULTS = 6


async def apply_fallback(
    source: CandidateArticle,
    ranked: list[ScoredCandidate],
    store: ArticleStore,
    min_results: int = MIN_RESULTS,
    max_results: int = MAX_RESULTS,
) -> list[ScoredCandidate]:
    """
    Pad a short ranked list with the most-viewed eligible articles, then cap it.

    Padding only happens when fewer than min_results were ranked, and stops at
    min_results or when the store runs out. Padded entries keep their own score
    but are tagged match="popularity" and always sit after the ranked ones.
    """
    selected = list(ranked[:max_results])
    shortfall = min_results - len(selected)
    if shortfall <= 0:
        return selected

    exclude = {source.id} | {s.candidate.id for s in selected}
    popular = await store.fetch_popular(exclude, shortfall)

    source_tokens = tokenize(f"{source.title} {source.summary}")
    for candidate in popular:
        if candidate.id in exclude:
            continue
        exclude.add(candidate.id)
        padded = score_candidate(source, candidate, source_tokens)
        selected.append(replace(padded, match="popularity"))
        if len(selected) >= min_results:
            break

    logger.debug(
        f"Padded related articles for {source.id}: {len(ranked)} ranked, "
        f"{len(selected) - min(len(ranked), max_results)} from popularity"
    )
    return selected[:max_results]
