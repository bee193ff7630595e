"""Related-article relevance scoring: category, tag and lexical signals."""
import re
from dataclasses import dataclass, field
from typing import Iterable

from related_articles.processing.candidates import CandidateArticle

ALGORITHM = "hybrid"

CATEGORY_WEIGHT = 0.40
TAG_WEIGHT = 0.30
CONTENT_WEIGHT = 0.30
WEIGHTS = (CATEGORY_WEIGHT, TAG_WEIGHT, CONTENT_WEIGHT)

_TOKEN_RE = re.compile(r"[a-z0-9]+")

_STOP_WORDS = frozenset({
    "a", "an", "and", "are", "as", "at", "be", "by", "for", "from", "has", "how",
    "in", "into", "is", "it", "its", "of", "on", "or", "that", "the", "their",
    "this", "to", "vs", "was", "we", "what", "when", "why", "will", "with", "you",
    "your",
})


@dataclass(frozen=True)
class ScoredCandidate:
    candidate: CandidateArticle
    score: float
    breakdown: dict[str, float] = field(default_factory=dict)
    match: str = "relevance"  # relevance|popularity


def weights_dict() -> dict[str, float]:
    return {"category": CATEGORY_WEIGHT, "tags": TAG_WEIGHT, "content": CONTENT_WEIGHT}


def tokenize(text: str) -> frozenset[str]:
    """Lower-cased alphanumeric tokens, minus stop words and single characters."""
    if not text:
        return frozenset()
    return frozenset(
        tok for tok in _TOKEN_RE.findall(text.lower())
        if len(tok) > 1 and tok not in _STOP_WORDS
    )


def _lexical_text(article: CandidateArticle) -> str:
    return f"{article.title} {article.summary}"


def _jaccard(left: frozenset, right: frozenset) -> float:
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def category_match(source: CandidateArticle, candidate: CandidateArticle) -> float:
    if source.category_id is None:
        return 0.0
    return 1.0 if candidate.category_id == source.category_id else 0.0


def tag_overlap(source: CandidateArticle, candidate: CandidateArticle) -> float:
    if not source.tag_ids:
        return 0.0
    return _jaccard(source.tag_ids, candidate.tag_ids)


def content_similarity(source: CandidateArticle, candidate: CandidateArticle) -> float:
    return _token_similarity(tokenize(_lexical_text(source)), tokenize(_lexical_text(candidate)))


def _token_similarity(source_tokens: frozenset[str], candidate_tokens: frozenset[str]) -> float:
    if not source_tokens or not candidate_tokens:
        return 0.0
    return _jaccard(source_tokens, candidate_tokens)


def _combine(category: float, tags: float, content: float) -> float:
    total = (
        category * CATEGORY_WEIGHT
        + tags * TAG_WEIGHT
        + content * CONTENT_WEIGHT
    )
    return round(min(max(total, 0.0), 1.0), 4)


def score_candidate(
    source: CandidateArticle,
    candidate: CandidateArticle,
    source_tokens: frozenset[str] | None = None,
) -> ScoredCandidate:
    """
    Weighted relevance of one candidate to the source article.

    Weights:
      category_match      40%  same category as the source
      tag_overlap         30%  Jaccard ratio of tag sets
      content_similarity  30%  Jaccard ratio of title+summary tokens
    """
    if source_tokens is None:
        source_tokens = tokenize(_lexical_text(source))
    cat = category_match(source, candidate)
    tags = tag_overlap(source, candidate)
    content = _token_similarity(source_tokens, tokenize(_lexical_text(candidate)))
    return ScoredCandidate(
        candidate=candidate,
        score=_combine(cat, tags, content),
        breakdown={"category": cat, "tags": round(tags, 4), "content": round(content, 4)},
    )


def score(source: CandidateArticle, candidate: CandidateArticle) -> float:
    return score_candidate(source, candidate).score


def ranking_key(scored: ScoredCandidate) -> tuple:
    return (-scored.score, -scored.candidate.view_count, scored.candidate.id)


def rank_candidates(
    source: CandidateArticle, candidates: Iterable[CandidateArticle]
) -> list[ScoredCandidate]:
    """Score every candidate and order by score, then popularity, then id."""
    source_tokens = tokenize(_lexical_text(source))
    seen: set[int] = set()
    scored = []
    for candidate in candidates:
        if candidate.id == source.id or candidate.id in seen:
            continue
        seen.add(candidate.id)
        scored.append(score_candidate(source, candidate, source_tokens))
    scored.sort(key=ranking_key)
    return scored
