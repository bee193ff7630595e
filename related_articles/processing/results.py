"""Serializable related-articles result: the unit that is cached and returned."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from related_articles.processing.scoring import ScoredCandidate


class RelatedArticle(BaseModel):
    id: int
    title: str
    slug: str = ""
    summary: str = ""
    category: Optional[str] = None
    tags: list[str] = Field(default_factory=list)
    view_count: int = 0
    published_at: Optional[datetime] = None
    relevance_score: float = 0.0
    match: str = "relevance"

    @classmethod
    def from_scored(cls, scored: ScoredCandidate) -> "RelatedArticle":
        c = scored.candidate
        return cls(
            id=c.id,
            title=c.title,
            slug=c.slug,
            summary=c.summary,
            category=c.category_name,
            tags=list(c.tag_names),
            view_count=c.view_count,
            published_at=c.published_at,
            relevance_score=scored.score,
            match=scored.match,
        )


class RecommendationResult(BaseModel):
    articles: list[RelatedArticle] = Field(default_factory=list)
    count: int = 0

    @classmethod
    def from_selection(cls, selection: list[ScoredCandidate]) -> "RecommendationResult":
        articles = [RelatedArticle.from_scored(s) for s in selection]
        return cls(articles=articles, count=len(articles))
