"""Candidate fetching: load the source article and its comparable pool from the article store.

Rows are converted to CandidateArticle exactly once, here at the store boundary.
Everything downstream (scoring, fallback, caching) works on these records and
never touches ORM objects.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Iterable, Optional, Protocol

from sqlalchemy import select, desc, asc, and_, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from related_articles.db.models import Article, Tag, PUBLISHED

logger = logging.getLogger(__name__)


class ArticleStoreUnavailableError(RuntimeError):
    """The article store could not be queried. Retryable; never cached."""


@dataclass(frozen=True)
class CandidateArticle:
    id: int
    title: str
    summary: str = ""
    slug: str = ""
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    tag_ids: frozenset[int] = field(default_factory=frozenset)
    tag_names: tuple[str, ...] = ()
    view_count: int = 0
    published_at: Optional[datetime] = None

    @classmethod
    def from_row(cls, article: Article) -> "CandidateArticle":
        tags = sorted(article.tags or [], key=lambda t: t.id)
        return cls(
            id=article.id,
            title=article.title or "",
            summary=article.summary or "",
            slug=article.slug or "",
            category_id=article.category_id,
            category_name=article.category.name if article.category else None,
            tag_ids=frozenset(t.id for t in tags),
            tag_names=tuple(t.name for t in tags),
            view_count=article.view_count or 0,
            published_at=article.published_at,
        )


class ArticleStore(Protocol):
    """Read-only view of the article store used by the related-articles path."""

    async def get_source(self, article_id: int) -> Optional[CandidateArticle]:
        """Return the article if it exists and is eligible, else None."""

    async def fetch_candidates(self, source: CandidateArticle, limit: int) -> list[CandidateArticle]:
        """Eligible non-source articles sharing the source's category or a tag."""

    async def fetch_popular(self, exclude_ids: Iterable[int], limit: int) -> list[CandidateArticle]:
        """Eligible articles by view count, skipping exclude_ids."""


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SqlArticleStore:
    """ArticleStore backed by the async SQLAlchemy session of the current request."""

    def __init__(self, session: AsyncSession, clock: Callable[[], datetime] = _utcnow):
        self.session = session
        self.clock = clock

    def _eligible(self):
        return and_(
            Article.status == PUBLISHED,
            Article.published_at.is_not(None),
            Article.published_at <= self.clock(),
        )

    def _base_query(self):
        return select(Article).options(
            selectinload(Article.category),
            selectinload(Article.tags),
        )

    async def _fetch(self, stmt) -> list[CandidateArticle]:
        try:
            result = await self.session.execute(stmt)
            rows = result.scalars().all()
        except (SQLAlchemyError, OSError, asyncio.TimeoutError) as exc:
            logger.error(f"Article store query failed: {exc}")
            raise ArticleStoreUnavailableError("Article store unavailable") from exc
        return [CandidateArticle.from_row(row) for row in rows]

    async def get_source(self, article_id: int) -> Optional[CandidateArticle]:
        stmt = self._base_query().where(Article.id == article_id, self._eligible())
        rows = await self._fetch(stmt)
        return rows[0] if rows else None

    async def fetch_candidates(self, source: CandidateArticle, limit: int) -> list[CandidateArticle]:
        matches = []
        if source.category_id is not None:
            matches.append(Article.category_id == source.category_id)
        if source.tag_ids:
            matches.append(Article.tags.any(Tag.id.in_(sorted(source.tag_ids))))
        if not matches:
            return []

        # Pre-order so the pool cap is stable between calls.
        stmt = (
            self._base_query()
            .where(Article.id != source.id, self._eligible(), or_(*matches))
            .order_by(desc(Article.view_count), asc(Article.id))
            .limit(limit)
        )
        candidates = await self._fetch(stmt)
        logger.debug(f"Fetched {len(candidates)} candidates for article {source.id}")
        return candidates

    async def fetch_popular(self, exclude_ids: Iterable[int], limit: int) -> list[CandidateArticle]:
        if limit <= 0:
            return []
        stmt = self._base_query().where(self._eligible())
        excluded = sorted(set(exclude_ids))
        if excluded:
            stmt = stmt.where(Article.id.not_in(excluded))
        stmt = stmt.order_by(desc(Article.view_count), asc(Article.id)).limit(limit)
        return await self._fetch(stmt)
