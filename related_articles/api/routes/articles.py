"""Article routes: related-articles recommendations."""
import logging

from fastapi import APIRouter, Depends, HTTPException, Path

from related_articles.api.dependencies import get_related_service
from related_articles.processing.candidates import ArticleStoreUnavailableError
from related_articles.processing.fallback import MIN_RESULTS, MAX_RESULTS
from related_articles.processing.related import ArticleNotFoundError, RelatedArticlesService
from related_articles.processing.scoring import ALGORITHM, weights_dict

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/articles", tags=["articles"])


@router.get("/{article_id}/related")
async def get_related_articles(
    article_id: int = Path(..., ge=1),
    service: RelatedArticlesService = Depends(get_related_service),
):
    """Return 3–6 related articles ranked by category, tag and content overlap."""
    try:
        result = await service.get_related_articles(article_id)
    except ArticleNotFoundError:
        raise HTTPException(status_code=404, detail="Article not found")
    except ArticleStoreUnavailableError:
        raise HTTPException(
            status_code=503,
            detail="Article store temporarily unavailable",
            headers={"Retry-After": "5"},
        )

    return {
        "articles": [a.model_dump(mode="json") for a in result.articles],
        "count": result.count,
        "meta": {
            "algorithm": ALGORITHM,
            "weights": weights_dict(),
            "min_results": MIN_RESULTS,
            "max_results": MAX_RESULTS,
        },
    }
