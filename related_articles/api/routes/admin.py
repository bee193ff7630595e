"""Admin routes: related-articles cache maintenance."""
import hmac
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Path

from related_articles.api.dependencies import get_related_cache
from related_articles.config import settings
from related_articles.processing.cache import CacheUnavailableError, RecommendationCache

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin", tags=["admin"])


def require_admin(x_admin_key: str = Header(...)) -> str:
    if not settings.admin_api_key:
        raise HTTPException(status_code=403, detail="Admin disabled")
    if not hmac.compare_digest(x_admin_key, settings.admin_api_key):
        raise HTTPException(status_code=403, detail="Invalid admin key")
    return x_admin_key


@router.delete("/related-cache/{article_id}")
async def invalidate_related_entry(
    article_id: int = Path(..., ge=1),
    key: str = Depends(require_admin),
    cache: RecommendationCache = Depends(get_related_cache),
):
    try:
        await cache.invalidate(article_id)
    except CacheUnavailableError as exc:
        logger.error(f"Admin invalidation of article {article_id} failed: {exc}")
        raise HTTPException(status_code=503, detail="Cache unavailable")
    return {"status": "invalidated", "article_id": article_id}


@router.delete("/related-cache")
async def flush_related_cache(
    key: str = Depends(require_admin),
    cache: RecommendationCache = Depends(get_related_cache),
):
    try:
        removed = await cache.invalidate_all()
    except CacheUnavailableError as exc:
        logger.error(f"Admin flush of related cache failed: {exc}")
        raise HTTPException(status_code=503, detail="Cache unavailable")
    logger.info(f"Admin flushed {removed} related cache entries")
    return {"status": "flushed", "removed": removed}
