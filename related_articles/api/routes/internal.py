"""Internal routes, called by the article-mutation service after a write commits.

Protected by the X-Internal-Key header. In local dev (INTERNAL_API_KEY empty)
authentication is skipped.
"""
import hmac
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Path
from pydantic import BaseModel

from related_articles.api.dependencies import get_invalidation_coordinator
from related_articles.config import settings
from related_articles.processing.invalidation import InvalidationCoordinator

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/internal", tags=["internal"])


def require_internal(x_internal_key: Optional[str] = Header(None)) -> None:
    if not settings.internal_api_key:
        return  # local dev: skip

    if not x_internal_key or not hmac.compare_digest(x_internal_key, settings.internal_api_key):
        raise HTTPException(status_code=403, detail="Invalid internal key")


class ArticleEvent(BaseModel):
    event: Literal["created", "updated", "deleted", "published", "unpublished"]
    old_status: Optional[str] = None
    new_status: Optional[str] = None


@router.post("/articles/{article_id}/events", status_code=202)
async def article_event(
    event: ArticleEvent,
    article_id: int = Path(..., ge=1),
    _: None = Depends(require_internal),
    coordinator: InvalidationCoordinator = Depends(get_invalidation_coordinator),
):
    """Accept a mutation notification; cache invalidation runs in the background."""
    if event.event == "created":
        coordinator.on_article_created(article_id)
    elif event.event == "updated":
        coordinator.on_article_updated(article_id)
    elif event.event == "deleted":
        coordinator.on_article_deleted(article_id)
    else:
        new_status = event.new_status or ("published" if event.event == "published" else None)
        coordinator.on_article_status_changed(article_id, event.old_status, new_status)

    logger.info(f"Article {article_id} {event.event}: related cache invalidation dispatched")
    return {"status": "accepted", "article_id": article_id, "event": event.event}
