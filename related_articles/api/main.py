"""FastAPI application entry point."""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from related_articles.config import settings
from related_articles.db import create_tables
from related_articles.api.routes import articles, admin, internal
from related_articles.processing.cache import build_cache
from related_articles.processing.invalidation import InvalidationCoordinator

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting up: creating tables if needed")
    try:
        await create_tables()
    except Exception as exc:
        # Don't crash on startup if DB is temporarily unavailable.
        # The app will still serve /health; DB-backed routes return 503 until DB recovers.
        logger.error(f"Startup DB init failed (non-fatal): {exc}")

    cache = build_cache(settings.redis_url)
    app.state.related_cache = cache
    app.state.invalidation_coordinator = InvalidationCoordinator(cache)
    yield
    logger.info("Shutting down")
    await app.state.invalidation_coordinator.drain()
    try:
        await cache.close()
    except Exception as exc:
        logger.warning(f"Closing related cache failed: {exc}")


app = FastAPI(
    title="Related Articles API",
    description="Hybrid related-article recommendations with a consistent TTL cache",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins + [o.strip() for o in settings.cors_extra_origins.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Admin-Key", "X-Internal-Key"],
)

app.include_router(articles.router)
app.include_router(admin.router)
app.include_router(internal.router)


@app.get("/health")
async def health():
    return {"status": "ok", "version": "1.0.0"}
