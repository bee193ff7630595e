import logging

from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from related_articles.config import settings
from related_articles.db.models import Base

logger = logging.getLogger(__name__)

# Read-mostly service: the related-articles path issues at most two short
# queries per cache miss, so a small pool per instance is enough.
# connect_args timeout prevents hangs when DB is unreachable during startup.
async_engine = create_async_engine(
    settings.database_url,
    echo=False,
    pool_pre_ping=True,
    pool_size=5,
    max_overflow=5,
    pool_timeout=10,
    connect_args={"timeout": 10},  # asyncpg connection-level timeout (seconds)
)
AsyncSessionLocal = async_sessionmaker(async_engine, expire_on_commit=False, class_=AsyncSession)


async def get_db() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables():
    async with async_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")
