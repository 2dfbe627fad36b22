import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy import text

from app.config import DATABASE_URL, DB_ECHO
from app.models import Base

logger = logging.getLogger(__name__)

# Global async engine
engine: AsyncEngine = create_async_engine(
    DATABASE_URL,
    echo=DB_ECHO,
    future=True,
)

# Session factory for getting AsyncSession objects
AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session (AsyncSession)
    to request handlers.

    Usage in endpoints:
        async def some_endpoint(db: AsyncSession = Depends(get_db)):
            ...
    """
    async with AsyncSessionLocal() as session:
        yield session


@asynccontextmanager
async def atomic(db: AsyncSession) -> AsyncGenerator[AsyncSession, None]:
    """
    Commit everything executed inside the block once, or roll it all back.

    Multi-step writes (type slots, media, evolution edges) go through this
    so a failure halfway never leaves partial rows behind.
    """
    try:
        yield db
        await db.commit()
    except Exception:
        await db.rollback()
        raise


async def run_migrations(bind: AsyncEngine | None = None) -> None:
    """
    Idempotent schema bootstrap with retry logic.

    - Waits for database to be ready (with exponential backoff)
    - Creates every table declared on the ORM metadata that is missing.
    """
    bind = bind or engine
    max_retries = 10
    retry_delay = 2  # seconds

    for attempt in range(max_retries):
        try:
            async with bind.begin() as conn:
                # Test connection first
                await conn.execute(text("SELECT 1"))
                await conn.run_sync(Base.metadata.create_all)

            logger.info("Database schema is up to date")
            return

        except Exception as e:
            if attempt < max_retries - 1:
                wait_time = min(retry_delay * (2 ** attempt), 30)  # Exponential backoff with max 30 seconds
                logger.warning(
                    "Database not ready (attempt %d/%d), retrying in %ds...",
                    attempt + 1,
                    max_retries,
                    wait_time,
                )
                await asyncio.sleep(wait_time)
            else:
                logger.error("Failed to connect to database after %d attempts: %s", max_retries, e)
                raise
