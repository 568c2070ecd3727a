"""asyncpg connection pool."""
from __future__ import annotations

import asyncpg  # type: ignore[import-untyped]
import structlog

from webhook_relay.settings import Settings

logger = structlog.get_logger(__name__)


async def create_pool(settings: Settings) -> asyncpg.Pool:
    pool = await asyncpg.create_pool(
        dsn=str(settings.database_url),
        min_size=1,
        max_size=settings.db_pool_size,
    )
    logger.info("postgres_pool_connected", max_size=settings.db_pool_size)
    return pool


async def close_pool(pool: asyncpg.Pool | None) -> None:
    if pool is not None:
        await pool.close()
        logger.info("postgres_pool_closed")
