import asyncio
import logging

from psycopg_pool import AsyncConnectionPool

logger = logging.getLogger(__name__)


async def get_pg_pool(
    *,
    dsn: str,
    min_size: int = 1,
    max_size: int = 10,
    timeout: float = 30.0,
) -> AsyncConnectionPool:
    # Autocommit: every statement is its own transaction.
    pool = AsyncConnectionPool(
        conninfo=dsn,
        min_size=min_size,
        max_size=max_size,
        timeout=timeout,
        kwargs={"autocommit": True},
        open=False,
    )
    await pool.open(wait=True, timeout=timeout)
    return pool


async def init_pg_pool_with_retry(
    *,
    dsn: str,
    min_size: int,
    max_size: int,
    timeout: float,
    max_attempts: int = 5,
) -> AsyncConnectionPool:
    retry_delay = 1
    max_retry_delay = 30

    logger.info(
        "Initializing PostgreSQL pool (min_size=%s, max_size=%s, timeout=%ss)",
        min_size,
        max_size,
        timeout,
    )

    attempt = 0
    while True:
        attempt += 1
        try:
            return await get_pg_pool(
                dsn=dsn,
                min_size=min_size,
                max_size=max_size,
                timeout=timeout,
            )
        except Exception:
            if attempt >= max_attempts:
                raise
            logger.exception(
                "Failed to initialize PostgreSQL pool (attempt %s/%s). Retrying in %s seconds...",
                attempt,
                max_attempts,
                retry_delay,
            )
            await asyncio.sleep(retry_delay)
            retry_delay = min(max_retry_delay, retry_delay * 2)
