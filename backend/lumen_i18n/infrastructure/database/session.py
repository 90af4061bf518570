import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from psycopg import Error as PsycopgError
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from lumen_i18n.infrastructure.database.connection.psycopg_connection import PsycopgConnection
from lumen_i18n.infrastructure.database.db import DB
from lumen_i18n.services.i18n.errors import StoreError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def db_scope(pool: AsyncConnectionPool) -> AsyncIterator[DB]:
    """Borrow one pooled connection for the duration of a unit of work."""
    try:
        raw_connection = await pool.getconn()
    except (PoolTimeout, PsycopgError) as exc:
        logger.error("Could not get a database connection: %s", exc)
        raise StoreError(str(exc)) from exc
    try:
        yield DB(PsycopgConnection(raw_connection))
    finally:
        await pool.putconn(raw_connection)
