import logging
from typing import Any, Sequence

from psycopg import AsyncConnection
from psycopg import Error as PsycopgError
from psycopg.rows import dict_row

from lumen_i18n.infrastructure.database.connection.base import BaseConnection
from lumen_i18n.infrastructure.database.query.results import (
    MultipleQueryResult,
    SingleQueryResult,
)
from lumen_i18n.services.i18n.errors import StoreError

logger = logging.getLogger(__name__)


class PsycopgConnection(BaseConnection):
    def __init__(self, connection: AsyncConnection) -> None:
        self.connection = connection

    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> int:
        try:
            async with self.connection.cursor() as cursor:
                await cursor.execute(sql, params)
                return cursor.rowcount
        except PsycopgError as exc:
            logger.error("Statement failed: %s", exc)
            raise StoreError(str(exc)) from exc

    async def fetchone(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> SingleQueryResult:
        try:
            async with self.connection.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(sql, params)
                row = await cursor.fetchone()
        except PsycopgError as exc:
            logger.error("Query failed: %s", exc)
            raise StoreError(str(exc)) from exc
        return SingleQueryResult(row)

    async def fetchmany(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> MultipleQueryResult:
        try:
            async with self.connection.cursor(row_factory=dict_row) as cursor:
                await cursor.execute(sql, params)
                rows = await cursor.fetchall()
        except PsycopgError as exc:
            logger.error("Query failed: %s", exc)
            raise StoreError(str(exc)) from exc
        return MultipleQueryResult(rows)

    async def insert_and_fetchone(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> SingleQueryResult:
        return await self.fetchone(sql, params)
