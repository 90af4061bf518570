from __future__ import annotations

import logging
from typing import Iterable, Protocol, Sequence

from psycopg_pool import AsyncConnectionPool

from lumen_i18n.infrastructure.database.models.translation import TranslationModel
from lumen_i18n.infrastructure.database.session import db_scope

logger = logging.getLogger(__name__)

LIST_PAGE_SIZE = 1000


class TranslationRecordStore(Protocol):
    """Key-value view over the ``translations`` table.

    Writes are conflict-resolving upserts on ``(language_code, translation_key)``.
    ``get_many`` returns only the subset found, in no particular order.
    """

    async def get(self, language_code: str, translation_key: str) -> str | None: ...

    async def get_many(
        self, language_code: str, translation_keys: Iterable[str]
    ) -> dict[str, str]: ...

    async def upsert(
        self,
        language_code: str,
        translation_key: str,
        translation_value: str,
        *,
        context: str | None = None,
        source_text: str | None = None,
        auto_translated: bool = False,
    ) -> None: ...

    async def upsert_many(self, records: Sequence[TranslationModel]) -> None: ...

    async def delete_key(self, translation_key: str) -> int: ...

    async def list_language(self, language_code: str) -> dict[str, str]: ...

    async def search_values(
        self,
        language_code: str,
        term: str,
        *,
        key_pattern: str = "%",
        limit: int = 30,
    ) -> list[TranslationModel]: ...


class PostgresTranslationStore:
    """TranslationRecordStore backed by the pooled PostgreSQL ``translations`` table."""

    def __init__(self, pool: AsyncConnectionPool) -> None:
        self.pool = pool

    async def get(self, language_code: str, translation_key: str) -> str | None:
        async with db_scope(self.pool) as db:
            row = await db.translations.get(
                language_code=language_code, translation_key=translation_key
            )
        return row.translation_value if row is not None else None

    async def get_many(
        self, language_code: str, translation_keys: Iterable[str]
    ) -> dict[str, str]:
        async with db_scope(self.pool) as db:
            rows = await db.translations.get_many(
                language_code=language_code, translation_keys=translation_keys
            )
        return {row.translation_key: row.translation_value for row in rows}

    async def upsert(
        self,
        language_code: str,
        translation_key: str,
        translation_value: str,
        *,
        context: str | None = None,
        source_text: str | None = None,
        auto_translated: bool = False,
    ) -> None:
        async with db_scope(self.pool) as db:
            await db.translations.upsert(
                language_code=language_code,
                translation_key=translation_key,
                translation_value=translation_value,
                context=context,
                source_text=source_text,
                auto_translated=auto_translated,
            )

    async def upsert_many(self, records: Sequence[TranslationModel]) -> None:
        if not records:
            return
        async with db_scope(self.pool) as db:
            await db.translations.upsert_many(records)

    async def delete_key(self, translation_key: str) -> int:
        async with db_scope(self.pool) as db:
            deleted = await db.translations.delete_key(translation_key=translation_key)
        logger.info("Deleted key %s across %s languages", translation_key, deleted)
        return deleted

    async def list_language(self, language_code: str) -> dict[str, str]:
        mapping: dict[str, str] = {}
        offset = 0
        async with db_scope(self.pool) as db:
            while True:
                rows = await db.translations.list_by_language(
                    language_code=language_code, limit=LIST_PAGE_SIZE, offset=offset
                )
                for row in rows:
                    mapping[row.translation_key] = row.translation_value
                if len(rows) < LIST_PAGE_SIZE:
                    break
                offset += LIST_PAGE_SIZE
        return mapping

    async def search_values(
        self,
        language_code: str,
        term: str,
        *,
        key_pattern: str = "%",
        limit: int = 30,
    ) -> list[TranslationModel]:
        async with db_scope(self.pool) as db:
            return await db.translations.search_values(
                language_code=language_code,
                term=term,
                key_pattern=key_pattern,
                limit=limit,
            )
