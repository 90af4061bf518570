import logging
from typing import Iterable, Sequence

from lumen_i18n.infrastructure.database.connection.base import BaseConnection
from lumen_i18n.infrastructure.database.models.translation import TranslationModel
from lumen_i18n.infrastructure.database.query.results import (
    MultipleQueryResult,
    SingleQueryResult,
)
from lumen_i18n.infrastructure.database.tables.base import BaseTable, escape_like
from lumen_i18n.infrastructure.database.tables.enums.translations import (
    TranslationsTableAction,
)

logger = logging.getLogger(__name__)

_COLUMNS = """
    id, language_code, translation_key, translation_value,
    context, source_text, auto_translated, updated_at
"""


class TranslationsTable(BaseTable):
    __tablename__ = "translations"

    def __init__(self, connection: BaseConnection):
        self.connection = connection

    async def get(self, *, language_code: str, translation_key: str) -> TranslationModel | None:
        result: SingleQueryResult = await self.connection.fetchone(
            sql=f"""
                SELECT {_COLUMNS}
                FROM translations
                WHERE language_code = %s AND translation_key = %s
            """,
            params=(language_code, translation_key),
        )
        translation = result.to_model(TranslationModel)
        self._log(
            TranslationsTableAction.GET,
            language_code=language_code,
            translation_key=translation_key,
            exists=bool(translation),
        )
        return translation

    async def get_many(
        self, *, language_code: str, translation_keys: Iterable[str]
    ) -> list[TranslationModel]:
        keys = list(dict.fromkeys(translation_keys))
        if not keys:
            return []
        result: MultipleQueryResult = await self.connection.fetchmany(
            sql=f"""
                SELECT {_COLUMNS}
                FROM translations
                WHERE language_code = %s AND translation_key = ANY(%s)
            """,
            params=(language_code, keys),
        )
        self._log(
            TranslationsTableAction.GET_MANY,
            language_code=language_code,
            requested=len(keys),
            count=len(result),
        )
        return result.to_models(TranslationModel)

    async def upsert(
        self,
        *,
        language_code: str,
        translation_key: str,
        translation_value: str,
        context: str | None = None,
        source_text: str | None = None,
        auto_translated: bool = False,
    ) -> TranslationModel:
        result: SingleQueryResult = await self.connection.insert_and_fetchone(
            sql=f"""
                INSERT INTO translations(
                    language_code, translation_key, translation_value,
                    context, source_text, auto_translated, updated_at
                )
                VALUES(%s, %s, %s, %s, %s, %s, now())
                ON CONFLICT(language_code, translation_key)
                DO UPDATE SET
                    translation_value = EXCLUDED.translation_value,
                    context = EXCLUDED.context,
                    source_text = EXCLUDED.source_text,
                    auto_translated = EXCLUDED.auto_translated,
                    updated_at = EXCLUDED.updated_at
                RETURNING {_COLUMNS}
            """,
            params=(
                language_code,
                translation_key,
                translation_value,
                context,
                source_text,
                auto_translated,
            ),
        )
        translation = result.to_model(TranslationModel, raise_if_empty=True)
        self._log(
            TranslationsTableAction.UPSERT,
            language_code=language_code,
            translation_key=translation_key,
        )
        return translation  # type: ignore[return-value]

    async def upsert_many(self, records: Sequence[TranslationModel]) -> int:
        # One ON CONFLICT statement may not touch the same row twice.
        deduped: dict[tuple[str, str], TranslationModel] = {}
        for record in records:
            deduped[(record.language_code, record.translation_key)] = record
        if not deduped:
            return 0
        rows = list(deduped.values())
        affected = await self.connection.execute(
            sql="""
                INSERT INTO translations(
                    language_code, translation_key, translation_value,
                    context, source_text, auto_translated, updated_at
                )
                SELECT language_code, translation_key, translation_value,
                       context, source_text, auto_translated, now()
                FROM unnest(
                    %s::text[], %s::text[], %s::text[],
                    %s::text[], %s::text[], %s::boolean[]
                ) AS incoming(
                    language_code, translation_key, translation_value,
                    context, source_text, auto_translated
                )
                ON CONFLICT(language_code, translation_key)
                DO UPDATE SET
                    translation_value = EXCLUDED.translation_value,
                    context = EXCLUDED.context,
                    source_text = EXCLUDED.source_text,
                    auto_translated = EXCLUDED.auto_translated,
                    updated_at = EXCLUDED.updated_at
            """,
            params=(
                [row.language_code for row in rows],
                [row.translation_key for row in rows],
                [row.translation_value for row in rows],
                [row.context for row in rows],
                [row.source_text for row in rows],
                [row.auto_translated for row in rows],
            ),
        )
        self._log(TranslationsTableAction.UPSERT_MANY, count=len(rows))
        return affected

    async def list_by_language(
        self, *, language_code: str, limit: int = 1000, offset: int = 0
    ) -> list[TranslationModel]:
        result: MultipleQueryResult = await self.connection.fetchmany(
            sql=f"""
                SELECT {_COLUMNS}
                FROM translations
                WHERE language_code = %s
                ORDER BY translation_key
                LIMIT %s OFFSET %s
            """,
            params=(language_code, limit, offset),
        )
        self._log(
            TranslationsTableAction.LIST_BY_LANGUAGE,
            language_code=language_code,
            offset=offset,
            count=len(result),
        )
        return result.to_models(TranslationModel)

    async def search_values(
        self,
        *,
        language_code: str,
        term: str,
        key_pattern: str = "%",
        limit: int = 30,
    ) -> list[TranslationModel]:
        result: MultipleQueryResult = await self.connection.fetchmany(
            sql=f"""
                SELECT {_COLUMNS}
                FROM translations
                WHERE language_code = %s
                  AND translation_key LIKE %s
                  AND translation_value ILIKE %s
                ORDER BY translation_key
                LIMIT %s
            """,
            params=(language_code, key_pattern, f"%{escape_like(term)}%", limit),
        )
        self._log(
            TranslationsTableAction.SEARCH_VALUES,
            language_code=language_code,
            key_pattern=key_pattern,
            count=len(result),
        )
        return result.to_models(TranslationModel)

    async def delete_key(self, *, translation_key: str) -> int:
        deleted = await self.connection.execute(
            sql="DELETE FROM translations WHERE translation_key = %s",
            params=(translation_key,),
        )
        self._log(
            TranslationsTableAction.DELETE_KEY,
            translation_key=translation_key,
            deleted=deleted,
        )
        return deleted
