from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx
from psycopg_pool import AsyncConnectionPool

from lumen_i18n.config import Settings
from lumen_i18n.infrastructure.database.connection.connect_to_pg import init_pg_pool_with_retry
from lumen_i18n.services.i18n.cache import TranslationCache
from lumen_i18n.services.i18n.errors import StoreError
from lumen_i18n.services.i18n.providers import create_provider
from lumen_i18n.services.i18n.rate_limiter import TokenBucket
from lumen_i18n.services.i18n.resolver import TranslationResolver
from lumen_i18n.services.i18n.store import PostgresTranslationStore
from lumen_i18n.services.search.catalog import PostgresCatalog
from lumen_i18n.services.search.entity_index import EntitySearchIndex

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Localization:
    pool: AsyncConnectionPool
    http_client: httpx.AsyncClient
    resolver: TranslationResolver
    search_index: EntitySearchIndex

    async def aclose(self) -> None:
        await self.http_client.aclose()
        await self.pool.close()


def build_resolver(settings: Settings, store, provider) -> TranslationResolver:
    return TranslationResolver(
        store,
        provider,
        cache=TranslationCache(),
        source_language=settings.source_language,
        chunk_size=settings.batch_chunk_size,
        chunk_delay_seconds=settings.batch_chunk_delay_seconds,
        provider_timeout_seconds=settings.provider_timeout_seconds,
        rate_limiter=TokenBucket(settings.provider_rate_per_second, settings.provider_burst),
    )


async def create_localization(settings: Settings) -> Localization:
    pool = await init_pg_pool_with_retry(
        dsn=settings.postgres_dsn,
        min_size=settings.postgres_pool_min_size,
        max_size=settings.postgres_pool_max_size,
        timeout=settings.postgres_pool_timeout,
    )
    http_client = httpx.AsyncClient(timeout=settings.provider_timeout_seconds)
    store = PostgresTranslationStore(pool)
    provider = create_provider(settings, client=http_client)
    resolver = build_resolver(settings, store, provider)
    search_index = EntitySearchIndex(
        store, PostgresCatalog(pool), default_limit=settings.search_result_limit
    )
    logger.info(
        "Localization ready (source=%s, targets=%s, provider=%s)",
        settings.source_language,
        ",".join(settings.target_languages),
        provider.name,
    )
    return Localization(
        pool=pool,
        http_client=http_client,
        resolver=resolver,
        search_index=search_index,
    )


async def preload_languages(resolver: TranslationResolver, languages: list[str]) -> None:
    for language in languages:
        try:
            await resolver.warm_cache(language)
        except StoreError:
            logger.exception("Failed to preload translations for %s", language)
