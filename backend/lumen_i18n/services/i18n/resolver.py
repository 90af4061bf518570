"""Localization resolution with on-demand machine translation.

Lookup order for one ``(language, key)``: in-memory cache, then the
``translations`` table, then the translation provider. Provider results are
written through to the table and the cache, so a key is translated once per
language. Every translation failure degrades to source-language text; store
connectivity errors propagate only from the authoring operations.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Iterable, Sequence

from lumen_i18n.infrastructure.database.models.translation import TranslationModel
from lumen_i18n.services.i18n.cache import TranslationCache
from lumen_i18n.services.i18n.errors import (
    MissingSourceText,
    ProviderError,
    ProviderTimeout,
    StoreError,
)
from lumen_i18n.services.i18n.providers import MachineTranslationProvider
from lumen_i18n.services.i18n.rate_limiter import TokenBucket
from lumen_i18n.services.i18n.single_flight import SingleFlight
from lumen_i18n.services.i18n.store import TranslationRecordStore

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 50
DEFAULT_CHUNK_DELAY_SECONDS = 0.1
DEFAULT_PROVIDER_TIMEOUT_SECONDS = 5.0
DYNAMIC_CONTEXT = "dynamic_content"


@dataclass(frozen=True, slots=True)
class BatchItem:
    key: str
    source_text: str


def chunked(items: Sequence[BatchItem], size: int) -> list[list[BatchItem]]:
    if size < 1:
        raise ValueError("Chunk size must be positive")
    return [list(items[start : start + size]) for start in range(0, len(items), size)]


class TranslationResolver:
    def __init__(
        self,
        store: TranslationRecordStore,
        provider: MachineTranslationProvider,
        *,
        cache: TranslationCache | None = None,
        source_language: str = "tr",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_delay_seconds: float = DEFAULT_CHUNK_DELAY_SECONDS,
        provider_timeout_seconds: float = DEFAULT_PROVIDER_TIMEOUT_SECONDS,
        rate_limiter: TokenBucket | None = None,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self.store = store
        self.provider = provider
        self.cache = cache if cache is not None else TranslationCache()
        self.source_language = source_language
        self.chunk_size = chunk_size
        self.chunk_delay_seconds = chunk_delay_seconds
        self.provider_timeout_seconds = provider_timeout_seconds
        self.rate_limiter = rate_limiter
        self._sleep = sleeper
        self._in_flight = SingleFlight()

    # Provider access

    async def _call_provider(
        self, texts: list[str], target_language: str, source_language: str | None = None
    ) -> list[str]:
        if self.rate_limiter is not None:
            await self.rate_limiter.acquire()
        try:
            translated = await asyncio.wait_for(
                self.provider.translate(
                    texts, source_language or self.source_language, target_language
                ),
                timeout=self.provider_timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderTimeout(self.provider_timeout_seconds) from exc
        if len(translated) != len(texts):
            raise ProviderError(
                f"Provider returned {len(translated)} texts for {len(texts)}",
                failure_kind="malformed",
            )
        return translated

    # Single key

    async def resolve(
        self, key: str, target_language: str, source_language: str | None = None
    ) -> str:
        """Return the text for ``key`` in ``target_language``.

        Never raises: a key without source text, or an unreachable store, comes
        back as the key itself, a provider failure as the source text.
        """
        source_language = source_language or self.source_language
        try:
            if target_language == source_language:
                source_text = await self.store.get(source_language, key)
                return source_text if source_text is not None else key

            cached = self.cache.get(target_language, key)
            if cached is not None:
                return cached

            return await self._in_flight.run(
                (source_language, target_language, key),
                lambda: self._resolve_miss(key, target_language, None, source_language),
            )
        except MissingSourceText as exc:
            logger.info("%s", exc)
            return key
        except StoreError:
            logger.exception("Store lookup for %s/%s failed", target_language, key)
            return key

    async def translate_text(self, text: str | None, key: str, target_language: str) -> str:
        """Like ``resolve``, but the caller already holds the source text."""
        if not text or not text.strip():
            return ""
        if target_language == self.source_language:
            return text

        cached = self.cache.get(target_language, key)
        if cached is not None:
            return cached

        try:
            return await self._in_flight.run(
                (self.source_language, target_language, key),
                lambda: self._resolve_miss(key, target_language, text),
            )
        except StoreError:
            logger.exception("Store lookup for %s/%s failed", target_language, key)
            return text

    async def _resolve_miss(
        self,
        key: str,
        target_language: str,
        source_text: str | None,
        source_language: str | None = None,
    ) -> str:
        source_language = source_language or self.source_language
        stored = await self.store.get(target_language, key)
        if stored is not None:
            self.cache.put(target_language, key, stored)
            return stored

        if source_text is None:
            source_text = await self.store.get(source_language, key)
            if source_text is None:
                raise MissingSourceText(key, source_language)

        try:
            translated = (
                await self._call_provider([source_text], target_language, source_language)
            )[0]
        except ProviderError as exc:
            logger.warning(
                "Translation of %s into %s failed (%s), serving source text",
                key,
                target_language,
                exc,
            )
            return source_text

        if not translated.strip():
            logger.warning("Provider returned empty text for %s/%s", target_language, key)
            return source_text

        try:
            await self.store.upsert(
                target_language,
                key,
                translated,
                context=DYNAMIC_CONTEXT,
                source_text=source_text,
                auto_translated=True,
            )
        except StoreError:
            # Not cached either, so the next request retries the write.
            logger.exception("Could not persist %s/%s", target_language, key)
            return translated
        self.cache.put(target_language, key, translated)
        logger.debug("Translated %s into %s", key, target_language)
        return translated

    # Batch

    async def resolve_batch(
        self,
        items: Iterable[BatchItem],
        target_language: str,
        *,
        context: str = DYNAMIC_CONTEXT,
    ) -> dict[str, str]:
        """Return ``{key: text}`` for every item; no input key is ever dropped."""
        unique: dict[str, BatchItem] = {}
        for item in items:
            unique[item.key] = item

        if target_language == self.source_language:
            return {key: item.source_text for key, item in unique.items()}

        try:
            result = await self.store.get_many(target_language, unique.keys())
        except StoreError:
            logger.exception("Store lookup for %s keys in %s failed", len(unique), target_language)
            return {key: item.source_text for key, item in unique.items()}
        result = {key: value for key, value in result.items() if key in unique}
        self.cache.put_many(target_language, result)

        needs_translation = [
            item
            for key, item in unique.items()
            if key not in result and item.source_text and item.source_text.strip()
        ]
        for key, item in unique.items():
            if key not in result and not (item.source_text and item.source_text.strip()):
                result[key] = item.source_text or ""

        if not needs_translation:
            return result

        chunks = chunked(needs_translation, self.chunk_size)
        logger.info(
            "Translating %s of %s keys into %s in %s chunk(s)",
            len(needs_translation),
            len(unique),
            target_language,
            len(chunks),
        )
        for index, chunk in enumerate(chunks):
            if index:
                await self._sleep(self.chunk_delay_seconds)
            result.update(await self._translate_chunk(chunk, target_language, context))
        return result

    async def _translate_chunk(
        self, chunk: list[BatchItem], target_language: str, context: str
    ) -> dict[str, str]:
        try:
            translated = await self._call_provider(
                [item.source_text for item in chunk], target_language
            )
        except ProviderError as exc:
            logger.warning(
                "Chunk of %s keys into %s failed (%s), serving source texts",
                len(chunk),
                target_language,
                exc,
            )
            return {item.key: item.source_text for item in chunk}

        chunk_result: dict[str, str] = {}
        records: list[TranslationModel] = []
        for item, text in zip(chunk, translated):
            if not text or not text.strip():
                chunk_result[item.key] = item.source_text
                continue
            chunk_result[item.key] = text
            records.append(
                TranslationModel(
                    language_code=target_language,
                    translation_key=item.key,
                    translation_value=text,
                    context=context,
                    source_text=item.source_text,
                    auto_translated=True,
                )
            )
        try:
            await self.store.upsert_many(records)
        except StoreError:
            logger.exception(
                "Could not persist %s translations into %s", len(records), target_language
            )
            return chunk_result
        for record in records:
            self.cache.put(target_language, record.translation_key, record.translation_value)
        return chunk_result

    # Authoring

    async def save_and_translate(
        self,
        key: str,
        source_text: str,
        *,
        context: str = DYNAMIC_CONTEXT,
        target_languages: Iterable[str] = (),
    ) -> dict[str, str]:
        """Store an editor's source-language text and refresh its translations.

        Existing target values are overwritten, since they were derived from
        the previous source text. Store failures propagate to the caller.
        """
        self.cache.clear_key(key)
        await self.store.upsert(
            self.source_language,
            key,
            source_text,
            context=context,
            source_text=source_text,
            auto_translated=False,
        )
        self.cache.put(self.source_language, key, source_text)

        results = {self.source_language: source_text}
        for index, language in enumerate(
            code for code in dict.fromkeys(target_languages) if code != self.source_language
        ):
            if index:
                await self._sleep(self.chunk_delay_seconds)
            results[language] = await self._refresh(key, source_text, language, context)
        return results

    async def _refresh(self, key: str, source_text: str, language: str, context: str) -> str:
        try:
            translated = (await self._call_provider([source_text], language))[0]
        except ProviderError as exc:
            logger.warning("Refreshing %s into %s failed: %s", key, language, exc)
            return source_text
        if not translated.strip():
            logger.warning("Provider returned empty text for %s/%s", language, key)
            return source_text
        await self.store.upsert(
            language,
            key,
            translated,
            context=context,
            source_text=source_text,
            auto_translated=True,
        )
        self.cache.put(language, key, translated)
        return translated

    async def delete_key(self, key: str) -> int:
        deleted = await self.store.delete_key(key)
        self.cache.clear_key(key)
        return deleted

    async def warm_cache(self, language: str) -> dict[str, str]:
        """Load every stored value of ``language`` into the cache."""
        mapping = await self.store.list_language(language)
        self.cache.put_many(language, mapping)
        logger.info("Loaded %s translations for %s", len(mapping), language)
        return mapping

    def clear_cache(self) -> None:
        self.cache.clear()
        logger.info("Translation cache cleared")
