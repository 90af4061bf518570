"""Bulk maintenance over the translations table: report and fill gaps."""

from __future__ import annotations

import logging
from typing import Iterable

from lumen_i18n.services.i18n.resolver import BatchItem, TranslationResolver

logger = logging.getLogger(__name__)


async def find_missing(
    resolver: TranslationResolver,
    languages: Iterable[str],
    *,
    prefix: str = "",
) -> dict[str, list[str]]:
    """Return ``{language: [keys with a source value but no value in language]}``."""
    source = await resolver.store.list_language(resolver.source_language)
    keys = sorted(key for key in source if key.startswith(prefix))
    missing: dict[str, list[str]] = {}
    for language in languages:
        if language == resolver.source_language:
            continue
        present = await resolver.store.get_many(language, keys)
        missing[language] = [key for key in keys if key not in present]
    return missing


async def fill_missing(
    resolver: TranslationResolver,
    languages: Iterable[str],
    *,
    prefix: str = "",
    context: str = "ui",
) -> dict[str, dict[str, int]]:
    """Translate every source key lacking a value, language by language."""
    source = await resolver.store.list_language(resolver.source_language)
    items = [
        BatchItem(key=key, source_text=value)
        for key, value in sorted(source.items())
        if key.startswith(prefix)
    ]
    summary: dict[str, dict[str, int]] = {}
    for language in languages:
        if language == resolver.source_language:
            continue
        before = await resolver.store.get_many(language, [item.key for item in items])
        resolved = await resolver.resolve_batch(items, language, context=context)
        after = await resolver.store.get_many(language, [item.key for item in items])
        summary[language] = {
            "keys": len(items),
            "already_present": len(before),
            "translated": len(after) - len(before),
            "fallback": sum(1 for key in resolved if key not in after),
        }
        logger.info("Filled %s: %s", language, summary[language])
    return summary
