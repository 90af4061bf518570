"""Full-text search over translated catalog names.

Matches are found in ``translations.translation_value`` and mapped back to the
product or category named by the key. The identifier segment of legacy keys
may be a UUID, a SKU or a slug, so each key is resolved by UUID first, then by
exact SKU/slug, then by prefix, keeping the first non-empty answer.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from lumen_i18n.services.i18n.keys import (
    EntityKey,
    build_entity_key,
    is_uuid,
    key_pattern,
    parse_entity_key,
)
from lumen_i18n.services.i18n.store import TranslationRecordStore
from lumen_i18n.services.search.catalog import CatalogEntity, CatalogLookup

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 2
TRANSLATION_MATCH_LIMIT = 30
SKU_MATCH_LIMIT = 10


@dataclass(frozen=True, slots=True)
class SearchResult:
    entity_type: str
    entity_id: str
    name: str
    translation_key: str | None = None
    sku: str | None = None
    slug: str | None = None
    category_id: str | None = None


class EntitySearchIndex:
    def __init__(
        self,
        store: TranslationRecordStore,
        catalog: CatalogLookup,
        *,
        default_limit: int = 5,
    ) -> None:
        self.store = store
        self.catalog = catalog
        self.default_limit = default_limit

    async def resolve_entity(self, key: EntityKey) -> list[CatalogEntity]:
        if is_uuid(key.entity_id):
            found = await self.catalog.find_by_ids(key.entity_type, [key.entity_id])
            if found:
                return found
        found = await self.catalog.find_by_identifier(key.entity_type, key.entity_id)
        if found:
            return found
        return await self.catalog.find_by_prefix(key.entity_type, key.entity_id)

    async def search(
        self, query: str, language: str, *, limit: int | None = None
    ) -> list[SearchResult]:
        term = (query or "").strip()
        limit = limit or self.default_limit
        if len(term) < MIN_QUERY_LENGTH:
            return []

        results: list[SearchResult] = []
        seen: set[str] = set()

        for entity_type in ("product", "category"):
            matches = await self.store.search_values(
                language,
                term,
                key_pattern=key_pattern(entity_type),
                limit=TRANSLATION_MATCH_LIMIT,
            )
            for record in matches:
                parsed = parse_entity_key(record.translation_key)
                if parsed is None or parsed.entity_type != entity_type:
                    continue
                for entity in await self.resolve_entity(parsed):
                    if entity.id in seen:
                        continue
                    seen.add(entity.id)
                    results.append(
                        SearchResult(
                            entity_type=entity.entity_type,
                            entity_id=entity.id,
                            name=record.translation_value,
                            translation_key=record.translation_key,
                            sku=entity.sku,
                            slug=entity.slug,
                            category_id=entity.category_id,
                        )
                    )
                if len(results) >= limit:
                    return results[:limit]

        by_sku = [
            product
            for product in await self.catalog.search_sku(term, limit=SKU_MATCH_LIMIT)
            if product.id not in seen
        ]
        if by_sku:
            name_keys = {
                product.id: build_entity_key("product", product.id, "name") for product in by_sku
            }
            names = await self.store.get_many(language, name_keys.values())
            for product in by_sku:
                seen.add(product.id)
                results.append(
                    SearchResult(
                        entity_type="product",
                        entity_id=product.id,
                        name=names.get(name_keys[product.id]) or product.sku or product.id,
                        translation_key=name_keys[product.id],
                        sku=product.sku,
                        slug=product.slug,
                        category_id=product.category_id,
                    )
                )

        logger.debug("Search %r in %s matched %s entities", term, language, len(results))
        return results[:limit]
