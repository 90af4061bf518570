from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Protocol

from psycopg_pool import AsyncConnectionPool

from lumen_i18n.infrastructure.database.models.catalog import CategoryModel, ProductModel
from lumen_i18n.infrastructure.database.session import db_scope


@dataclass(frozen=True, slots=True)
class CatalogEntity:
    entity_type: str
    id: str
    sku: str | None = None
    slug: str | None = None
    category_id: str | None = None


def _from_product(product: ProductModel) -> CatalogEntity:
    return CatalogEntity(
        entity_type="product",
        id=product.id,
        sku=product.sku,
        slug=product.slug or product.sku,
        category_id=product.category_id,
    )


def _from_category(category: CategoryModel) -> CatalogEntity:
    return CatalogEntity(entity_type="category", id=category.id, slug=category.slug)


class CatalogLookup(Protocol):
    """Active catalog rows addressed the three ways translation keys name them."""

    async def find_by_ids(
        self, entity_type: str, ids: Iterable[str], *, limit: int = 5
    ) -> list[CatalogEntity]: ...

    async def find_by_identifier(
        self, entity_type: str, identifier: str, *, limit: int = 5
    ) -> list[CatalogEntity]: ...

    async def find_by_prefix(
        self, entity_type: str, prefix: str, *, limit: int = 5
    ) -> list[CatalogEntity]: ...

    async def search_sku(self, term: str, *, limit: int = 10) -> list[CatalogEntity]: ...


class PostgresCatalog:
    def __init__(self, pool: AsyncConnectionPool) -> None:
        self.pool = pool

    async def find_by_ids(
        self, entity_type: str, ids: Iterable[str], *, limit: int = 5
    ) -> list[CatalogEntity]:
        async with db_scope(self.pool) as db:
            if entity_type == "product":
                return [_from_product(row) for row in await db.products.find_by_ids(ids, limit=limit)]
            return [_from_category(row) for row in await db.categories.find_by_ids(ids, limit=limit)]

    async def find_by_identifier(
        self, entity_type: str, identifier: str, *, limit: int = 5
    ) -> list[CatalogEntity]:
        async with db_scope(self.pool) as db:
            if entity_type == "product":
                rows = await db.products.find_by_sku_or_slug(identifier, limit=limit)
                return [_from_product(row) for row in rows]
            rows = await db.categories.find_by_slug(identifier, limit=limit)
            return [_from_category(row) for row in rows]

    async def find_by_prefix(
        self, entity_type: str, prefix: str, *, limit: int = 5
    ) -> list[CatalogEntity]:
        async with db_scope(self.pool) as db:
            if entity_type == "product":
                return [_from_product(row) for row in await db.products.find_by_prefix(prefix, limit=limit)]
            return [_from_category(row) for row in await db.categories.find_by_prefix(prefix, limit=limit)]

    async def search_sku(self, term: str, *, limit: int = 10) -> list[CatalogEntity]:
        async with db_scope(self.pool) as db:
            return [_from_product(row) for row in await db.products.search_sku(term, limit=limit)]
