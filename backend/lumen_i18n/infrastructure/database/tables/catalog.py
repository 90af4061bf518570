import logging
from typing import Iterable

from lumen_i18n.infrastructure.database.connection.base import BaseConnection
from lumen_i18n.infrastructure.database.models.catalog import CategoryModel, ProductModel
from lumen_i18n.infrastructure.database.query.results import MultipleQueryResult
from lumen_i18n.infrastructure.database.tables.base import BaseTable, escape_like
from lumen_i18n.infrastructure.database.tables.enums.catalog import (
    CategoriesTableAction,
    ProductsTableAction,
)

logger = logging.getLogger(__name__)

_PRODUCT_COLUMNS = "id::text AS id, sku, slug, category_id::text AS category_id"


class ProductsTable(BaseTable):
    """Read-only lookups over active catalog products."""

    __tablename__ = "products"

    def __init__(self, connection: BaseConnection):
        self.connection = connection

    async def find_by_ids(self, ids: Iterable[str], *, limit: int = 5) -> list[ProductModel]:
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return []
        result: MultipleQueryResult = await self.connection.fetchmany(
            sql=f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products
                WHERE status = 'active' AND id::text = ANY(%s)
                LIMIT %s
            """,
            params=(wanted, limit),
        )
        self._log(ProductsTableAction.FIND_BY_IDS, requested=len(wanted), count=len(result))
        return result.to_models(ProductModel)

    async def find_by_sku_or_slug(self, identifier: str, *, limit: int = 5) -> list[ProductModel]:
        result: MultipleQueryResult = await self.connection.fetchmany(
            sql=f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products
                WHERE status = 'active'
                  AND (lower(sku) = lower(%s) OR lower(slug) = lower(%s))
                LIMIT %s
            """,
            params=(identifier, identifier, limit),
        )
        self._log(
            ProductsTableAction.FIND_BY_SKU_OR_SLUG,
            identifier=identifier,
            count=len(result),
        )
        return result.to_models(ProductModel)

    async def find_by_prefix(self, prefix: str, *, limit: int = 5) -> list[ProductModel]:
        pattern = f"{escape_like(prefix)}%"
        result: MultipleQueryResult = await self.connection.fetchmany(
            sql=f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products
                WHERE status = 'active' AND (sku ILIKE %s OR slug ILIKE %s)
                ORDER BY sku
                LIMIT %s
            """,
            params=(pattern, pattern, limit),
        )
        self._log(ProductsTableAction.FIND_BY_PREFIX, prefix=prefix, count=len(result))
        return result.to_models(ProductModel)

    async def search_sku(self, term: str, *, limit: int = 10) -> list[ProductModel]:
        result: MultipleQueryResult = await self.connection.fetchmany(
            sql=f"""
                SELECT {_PRODUCT_COLUMNS}
                FROM products
                WHERE status = 'active' AND sku ILIKE %s
                ORDER BY sku
                LIMIT %s
            """,
            params=(f"%{escape_like(term)}%", limit),
        )
        self._log(ProductsTableAction.SEARCH_SKU, term=term, count=len(result))
        return result.to_models(ProductModel)


class CategoriesTable(BaseTable):
    """Read-only lookups over active catalog categories."""

    __tablename__ = "categories"

    def __init__(self, connection: BaseConnection):
        self.connection = connection

    async def find_by_ids(self, ids: Iterable[str], *, limit: int = 5) -> list[CategoryModel]:
        wanted = list(dict.fromkeys(ids))
        if not wanted:
            return []
        result: MultipleQueryResult = await self.connection.fetchmany(
            sql="""
                SELECT id::text AS id, slug
                FROM categories
                WHERE is_active = TRUE AND id::text = ANY(%s)
                LIMIT %s
            """,
            params=(wanted, limit),
        )
        self._log(CategoriesTableAction.FIND_BY_IDS, requested=len(wanted), count=len(result))
        return result.to_models(CategoryModel)

    async def find_by_slug(self, slug: str, *, limit: int = 5) -> list[CategoryModel]:
        result: MultipleQueryResult = await self.connection.fetchmany(
            sql="""
                SELECT id::text AS id, slug
                FROM categories
                WHERE is_active = TRUE AND lower(slug) = lower(%s)
                LIMIT %s
            """,
            params=(slug, limit),
        )
        self._log(CategoriesTableAction.FIND_BY_SLUG, slug=slug, count=len(result))
        return result.to_models(CategoryModel)

    async def find_by_prefix(self, prefix: str, *, limit: int = 5) -> list[CategoryModel]:
        result: MultipleQueryResult = await self.connection.fetchmany(
            sql="""
                SELECT id::text AS id, slug
                FROM categories
                WHERE is_active = TRUE AND slug ILIKE %s
                ORDER BY slug
                LIMIT %s
            """,
            params=(f"{escape_like(prefix)}%", limit),
        )
        self._log(CategoriesTableAction.FIND_BY_PREFIX, prefix=prefix, count=len(result))
        return result.to_models(CategoryModel)
