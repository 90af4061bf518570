from lumen_i18n.infrastructure.database.tables.enums.base import BaseTableActionEnum


class ProductsTableAction(BaseTableActionEnum):
    FIND_BY_IDS = "find_by_ids"
    FIND_BY_SKU_OR_SLUG = "find_by_sku_or_slug"
    FIND_BY_PREFIX = "find_by_prefix"
    SEARCH_SKU = "search_sku"


class CategoriesTableAction(BaseTableActionEnum):
    FIND_BY_IDS = "find_by_ids"
    FIND_BY_SLUG = "find_by_slug"
    FIND_BY_PREFIX = "find_by_prefix"
