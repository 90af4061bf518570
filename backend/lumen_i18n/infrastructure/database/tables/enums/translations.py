from lumen_i18n.infrastructure.database.tables.enums.base import BaseTableActionEnum


class TranslationsTableAction(BaseTableActionEnum):
    GET = "get"
    GET_MANY = "get_many"
    UPSERT = "upsert"
    UPSERT_MANY = "upsert_many"
    LIST_BY_LANGUAGE = "list_by_language"
    SEARCH_VALUES = "search_values"
    DELETE_KEY = "delete_key"
