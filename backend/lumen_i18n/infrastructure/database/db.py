from lumen_i18n.infrastructure.database.connection.base import BaseConnection
from lumen_i18n.infrastructure.database.tables.catalog import CategoriesTable, ProductsTable
from lumen_i18n.infrastructure.database.tables.translations import TranslationsTable


class DB:
    def __init__(self, connection: BaseConnection) -> None:
        self.translations = TranslationsTable(connection=connection)
        self.products = ProductsTable(connection=connection)
        self.categories = CategoriesTable(connection=connection)
