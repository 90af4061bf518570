from abc import ABC, abstractmethod
from typing import Any, Sequence

from lumen_i18n.infrastructure.database.query.results import (
    MultipleQueryResult,
    SingleQueryResult,
)


class BaseConnection(ABC):
    @abstractmethod
    async def execute(self, sql: str, params: Sequence[Any] | None = None) -> int:
        """Run a statement and return the affected row count."""

    @abstractmethod
    async def fetchone(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> SingleQueryResult:
        ...

    @abstractmethod
    async def fetchmany(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> MultipleQueryResult:
        ...

    @abstractmethod
    async def insert_and_fetchone(
        self, sql: str, params: Sequence[Any] | None = None
    ) -> SingleQueryResult:
        ...
