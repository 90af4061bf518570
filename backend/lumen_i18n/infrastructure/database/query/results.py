from typing import Any, Sequence, TypeVar

from pydantic import BaseModel

ModelT = TypeVar("ModelT", bound=BaseModel)


class SingleQueryResult:
    def __init__(self, row: dict[str, Any] | None) -> None:
        self.row = row

    def __bool__(self) -> bool:
        return self.row is not None

    def to_model(
        self, model: type[ModelT], *, raise_if_empty: bool = False
    ) -> ModelT | None:
        if self.row is None:
            if raise_if_empty:
                raise ValueError(f"Query returned no row for {model.__name__}")
            return None
        return model.model_validate(self.row)


class MultipleQueryResult:
    def __init__(self, rows: Sequence[dict[str, Any]] | None) -> None:
        self.rows = list(rows or [])

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self):
        return iter(self.rows)

    def to_models(self, model: type[ModelT]) -> list[ModelT]:
        return [model.model_validate(row) for row in self.rows]
