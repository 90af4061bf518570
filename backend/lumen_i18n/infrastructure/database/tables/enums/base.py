from enum import Enum


class BaseTableActionEnum(str, Enum):
    def __str__(self) -> str:
        return self.value
