import logging
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)


class BaseTable:
    __tablename__: str = ""

    def _log(self, action: Enum, **context: Any) -> None:
        details = " ".join(f"{key}={value!r}" for key, value in sorted(context.items()))
        logger.debug("table=%s action=%s %s", self.__tablename__, action.value, details)


def escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
