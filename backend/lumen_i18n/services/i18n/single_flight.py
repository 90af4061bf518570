from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Hashable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SingleFlight:
    """Collapse concurrent calls for the same key into one underlying await.

    The first caller for a key starts the factory as its own task; every caller,
    the first one included, awaits that task through ``asyncio.shield``. A
    cancelled caller therefore never cancels the work the others wait on. The
    key is released as soon as the task settles, so a later call starts fresh.
    """

    def __init__(self) -> None:
        self._in_flight: dict[Hashable, asyncio.Task] = {}

    def __contains__(self, key: Hashable) -> bool:
        return key in self._in_flight

    def __len__(self) -> int:
        return len(self._in_flight)

    def _release(self, key: Hashable, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark retrieved so a failure every caller abandoned does not log a warning.
        if not task.cancelled():
            task.exception()

    async def run(self, key: Hashable, factory: Callable[[], Awaitable[T]]) -> T:
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(factory())
            self._in_flight[key] = task
            task.add_done_callback(lambda done, key=key: self._release(key, done))
        else:
            logger.debug("Joining in-flight call for %r", key)
        return await asyncio.shield(task)
