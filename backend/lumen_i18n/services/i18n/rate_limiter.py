from __future__ import annotations

import asyncio
import logging
from time import monotonic
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class TokenBucket:
    """Process-wide admission control in front of every provider call.

    Holds up to ``burst`` tokens refilled at ``rate_per_second``. ``acquire``
    suspends the caller until a token is available; a non-positive rate
    disables limiting.
    """

    def __init__(
        self,
        rate_per_second: float,
        burst: int = 1,
        *,
        clock: Callable[[], float] = monotonic,
        sleeper: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.rate_per_second = rate_per_second
        self.capacity = max(1, int(burst))
        self._tokens = float(self.capacity)
        self._clock = clock
        self._sleeper = sleeper
        self._updated_at = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(0.0, now - self._updated_at)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate_per_second)
        self._updated_at = now

    @property
    def available(self) -> float:
        self._refill()
        return self._tokens

    async def acquire(self) -> None:
        if self.rate_per_second <= 0:
            return
        async with self._lock:
            self._refill()
            while self._tokens < 1.0:
                wait_seconds = (1.0 - self._tokens) / self.rate_per_second
                logger.debug("Provider rate limit reached, waiting %.3fs", wait_seconds)
                await self._sleeper(wait_seconds)
                self._refill()
            self._tokens -= 1.0
