# File: url_scout/ratelimit.py
"""Global request-rate limiter shared by all providers of a run."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Optional


class RateLimiter:
    """Spaces requests at least ``1 / rate`` seconds apart. ``rate=None`` disables it."""

    def __init__(
        self,
        rate: Optional[float] = None,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.rate = rate
        self._clock = clock
        self._sleep = sleep
        self._lock = asyncio.Lock()
        self._last_request_ts: Optional[float] = None

    @property
    def interval(self) -> float:
        return 0.0 if not self.rate else 1.0 / self.rate

    async def wait(self) -> None:
        if not self.rate:
            return
        async with self._lock:
            now = self._clock()
            if self._last_request_ts is not None:
                wait = self.interval - (now - self._last_request_ts)
                if wait > 0:
                    await self._sleep(wait)
            self._last_request_ts = self._clock()
