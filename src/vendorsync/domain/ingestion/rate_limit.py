"""Long-term request budget shared by every request of a vendor run."""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

log = logging.getLogger(__name__)

ONE_HOUR = 3600.0


class RequestBudget:
    """Minimum spacing between requests plus a rolling hourly ceiling.

    The hourly ceiling is enforced over a sliding window: once ``max_per_window``
    requests were issued during the last ``window`` seconds, :meth:`acquire`
    sleeps until the oldest of them leaves the window. Reaching the ceiling is a
    scheduled pause, never an error.
    """

    def __init__(
        self,
        *,
        min_interval: float = 0.0,
        max_per_window: int | None = None,
        window: float = ONE_HOUR,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        if max_per_window is not None and max_per_window < 1:
            raise ValueError("max_per_window must be at least 1")
        self.min_interval = min_interval
        self.max_per_window = max_per_window
        self.window = window
        self._clock = clock
        self._sleep = sleep
        self._issued: deque[float] = deque()
        self._last: float | None = None
        self._started: float | None = None
        self.total = 0
        self.pauses = 0

    async def acquire(self) -> None:
        now = self._clock()
        if self._last is not None and self.min_interval:
            wait = self._last + self.min_interval - now
            if wait > 0:
                await self._sleep(wait)
                now = self._clock()

        if self.max_per_window is not None:
            self._prune(now)
            while len(self._issued) >= self.max_per_window:
                wait = self._issued[0] + self.window - now
                if wait > 0:
                    self.pauses += 1
                    log.info(
                        "Request ceiling of %s per %.0f s reached; pausing %.1f s",
                        self.max_per_window,
                        self.window,
                        wait,
                    )
                    await self._sleep(wait)
                    now = self._clock()
                self._prune(now)

        self._issued.append(now)
        self._last = now
        if self._started is None:
            self._started = now
        self.total += 1

    def in_window(self) -> int:
        self._prune(self._clock())
        return len(self._issued)

    def hourly_rate(self) -> float:
        """Observed requests per hour since the first request."""

        if self._started is None:
            return 0.0
        elapsed = self._clock() - self._started
        if elapsed <= 0:
            return float(self.total)
        return self.total * ONE_HOUR / elapsed

    def _prune(self, now: float) -> None:
        horizon = now - self.window
        while self._issued and self._issued[0] <= horizon:
            self._issued.popleft()
