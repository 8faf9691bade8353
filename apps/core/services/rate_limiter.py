"""Fixed-window rate limiter for outbound OpenDota calls."""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING, NamedTuple

import structlog

from apps.core.conf import DEFAULT_RATE_LIMIT, DEFAULT_RATE_WINDOW_S

if TYPE_CHECKING:
    from collections.abc import Callable

log = structlog.get_logger(__name__).bind(component="RateLimiter")


class RateLimitStatus(NamedTuple):
    used: int
    limit: int
    resets_in_s: float


class RateLimiter:
    """
    At most ``limit`` acquisitions inside any window of ``window_s`` seconds.

    The counter and the window start are shared by every concurrent request
    in the process and are only touched while holding ``_lock``. Waiters on
    the lock are woken in arrival order, so callers are served FIFO. The
    limiter never rejects; it only delays.
    """

    def __init__(
        self,
        limit: int = DEFAULT_RATE_LIMIT,
        window_s: float = DEFAULT_RATE_WINDOW_S,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            msg = "limit must be a positive integer"
            raise ValueError(msg)
        if window_s <= 0:
            msg = "window_s must be positive"
            raise ValueError(msg)
        self.limit = limit
        self.window_s = window_s
        self._clock = clock
        self._count = 0
        self._window_start = clock()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        async with self._lock:
            now = self._clock()
            if now - self._window_start >= self.window_s:
                self._count = 0
                self._window_start = now

            if self._count >= self.limit:
                wait = self.window_s - (now - self._window_start)
                if wait > 0:
                    log.debug("Rate limit reached, waiting", wait_s=round(wait, 2), limit=self.limit)
                    await asyncio.sleep(wait)
                self._count = 0
                self._window_start = self._clock()

            self._count += 1

    def status(self) -> RateLimitStatus:
        elapsed = self._clock() - self._window_start
        if elapsed >= self.window_s:
            return RateLimitStatus(0, self.limit, 0.0)
        return RateLimitStatus(self._count, self.limit, round(self.window_s - elapsed, 2))

    async def reset(self) -> None:
        async with self._lock:
            self._count = 0
            self._window_start = self._clock()
