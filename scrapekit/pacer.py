"""Minimum-interval pacing between successive fetches."""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


class Pacer:
    """Keeps successive fetches of one engine at least *min_interval* apart.

    The pacer remembers when the last fetch was issued.  Each engine owns
    its own pacer unless one is injected into several engines on purpose.
    ``clock`` and the sleep functions are injectable so tests can drive
    time by hand.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
        async_sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._clock = clock
        self._sleep = sleep
        self._async_sleep = async_sleep
        self._last_fetch: float | None = None
        self._lock = threading.Lock()
        self._async_lock: asyncio.Lock | None = None

    @property
    def last_fetch(self) -> float | None:
        return self._last_fetch

    def _remaining(self, min_interval: float) -> float:
        if self._last_fetch is None or min_interval <= 0:
            return 0.0
        return max(0.0, self._last_fetch + min_interval - self._clock())

    def mark(self) -> None:
        """Record a fetch issued now."""
        self._last_fetch = self._clock()

    def wait_if_needed(self, min_interval: float) -> None:
        """Block until *min_interval* has passed since the last fetch, then mark."""
        with self._lock:
            remaining = self._remaining(min_interval)
            if remaining > 0:
                logger.debug("pacer: sleeping %.3fs", remaining)
                self._sleep(remaining)
            self.mark()

    async def wait_if_needed_async(self, min_interval: float) -> None:
        """Suspend until *min_interval* has passed since the last fetch, then mark.

        Concurrent waiters on the same pacer are served one at a time.
        """
        if self._async_lock is None:
            self._async_lock = asyncio.Lock()
        async with self._async_lock:
            remaining = self._remaining(min_interval)
            if remaining > 0:
                logger.debug("pacer: sleeping %.3fs", remaining)
                await self._async_sleep(remaining)
            self.mark()
