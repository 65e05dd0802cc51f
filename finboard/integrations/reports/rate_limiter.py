"""
Report Request Pacer
Spaces provider calls to respect per-minute request budgets.

Xero allows 60 calls/minute per organisation and QBO throttles bursts, so
month-by-month fetch loops must be paced. Time is read through an
injected Clock so pacing can be tested without real delays.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


class Clock(Protocol):
    """Time source used for pacing and retry waits."""

    def monotonic(self) -> float:
        ...

    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock:
    """Wall clock backed by time.monotonic and asyncio.sleep."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class RequestPacer:
    """
    Enforces a minimum interval between calls and an optional
    calls-per-minute window.

    Usage:
        pacer = RequestPacer(min_interval=0.125, calls_per_minute=60)
        for month in months:
            await pacer.acquire()
            await fetch(month)
    """

    WINDOW_SECONDS = 60.0

    def __init__(
        self,
        min_interval: float = 0.0,
        calls_per_minute: Optional[int] = None,
        clock: Optional[Clock] = None,
    ):
        """
        Initialize pacer.

        Args:
            min_interval: Seconds that must separate consecutive calls
            calls_per_minute: Maximum calls in any 60s window (None = unlimited)
            clock: Time source (defaults to SystemClock)
        """
        if min_interval < 0:
            raise ValueError("min_interval must be non-negative")
        if calls_per_minute is not None and calls_per_minute <= 0:
            raise ValueError("calls_per_minute must be positive")

        self.min_interval = min_interval
        self.calls_per_minute = calls_per_minute
        self.clock = clock or SystemClock()
        self._call_timestamps: deque[float] = deque()
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()

    def _required_wait(self, now: float) -> float:
        wait = 0.0

        if self._last_call is not None:
            wait = max(wait, self._last_call + self.min_interval - now)

        if self.calls_per_minute is not None:
            cutoff = now - self.WINDOW_SECONDS
            while self._call_timestamps and self._call_timestamps[0] <= cutoff:
                self._call_timestamps.popleft()

            if len(self._call_timestamps) >= self.calls_per_minute:
                # Wait until the oldest call leaves the window
                wait = max(wait, self._call_timestamps[0] + self.WINDOW_SECONDS - now)

        return wait

    async def acquire(self) -> float:
        """
        Wait until a call is allowed, then record it.

        Returns:
            Seconds spent waiting
        """
        async with self._lock:
            waited = 0.0
            wait = self._required_wait(self.clock.monotonic())

            while wait > 0:
                if wait >= 1.0:
                    logger.info("Request budget reached. Waiting %.1f seconds...", wait)
                await self.clock.sleep(wait)
                waited += wait
                wait = self._required_wait(self.clock.monotonic())

            now = self.clock.monotonic()
            self._last_call = now
            self._call_timestamps.append(now)
            return waited
