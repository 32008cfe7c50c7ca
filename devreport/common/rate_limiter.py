import asyncio
import logging
import time
from typing import Callable

from devreport.common.exceptions import RequestCancelled

logger = logging.getLogger(__name__)


class TokenBucketLimiter:
    """Token bucket shared by every worker talking to one remote service.

    Tokens refill continuously at ``requests_per_minute / 60`` per second up to
    ``burst``. The lock only guards the bucket itself; waiters sleep outside it,
    so every waiter blocks until it gets a token or its own cancellation event
    is set, regardless of other waiters.
    """

    def __init__(
        self,
        *,
        requests_per_minute: float,
        burst: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.rate = max(0.0, requests_per_minute) / 60.0
        self.capacity = max(1, burst)
        self.clock = clock
        self.tokens = float(self.capacity)
        self.updated_at = clock()
        self.lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self.clock()
        elapsed = max(0.0, now - self.updated_at)
        self.updated_at = now
        self.tokens = min(float(self.capacity), self.tokens + elapsed * self.rate)

    def _seconds_until_token(self) -> float | None:
        if self.rate <= 0:
            return None  # Never refills
        return max(0.0, (1.0 - self.tokens) / self.rate)

    async def acquire(self, cancel_event: asyncio.Event | None = None) -> None:
        while True:
            if cancel_event is not None and cancel_event.is_set():
                raise RequestCancelled("Cancelled while waiting for a rate limit token")

            async with self.lock:
                self._refill()
                if self.tokens >= 1.0:
                    self.tokens -= 1.0
                    return
                wait_time = self._seconds_until_token()

            logger.debug(f"Rate limit reached, waiting {wait_time} seconds for a token")
            await self._wait(wait_time, cancel_event)

    async def _wait(
        self, wait_time: float | None, cancel_event: asyncio.Event | None
    ) -> None:
        if cancel_event is None:
            if wait_time is None:
                # Nothing will ever refill the bucket and nobody can cancel us
                await asyncio.Event().wait()
            else:
                await asyncio.sleep(wait_time)
            return

        try:
            await asyncio.wait_for(cancel_event.wait(), timeout=wait_time)
        except asyncio.TimeoutError:
            return
