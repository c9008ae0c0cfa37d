"""
Process-wide rate limiting for feed requests.

Every client in the process shares one limiter, so concurrently running
day jobs draw from the same request budget instead of each pausing on its
own.
"""

import asyncio
import time
from collections.abc import Callable

from paddock.config import get_settings


class RateLimiter:
    """Async token bucket with a cap on in-flight requests.

    ``acquire`` waits for a token and an in-flight slot; ``release`` frees
    the slot. Use it as ``async with limiter:`` around each request.
    """

    def __init__(
        self,
        rate_per_second: float,
        capacity: int = 1,
        max_in_flight: int = 1,
        clock: Callable[[], float] = time.monotonic,
    ):
        if rate_per_second <= 0:
            raise ValueError("rate_per_second must be positive")
        if capacity < 1 or max_in_flight < 1:
            raise ValueError("capacity and max_in_flight must be at least 1")

        self.rate_per_second = rate_per_second
        self.capacity = capacity
        self.max_in_flight = max_in_flight
        self._clock = clock
        self._tokens = float(capacity)
        self._updated_at = clock()
        self._in_flight = 0
        self._loop: asyncio.AbstractEventLoop | None = None
        self._lock: asyncio.Lock | None = None
        self._slots: asyncio.Semaphore | None = None

    @classmethod
    def from_interval_ms(cls, interval_ms: int, max_in_flight: int = 1) -> "RateLimiter":
        """One request per ``interval_ms`` milliseconds."""
        return cls(rate_per_second=1000 / max(interval_ms, 1), max_in_flight=max_in_flight)

    def _primitives(self) -> tuple[asyncio.Lock, asyncio.Semaphore]:
        # asyncio primitives belong to one loop; rebuild them if the loop changed.
        loop = asyncio.get_running_loop()
        if self._loop is not loop:
            self._loop = loop
            self._lock = asyncio.Lock()
            self._slots = asyncio.Semaphore(self.max_in_flight)
            self._in_flight = 0
        return self._lock, self._slots

    def _refill(self) -> None:
        now = self._clock()
        elapsed = max(now - self._updated_at, 0.0)
        self._tokens = min(self.capacity, self._tokens + elapsed * self.rate_per_second)
        self._updated_at = now

    async def acquire(self) -> None:
        """Wait until a request may be sent."""
        lock, slots = self._primitives()
        await slots.acquire()
        try:
            async with lock:
                self._refill()
                while self._tokens < 1:
                    await asyncio.sleep((1 - self._tokens) / self.rate_per_second)
                    self._refill()
                self._tokens -= 1
        except BaseException:
            slots.release()
            raise
        self._in_flight += 1

    def release(self) -> None:
        """Free the in-flight slot taken by ``acquire``."""
        if self._slots is None or self._in_flight == 0:
            raise RuntimeError("release() called without a matching acquire()")
        self._in_flight -= 1
        self._slots.release()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


_shared_limiter: RateLimiter | None = None


def get_shared_rate_limiter() -> RateLimiter:
    """The limiter shared by every feed client in this process."""
    global _shared_limiter
    if _shared_limiter is None:
        settings = get_settings()
        _shared_limiter = RateLimiter.from_interval_ms(
            settings.feed_rate_ms, max_in_flight=settings.feed_max_in_flight
        )
    return _shared_limiter
