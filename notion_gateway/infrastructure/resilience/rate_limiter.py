"""Optional shared throttle for bulk operations.

A sliding-window limiter that callers opt into by passing the same instance
to every RetryingExecutor that should share a budget. Access is serialized
by an asyncio.Lock, so it is safe across tasks on one event loop. It is not
a process-wide singleton; single calls rely on reactive backoff instead.
"""

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable, Deque

logger = logging.getLogger(__name__)

# Notion's documented average rate
DEFAULT_MAX_REQUESTS = 3
DEFAULT_TIME_WINDOW_SECONDS = 1.0

class RateLimiter:
    """Simple sliding window rate limiter."""

    def __init__(
        self,
        max_requests: int = DEFAULT_MAX_REQUESTS,
        time_window: float = DEFAULT_TIME_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initializes the rate limiter.

        Args:
            max_requests: Maximum number of requests allowed in the time window.
            time_window: The time window in seconds.
            clock: Monotonic time source.
            sleep: Awaitable sleep, cancellable by task cancellation.
        """
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self.max_requests = max_requests
        self.time_window = time_window
        self._clock = clock
        self._sleep = sleep
        self.timestamps: Deque[float] = deque()
        self._lock = asyncio.Lock()
        logger.info(f"RateLimiter initialized: {max_requests} requests / {time_window} seconds")

    def _cleanup_timestamps(self) -> None:
        """Removes timestamps older than the time window."""
        now = self._clock()
        while self.timestamps and now - self.timestamps[0] >= self.time_window:
            self.timestamps.popleft()

    def _wait_time_locked(self) -> float:
        self._cleanup_timestamps()
        if len(self.timestamps) < self.max_requests:
            return 0.0
        return max(0.0, self.timestamps[0] + self.time_window - self._clock())

    async def get_wait_time(self) -> float:
        """Estimates the time needed before the next request can be made."""
        async with self._lock:
            return self._wait_time_locked()

    async def acquire(self) -> float:
        """Waits until a request is permitted and records it.

        Returns:
            Total seconds spent waiting.
        """
        waited = 0.0
        while True:
            async with self._lock:
                wait_time = self._wait_time_locked()
                if wait_time <= 0:
                    self.timestamps.append(self._clock())
                    logger.debug("Rate limit permission granted.")
                    return waited

            # Sleep outside the lock so other tasks can re-check
            logger.debug(f"Rate limit reached. Waiting for {wait_time:.3f} seconds.")
            await self._sleep(wait_time)
            waited += wait_time
