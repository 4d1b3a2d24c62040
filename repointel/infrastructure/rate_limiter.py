"""Quota-aware rate limiter for outbound GitHub API calls."""
import asyncio
import logging
import threading
import time
from typing import Awaitable, Callable


logger = logging.getLogger(__name__)

# GitHub quota windows last an hour; headers override this estimate.
QUOTA_WINDOW_SECONDS = 3600


class RateLimiter:
    """Throttles GitHub calls by remaining quota and minimum request spacing.

    Shared by every concurrent request. The state transition (quota reset,
    wait computation, commit of the request slot) happens under a lock that
    is never held across a suspension: a caller that must wait releases the
    lock, sleeps, and re-checks. A caller cancelled while sleeping therefore
    never consumes quota.
    """

    def __init__(
        self,
        max_quota: int = 5000,
        low_water_mark: int = 100,
        min_interval: float = 0.1,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    ):
        """Initialize rate limiter.

        Args:
            max_quota: Requests available per quota window
            low_water_mark: Remaining count at or below which callers wait for the reset
            min_interval: Minimum spacing between two requests in seconds
            clock: Returns the current epoch time in seconds
            sleep: Coroutine used to suspend the caller
        """
        self._max_quota = max_quota
        self._low_water_mark = low_water_mark
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._lock = threading.Lock()
        self._remaining = max_quota
        self._reset_time = 0.0
        self._last_request_time = 0.0

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def reset_time(self) -> float:
        return self._reset_time

    @property
    def last_request_time(self) -> float:
        return self._last_request_time

    def _reserve(self) -> float:
        """Commit a request slot, or return how long to wait before retrying."""
        with self._lock:
            now = self._clock()
            if now >= self._reset_time:
                self._remaining = self._max_quota
                self._reset_time = now + QUOTA_WINDOW_SECONDS

            wait_time = 0.0
            if self._remaining <= self._low_water_mark:
                wait_time = max(self._reset_time - now, 0.0)

            since_last = now - self._last_request_time
            if since_last < self._min_interval:
                wait_time = max(wait_time, self._min_interval - since_last)

            if wait_time <= 0:
                self._last_request_time = now
                self._remaining -= 1
            return wait_time

    async def wait_if_needed(self) -> None:
        """Suspend until it is safe to issue the next external call."""
        while True:
            wait_time = self._reserve()
            if wait_time <= 0:
                return
            if wait_time > self._min_interval:
                logger.warning(
                    f"Rate limit nearly exhausted ({self._remaining} remaining). "
                    f"Waiting {wait_time:.1f} seconds until reset"
                )
            await self._sleep(wait_time)

    def update_limits(self, remaining: int, reset_epoch_seconds: float) -> None:
        """Reconcile with the quota reported by the last response headers.

        Args:
            remaining: Remaining request count
            reset_epoch_seconds: Epoch second at which the quota window resets
        """
        with self._lock:
            self._remaining = remaining
            self._reset_time = float(reset_epoch_seconds)
        logger.debug(f"Rate limit remaining: {remaining}, resets at: {reset_epoch_seconds}")
