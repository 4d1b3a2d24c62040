"""Time-boxed in-memory cache for search results."""
import logging
import math
import threading
import time
from typing import Callable, Generic, Optional, TypeVar
from cachetools import TTLCache


logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_TTL_SECONDS = 15 * 60


class ResultCache(Generic[T]):
    """TTL cache with lazy expiry.

    An entry is valid while ``now - inserted_at < ttl``; at exactly ``ttl``
    it is expired. Expired entries are purged on access. The default size
    cap is unbounded, so keys must come from a bounded query space unless a
    finite ``max_size`` is given.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        max_size: float = math.inf
    ):
        """Initialize result cache.

        Args:
            ttl_seconds: Lifetime of every entry
            clock: Returns the current epoch time in seconds
            max_size: Entry cap; least recently used entries are evicted first
        """
        self._ttl = ttl_seconds
        self._entries: TTLCache = TTLCache(maxsize=max_size, ttl=ttl_seconds, timer=clock)
        self._lock = threading.Lock()

    @property
    def ttl(self) -> float:
        return self._ttl

    def get(self, key: str) -> Optional[T]:
        """Return the cached value, or None when absent or expired."""
        with self._lock:
            self._entries.expire()
            value = self._entries.get(key)
        if value is None:
            logger.debug(f"Cache miss: {key}")
        return value

    def set(self, key: str, value: T) -> None:
        """Store a value, overwriting any previous (possibly stale) entry."""
        with self._lock:
            self._entries[key] = value

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            self._entries.expire()
            return len(self._entries)
