"""In-process cache for dashboard statistics."""
import logging
import time
from typing import Dict, Generic, Optional, Tuple, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class StatsCache(Generic[V]):
    """Time-bounded cache of computed dashboard stats.

    Order writes call ``invalidate`` so a cached value never outlives a change
    to the orders it was computed from. A TTL of 0 disables caching.
    """

    def __init__(self, ttl_seconds: float):
        self.ttl_seconds = ttl_seconds
        self._entries: Dict[str, Tuple[float, V]] = {}

    def get(self, key: str) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if time.monotonic() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: V) -> None:
        if self.ttl_seconds <= 0:
            return
        self._entries[key] = (time.monotonic() + self.ttl_seconds, value)

    def invalidate(self) -> None:
        if self._entries:
            logger.debug(f"[STATS CACHE] Invalidating {len(self._entries)} cached entries")
        self._entries.clear()
