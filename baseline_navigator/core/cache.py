"""
TTL cache used for analysis and recommendation results.

Every entry stores its own expiry timestamp, checked on each read, so an
entry is never served past its TTL even if no sweep has run yet.
"""

import logging
import time
from collections import OrderedDict
from typing import Any, Callable, Dict, Generic, Optional, Tuple, TypeVar

V = TypeVar("V")


class TTLCache(Generic[V]):
    """
    In-memory key/value cache with per-entry expiry.

    Features:
    - Time-to-live (TTL) expiration checked on read
    - LRU (Least Recently Used) eviction past max_size
    - Optional sweep of expired entries
    - Injectable clock for deterministic tests

    Not thread-safe: the pipeline runs on a single event loop.
    """

    def __init__(
        self,
        ttl: float = 300.0,
        max_size: int = 256,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ):
        """
        Initialize cache.

        Args:
            ttl: Time to live in seconds (default 5 minutes)
            max_size: Maximum number of cached items
            clock: Monotonic time source in seconds
            name: Label used in log messages
        """
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")

        self.ttl = ttl
        self.max_size = max_size
        self.name = name
        self._clock = clock
        self._entries: "OrderedDict[str, Tuple[V, float]]" = OrderedDict()
        self.logger = logging.getLogger("cache")

        # Statistics
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[V]:
        """
        Get cached value by key.

        Returns:
            The value if present and not expired, None otherwise
        """
        entry = self._entries.get(key)
        if entry is None:
            self._misses += 1
            return None

        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            self._misses += 1
            self.logger.debug(f"{self.name}: expired {key}")
            return None

        self._entries.move_to_end(key)
        self._hits += 1
        self.logger.debug(f"{self.name}: hit {key}")
        return value

    def set(self, key: str, value: V, ttl: Optional[float] = None) -> None:
        """
        Store a value; the expiry is fixed at insertion time.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Optional per-entry override of the default TTL
        """
        if key in self._entries:
            del self._entries[key]

        while len(self._entries) >= self.max_size:
            oldest_key, _ = self._entries.popitem(last=False)
            self.logger.debug(f"{self.name}: evicted {oldest_key}")

        lifetime = self.ttl if ttl is None else ttl
        self._entries[key] = (value, self._clock() + lifetime)
        self.logger.debug(f"{self.name}: cached {key}")

    def delete(self, key: str) -> bool:
        """Remove an entry. Returns True if it existed."""
        if key in self._entries:
            del self._entries[key]
            return True
        return False

    def clear(self) -> None:
        """Clear all cached items."""
        self._entries.clear()
        self.logger.info(f"{self.name}: cleared")

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        expired = [key for key, (_, expires_at) in self._entries.items() if now >= expires_at]
        for key in expired:
            del self._entries[key]

        if expired:
            self.logger.info(f"{self.name}: cleaned up {len(expired)} expired entries")
        return len(expired)

    def get_stats(self) -> Dict[str, Any]:
        """
        Get cache statistics.

        Returns:
            Dict with hits, misses, size, and hit ratio
        """
        total = self._hits + self._misses
        return {
            'name': self.name,
            'hits': self._hits,
            'misses': self._misses,
            'size': len(self._entries),
            'max_size': self.max_size,
            'hit_ratio': self._hits / total if total > 0 else 0.0,
            'ttl': self.ttl,
        }

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        """Check if key is live (doesn't update LRU order or stats)."""
        entry = self._entries.get(key)
        return entry is not None and self._clock() < entry[1]


def create_cache(
    config: Optional[Dict[str, Any]] = None,
    clock: Callable[[], float] = time.monotonic,
) -> TTLCache:
    """
    Factory function to create a TTLCache with configuration.

    Args:
        config: Optional dict with 'ttl', 'max_size' and 'name'
        clock: Time source

    Returns:
        TTLCache: Configured cache instance
    """
    if config is None:
        config = {}

    return TTLCache(
        ttl=config.get('ttl', 300.0),
        max_size=config.get('max_size', 256),
        clock=clock,
        name=config.get('name', 'cache'),
    )
