"""In-memory implementation of CacheStore.

Entries live in an ordered mapping: the head is the least recently used entry,
every ``get`` hit and every ``set`` moves the key to the tail.
"""

import logging
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any

from price_reconciler.entities import CacheEntryEntity, CacheStats

logger = logging.getLogger(__name__)


class TTLCache:
    """Bounded TTL + LRU cache.

    This class satisfies the CacheStore protocol through structural
    typing - no explicit inheritance needed.

    Expiry is lazy on access and eager in ``cleanup_expired``, which callers
    run on a timer so that keys that are never requested again still leave.

    Example:
        ```python
        cache = TTLCache(capacity=2, ttl=1.0)
        cache.set("A", 1)
        cache.set("B", 2)
        cache.set("C", 3)   # evicts "A"
        cache.get("A")      # None
        ```
    """

    def __init__(
        self,
        capacity: int,
        ttl: float,
        name: str = "cache",
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            capacity: Maximum number of entries (at least 1).
            ttl: Time-to-live in seconds (positive).
            name: Label used in logs and stats reports.
            clock: Monotonic clock returning seconds.
        """
        if capacity < 1:
            raise ValueError(f"capacity must be at least 1, got {capacity}")
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")

        self._capacity = capacity
        self._ttl = ttl
        self._name = name
        self._clock = clock
        self._entries: OrderedDict[Hashable, CacheEntryEntity] = OrderedDict()
        self._counter = 0
        self._hits = 0
        self._misses = 0

    @classmethod
    def create(cls, capacity: int, ttl: float, name: str = "cache") -> "TTLCache":
        """Factory method using the default monotonic clock.

        Args:
            capacity: Maximum number of entries.
            ttl: Time-to-live in seconds.
            name: Label used in logs and stats reports.

        Returns:
            Configured TTLCache
        """
        return cls(capacity=capacity, ttl=ttl, name=name)

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the live value for key.

        Args:
            key: The lookup key
            default: Returned when the key is absent or stale

        Returns:
            The cached value or ``default``
        """
        entry = self._entries.get(key)
        if entry is not None and entry.is_alive(self._clock()):
            self._hits += 1
            self._entries.move_to_end(key)
            return entry.value

        if entry is not None:
            del self._entries[key]
            logger.debug("%s: expired %r", self._name, key)

        self._misses += 1
        return default

    def set(self, key: Hashable, value: Any) -> None:
        """Insert or refresh an entry.

        Args:
            key: The lookup key
            value: The value to cache
        """
        if key in self._entries:
            self._entries.move_to_end(key)
        elif len(self._entries) >= self._capacity:
            evicted, _ = self._entries.popitem(last=False)
            logger.debug("%s: evicted %r", self._name, evicted)

        self._counter += 1
        self._entries[key] = CacheEntryEntity(
            key=key,
            value=value,
            expiry_time=self._clock() + self._ttl,
            insertion_order=self._counter,
        )

    def clear(self) -> int:
        """Drop every entry and reset counters.

        Returns:
            Number of entries dropped
        """
        size = len(self._entries)
        self._entries.clear()
        self._hits = 0
        self._misses = 0
        logger.debug("%s: cleared %d entries", self._name, size)
        return size

    def cleanup_expired(self) -> int:
        """Remove every stale entry.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        stale = [key for key, entry in self._entries.items() if not entry.is_alive(now)]
        for key in stale:
            del self._entries[key]

        if stale:
            logger.debug("%s: cleanup removed %d expired entries", self._name, len(stale))
        return len(stale)

    def stats(self) -> CacheStats:
        """Return size, capacity and hit/miss counters."""
        return CacheStats(
            size=len(self._entries),
            capacity=self._capacity,
            hits=self._hits,
            misses=self._misses,
        )

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        """Membership test without touching recency or counters."""
        entry = self._entries.get(key)
        return entry is not None and entry.is_alive(self._clock())

    @property
    def name(self) -> str:
        """Get the cache label."""
        return self._name

    @property
    def ttl(self) -> float:
        """Get the time-to-live in seconds."""
        return self._ttl

    @property
    def capacity(self) -> int:
        """Get the maximum number of entries."""
        return self._capacity
