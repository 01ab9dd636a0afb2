"""Cache storage protocol.

Defines the interface for a bounded key-value store with time-to-live expiry
and least-recently-used eviction.

Several differently tuned instances run side by side, one per data class:
- vendor detail (mapping + item mappings)
- vendor list
- aggregate stats
- rating lookups
- search results
"""

from collections.abc import Hashable
from typing import Any, Protocol, runtime_checkable

from price_reconciler.entities import CacheStats


@runtime_checkable
class CacheStore(Protocol):
    """Protocol for in-memory cache stores.

    Any type that implements these methods satisfies the protocol, no explicit
    inheritance needed.

    Instances are not internally locked: all mutations are expected to happen
    on one event loop. Sharing an instance between independent concurrent
    writers requires external serialization.

    Example:
        ```python
        from price_reconciler.protocols import CacheStore

        store: CacheStore = TTLCache(capacity=200, ttl=300)
        ```
    """

    def get(self, key: Hashable, default: Any = None) -> Any:
        """Return the live value for key.

        A stale entry is removed and counted as a miss.

        Args:
            key: The lookup key
            default: Returned when the key is absent or stale

        Returns:
            The cached value or ``default``
        """
        ...

    def set(self, key: Hashable, value: Any) -> None:
        """Insert or refresh an entry, evicting the least recently used one
        when a new key arrives at capacity.

        Args:
            key: The lookup key
            value: The value to cache
        """
        ...

    def clear(self) -> int:
        """Drop every entry and reset the hit/miss counters.

        Returns:
            Number of entries dropped
        """
        ...

    def cleanup_expired(self) -> int:
        """Remove every stale entry regardless of access pattern.

        Returns:
            Number of entries removed
        """
        ...

    def stats(self) -> CacheStats:
        """Return size, capacity and hit/miss counters."""
        ...
