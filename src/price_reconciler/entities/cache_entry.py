"""Cache entry domain entities."""

from dataclasses import dataclass
from typing import Generic, TypeVar

K = TypeVar("K")
V = TypeVar("V")


@dataclass
class CacheEntryEntity(Generic[K, V]):
    """A value held by an in-memory cache store.

    Entries are owned by exactly one store and never handed out; callers only
    ever see ``value``.

    Attributes:
        key: The lookup key
        value: The cached value
        expiry_time: Clock reading after which the entry is stale
        insertion_order: Monotonic counter assigned on every write
    """

    key: K
    value: V
    expiry_time: float
    insertion_order: int

    def is_alive(self, now: float) -> bool:
        """Return True while ``now`` is strictly before the expiry time."""
        return now < self.expiry_time


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time statistics for one cache store."""

    size: int
    capacity: int
    hits: int
    misses: int

    @property
    def hit_rate(self) -> float | None:
        """Hits over lookups, or None before the first lookup."""
        total = self.hits + self.misses
        if total == 0:
            return None
        return self.hits / total

    def to_dict(self) -> dict[str, float | int | None]:
        """Convert stats to dictionary."""
        return {
            "size": self.size,
            "capacity": self.capacity,
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
        }
