"""Performance metrics for provider lookups."""

import time
from collections import deque
from dataclasses import dataclass, field


@dataclass
class PerformanceMetrics:
    """Track performance metrics for data provider calls."""

    api_calls: int = 0
    cache_hits: int = 0
    cache_misses: int = 0
    errors: int = 0
    start_time: float = field(default_factory=time.time)
    response_times_ms: deque[float] = field(default_factory=lambda: deque(maxlen=10))

    @property
    def average_response_time_ms(self) -> float:
        """Rolling average over the most recent responses."""
        if not self.response_times_ms:
            return 0.0
        return sum(self.response_times_ms) / len(self.response_times_ms)

    @property
    def uptime_seconds(self) -> float:
        """Seconds since the metrics were created."""
        return time.time() - self.start_time

    def record_call(self, duration_ms: float) -> None:
        """Record a completed provider call."""
        self.api_calls += 1
        self.response_times_ms.append(duration_ms)

    def record_error(self) -> None:
        """Record a failed provider call."""
        self.errors += 1

    def record_hit(self) -> None:
        """Record a cache hit."""
        self.cache_hits += 1

    def record_miss(self) -> None:
        """Record a cache miss."""
        self.cache_misses += 1

    def to_dict(self) -> dict[str, float | int | str]:
        """Convert metrics to dictionary."""
        return {
            "api_calls": self.api_calls,
            "cache_hits": self.cache_hits,
            "cache_misses": self.cache_misses,
            "errors": self.errors,
            "average_response_time_ms": round(self.average_response_time_ms, 2),
            "uptime_seconds": round(self.uptime_seconds, 1),
            "uptime": format_uptime(self.uptime_seconds),
        }


def format_uptime(seconds: float) -> str:
    """Format a duration as ``1d 2h 3m``, ``2h 3m 4s``, ``3m 4s`` or ``4s``."""
    total = int(seconds)
    minutes, secs = divmod(total, 60)
    hours, minutes = divmod(minutes, 60)
    days, hours = divmod(hours, 24)

    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    if minutes > 0:
        return f"{minutes}m {secs}s"
    return f"{secs}s"
