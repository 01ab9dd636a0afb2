"""Repository layer for data access and host facilities.

This layer implements the protocol-based interfaces the services depend on:
- in-memory cache stores
- the HTTP data provider
- the asyncio idle scheduler
- the logging notification sink

The repositories are protocol-based (structural typing), not inheritance-based.
Any class implementing the required methods will satisfy the protocol.
"""

from price_reconciler.protocols import CacheStore, DataProvider, IdleScheduler, NotificationSink

from .asyncio_idle import AsyncioIdleScheduler
from .http_data_provider import PLATFORMS, SNAPPFOOD, TAPSIFOOD, HttpDataProvider
from .logging_sink import LoggingNotificationSink
from .memory_cache import TTLCache

__all__ = [
    "AsyncioIdleScheduler",
    "CacheStore",
    "DataProvider",
    "HttpDataProvider",
    "IdleScheduler",
    "LoggingNotificationSink",
    "NotificationSink",
    "PLATFORMS",
    "SNAPPFOOD",
    "TAPSIFOOD",
    "TTLCache",
]
