"""Protocol interfaces for swappable implementations.

This package contains protocol definitions using structural typing.
Protocols enable:
- Easy swapping of implementations (HTTP provider -> fixture provider, etc.)
- Unit testing with fake pages and providers
- Clear separation between the core and its external collaborators

Usage:
    ```python
    from price_reconciler.protocols import DataProvider, PageAdapter

    # Type hints work with any implementation
    provider: DataProvider = HttpDataProvider.create()
    ```
"""

from .cache_store import CacheStore
from .data_provider import DataProvider
from .idle_scheduler import IdleScheduler
from .notification_sink import NotificationSink
from .page_adapter import MutationCallback, MutationRecord, MutationSubscription, PageAdapter

__all__ = [
    "CacheStore",
    "DataProvider",
    "IdleScheduler",
    "MutationCallback",
    "MutationRecord",
    "MutationSubscription",
    "NotificationSink",
    "PageAdapter",
]
