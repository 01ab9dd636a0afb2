"""Price Reconciler - cross-platform food price comparison for live pages.

This package provides a layered architecture around an incremental
reconciliation core:

Layers:
    - protocols: Interface contracts (CacheStore, DataProvider, PageAdapter, ...)
    - repositories: Implementations (TTLCache, HttpDataProvider, ...)
    - services: Reconciliation, comparison, ranking and orchestration
    - handlers: HTTP endpoint handlers
    - dto: Data transfer objects (API contracts)
    - entities: Domain models (internal)

Usage:
    ```python
    from price_reconciler.services import PageSession, PriceService

    # Using class methods (recommended, like Path.home())
    prices = PriceService.create()
    session = PageSession.create(adapter, prices)
    await session.start()
    ```

For HTTP API:
    ```python
    from price_reconciler.api.app import app
    ```
"""

from price_reconciler.config import configure_logging, settings
from price_reconciler.dto import FetchPricesRequest, SearchRequest
from price_reconciler.entities import (
    CacheStats,
    ComparisonRecord,
    DecorationKey,
    PriceComparison,
    ProductRecord,
    VendorMapping,
)
from price_reconciler.errors import (
    ConnectionFailure,
    MalformedResponse,
    MappingAbsent,
    ProviderFailure,
    TimeoutFailure,
    UpstreamFailure,
    describe_failure,
)
from price_reconciler.handlers import PriceHandler
from price_reconciler.protocols import CacheStore, DataProvider, IdleScheduler, NotificationSink, PageAdapter
from price_reconciler.repositories import HttpDataProvider, TTLCache
from price_reconciler.services import (
    Debouncer,
    FuzzyRanker,
    PageSession,
    PriceService,
    ReconciliationScheduler,
    Throttler,
    compare,
)

__all__ = [
    # Configuration
    "settings",
    "configure_logging",
    # Protocols (interfaces)
    "CacheStore",
    "DataProvider",
    "IdleScheduler",
    "NotificationSink",
    "PageAdapter",
    # Services (business logic)
    "Debouncer",
    "FuzzyRanker",
    "PageSession",
    "PriceService",
    "ReconciliationScheduler",
    "Throttler",
    "compare",
    # Handlers (HTTP)
    "PriceHandler",
    # Repositories (data access)
    "HttpDataProvider",
    "TTLCache",
    # Entities (domain models)
    "CacheStats",
    "ComparisonRecord",
    "DecorationKey",
    "PriceComparison",
    "ProductRecord",
    "VendorMapping",
    # Errors
    "ConnectionFailure",
    "MalformedResponse",
    "MappingAbsent",
    "ProviderFailure",
    "TimeoutFailure",
    "UpstreamFailure",
    "describe_failure",
    # DTOs (API contracts)
    "FetchPricesRequest",
    "SearchRequest",
]
