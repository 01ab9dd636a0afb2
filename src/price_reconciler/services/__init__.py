"""Service layer for business logic.

This layer contains the reconciliation core and the orchestration around it.
Services depend on protocols (interfaces), not concrete implementations,
making them testable and flexible.

Architecture:
    Handler -> Service -> Repository
    (HTTP)  -> (Business) -> (Data Access)

Usage:
    ```python
    from price_reconciler.services import PageSession, PriceService

    # Using factory methods (recommended)
    prices = PriceService.create()
    session = PageSession.create(adapter, prices)

    # Or manual creation
    prices = PriceService(provider=provider, vendor_cache=..., vendor_list_cache=..., stats_cache=...)
    ```
"""

from .change_watcher import ChangeWatcher, NavigationMonitor
from .comparison import compare, compare_pair, select_base
from .epoch import CandidateArena, EpochContext
from .page_session import PageSession
from .price_service import PriceService
from .ranking import (
    FuzzyRanker,
    HistoryEntry,
    ResultWindow,
    SearchCategory,
    SearchFilters,
    SearchHistory,
    SearchHit,
    SortOrder,
    rank,
    score_text,
    searchable_text,
    similarity_score,
)
from .rate_limiter import Debouncer, Throttler
from .reconciliation import (
    ContainerResolver,
    ProductAnnotator,
    RatingExtractor,
    ReconciliationPass,
    ReconciliationScheduler,
    SchedulerState,
    VendorHighlighter,
)

__all__ = [
    "CandidateArena",
    "ChangeWatcher",
    "ContainerResolver",
    "Debouncer",
    "EpochContext",
    "FuzzyRanker",
    "HistoryEntry",
    "NavigationMonitor",
    "PageSession",
    "PriceService",
    "ProductAnnotator",
    "RatingExtractor",
    "ReconciliationPass",
    "ReconciliationScheduler",
    "ResultWindow",
    "SchedulerState",
    "SearchCategory",
    "SearchFilters",
    "SearchHistory",
    "SearchHit",
    "SortOrder",
    "Throttler",
    "VendorHighlighter",
    "compare",
    "compare_pair",
    "rank",
    "score_text",
    "searchable_text",
    "select_base",
    "similarity_score",
]
