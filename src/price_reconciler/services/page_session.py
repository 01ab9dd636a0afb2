"""One page view driven end to end: fetch, reconcile, watch, search.

A ``PageSession`` owns the epoch context and every component that reads it.
Navigation starts a new epoch right away and re-initializes the page after a
settle delay; several navigations inside the delay collapse into one.
"""

import asyncio
import logging
from typing import Any

from price_reconciler.config import settings
from price_reconciler.entities import PriceComparison
from price_reconciler.errors import MappingAbsent, ProviderFailure, StatusKind, StatusReport, describe_failure
from price_reconciler.protocols import IdleScheduler, NotificationSink, PageAdapter
from price_reconciler.repositories import SNAPPFOOD, AsyncioIdleScheduler, LoggingNotificationSink, TTLCache
from price_reconciler.services.change_watcher import (
    PRODUCT_TARGET_SELECTORS,
    VENDOR_TARGET_SELECTORS,
    ChangeWatcher,
    NavigationMonitor,
)
from price_reconciler.services.epoch import EpochContext
from price_reconciler.services.price_service import PriceService
from price_reconciler.services.ranking import (
    FuzzyRanker,
    ResultWindow,
    SearchFilters,
    SearchHistory,
    SearchHit,
    SortOrder,
)
from price_reconciler.services.rate_limiter import Debouncer
from price_reconciler.services.reconciliation import ProductAnnotator, ReconciliationScheduler, VendorHighlighter
from price_reconciler.utils import counterpart_vendor_url, detect_page_type, extract_vendor_code_from_url, platform_of
from price_reconciler.utils.urls import LISTING_PAGES, MENU_PAGES

logger = logging.getLogger(__name__)


class PageSession:
    """Reconcile one browser tab with the comparison data.

    Example:
        ```python
        session = PageSession.create(adapter, PriceService.create())
        await session.start()
        hits = session.search("برگر")
        await session.stop()
        ```
    """

    def __init__(
        self,
        adapter: PageAdapter,
        price_service: PriceService,
        context: EpochContext,
        ranker: FuzzyRanker,
        idle: IdleScheduler,
        sink: NotificationSink | None = None,
        vendor_chunk_size: int = 25,
        product_chunk_size: int = 10,
        rating_threshold: float = 4.2,
        rating_extraction_cap: int = 100,
        vendor_debounce: float = 0.5,
        product_debounce: float = 0.3,
        search_debounce: float = 0.15,
        navigation_poll_interval: float = 1.0,
        navigation_settle_delay: float = 0.8,
        menu_init_delay: float = 0.3,
        listing_init_delay: float = 0.5,
        visible_results: int = 50,
        visible_results_step: int = 25,
    ) -> None:
        self._adapter = adapter
        self._prices = price_service
        self.context = context
        self.ranker = ranker
        self._menu_init_delay = menu_init_delay
        self._listing_init_delay = listing_init_delay

        self.vendor_scheduler = ReconciliationScheduler(
            context,
            adapter,
            VendorHighlighter(adapter, context, rating_threshold, rating_extraction_cap),
            idle,
            chunk_size=vendor_chunk_size,
            sink=sink,
            name="vendors",
        )
        self.product_scheduler = ReconciliationScheduler(
            context,
            adapter,
            ProductAnnotator(adapter, context),
            idle,
            chunk_size=product_chunk_size,
            sink=sink,
            name="products",
        )
        self._vendor_trigger = Debouncer(self.vendor_scheduler.request, vendor_debounce, name="vendor reconcile")
        self._product_trigger = Debouncer(self.product_scheduler.request, product_debounce, name="product reconcile")
        self._reinit = Debouncer(self.reinitialize, navigation_settle_delay, name="reinitialize")
        self._search_trigger = Debouncer(self._search_and_store, search_debounce, name="search")

        self.navigation = NavigationMonitor(adapter, self._on_navigate, navigation_poll_interval)
        self.watchers: list[ChangeWatcher] = []
        self.window = ResultWindow(visible_results, visible_results_step)
        self.history = SearchHistory()
        self.results: tuple[SearchHit, ...] = ()
        self.status: StatusReport | None = None

    @classmethod
    def create(
        cls,
        adapter: PageAdapter,
        price_service: PriceService,
        idle: IdleScheduler | None = None,
        sink: NotificationSink | None = None,
    ) -> "PageSession":
        """Factory method with caches and timings from settings."""
        search_cache = TTLCache.create(settings.search_cache_size, settings.search_cache_ttl, name="search")
        context = EpochContext(
            rating_cache=TTLCache.create(settings.rating_cache_size, settings.rating_cache_ttl, name="ratings"),
            search_cache=search_cache,
        )
        ranker = FuzzyRanker(
            cache=search_cache,
            max_results=settings.max_search_results,
            high_savings_threshold=settings.high_savings_threshold,
        )
        return cls(
            adapter=adapter,
            price_service=price_service,
            context=context,
            ranker=ranker,
            idle=idle or AsyncioIdleScheduler(settings.idle_delay),
            sink=sink or LoggingNotificationSink(),
            vendor_chunk_size=settings.vendor_chunk_size,
            product_chunk_size=settings.product_chunk_size,
            rating_threshold=settings.rating_threshold,
            rating_extraction_cap=settings.rating_extraction_cap,
            vendor_debounce=settings.vendor_debounce,
            product_debounce=settings.product_debounce,
            search_debounce=settings.search_debounce,
            navigation_poll_interval=settings.navigation_poll_interval,
            navigation_settle_delay=settings.navigation_settle_delay,
            menu_init_delay=settings.menu_init_delay,
            listing_init_delay=settings.listing_init_delay,
            visible_results=settings.max_visible_results,
            visible_results_step=settings.visible_results_step,
        )

    async def start(self) -> None:
        """Initialize the current page and start watching for navigation."""
        self.navigation.start()
        await self.reinitialize()

    async def stop(self) -> None:
        """Stop every timer, watcher and pass, and release the epoch."""
        await self.navigation.stop()
        self._reinit.cancel()
        self._search_trigger.cancel()
        self._halt()
        self.context.dispose()

    def reset(self) -> int:
        """Drop all per-page state and page decorations; start a new epoch."""
        self._halt()
        epoch = self.context.reset()
        self._adapter.clear_decorations()
        self.window.reset()
        self.results = ()
        self.status = None
        return epoch

    async def reinitialize(self) -> None:
        """Detect the page type and run the matching initialization."""
        self._stop_watchers()
        epoch = self.context.epoch
        page_type = detect_page_type(self._adapter.current_location())
        self.context.page_type = page_type
        logger.debug("reinitializing, page type %s", page_type)

        if page_type in MENU_PAGES:
            await asyncio.sleep(self._menu_init_delay)
            if self.context.is_current(epoch):
                await self.init_menu()
        elif page_type in LISTING_PAGES:
            await asyncio.sleep(self._listing_init_delay)
            if self.context.is_current(epoch):
                await self.init_listing()
        else:
            logger.debug("unknown page type, skipping initialization")

    async def init_menu(self) -> PriceComparison | None:
        """Fetch the comparison for the vendor on screen and annotate its menu."""
        context = self.context
        epoch = context.epoch
        platform = platform_of(context.page_type)
        code = extract_vendor_code_from_url(self._adapter.current_location(), platform) if platform else None
        if not code:
            self.status = StatusReport(StatusKind.NO_DATA, "No vendor code on this page.")
            return None

        try:
            if platform == SNAPPFOOD:
                comparison = await self._prices.fetch_prices(platform, sf_code=code)
            else:
                comparison = await self._prices.fetch_prices(platform, tf_code=code)
        except (ProviderFailure, MappingAbsent) as e:
            self.status = describe_failure(e)
            logger.warning("price comparison for %s failed: %s", code, self.status.message)
            return None

        if not context.is_current(epoch):
            logger.debug("discarding comparison for %s from epoch %d", code, epoch)
            return None

        context.set_comparison(comparison.records, comparison.vendor_info)
        self.status = StatusReport(StatusKind.OK, f"{comparison.comparison_count} products compared.")
        self.product_scheduler.request()
        self._watch(PRODUCT_TARGET_SELECTORS, self._product_trigger)
        return comparison

    async def init_listing(self) -> int:
        """Load the vendor list and highlight the vendor cards on screen.

        Returns:
            Number of paired vendor codes
        """
        context = self.context
        epoch = context.epoch
        overview = await self._prices.vendor_overview()
        if not context.is_current(epoch):
            return 0

        paired = context.set_vendor_list(overview.vendors)
        if overview.api_errors:
            self.status = StatusReport(StatusKind.WARNING, "; ".join(overview.api_errors.values()))
        else:
            self.status = StatusReport(StatusKind.OK, f"{paired} paired vendors.")
        logger.info("loaded %d paired vendors", paired)

        self.vendor_scheduler.request()
        self._watch(VENDOR_TARGET_SELECTORS, self._vendor_trigger)
        return paired

    def search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        sort: SortOrder = SortOrder.RELEVANCE,
    ) -> tuple[SearchHit, ...]:
        """Rank the comparison data, or the vendor list when there is none."""
        context = self.context
        records: list[Any] = list(context.comparison_data.values()) if context.has_product_data else context.vendor_list
        hits = self.ranker.search(query, records, context.has_product_data, filters, sort)
        self.window.reset()
        if query.strip():
            self.history.add(query, len(hits))
        return hits

    def request_search(
        self,
        query: str,
        filters: SearchFilters | None = None,
        sort: SortOrder = SortOrder.RELEVANCE,
    ) -> None:
        """Debounced ``search``; results land in ``results``."""
        self._search_trigger(query, filters, sort)

    def visible_results(self) -> tuple[SearchHit, ...]:
        return tuple(self.window.slice(self.results))

    def load_more(self) -> bool:
        return self.window.load_more(len(self.results))

    def counterpart_url(self) -> str | None:
        """Address of the current vendor on the other platform."""
        if self.context.vendor_info is None:
            return None
        return counterpart_vendor_url(self.context.page_type, self.context.vendor_info)

    def _search_and_store(self, query: str, filters: SearchFilters | None, sort: SortOrder) -> None:
        self.results = self.search(query, filters, sort)

    def _on_navigate(self, previous: str, current: str) -> None:
        self.reset()
        self._reinit()

    def _watch(self, selectors: tuple[str, ...], trigger: Debouncer) -> None:
        watcher = ChangeWatcher(self._adapter, selectors, trigger)
        watcher.start()
        self.watchers.append(watcher)

    def _stop_watchers(self) -> None:
        for watcher in self.watchers:
            watcher.stop()
        self.watchers.clear()

    def _halt(self) -> None:
        self._stop_watchers()
        self._vendor_trigger.cancel()
        self._product_trigger.cancel()
        self.vendor_scheduler.cancel()
        self.product_scheduler.cancel()
