"""Price service: cached lookups and fetch-and-compare orchestration.

This service coordinates the data provider (network) with the in-memory
caches and the comparison engine.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from typing import Any

from price_reconciler.config import settings
from price_reconciler.entities import (
    PerformanceMetrics,
    PriceComparison,
    VendorDetail,
    VendorEntry,
    VendorOverview,
    VendorStats,
)
from price_reconciler.errors import InvalidRequest, MappingAbsent, ProviderFailure, UpstreamFailure, describe_failure
from price_reconciler.protocols import CacheStore, DataProvider
from price_reconciler.repositories import PLATFORMS, SNAPPFOOD, TAPSIFOOD, HttpDataProvider, TTLCache
from price_reconciler.services.comparison import compare, select_base

logger = logging.getLogger(__name__)

VENDOR_LIST_KEY = "vendors"
STATS_KEY = "stats"


class PriceService:
    """Cached vendor lookups and cross-platform price comparison.

    This service depends on PROTOCOLS, not concrete implementations:
    - DataProvider: the HTTP API or an offline fixture source
    - CacheStore: one store per data class, each with its own TTL

    Example:
        ```python
        from price_reconciler.services import PriceService

        service = PriceService.create()
        comparison = await service.fetch_prices("snappfood", sf_code="abc123")
        for base_id, record in comparison.records.items():
            print(record.base_product.name, record.price_diff)
        ```
    """

    def __init__(
        self,
        provider: DataProvider,
        vendor_cache: CacheStore,
        vendor_list_cache: CacheStore,
        stats_cache: CacheStore,
        metrics: PerformanceMetrics | None = None,
    ) -> None:
        """Initialize the price service.

        Args:
            provider: Source of vendor mappings and menus (required).
            vendor_cache: Vendor detail store, keyed ``"{platform}-{code}"``.
            vendor_list_cache: Vendor list store.
            stats_cache: Aggregate stats store.
            metrics: Shared metrics collector.
        """
        self._provider = provider
        self._caches: dict[str, CacheStore] = {
            "vendor_data": vendor_cache,
            "vendor_list": vendor_list_cache,
            "stats": stats_cache,
        }
        self._metrics = metrics or PerformanceMetrics()

    @classmethod
    def create(cls, provider: DataProvider | None = None) -> "PriceService":
        """Factory method with the HTTP provider and caches sized from settings.

        Args:
            provider: Data provider. If None, an HttpDataProvider is built.

        Returns:
            Configured PriceService
        """
        metrics = PerformanceMetrics()
        if provider is None:
            provider = HttpDataProvider.create(metrics=metrics)
        elif isinstance(provider, HttpDataProvider):
            metrics = provider.metrics

        return cls(
            provider=provider,
            vendor_cache=TTLCache.create(
                settings.vendor_data_cache_size, settings.vendor_data_cache_ttl, name="vendor_data"
            ),
            vendor_list_cache=TTLCache.create(1, settings.vendor_list_cache_ttl, name="vendor_list"),
            stats_cache=TTLCache.create(1, settings.stats_cache_ttl, name="stats"),
            metrics=metrics,
        )

    @property
    def provider(self) -> DataProvider:
        """Get the data provider."""
        return self._provider

    @property
    def metrics_collector(self) -> PerformanceMetrics:
        """Get the metrics collector."""
        return self._metrics

    async def vendor_detail(self, platform: str, code: str) -> VendorDetail:
        """Get the vendor mapping and product id mapping, cache first.

        Raises:
            MappingAbsent: If the API has no mapping for this vendor
            ProviderFailure: On any other failed lookup
        """
        key = f"{platform}-{code}"
        cache = self._caches["vendor_data"]
        detail = cache.get(key)
        if detail is not None:
            self._metrics.record_hit()
            logger.debug("vendor data cache hit: %s", key)
            return detail

        self._metrics.record_miss()
        try:
            detail = await self._provider.fetch_vendor_mapping(platform, code)
        except UpstreamFailure as e:
            if e.status_code == 404:
                raise MappingAbsent(platform, code) from e
            raise

        cache.set(key, detail)
        return detail

    async def vendor_list(self) -> list[VendorEntry]:
        """Get every mapped vendor, cache first."""
        cache = self._caches["vendor_list"]
        vendors = cache.get(VENDOR_LIST_KEY)
        if vendors is not None:
            self._metrics.record_hit()
            return vendors

        self._metrics.record_miss()
        vendors = await self._provider.fetch_vendor_list()
        cache.set(VENDOR_LIST_KEY, vendors)
        logger.info("loaded %d vendors", len(vendors))
        return vendors

    async def stats(self) -> VendorStats:
        """Get aggregate counts, cache first."""
        cache = self._caches["stats"]
        stats = cache.get(STATS_KEY)
        if stats is not None:
            self._metrics.record_hit()
            return stats

        self._metrics.record_miss()
        stats = await self._provider.fetch_stats()
        cache.set(STATS_KEY, stats)
        return stats

    async def fetch_prices(
        self,
        source_platform: str,
        sf_code: str | None = None,
        tf_code: str | None = None,
    ) -> PriceComparison:
        """Fetch both menus of a vendor and compare them.

        Business logic:
        1. Resolve the vendor mapping from the code on the source platform
        2. Fetch both platforms' menus concurrently
        3. Fail the whole request if either menu failed
        4. Compare with the source platform as base

        Args:
            source_platform: Platform the user is browsing
            sf_code: SnappFood vendor code, required when browsing SnappFood
            tf_code: TapsiFood vendor code, required when browsing TapsiFood

        Returns:
            PriceComparison

        Raises:
            InvalidRequest: If the platform or its vendor code is missing
            MappingAbsent: If the vendor has no counterpart
            ProviderFailure: If a lookup failed
        """
        start = time.perf_counter()
        if source_platform not in PLATFORMS:
            raise InvalidRequest(f"Invalid platform: {source_platform!r}")

        code = sf_code if source_platform == SNAPPFOOD else tf_code
        if not code:
            raise InvalidRequest("Invalid platform or vendor code.")

        detail = await self.vendor_detail(source_platform, code)
        info = detail.vendor_info
        if not info.sf_code or not info.tf_code:
            raise MappingAbsent(source_platform, code)

        sf_result, tf_result = await asyncio.gather(
            self._provider.fetch_platform_products(SNAPPFOOD, info.sf_code),
            self._provider.fetch_platform_products(TAPSIFOOD, info.tf_code),
            return_exceptions=True,
        )
        for platform, result in ((SNAPPFOOD, sf_result), (TAPSIFOOD, tf_result)):
            if isinstance(result, BaseException):
                logger.error("%s menu fetch failed for %s: %s", platform, code, result)
                raise result

        base, counterpart = select_base(source_platform, sf_result, tf_result)
        records = compare(base, counterpart, detail.item_mappings)

        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info(
            "compared %s vendor %s: %d comparisons in %.2fms",
            source_platform,
            code,
            len(records),
            elapsed_ms,
        )
        return PriceComparison(
            source_platform=source_platform,
            records=records,
            vendor_info=info,
            sf_product_count=len(sf_result),
            tf_product_count=len(tf_result),
            processing_time_ms=elapsed_ms,
        )

    async def vendor_overview(self) -> VendorOverview:
        """Vendor list and stats; a failed half is reported, not raised."""
        vendors_result, stats_result = await asyncio.gather(
            self.vendor_list(),
            self.stats(),
            return_exceptions=True,
        )

        api_errors: dict[str, str] = {}
        vendors: list[VendorEntry] = []
        stats = VendorStats()

        if isinstance(vendors_result, ProviderFailure):
            logger.warning("vendor list unavailable: %s", vendors_result)
            api_errors["vendors"] = describe_failure(vendors_result).message
        elif isinstance(vendors_result, BaseException):
            raise vendors_result
        else:
            vendors = vendors_result

        if isinstance(stats_result, ProviderFailure):
            logger.warning("stats unavailable: %s", stats_result)
            api_errors["stats"] = describe_failure(stats_result).message
        elif isinstance(stats_result, BaseException):
            raise stats_result
        else:
            stats = stats_result

        return VendorOverview(vendors=vendors, stats=stats, api_errors=api_errors)

    async def health(self) -> dict[str, Any]:
        """Comparison API health plus local cache stats."""
        caches = self.cache_stats()
        try:
            payload = await self._provider.health()
        except ProviderFailure as e:
            report = describe_failure(e)
            return {"status": "unhealthy", "detail": report.message, "caches": caches}
        return {"status": "healthy", "api": payload, "caches": caches}

    def cache_stats(self) -> dict[str, dict[str, Any]]:
        return {name: cache.stats().to_dict() for name, cache in self._caches.items()}

    def metrics(self) -> dict[str, Any]:
        """Provider call metrics and cache stats."""
        return {"performance": self._metrics.to_dict(), "caches": self.cache_stats()}

    def clear_caches(self) -> dict[str, int]:
        """Drop every cached entry.

        Returns:
            Entries dropped per cache
        """
        cleared = {name: cache.clear() for name, cache in self._caches.items()}
        logger.info("caches cleared: %s", cleared)
        return cleared

    def cleanup_expired(self, extra_caches: Sequence[CacheStore] = ()) -> int:
        """Sweep every cache for stale entries.

        Args:
            extra_caches: Stores owned elsewhere (e.g. the search cache) to
                sweep in the same pass

        Returns:
            Total entries removed
        """
        caches = [*self._caches.values(), *extra_caches]
        removed = sum(cache.cleanup_expired() for cache in caches)
        if removed:
            logger.info("periodic cleanup removed %d expired cache entries", removed)
        return removed

    async def run_cleanup_loop(
        self,
        interval: float | None = None,
        extra_caches: Sequence[CacheStore] = (),
    ) -> None:
        """Sweep the caches every ``interval`` seconds until cancelled."""
        interval = interval or settings.cache_cleanup_interval
        while True:
            await asyncio.sleep(interval)
            self.cleanup_expired(extra_caches)
