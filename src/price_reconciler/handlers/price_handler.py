"""HTTP handlers for price comparison operations.

Handlers convert between DTOs (API contracts) and service calls.
They handle HTTP concerns like status codes, validation, and error handling.
"""

import time
from dataclasses import asdict
from datetime import datetime, timezone

from fastapi import HTTPException, status

from price_reconciler.dto import (
    ClearCacheResponse,
    ComparisonItem,
    FetchPricesRequest,
    FetchPricesResponse,
    HealthCheckResponse,
    MetricsResponse,
    ProductItem,
    SearchHitItem,
    SearchRequest,
    SearchResponse,
    VendorInfo,
    VendorItem,
    VendorListResponse,
    VendorStatsItem,
)
from price_reconciler.entities import ComparisonRecord, ProductRecord, VendorEntry
from price_reconciler.errors import InvalidRequest, MappingAbsent, ProviderFailure, StatusKind, describe_failure
from price_reconciler.services import FuzzyRanker, PriceService, SearchFilters
from price_reconciler.utils import counterpart_vendor_url


def to_product_item(product: ProductRecord) -> ProductItem:
    return ProductItem(
        id=product.id,
        name=product.name,
        price=product.price,
        original_price=product.original_price,
        discount=product.discount,
    )


def to_comparison_item(record: ComparisonRecord) -> ComparisonItem:
    return ComparisonItem(
        base_product=to_product_item(record.base_product),
        counterpart_product=to_product_item(record.counterpart_product),
        price_diff=record.price_diff,
        percent_diff=record.percent_diff,
        is_cheaper=record.is_cheaper,
        is_more_expensive=record.is_more_expensive,
        is_same_price=record.is_same_price,
    )


def to_vendor_item(entry: VendorEntry) -> VendorItem:
    return VendorItem(vendor_mapping=VendorInfo(**asdict(entry.mapping)), item_count=entry.item_count)


def failure_to_http(error: Exception) -> HTTPException:
    """Map a service failure to an HTTPException.

    Unreachable upstream is 503, missing data 404, other upstream and
    malformed responses 502, invalid input 400, anything else 500.
    """
    if isinstance(error, InvalidRequest):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(error))

    report = describe_failure(error)
    if report.kind is StatusKind.SERVER_UNREACHABLE:
        code = status.HTTP_503_SERVICE_UNAVAILABLE
    elif report.kind is StatusKind.NO_DATA:
        code = status.HTTP_404_NOT_FOUND
    elif isinstance(error, ProviderFailure):
        code = status.HTTP_502_BAD_GATEWAY
    else:
        code = status.HTTP_500_INTERNAL_SERVER_ERROR
    return HTTPException(status_code=code, detail=report.message)


class PriceHandler:
    """HTTP handlers for price comparison operations.

    This handler delegates business logic to PriceService and FuzzyRanker
    and handles HTTP-specific concerns like:
    - Converting entities to DTOs
    - Setting appropriate status codes
    - Error handling and responses

    Example:
        ```python
        from price_reconciler.services import FuzzyRanker, PriceService
        from price_reconciler.handlers import PriceHandler

        handler = PriceHandler(price_service=PriceService.create(), ranker=FuzzyRanker.create())

        # Use in FastAPI route
        @app.post("/prices", response_model=FetchPricesResponse)
        async def fetch_prices(request: FetchPricesRequest):
            return await handler.fetch_prices(request)
        ```
    """

    def __init__(self, price_service: PriceService, ranker: FuzzyRanker) -> None:
        """Initialize the price handler.

        Args:
            price_service: Cached lookups and comparison (required).
            ranker: Search ranking with its result cache (required).
        """
        self._prices = price_service
        self._ranker = ranker

    async def fetch_prices(self, request: FetchPricesRequest) -> FetchPricesResponse:
        """Handle POST /prices requests.

        Args:
            request: The fetch prices request DTO

        Returns:
            FetchPricesResponse with comparisons keyed by base product id

        Raises:
            HTTPException: If the comparison could not be produced
        """
        try:
            comparison = await self._prices.fetch_prices(
                request.source_platform,
                sf_code=request.sf_vendor_code,
                tf_code=request.tf_vendor_code,
            )
        except (ProviderFailure, MappingAbsent, InvalidRequest) as e:
            raise failure_to_http(e) from e

        page_type = f"{comparison.source_platform}-menu"
        return FetchPricesResponse(
            data={base_id: to_comparison_item(record) for base_id, record in comparison.records.items()},
            vendor_info=VendorInfo(**asdict(comparison.vendor_info)),
            counterpart_url=counterpart_vendor_url(page_type, comparison.vendor_info),
            sf_product_count=comparison.sf_product_count,
            tf_product_count=comparison.tf_product_count,
            comparison_count=comparison.comparison_count,
            processing_time_ms=comparison.processing_time_ms,
        )

    async def list_vendors(self) -> VendorListResponse:
        """Handle GET /vendors requests.

        Returns:
            VendorListResponse; partial failures appear in api_errors
        """
        start_time = time.perf_counter()
        overview = await self._prices.vendor_overview()

        return VendorListResponse(
            vendors=[to_vendor_item(entry) for entry in overview.vendors],
            stats=VendorStatsItem(**asdict(overview.stats)),
            api_errors=overview.api_errors,
            processing_time_ms=(time.perf_counter() - start_time) * 1000,
        )

    async def search(self, request: SearchRequest) -> SearchResponse:
        """Handle POST /search requests.

        Args:
            request: The search request DTO

        Returns:
            SearchResponse with up to ``limit`` ranked results

        Raises:
            HTTPException: If the records to search could not be loaded
        """
        start_time = time.perf_counter()
        try:
            if request.vendor_code and request.source_platform:
                comparison = await self._prices.fetch_prices(
                    request.source_platform,
                    sf_code=request.vendor_code if request.source_platform == "snappfood" else None,
                    tf_code=request.vendor_code if request.source_platform == "tapsifood" else None,
                )
                records: list = list(comparison.records.values())
                has_product_data = bool(records)
                dataset: tuple = (request.source_platform, request.vendor_code)
            else:
                records = []
                has_product_data = False

            if not has_product_data:
                records = await self._prices.vendor_list()
                dataset = ("vendors",)
        except (ProviderFailure, MappingAbsent, InvalidRequest) as e:
            raise failure_to_http(e) from e

        hits = self._ranker.search(
            request.query,
            records,
            has_product_data,
            SearchFilters(
                category=request.category,
                max_price=request.max_price,
                favorites=frozenset(request.favorites),
            ),
            request.sort,
            dataset=dataset,
        )

        results = []
        for hit in hits[: request.limit]:
            if has_product_data:
                results.append(SearchHitItem(score=hit.score, comparison=to_comparison_item(hit.item)))
            else:
                results.append(SearchHitItem(score=hit.score, vendor=to_vendor_item(hit.item)))

        return SearchResponse(
            query=request.query,
            has_product_data=has_product_data,
            total=len(hits),
            results=results,
            search_time_ms=(time.perf_counter() - start_time) * 1000,
        )

    async def health_check(self) -> HealthCheckResponse:
        """Handle GET /health requests."""
        return HealthCheckResponse(**await self._prices.health())

    async def get_metrics(self) -> MetricsResponse:
        """Handle GET /metrics requests."""
        metrics = self._prices.metrics()
        metrics["caches"]["search"] = self._ranker.cache.stats().to_dict()
        return MetricsResponse(**metrics)

    async def clear_cache(self) -> ClearCacheResponse:
        """Handle DELETE /cache requests."""
        cleared = self._prices.clear_caches()
        cleared["search"] = self._ranker.invalidate()

        return ClearCacheResponse(
            success=True,
            cleared=cleared,
            message="All caches cleared successfully",
            cleared_at=datetime.now(timezone.utc).isoformat(),
        )
