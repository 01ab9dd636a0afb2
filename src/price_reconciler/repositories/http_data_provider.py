"""HTTP implementation of DataProvider.

Talks to two kinds of upstream services:

- the comparison API (vendor mappings, vendor list, stats, health), usually a
  local FastAPI server on port 8000
- the platforms' public menu endpoints (SnappFood and TapsiFood)

Every request carries an explicit timeout. Timeouts and connection errors are
retried with a growing delay (tenacity); any other failure surfaces
immediately.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_incrementing,
)

from price_reconciler.config import settings
from price_reconciler.entities import (
    PerformanceMetrics,
    ProductRecord,
    VendorDetail,
    VendorEntry,
    VendorMapping,
    VendorStats,
)
from price_reconciler.errors import (
    ConnectionFailure,
    MalformedResponse,
    ProviderFailure,
    TimeoutFailure,
    UpstreamFailure,
)

logger = logging.getLogger(__name__)

SNAPPFOOD = "snappfood"
TAPSIFOOD = "tapsifood"
PLATFORMS = (SNAPPFOOD, TAPSIFOOD)


def is_retryable(exception: BaseException) -> bool:
    """Only timeouts and connection failures are worth another attempt."""
    return isinstance(exception, ProviderFailure) and exception.retryable


class HttpDataProvider:
    """httpx-based implementation of DataProvider protocol.

    This class satisfies the DataProvider protocol through structural
    typing - no explicit inheritance needed.

    Example:
        ```python
        provider = HttpDataProvider.create(base_url="http://127.0.0.1:8000")

        detail = await provider.fetch_vendor_mapping("snappfood", "abc123")
        products = await provider.fetch_platform_products("tapsifood", detail.vendor_info.tf_code)
        ```
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        retry_attempts: int | None = None,
        retry_base_delay: float | None = None,
        retry_max_delay: float | None = None,
        client: httpx.AsyncClient | None = None,
        metrics: PerformanceMetrics | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the HTTP data provider.

        Args:
            base_url: Comparison API base URL. Defaults to settings.api_base_url.
            timeout: Per-request timeout in seconds. Defaults to settings.
            retry_attempts: Total attempts for retryable failures. Defaults to settings.
            retry_base_delay: Delay unit between attempts in seconds.
            retry_max_delay: Upper bound for the delay between attempts.
            client: Pre-built httpx client (tests inject a mock transport here).
            metrics: Shared metrics collector.
            sleep: Awaitable used to wait between attempts.
        """
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = timeout or settings.request_timeout
        self._attempts = retry_attempts or settings.retry_attempts
        self._base_delay = settings.retry_base_delay if retry_base_delay is None else retry_base_delay
        self._max_delay = settings.retry_max_delay if retry_max_delay is None else retry_max_delay
        self._client = client
        self._metrics = metrics or PerformanceMetrics()
        self._sleep = sleep

    @classmethod
    def create(
        cls,
        base_url: str | None = None,
        metrics: PerformanceMetrics | None = None,
    ) -> "HttpDataProvider":
        """Factory method to create HttpDataProvider with defaults.

        Args:
            base_url: Comparison API base URL. If None, uses settings.
            metrics: Shared metrics collector.

        Returns:
            Configured HttpDataProvider
        """
        return cls(base_url=base_url, metrics=metrics)

    @property
    def client(self) -> httpx.AsyncClient:
        """Lazy-load the async HTTP client.

        Returns:
            The httpx.AsyncClient instance
        """
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._timeout,
                headers={"Accept": "application/json"},
                limits=httpx.Limits(max_connections=20, max_keepalive_connections=10),
            )
        return self._client

    @property
    def metrics(self) -> PerformanceMetrics:
        """Get the metrics collector."""
        return self._metrics

    async def fetch_vendor_mapping(self, platform: str, code: str) -> VendorDetail:
        """Fetch the cross-platform mapping for one vendor.

        Args:
            platform: ``"snappfood"`` or ``"tapsifood"``
            code: The vendor code on that platform

        Returns:
            VendorDetail with vendor info and product id mappings

        Raises:
            UpstreamFailure: 404 when the vendor is not mapped
            MalformedResponse: If the payload lacks vendor_info
        """
        endpoint = f"/extension/vendor-data/{platform}/{code}"
        data = await self._get_json(f"{self._base_url}{endpoint}")

        if not isinstance(data, dict) or not isinstance(data.get("vendor_info"), dict):
            raise MalformedResponse("vendor_info missing from vendor data", endpoint=endpoint)

        raw_mappings = data.get("item_mappings") or {}
        if not isinstance(raw_mappings, dict):
            raise MalformedResponse("item_mappings is not an object", endpoint=endpoint)

        try:
            item_mappings = {int(base): int(counterpart) for base, counterpart in raw_mappings.items() if counterpart}
        except (TypeError, ValueError) as e:
            raise MalformedResponse(f"Invalid item mapping: {e}", endpoint=endpoint) from e

        return VendorDetail(
            vendor_info=parse_vendor_mapping(data["vendor_info"]),
            item_mappings=item_mappings,
        )

    async def fetch_vendor_list(self) -> list[VendorEntry]:
        """Fetch every mapped vendor.

        Returns:
            List of vendor entries, malformed rows skipped

        Raises:
            MalformedResponse: If the payload is not a list
        """
        data = await self._get_json(f"{self._base_url}/vendors", params={"limit": 1000})
        if not isinstance(data, list):
            raise MalformedResponse("Vendor list is not an array", endpoint="/vendors")

        vendors = []
        for row in data:
            entry = parse_vendor_entry(row)
            if entry is None:
                logger.warning("Unexpected vendor data structure: %r", row)
                continue
            vendors.append(entry)
        return vendors

    async def fetch_stats(self) -> VendorStats:
        """Fetch aggregate counts.

        Returns:
            VendorStats, missing counters default to zero
        """
        data = await self._get_json(f"{self._base_url}/stats")
        if not isinstance(data, dict):
            raise MalformedResponse("Stats payload is not an object", endpoint="/stats")

        return VendorStats(
            total_vendors=int(data.get("total_vendors") or 0),
            total_items=int(data.get("total_items") or 0),
            unique_sf_vendors=int(data.get("unique_sf_vendors") or 0),
            unique_tf_vendors=int(data.get("unique_tf_vendors") or 0),
        )

    async def fetch_platform_products(self, platform: str, code: str) -> dict[int, ProductRecord]:
        """Fetch the current menu of a vendor on one platform.

        Args:
            platform: ``"snappfood"`` or ``"tapsifood"``
            code: The vendor code on that platform

        Returns:
            Product id -> ProductRecord

        Raises:
            ValueError: If platform is unknown
            MalformedResponse: If the menu payload has an unexpected shape
        """
        if platform == SNAPPFOOD:
            payload = await self._get_json(
                settings.snappfood_url,
                params={
                    "lat": settings.snappfood_lat,
                    "long": settings.snappfood_long,
                    "vendorCode": code,
                    "optionalClient": "WEBSITE",
                    "client": "WEBSITE",
                    "deviceType": "WEBSITE",
                    "appVersion": "8.1.1",
                },
            )
            products = parse_snappfood_products(payload)
        elif platform == TAPSIFOOD:
            payload = await self._get_json(
                f"{settings.tapsifood_url}/{code}/vendor",
                params={"latitude": settings.tapsifood_lat, "longitude": settings.tapsifood_long},
            )
            products = parse_tapsifood_products(payload)
        else:
            raise ValueError(f"Unknown platform: {platform}")

        if not products:
            logger.warning("%s: no products extracted for vendor %s, API structure may have changed", platform, code)
        else:
            logger.debug("%s: processed %d products for vendor %s", platform, len(products), code)
        return products

    async def health(self) -> dict:
        """Query the comparison API health endpoint.

        Returns:
            The health payload
        """
        data = await self._get_json(f"{self._base_url}/health")
        if not isinstance(data, dict):
            raise MalformedResponse("Health payload is not an object", endpoint="/health")
        return data

    async def _get_json(self, url: str, params: dict[str, Any] | None = None) -> Any:
        """GET a JSON document, retrying timeouts and connection failures.

        Args:
            url: Absolute URL
            params: Query parameters

        Returns:
            The decoded JSON payload
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception(is_retryable),
            stop=stop_after_attempt(self._attempts),
            wait=wait_incrementing(start=self._base_delay, increment=self._base_delay, max=self._max_delay),
            before_sleep=before_sleep_log(logger, logging.DEBUG),
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await self._request(url, params)

    async def _request(self, url: str, params: dict[str, Any] | None) -> Any:
        """Perform one GET and classify its failure mode."""
        start = time.perf_counter()
        try:
            response = await self.client.get(url, params=params, timeout=self._timeout)
        except httpx.TimeoutException as e:
            self._metrics.record_error()
            logger.error("Request to %s timed out after %.1fs", url, self._timeout)
            raise TimeoutFailure(f"Request timeout after {self._timeout}s", endpoint=url) from e
        except httpx.TransportError as e:
            self._metrics.record_error()
            logger.error("Request to %s failed: %s", url, e)
            raise ConnectionFailure(
                "API server not available. Please ensure the API server is running.",
                endpoint=url,
            ) from e

        self._metrics.record_call((time.perf_counter() - start) * 1000)

        if response.is_error:
            self._metrics.record_error()
            raise UpstreamFailure(
                f"API error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                endpoint=url,
            )

        try:
            return response.json()
        except ValueError as e:
            self._metrics.record_error()
            raise MalformedResponse(f"Invalid JSON from {url}", endpoint=url) from e

    async def close(self) -> None:
        """Close the async HTTP client.

        Should be called when shutting down the application.
        """
        if self._client is not None:
            await self._client.aclose()
            self._client = None


def parse_vendor_mapping(raw: dict[str, Any]) -> VendorMapping:
    """Build a VendorMapping from an API object."""
    return VendorMapping(
        id=raw.get("id"),
        sf_code=str(raw.get("sf_code") or ""),
        sf_name=str(raw.get("sf_name") or ""),
        tf_code=str(raw.get("tf_code") or ""),
        tf_name=str(raw.get("tf_name") or ""),
        business_line=raw.get("business_line"),
        created_at=raw.get("created_at"),
    )


def parse_vendor_entry(raw: Any) -> VendorEntry | None:
    """Normalize a vendor list row.

    Rows come either flat (``sf_code``/``tf_code`` at top level) or wrapped as
    ``{"vendor_mapping": {...}, "item_count": n}``.

    Returns:
        VendorEntry, or None for unrecognized rows
    """
    if not isinstance(raw, dict):
        return None

    if raw.get("sf_code") and raw.get("tf_code"):
        return VendorEntry(mapping=parse_vendor_mapping(raw), item_count=0)

    wrapped = raw.get("vendor_mapping")
    if isinstance(wrapped, dict):
        return VendorEntry(
            mapping=parse_vendor_mapping(wrapped),
            item_count=int(raw.get("item_count") or 0),
        )

    return None


def parse_snappfood_products(payload: Any) -> dict[int, ProductRecord]:
    """Extract products from a SnappFood menu payload.

    Final price is the listed price minus the absolute discount.

    Raises:
        MalformedResponse: If ``data.menus`` is not an array
    """
    menus = _data_field(payload, "menus")
    if not isinstance(menus, list):
        raise MalformedResponse("Invalid SnappFood response: 'data.menus' array not found")

    products: dict[int, ProductRecord] = {}
    for section in menus:
        if not isinstance(section, dict) or not isinstance(section.get("products"), list):
            continue
        for p in section["products"]:
            if not isinstance(p, dict) or not p.get("id") or p.get("title") is None or p.get("price") is None:
                continue
            original_price = int(p.get("price") or 0)
            discount = int(p.get("discount") or 0)
            products[int(p["id"])] = ProductRecord(
                id=int(p["id"]),
                name=str(p["title"]).strip(),
                price=original_price - discount,
                original_price=original_price,
                discount=discount,
                discount_ratio=float(p.get("discountRatio") or 0),
            )
    return products


def parse_tapsifood_products(payload: Any) -> dict[int, ProductRecord]:
    """Extract products from a TapsiFood vendor payload.

    Only the first product variation is compared.

    Raises:
        MalformedResponse: If ``data.categories`` is not an array
    """
    categories = _data_field(payload, "categories")
    if not isinstance(categories, list):
        raise MalformedResponse("Invalid TapsiFood response: 'data.categories' array not found")

    products: dict[int, ProductRecord] = {}
    for category in categories:
        if not isinstance(category, dict) or not isinstance(category.get("products"), list):
            continue
        for p in category["products"]:
            variations = p.get("productVariations") if isinstance(p, dict) else None
            if not variations or p.get("productId") is None:
                continue
            variation = variations[0]
            original_price = int(variation.get("price") or 0)
            final_price = int(variation.get("priceAfterDiscount") or original_price)
            products[int(p["productId"])] = ProductRecord(
                id=int(p["productId"]),
                name=str(p.get("productName") or "").strip(),
                price=final_price,
                original_price=original_price,
                discount=original_price - final_price,
                discount_ratio=float(variation.get("discountRatio") or 0),
            )
    return products


def _data_field(payload: Any, name: str) -> Any:
    """Return ``payload["data"][name]`` or None when any level is missing."""
    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        return None
    return data.get(name)
