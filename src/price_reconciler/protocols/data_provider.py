"""Data provider protocol.

Defines the interface for the network-backed source of vendor mappings,
vendor lists, aggregate stats and per-platform product listings.

Implementations can include:
- the HTTP comparison API plus the platforms' public menu endpoints (default)
- an offline fixture provider for tests
"""

from typing import Protocol, runtime_checkable

from price_reconciler.entities import ProductRecord, VendorDetail, VendorEntry, VendorStats


@runtime_checkable
class DataProvider(Protocol):
    """Protocol for vendor and product data sources.

    Every call is an idempotent read. Failures are raised as subclasses of
    ``price_reconciler.errors.ProviderFailure``.
    """

    async def fetch_vendor_mapping(self, platform: str, code: str) -> VendorDetail:
        """Fetch the cross-platform mapping for one vendor.

        Args:
            platform: ``"snappfood"`` or ``"tapsifood"``
            code: The vendor code on that platform

        Returns:
            VendorDetail with vendor info and product id mappings
        """
        ...

    async def fetch_vendor_list(self) -> list[VendorEntry]:
        """Fetch every mapped vendor.

        Returns:
            List of vendor entries
        """
        ...

    async def fetch_stats(self) -> VendorStats:
        """Fetch aggregate counts.

        Returns:
            VendorStats
        """
        ...

    async def fetch_platform_products(self, platform: str, code: str) -> dict[int, ProductRecord]:
        """Fetch the current menu of a vendor on one platform.

        Args:
            platform: ``"snappfood"`` or ``"tapsifood"``
            code: The vendor code on that platform

        Returns:
            Product id -> ProductRecord
        """
        ...

    async def health(self) -> dict:
        """Query the comparison API health endpoint.

        Returns:
            The health payload
        """
        ...
