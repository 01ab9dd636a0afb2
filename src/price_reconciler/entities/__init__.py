"""Domain entities for internal representation.

These are pure dataclasses used internally by services and repositories.
They are NOT used for API contracts - use DTOs from the dto package for that.

Entities should have:
- No JSON serialization logic
- No Pydantic validation
- No external dependencies
- Pure domain logic only
"""

from .cache_entry import CacheEntryEntity, CacheStats
from .metrics import PerformanceMetrics, format_uptime
from .product import ComparisonRecord, PriceComparison, ProductRecord
from .reconciliation import DecorationKey, PassSummary, ProductVerdict
from .vendor import VendorDetail, VendorEntry, VendorMapping, VendorOverview, VendorStats

__all__ = [
    "CacheEntryEntity",
    "CacheStats",
    "ComparisonRecord",
    "DecorationKey",
    "PassSummary",
    "PerformanceMetrics",
    "PriceComparison",
    "ProductRecord",
    "ProductVerdict",
    "VendorDetail",
    "VendorEntry",
    "VendorMapping",
    "VendorOverview",
    "VendorStats",
    "format_uptime",
]
