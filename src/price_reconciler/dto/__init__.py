"""Data Transfer Objects for API contracts.

These Pydantic models define the external API contract.
They are used for request/response validation and serialization.

Internal domain logic should use entities from the entities package.
"""

from .requests import FetchPricesRequest, SearchRequest
from .responses import (
    ClearCacheResponse,
    ComparisonItem,
    FetchPricesResponse,
    HealthCheckResponse,
    MetricsResponse,
    ProductItem,
    SearchHitItem,
    SearchResponse,
    VendorInfo,
    VendorItem,
    VendorListResponse,
    VendorStatsItem,
)

__all__ = [
    "FetchPricesRequest",
    "SearchRequest",
    "ClearCacheResponse",
    "ComparisonItem",
    "FetchPricesResponse",
    "HealthCheckResponse",
    "MetricsResponse",
    "ProductItem",
    "SearchHitItem",
    "SearchResponse",
    "VendorInfo",
    "VendorItem",
    "VendorListResponse",
    "VendorStatsItem",
]
