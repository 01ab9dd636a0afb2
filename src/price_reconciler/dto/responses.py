"""Response DTOs for API endpoints."""

from typing import Any

from pydantic import BaseModel, Field


class ProductItem(BaseModel):
    """One product as listed on a platform."""

    id: int = Field(..., description="Platform product id")
    name: str = Field(..., description="Product name")
    price: int = Field(..., description="Final price after discount", ge=0)
    original_price: int = Field(..., description="Listed price before discount", ge=0)
    discount: int = Field(0, description="Absolute discount amount")


class ComparisonItem(BaseModel):
    """Comparison of a base product with its counterpart."""

    base_product: ProductItem
    counterpart_product: ProductItem
    price_diff: int = Field(..., description="Base price minus counterpart price; positive means the counterpart is cheaper")
    percent_diff: int = Field(..., description="Absolute difference as a rounded percentage of the base price", ge=0)
    is_cheaper: bool
    is_more_expensive: bool
    is_same_price: bool


class VendorInfo(BaseModel):
    """Cross-platform vendor mapping."""

    id: int | None = None
    sf_code: str
    sf_name: str
    tf_code: str
    tf_name: str
    business_line: str | None = None
    created_at: str | None = None


class VendorItem(BaseModel):
    """One row of the vendor list."""

    vendor_mapping: VendorInfo
    item_count: int = Field(0, ge=0)


class FetchPricesResponse(BaseModel):
    """Response DTO for the fetch-and-compare operation."""

    success: bool = Field(True, description="Whether the comparison succeeded")
    data: dict[int, ComparisonItem] = Field(
        default_factory=dict,
        description="Base product id -> comparison",
    )
    vendor_info: VendorInfo
    counterpart_url: str | None = Field(None, description="Vendor page on the other platform")
    sf_product_count: int = Field(..., ge=0)
    tf_product_count: int = Field(..., ge=0)
    comparison_count: int = Field(..., ge=0)
    processing_time_ms: float = Field(..., description="Time taken in milliseconds")


class VendorStatsItem(BaseModel):
    """Aggregate counts."""

    total_vendors: int = 0
    total_items: int = 0
    unique_sf_vendors: int = 0
    unique_tf_vendors: int = 0


class VendorListResponse(BaseModel):
    """Response DTO for the vendor list.

    A failed list or failed stats lookup is reported in ``api_errors`` and
    does not fail the request.
    """

    success: bool = True
    vendors: list[VendorItem] = Field(default_factory=list)
    stats: VendorStatsItem
    api_errors: dict[str, str] = Field(default_factory=dict, description="'vendors' and/or 'stats' -> message")
    processing_time_ms: float


class SearchHitItem(BaseModel):
    """One ranked result; exactly one of ``comparison`` and ``vendor`` is set."""

    score: int
    comparison: ComparisonItem | None = None
    vendor: VendorItem | None = None


class SearchResponse(BaseModel):
    """Response DTO for ranked search."""

    query: str
    has_product_data: bool
    total: int = Field(..., description="Results after filters and the result cap", ge=0)
    results: list[SearchHitItem] = Field(default_factory=list)
    search_time_ms: float


class HealthCheckResponse(BaseModel):
    """Response DTO for health check."""

    status: str = Field(..., description="Health status: 'healthy' or 'unhealthy'")
    api: dict[str, Any] | None = Field(None, description="Comparison API health payload")
    detail: str | None = Field(None, description="Why the comparison API is unhealthy")
    caches: dict[str, dict[str, Any]] = Field(default_factory=dict)


class MetricsResponse(BaseModel):
    """Response DTO for performance metrics."""

    performance: dict[str, Any]
    caches: dict[str, dict[str, Any]]


class ClearCacheResponse(BaseModel):
    """Response DTO for clearing the caches."""

    success: bool
    cleared: dict[str, int]
    message: str
    cleared_at: str
