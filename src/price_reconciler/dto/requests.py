"""Request DTOs for API endpoints."""

from typing import Literal

from pydantic import BaseModel, Field, model_validator

from price_reconciler.services.ranking import SearchCategory, SortOrder


class FetchPricesRequest(BaseModel):
    """Request DTO for fetching and comparing a vendor's menus.

    The handler will convert this to internal calls to the service layer.
    """

    source_platform: Literal["snappfood", "tapsifood"] = Field(
        ...,
        description="Platform the user is browsing; its products are the base",
    )
    sf_vendor_code: str | None = Field(None, description="SnappFood vendor code", min_length=1)
    tf_vendor_code: str | None = Field(None, description="TapsiFood vendor code", min_length=1)

    @model_validator(mode="after")
    def require_source_code(self) -> "FetchPricesRequest":
        if self.source_platform == "snappfood" and not self.sf_vendor_code:
            raise ValueError("sf_vendor_code is required when source_platform is snappfood")
        if self.source_platform == "tapsifood" and not self.tf_vendor_code:
            raise ValueError("tf_vendor_code is required when source_platform is tapsifood")
        return self


class SearchRequest(BaseModel):
    """Request DTO for ranked search.

    With a vendor the comparison records of that vendor are searched,
    otherwise the vendor list.
    """

    query: str = Field("", description="Free-text query, may be empty", max_length=200)
    source_platform: Literal["snappfood", "tapsifood"] | None = Field(
        None,
        description="Platform of the vendor whose products are searched",
    )
    vendor_code: str | None = Field(None, description="Vendor code on source_platform", min_length=1)
    category: SearchCategory = Field(SearchCategory.ALL, description="Category filter")
    sort: SortOrder = Field(SortOrder.RELEVANCE, description="Ordering applied after ranking")
    max_price: int | None = Field(None, description="Upper base price for high-savings", gt=0)
    favorites: list[str] = Field(default_factory=list, description="Product names for the favorites category")
    limit: int = Field(50, description="Number of results to return", ge=1, le=200)

    @model_validator(mode="after")
    def require_platform_with_vendor(self) -> "SearchRequest":
        if self.vendor_code and not self.source_platform:
            raise ValueError("source_platform is required with vendor_code")
        return self
