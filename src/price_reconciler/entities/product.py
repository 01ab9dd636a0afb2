"""Product and comparison domain entities."""

from dataclasses import dataclass

from .vendor import VendorMapping


@dataclass(frozen=True)
class ProductRecord:
    """A menu item as listed on one platform.

    Attributes:
        id: Platform-specific product id
        name: Display name, stripped
        price: Final price after discount
        original_price: Listed price before discount
        discount: Absolute discount amount (0 when unknown)
        discount_ratio: Discount ratio reported by the platform
    """

    id: int
    name: str
    price: int
    original_price: int
    discount: int = 0
    discount_ratio: float = 0.0


@dataclass(frozen=True)
class ComparisonRecord:
    """Price comparison between a base product and its counterpart.

    ``price_diff`` is ``base.price - counterpart.price``: positive means the
    counterpart platform is cheaper.
    """

    base_product: ProductRecord
    counterpart_product: ProductRecord
    price_diff: int
    percent_diff: int
    is_cheaper: bool
    is_more_expensive: bool
    is_same_price: bool


@dataclass(frozen=True)
class PriceComparison:
    """Result of one fetch-and-compare request.

    Attributes:
        source_platform: Platform whose products are the base
        records: Base product id -> comparison record
        vendor_info: Mapping of the vendor the request was for
        sf_product_count: Products parsed from the SnappFood menu
        tf_product_count: Products parsed from the TapsiFood menu
        processing_time_ms: Wall time of the whole request
    """

    source_platform: str
    records: dict[int, ComparisonRecord]
    vendor_info: VendorMapping
    sf_product_count: int
    tf_product_count: int
    processing_time_ms: float

    @property
    def comparison_count(self) -> int:
        return len(self.records)
