"""Vendor domain entities."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class VendorMapping:
    """Cross-platform identity linking a SnappFood and a TapsiFood vendor."""

    id: int | None
    sf_code: str
    sf_name: str
    tf_code: str
    tf_name: str
    business_line: str | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class VendorEntry:
    """One row of the vendor list."""

    mapping: VendorMapping
    item_count: int = 0


@dataclass(frozen=True)
class VendorDetail:
    """Vendor mapping plus the product id mapping used for comparison.

    Attributes:
        vendor_info: The vendor mapping
        item_mappings: Base product id -> counterpart product id, keyed from
            the perspective of the platform the detail was requested for
    """

    vendor_info: VendorMapping
    item_mappings: dict[int, int] = field(default_factory=dict)


@dataclass(frozen=True)
class VendorStats:
    """Aggregate counts reported by the comparison API."""

    total_vendors: int = 0
    total_items: int = 0
    unique_sf_vendors: int = 0
    unique_tf_vendors: int = 0


@dataclass(frozen=True)
class VendorOverview:
    """Vendor list and stats, with whatever part failed reported separately.

    Attributes:
        vendors: Every mapped vendor, empty if the list failed
        stats: Aggregate counts, zeros if the stats failed
        api_errors: ``"vendors"`` and/or ``"stats"`` -> failure message
    """

    vendors: list[VendorEntry]
    stats: VendorStats
    api_errors: dict[str, str] = field(default_factory=dict)

    @property
    def paired_codes(self) -> set[str]:
        """SnappFood codes of every mapped vendor."""
        return {entry.mapping.sf_code for entry in self.vendors if entry.mapping.sf_code}
