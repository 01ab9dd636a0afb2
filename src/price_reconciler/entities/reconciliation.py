"""Reconciliation domain entities."""

from dataclasses import dataclass
from enum import Enum


@dataclass(frozen=True)
class DecorationKey:
    """Identity under which a vendor card is decorated at most once per epoch.

    Attributes:
        vendor_code: The vendor code extracted from the card
        rating_bucket: Rating rounded to one decimal, or None when unknown
        is_paired: Vendor exists on both platforms
        is_high_rated: Rating at or above the high-rating threshold
    """

    vendor_code: str
    rating_bucket: float | None
    is_paired: bool
    is_high_rated: bool

    @property
    def is_premium(self) -> bool:
        """Paired and high rated."""
        return self.is_paired and self.is_high_rated


class ProductVerdict(str, Enum):
    """Annotation applied to a product card on a menu page."""

    CHEAPER = "cheaper"
    MORE_EXPENSIVE = "expensive"
    SAME_PRICE = "same-price"
    UNPAIRED = "unpaired"


@dataclass
class PassSummary:
    """Counters collected over one reconciliation pass."""

    epoch: int
    candidates: int = 0
    visited: int = 0
    slices: int = 0
    processed: int = 0
    decorated: int = 0
    skipped: int = 0
    with_rating: int = 0
    high_rated: int = 0
    premium: int = 0
    aborted: bool = False
    duration_ms: float = 0.0

    def to_dict(self) -> dict[str, object]:
        """Convert summary to dictionary."""
        return {
            "epoch": self.epoch,
            "candidates": self.candidates,
            "visited": self.visited,
            "slices": self.slices,
            "processed": self.processed,
            "decorated": self.decorated,
            "skipped": self.skipped,
            "with_rating": self.with_rating,
            "high_rated": self.high_rated,
            "premium": self.premium,
            "aborted": self.aborted,
            "duration_ms": round(self.duration_ms, 2),
        }
