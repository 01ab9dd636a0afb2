"""Per-page state, discarded wholesale on navigation."""

import logging
from collections.abc import Iterable
from typing import Any

from price_reconciler.entities import ComparisonRecord, DecorationKey, VendorEntry, VendorMapping
from price_reconciler.protocols import CacheStore
from price_reconciler.utils.urls import UNKNOWN

logger = logging.getLogger(__name__)


class CandidateArena:
    """Stable integer ids for element handles seen during one epoch.

    Handles are held until ``clear`` so that their ``id()`` cannot be
    reused by another object while the epoch lasts.
    """

    def __init__(self) -> None:
        self._ids: dict[int, int] = {}
        self._handles: list[Any] = []

    def id_for(self, handle: Any) -> int:
        """Return the id of a handle, assigning the next one if new."""
        key = id(handle)
        candidate_id = self._ids.get(key)
        if candidate_id is None:
            candidate_id = len(self._handles)
            self._ids[key] = candidate_id
            self._handles.append(handle)
        return candidate_id

    def handle(self, candidate_id: int) -> Any:
        return self._handles[candidate_id]

    def clear(self) -> None:
        self._ids.clear()
        self._handles.clear()

    def __len__(self) -> int:
        return len(self._handles)


class EpochContext:
    """State bag for the current page view.

    Every reconciliation component receives the same context. ``reset``
    starts a new epoch: it bumps ``epoch``, empties every per-page set and
    clears the epoch-scoped caches. Passes that started in an older epoch
    notice the change and stop.
    """

    def __init__(self, rating_cache: CacheStore, search_cache: CacheStore | None = None) -> None:
        """Initialize the context.

        Args:
            rating_cache: Rating lookups keyed by element fingerprint
            search_cache: Ranked search results, cleared with the epoch
        """
        self.rating_cache = rating_cache
        self.search_cache = search_cache
        self.epoch = 0
        self.disposed = False
        self._init_state()

    def _init_state(self) -> None:
        self.page_type = UNKNOWN
        self.comparison_data: dict[int, ComparisonRecord] = {}
        self.vendor_info: VendorMapping | None = None
        self.vendor_list: list[VendorEntry] = []
        self.paired_vendors: set[str] = set()
        self.handled_codes: set[str] = set()
        self.processed: set[int] = set()
        self.decorated: set[DecorationKey] = set()
        self.containers: dict[int, Any] = {}
        self.arena = CandidateArena()
        self._products_by_name: dict[str, ComparisonRecord] = {}

    def reset(self) -> int:
        """Start a new epoch.

        Returns:
            The new epoch number
        """
        self.epoch += 1
        self.arena.clear()
        self._init_state()
        self.rating_cache.clear()
        if self.search_cache is not None:
            self.search_cache.clear()
        logger.debug("epoch %d started", self.epoch)
        return self.epoch

    def dispose(self) -> None:
        """Release everything; the context must not be used afterwards."""
        self.reset()
        self.disposed = True

    def is_current(self, epoch: int) -> bool:
        return not self.disposed and epoch == self.epoch

    def set_comparison(self, data: dict[int, ComparisonRecord], vendor_info: VendorMapping | None) -> None:
        """Replace the comparison data of the current page."""
        self.comparison_data = dict(data)
        self.vendor_info = vendor_info
        self._products_by_name = {}
        for record in self.comparison_data.values():
            self._products_by_name.setdefault(record.base_product.name.strip(), record)

    def set_vendor_list(self, entries: Iterable[VendorEntry]) -> int:
        """Replace the vendor list and mark every mapped SnappFood code as paired.

        Returns:
            Number of paired vendor codes
        """
        self.vendor_list = list(entries)
        self.paired_vendors = {entry.mapping.sf_code for entry in self.vendor_list if entry.mapping.sf_code}
        return len(self.paired_vendors)

    def product_by_name(self, name: str) -> ComparisonRecord | None:
        """Comparison record whose base product has this exact name."""
        return self._products_by_name.get(name.strip())

    @property
    def has_product_data(self) -> bool:
        return bool(self.comparison_data)

    def snapshot(self) -> dict[str, Any]:
        """Sizes of the per-epoch collections."""
        return {
            "epoch": self.epoch,
            "page_type": self.page_type,
            "comparisons": len(self.comparison_data),
            "vendors": len(self.vendor_list),
            "paired_vendors": len(self.paired_vendors),
            "handled_codes": len(self.handled_codes),
            "processed": len(self.processed),
            "decorated": len(self.decorated),
            "arena": len(self.arena),
            "rating_cache": self.rating_cache.stats().to_dict(),
        }
