"""Incremental reconciliation of page elements with the local data model.

A pass takes a fresh snapshot of the candidate elements and walks it in
fixed-size slices, awaiting the idle scheduler between slices. Work already
done in the current epoch (a vendor code already handled, a container or
product card already processed, a decoration key already applied) is skipped,
so repeated passes over an unchanged page are cheap no-ops.
"""

import asyncio
import hashlib
import logging
import time
from collections.abc import Sequence
from enum import Enum
from typing import Any, Protocol

from price_reconciler.entities import DecorationKey, PassSummary, ProductVerdict
from price_reconciler.protocols import IdleScheduler, NotificationSink, PageAdapter
from price_reconciler.services.epoch import EpochContext
from price_reconciler.utils import find_rating_in_text, parse_rating

logger = logging.getLogger(__name__)

VENDOR_LINK_SELECTORS = ('a[href*="/restaurant/menu/"]',)
PRODUCT_CARD_SELECTORS = ("section.ProductCard__Box-sc-1wfx2e0-0",)

# Ordered wrappers tried when looking for the card around a vendor link
CONTAINER_FALLBACKS = (
    '[class*="card"], [class*="Card"]',
    "article",
    "li",
    '[class*="vendor"], [class*="restaurant"]',
)

_MISSING = object()


class SchedulerState(str, Enum):
    IDLE = "idle"
    SCANNING = "scanning"


class CandidateProcessor(Protocol):
    """Per-candidate work run by the scheduler."""

    selectors: Sequence[str]

    def process(self, item: Any, summary: PassSummary) -> None:
        """Handle one candidate, updating summary counters."""
        ...


class ContainerResolver:
    """Find the card element wrapping a leaf element, memoized per epoch."""

    def __init__(self, adapter: PageAdapter, context: EpochContext) -> None:
        self._adapter = adapter
        self._context = context

    def resolve(self, item: Any) -> Any | None:
        leaf_id = self._context.arena.id_for(item)
        if leaf_id in self._context.containers:
            return self._context.containers[leaf_id]

        container = None
        for selector in CONTAINER_FALLBACKS:
            candidate = self._adapter.closest(item, selector)
            if candidate is not None and not self._adapter.is_document_root(candidate):
                container = candidate
                break

        if container is None:
            container = self._adapter.parent_of(item)

        self._context.containers[leaf_id] = container
        return container


class RatingExtractor:
    """Read a vendor rating from its card, cached by a markup fingerprint.

    The platform's dedicated rating element is tried first, then labelled
    numbers and plausible decimals in the card text. Misses are cached too.
    """

    def __init__(self, adapter: PageAdapter, context: EpochContext) -> None:
        self._adapter = adapter
        self._context = context
        self.extracted = 0

    def fingerprint(self, container: Any) -> str:
        content = self._adapter.markup(container) or self._adapter.text_of(container)
        if not content:
            return ""
        return hashlib.blake2b(content.encode(), digest_size=16).hexdigest()

    def extract(self, container: Any) -> float | None:
        key = self.fingerprint(container)
        cache = self._context.rating_cache
        if key:
            cached = cache.get(key, _MISSING)
            if cached is not _MISSING:
                return cached

        rating = parse_rating(self._adapter.rating_text(container))
        if rating is None:
            rating = find_rating_in_text(self._adapter.text_of(container))

        if rating is not None:
            self.extracted += 1
        if key:
            cache.set(key, rating)
        return rating


class VendorHighlighter:
    """Decorate vendor cards on listing pages.

    Paired vendors get the paired decoration, vendors rated at or above the
    threshold get the high-rating one, vendors with both are premium.
    """

    selectors = VENDOR_LINK_SELECTORS

    def __init__(
        self,
        adapter: PageAdapter,
        context: EpochContext,
        rating_threshold: float = 4.2,
        rating_extraction_cap: int = 100,
    ) -> None:
        """Initialize the highlighter.

        Args:
            adapter: The page
            context: Current epoch state
            rating_threshold: Minimum rating considered high
            rating_extraction_cap: Ratings are no longer read once this many
                vendor codes were handled in the epoch; 0 disables the cap
        """
        self._adapter = adapter
        self._context = context
        self._rating_threshold = rating_threshold
        self._rating_extraction_cap = rating_extraction_cap
        self.resolver = ContainerResolver(adapter, context)
        self.ratings = RatingExtractor(adapter, context)

    def process(self, item: Any, summary: PassSummary) -> None:
        context = self._context
        code = self._adapter.extract_vendor_code(item)
        if not code or code in context.handled_codes:
            summary.skipped += 1
            return

        container = self.resolver.resolve(item)
        if container is None:
            logger.debug("no container for vendor %s", code)
            summary.skipped += 1
            return
        context.handled_codes.add(code)

        container_id = context.arena.id_for(container)
        if container_id in context.processed:
            summary.skipped += 1
            return
        context.processed.add(container_id)
        summary.processed += 1

        rating = None
        if not self._rating_extraction_cap or len(context.handled_codes) <= self._rating_extraction_cap:
            rating = self.ratings.extract(container)

        is_high_rated = rating is not None and rating >= self._rating_threshold
        if rating is not None:
            summary.with_rating += 1
            if is_high_rated:
                summary.high_rated += 1

        key = DecorationKey(
            vendor_code=code,
            rating_bucket=round(rating, 1) if rating is not None else None,
            is_paired=code in context.paired_vendors,
            is_high_rated=is_high_rated,
        )
        if not (key.is_paired or key.is_high_rated) or key in context.decorated:
            return

        self._adapter.decorate(container, key)
        context.decorated.add(key)
        summary.decorated += 1
        if key.is_premium:
            summary.premium += 1


class ProductAnnotator:
    """Annotate product cards on menu pages with their comparison verdict."""

    selectors = PRODUCT_CARD_SELECTORS

    def __init__(self, adapter: PageAdapter, context: EpochContext) -> None:
        self._adapter = adapter
        self._context = context

    def process(self, item: Any, summary: PassSummary) -> None:
        context = self._context
        card_id = context.arena.id_for(item)
        if card_id in context.processed:
            summary.skipped += 1
            return
        context.processed.add(card_id)

        title = self._adapter.product_title(item)
        if not title:
            summary.skipped += 1
            return
        summary.processed += 1

        record = context.product_by_name(title)
        if record is None:
            verdict = ProductVerdict.UNPAIRED
        elif record.is_cheaper:
            verdict = ProductVerdict.CHEAPER
        elif record.is_more_expensive:
            verdict = ProductVerdict.MORE_EXPENSIVE
        else:
            verdict = ProductVerdict.SAME_PRICE

        self._adapter.annotate_product(item, verdict, record)
        summary.decorated += 1


class ReconciliationPass:
    """One resumable walk over a candidate snapshot."""

    def __init__(self, snapshot: Sequence[Any], processor: CandidateProcessor, chunk_size: int, epoch: int) -> None:
        self.snapshot = list(snapshot)
        self.cursor = 0
        self.summary = PassSummary(epoch=epoch, candidates=len(self.snapshot))
        self._processor = processor
        self._chunk_size = chunk_size

    @property
    def done(self) -> bool:
        return self.cursor >= len(self.snapshot)

    def run_slice(self) -> bool:
        """Process the next slice.

        Returns:
            True if candidates remain
        """
        end = min(self.cursor + self._chunk_size, len(self.snapshot))
        for item in self.snapshot[self.cursor : end]:
            try:
                self._processor.process(item, self.summary)
            except Exception:
                logger.warning("skipping candidate after adapter failure", exc_info=True)
                self.summary.skipped += 1
            self.summary.visited += 1
        self.cursor = end
        self.summary.slices += 1
        return not self.done


class ReconciliationScheduler:
    """Run reconciliation passes cooperatively, one at a time.

    ``request`` starts a pass when idle. A request arriving while a pass is
    scanning is not queued: it sets a flag, and one fresh pass runs after the
    current one finishes.

    Example:
        ```python
        scheduler = ReconciliationScheduler(context, adapter, highlighter, idle)
        scheduler.request()
        summary = await scheduler.wait()
        ```
    """

    def __init__(
        self,
        context: EpochContext,
        adapter: PageAdapter,
        processor: CandidateProcessor,
        idle: IdleScheduler,
        chunk_size: int = 25,
        sink: NotificationSink | None = None,
        name: str = "reconciliation",
    ) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be at least 1, got {chunk_size}")
        self._context = context
        self._adapter = adapter
        self._processor = processor
        self._idle = idle
        self._chunk_size = chunk_size
        self.sink = sink
        self._name = name
        self._task: asyncio.Task | None = None
        self._rerun = False
        self.state = SchedulerState.IDLE
        self.passes = 0
        self.last_summary: PassSummary | None = None

    def request(self) -> asyncio.Task:
        """Ask for a pass; coalesced with any pass already scanning."""
        if self._task is not None and not self._task.done():
            self._rerun = True
            return self._task
        self._task = asyncio.ensure_future(self._drive())
        return self._task

    async def wait(self) -> PassSummary | None:
        """Wait until no pass is running and return the last summary."""
        while self._task is not None and not self._task.done():
            task = self._task
            await asyncio.wait({task})
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()
        return self.last_summary

    def cancel(self) -> None:
        """Stop the running pass, if any."""
        self._rerun = False
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None
        self.state = SchedulerState.IDLE

    async def _drive(self) -> PassSummary | None:
        summary = None
        while True:
            self._rerun = False
            summary = await self.run_pass()
            if not self._rerun or not self._context.is_current(summary.epoch):
                break
            logger.debug("%s: rerunning for coalesced request", self._name)
        return summary

    async def run_pass(self) -> PassSummary:
        """Snapshot the candidates and process them slice by slice."""
        epoch = self._context.epoch
        started = time.perf_counter()
        snapshot = self._adapter.query_candidates(self._processor.selectors)
        work = ReconciliationPass(snapshot, self._processor, self._chunk_size, epoch)

        self.state = SchedulerState.SCANNING
        try:
            while not work.done:
                if not self._context.is_current(epoch):
                    work.summary.aborted = True
                    break
                if work.run_slice():
                    await self._idle.wait_for_idle()
        finally:
            self.state = SchedulerState.IDLE

        work.summary.duration_ms = (time.perf_counter() - started) * 1000
        self.passes += 1
        self.last_summary = work.summary
        self._publish(work.summary)
        return work.summary

    def _publish(self, summary: PassSummary) -> None:
        logger.debug("%s pass: %s", self._name, summary.to_dict())
        if self.sink is None:
            return
        try:
            self.sink.publish(f"{self._name}.pass", summary.to_dict())
            self.sink.publish(f"{self._name}.rating_cache", self._context.rating_cache.stats().to_dict())
        except Exception:
            logger.warning("notification sink failed", exc_info=True)
