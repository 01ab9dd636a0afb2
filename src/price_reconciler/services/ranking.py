"""Fuzzy ranking engine for comparison records and vendor lists.

Scores are approximate and tuned for short Persian product and vendor names:

- the whole query contained in the text: +1000
- each query word contained: +100, +50 more at a word boundary
- each other query word: in-order character similarity
- short text (under 50 characters): +10

Records scoring 5 or less are dropped.
"""

import logging
import time
from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from price_reconciler.entities import ComparisonRecord, VendorEntry
from price_reconciler.protocols import CacheStore
from price_reconciler.repositories import TTLCache
from price_reconciler.utils import normalize_text

logger = logging.getLogger(__name__)

FULL_MATCH_BONUS = 1000
WORD_MATCH_BONUS = 100
WORD_BOUNDARY_BONUS = 50
CHAR_MATCH_SCORE = 10
SEQUENCE_COMPLETE_BONUS = 30
SUBWORD_BONUS = 20
SHORT_TEXT_BONUS = 10
SHORT_TEXT_LENGTH = 50
MIN_SCORE = 5


class SearchCategory(str, Enum):
    """Category filter over comparison records."""

    ALL = "all"
    TF_CHEAPER = "tf-cheaper"
    SF_CHEAPER = "sf-cheaper"
    SAME_PRICE = "same-price"
    HIGH_SAVINGS = "high-savings"
    FAVORITES = "favorites"


class SortOrder(str, Enum):
    """Ordering applied after ranking."""

    RELEVANCE = "relevance"
    PRICE_ASC = "price-asc"
    PRICE_DESC = "price-desc"
    SAVINGS_DESC = "savings-desc"
    PERCENT_DESC = "percent-desc"
    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"


@dataclass(frozen=True)
class SearchFilters:
    """Structured filters; hashable so they can be part of a cache key.

    Attributes:
        category: Category filter, ignored for vendor datasets
        max_price: Upper bound on the base price for ``high-savings``
        favorites: Base product names for ``favorites``
    """

    category: SearchCategory = SearchCategory.ALL
    max_price: int | None = None
    favorites: frozenset[str] = field(default_factory=frozenset)


@dataclass(frozen=True)
class SearchHit:
    """One ranked record."""

    item: Any
    score: int
    text: str


def similarity_score(word: str, text: str) -> int:
    """Subsequence similarity between a query word and a text.

    Both arguments are expected in normalized form.
    """
    score = 0
    matched = 0
    for char in text:
        if matched == len(word):
            break
        if char == word[matched]:
            score += CHAR_MATCH_SCORE
            matched += 1

    if word and matched == len(word):
        score += SEQUENCE_COMPLETE_BONUS

    for part in word.split():
        if len(part) > 1 and part in text:
            score += SUBWORD_BONUS

    return score


def score_text(query: str, text: str) -> int:
    """Score a normalized text against a normalized query."""
    words = query.split()
    if not words:
        return 0

    score = 0
    if query in text:
        score += FULL_MATCH_BONUS

    for word in words:
        if word in text:
            score += WORD_MATCH_BONUS
            if text.startswith(word) or f" {word}" in text:
                score += WORD_BOUNDARY_BONUS
        else:
            score += similarity_score(word, text)

    if score > 0 and len(text) < SHORT_TEXT_LENGTH:
        score += SHORT_TEXT_BONUS
    return score


def searchable_text(item: ComparisonRecord | VendorEntry) -> str:
    """Concatenated, normalized text a record is searched by."""
    if isinstance(item, ComparisonRecord):
        raw = f"{item.base_product.name} {item.counterpart_product.name}"
    else:
        mapping = item.mapping
        raw = f"{mapping.sf_name} {mapping.tf_name} {mapping.sf_code} {mapping.tf_code}"
    return normalize_text(raw)


def rank(query: str, records: Sequence[Any], text_of: Callable[[Any], str] = searchable_text) -> list[SearchHit]:
    """Score every record and keep those above the threshold, best first.

    Ties keep input order. An empty query keeps every record with score 0.
    """
    normalized = normalize_text(query)
    if not normalized.split():
        return [SearchHit(item=record, score=0, text=text_of(record)) for record in records]

    hits = []
    for record in records:
        text = text_of(record)
        score = score_text(normalized, text)
        if score > MIN_SCORE:
            hits.append(SearchHit(item=record, score=score, text=text))

    hits.sort(key=lambda hit: hit.score, reverse=True)
    return hits


def _base_name(hit: SearchHit) -> str:
    if isinstance(hit.item, ComparisonRecord):
        return normalize_text(hit.item.base_product.name)
    return normalize_text(hit.item.mapping.sf_name or "")


class FuzzyRanker:
    """Ranked search with result caching.

    The cache key is ``(normalized query, filters, has_product_data, sort)``;
    a hit returns the stored tuple unchanged. Call ``invalidate`` whenever the
    underlying dataset changes.

    Example:
        ```python
        ranker = FuzzyRanker.create()
        hits = ranker.search("برگر", records, has_product_data=True)
        ```
    """

    def __init__(
        self,
        cache: CacheStore,
        max_results: int = 200,
        high_savings_threshold: int = 5000,
    ) -> None:
        """Initialize the ranker.

        Args:
            cache: Store for ranked result tuples
            max_results: Cap applied after filtering and sorting
            high_savings_threshold: Minimum absolute price difference for
                the ``high-savings`` category
        """
        self._cache = cache
        self._max_results = max_results
        self._high_savings_threshold = high_savings_threshold

    @classmethod
    def create(
        cls,
        cache_size: int = 200,
        cache_ttl: float = 120.0,
        max_results: int = 200,
        high_savings_threshold: int = 5000,
    ) -> "FuzzyRanker":
        """Factory method with an in-memory result cache."""
        return cls(
            cache=TTLCache(capacity=cache_size, ttl=cache_ttl, name="search"),
            max_results=max_results,
            high_savings_threshold=high_savings_threshold,
        )

    def search(
        self,
        query: str,
        records: Sequence[ComparisonRecord | VendorEntry],
        has_product_data: bool,
        filters: SearchFilters | None = None,
        sort: SortOrder = SortOrder.RELEVANCE,
        dataset: Hashable | None = None,
    ) -> tuple[SearchHit, ...]:
        """Rank, filter, sort and cap records.

        Args:
            query: Free-text query, may be empty
            records: Comparison records or vendor entries
            has_product_data: True when records are comparison records
            filters: Category filters, defaults to ``all``
            sort: Ordering applied after ranking
            dataset: Identity of the record set, e.g. ``("snappfood", code)``.
                Defaults to the records themselves.

        Returns:
            Immutable tuple of hits
        """
        filters = filters or SearchFilters()
        if dataset is None:
            dataset = tuple(records)
        key: Hashable = (dataset, normalize_text(query), filters, has_product_data, SortOrder(sort))

        cached = self._cache.get(key)
        if cached is not None:
            logger.debug("search cache hit for %r", query)
            return cached

        start = time.perf_counter()
        hits = rank(query, records)
        hits = self._apply_filters(hits, filters, has_product_data)
        hits = self._apply_sort(hits, SortOrder(sort), has_product_data)

        if len(hits) > self._max_results:
            logger.debug("limiting results from %d to %d", len(hits), self._max_results)
            hits = hits[: self._max_results]

        result = tuple(hits)
        self._cache.set(key, result)
        logger.debug(
            "search %r: %d of %d records in %.2fms",
            query,
            len(result),
            len(records),
            (time.perf_counter() - start) * 1000,
        )
        return result

    def invalidate(self) -> int:
        """Drop every cached result."""
        return self._cache.clear()

    @property
    def cache(self) -> CacheStore:
        """Get the result cache."""
        return self._cache

    def _apply_filters(self, hits: list[SearchHit], filters: SearchFilters, has_product_data: bool) -> list[SearchHit]:
        if not has_product_data:
            return hits

        category = SearchCategory(filters.category)
        if category is SearchCategory.TF_CHEAPER:
            return [hit for hit in hits if hit.item.price_diff > 0]
        if category is SearchCategory.SF_CHEAPER:
            return [hit for hit in hits if hit.item.price_diff < 0]
        if category is SearchCategory.SAME_PRICE:
            return [hit for hit in hits if hit.item.price_diff == 0]
        if category is SearchCategory.HIGH_SAVINGS:
            kept = [hit for hit in hits if abs(hit.item.price_diff) > self._high_savings_threshold]
            if filters.max_price:
                kept = [hit for hit in kept if hit.item.base_product.price <= filters.max_price]
            return kept
        if category is SearchCategory.FAVORITES:
            return [hit for hit in hits if hit.item.base_product.name in filters.favorites]
        return hits

    @staticmethod
    def _apply_sort(hits: list[SearchHit], sort: SortOrder, has_product_data: bool) -> list[SearchHit]:
        if sort is SortOrder.NAME_ASC:
            return sorted(hits, key=_base_name)
        if sort is SortOrder.NAME_DESC:
            return sorted(hits, key=_base_name, reverse=True)
        if not has_product_data:
            return hits

        if sort is SortOrder.PRICE_ASC:
            return sorted(hits, key=lambda hit: hit.item.base_product.price)
        if sort is SortOrder.PRICE_DESC:
            return sorted(hits, key=lambda hit: hit.item.base_product.price, reverse=True)
        if sort is SortOrder.SAVINGS_DESC:
            return sorted(hits, key=lambda hit: abs(hit.item.price_diff), reverse=True)
        if sort is SortOrder.PERCENT_DESC:
            return sorted(hits, key=lambda hit: hit.item.percent_diff, reverse=True)
        return hits


class ResultWindow:
    """Number of results currently shown, grown on demand."""

    def __init__(self, initial: int = 50, step: int = 25) -> None:
        if initial < 1 or step < 1:
            raise ValueError("initial and step must be positive")
        self._initial = initial
        self._step = step
        self.visible = initial

    def load_more(self, total: int) -> bool:
        """Grow the window by one step, up to total.

        Returns:
            False if every result was already visible
        """
        if self.visible >= total:
            return False
        self.visible = min(self.visible + self._step, total)
        return True

    def reset(self) -> None:
        self.visible = self._initial

    def slice(self, hits: Sequence[SearchHit]) -> Sequence[SearchHit]:
        """Return the visible part of a result set."""
        return hits[: self.visible]

    def remaining(self, total: int) -> int:
        return max(0, total - self.visible)


@dataclass(frozen=True)
class HistoryEntry:
    """One remembered query."""

    query: str
    timestamp: float
    result_count: int


class SearchHistory:
    """Recent queries, most recent first, plus running search statistics."""

    def __init__(
        self,
        max_entries: int = 20,
        min_length: int = 2,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._max_entries = max_entries
        self._min_length = min_length
        self._clock = clock
        self._entries: list[HistoryEntry] = []
        self.total_searches = 0
        self._total_results = 0
        self.last_search_time: float | None = None

    def add(self, query: str, result_count: int) -> bool:
        """Remember a query; a repeated query moves to the front.

        Returns:
            False if the query was too short to remember
        """
        query = query.strip()
        if len(query) < self._min_length:
            return False

        folded = query.casefold()
        self._entries = [entry for entry in self._entries if entry.query.casefold() != folded]

        now = self._clock()
        self._entries.insert(0, HistoryEntry(query=query, timestamp=now, result_count=result_count))
        del self._entries[self._max_entries :]

        self.total_searches += 1
        self._total_results += result_count
        self.last_search_time = now
        return True

    @property
    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)

    @property
    def average_result_count(self) -> float:
        if self.total_searches == 0:
            return 0.0
        return self._total_results / self.total_searches

    def clear(self) -> None:
        self._entries.clear()

    def reset_stats(self) -> None:
        self.total_searches = 0
        self._total_results = 0
        self.last_search_time = None

    def stats(self) -> dict[str, float | int | None]:
        return {
            "total_searches": self.total_searches,
            "average_result_count": round(self.average_result_count, 1),
            "last_search_time": self.last_search_time,
            "history_size": len(self._entries),
        }
