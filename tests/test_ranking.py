"""
Tests for fuzzy ranking, result windows and search history.
"""

import pytest

from price_reconciler.entities import VendorEntry
from price_reconciler.services.comparison import compare_pair
from price_reconciler.services.ranking import (
    FuzzyRanker,
    ResultWindow,
    SearchCategory,
    SearchFilters,
    SearchHistory,
    SortOrder,
    rank,
    score_text,
    similarity_score,
)
from tests.fakes import mapping, product


def record(name: str, base_price: int, counterpart_price: int, counterpart_name: str | None = None):
    return compare_pair(product(1, name, base_price), product(2, counterpart_name or name, counterpart_price))


@pytest.fixture
def records():
    """Five comparisons covering every price relation."""
    return [
        record("Cheese Burger", 120_000, 110_000),
        record("Pizza Margherita", 250_000, 262_000),
        record("Hamburger", 90_000, 90_000),
        record("Family Pizza", 480_000, 460_000),
        record("Cola", 25_000, 26_000),
    ]


@pytest.fixture
def ranker():
    return FuzzyRanker.create(cache_size=50, cache_ttl=60, max_results=200, high_savings_threshold=5000)


def names(hits):
    return [hit.item.base_product.name for hit in hits]


def test_full_match_scoring():
    # full query + word + word boundary + short text
    assert score_text("burger", "cheese burger") == 1000 + 100 + 50 + 10


def test_word_inside_another_word_has_no_boundary_bonus():
    assert score_text("burger", "hamburger") == 1000 + 100 + 10


def test_similarity_for_misspelled_word():
    assert similarity_score("brgr", "burger") == 4 * 10 + 30
    assert score_text("brgr", "burger") == 4 * 10 + 30 + 10


def test_no_bonus_without_any_match():
    assert score_text("xyz", "burger") == 0


def test_long_text_gets_no_short_bonus():
    text = "burger " + "x" * 60
    assert score_text("burger", text) == 1000 + 100 + 50


def test_rank_orders_best_first_and_drops_weak(records):
    hits = rank("burger", records)

    assert names(hits) == ["Cheese Burger", "Hamburger"]
    assert hits[0].score > hits[1].score


def test_rank_empty_query_keeps_everything_in_order(records):
    hits = rank("   ", records)

    assert names(hits) == [r.base_product.name for r in records]
    assert all(hit.score == 0 for hit in hits)


def test_rank_normalizes_persian_letter_variants():
    persian = [record("کباب کوبیده", 150_000, 140_000), record("جوجه", 130_000, 130_000)]

    hits = rank("كباب", persian)

    assert names(hits) == ["کباب کوبیده"]


def test_persian_word_inside_longer_name():
    assert score_text("برگر", "چیز برگر مخصوص") == 1000 + 100 + 50 + 10

    hits = rank("برگر", [record("چیز برگر مخصوص", 180_000, 175_000), record("سالاد", 60_000, 60_000)])

    assert names(hits) == ["چیز برگر مخصوص"]


def test_rank_searches_counterpart_name():
    hits = rank("smash", [record("Burger", 100, 90, counterpart_name="Smash Burger")])

    assert len(hits) == 1


def test_rank_vendor_entries_by_code():
    vendors = [
        VendorEntry(mapping=mapping("abc123", "tf9", "Burger House", "Burger House TF")),
        VendorEntry(mapping=mapping("zzz999", "tf8", "Kebab Land", "Kebab Land TF")),
    ]

    hits = rank("zzz999", vendors)

    assert [hit.item.mapping.sf_code for hit in hits] == ["zzz999"]


def test_search_returns_cached_tuple(ranker, records):
    first = ranker.search("pizza", records, has_product_data=True)
    second = ranker.search("  PIZZA ", records, has_product_data=True)

    assert isinstance(first, tuple)
    assert second is first
    assert ranker.cache.stats().hits == 1


def test_sort_is_part_of_cache_key(ranker, records):
    by_relevance = ranker.search("pizza", records, True)
    by_price = ranker.search("pizza", records, True, sort=SortOrder.PRICE_DESC)

    assert by_price is not by_relevance
    assert names(by_price) == ["Family Pizza", "Pizza Margherita"]


def test_same_query_over_another_dataset_is_not_served_from_cache(ranker):
    vendor_a = [record("Burger A", 100_000, 90_000)]
    vendor_b = [record("Burger B", 100_000, 90_000)]

    assert names(ranker.search("burger", vendor_a, True)) == ["Burger A"]
    assert names(ranker.search("burger", vendor_b, True)) == ["Burger B"]
    assert ranker.cache.stats().hits == 0


def test_explicit_dataset_key(ranker, records):
    first = ranker.search("pizza", records, True, dataset=("snappfood", "abc123"))
    again = ranker.search("pizza", list(records), True, dataset=("snappfood", "abc123"))
    other = ranker.search("pizza", records, True, dataset=("snappfood", "zzz000"))

    assert again is first
    assert other is not first


def test_invalidate_drops_results(ranker, records):
    ranker.search("pizza", records, True)
    ranker.search("cola", records, True)

    assert ranker.invalidate() == 2
    assert len(ranker.cache) == 0


@pytest.mark.parametrize(
    "category, expected",
    [
        (SearchCategory.ALL, ["Cheese Burger", "Pizza Margherita", "Hamburger", "Family Pizza", "Cola"]),
        (SearchCategory.TF_CHEAPER, ["Cheese Burger", "Family Pizza"]),
        (SearchCategory.SF_CHEAPER, ["Pizza Margherita", "Cola"]),
        (SearchCategory.SAME_PRICE, ["Hamburger"]),
        (SearchCategory.HIGH_SAVINGS, ["Cheese Burger", "Pizza Margherita", "Family Pizza"]),
    ],
)
def test_category_filters(ranker, records, category, expected):
    hits = ranker.search("", records, True, filters=SearchFilters(category=category))

    assert names(hits) == expected


def test_high_savings_respects_max_price(ranker, records):
    filters = SearchFilters(category=SearchCategory.HIGH_SAVINGS, max_price=300_000)

    hits = ranker.search("", records, True, filters=filters)

    assert names(hits) == ["Cheese Burger", "Pizza Margherita"]


def test_favorites_filter(ranker, records):
    filters = SearchFilters(category=SearchCategory.FAVORITES, favorites=frozenset({"Cola", "Hamburger"}))

    hits = ranker.search("", records, True, filters=filters)

    assert names(hits) == ["Hamburger", "Cola"]


@pytest.mark.parametrize(
    "sort, expected",
    [
        (SortOrder.PRICE_ASC, ["Cola", "Hamburger", "Cheese Burger", "Pizza Margherita", "Family Pizza"]),
        (SortOrder.SAVINGS_DESC, ["Family Pizza", "Pizza Margherita", "Cheese Burger", "Cola", "Hamburger"]),
        (SortOrder.PERCENT_DESC, ["Cheese Burger", "Pizza Margherita", "Family Pizza", "Cola", "Hamburger"]),
        (SortOrder.NAME_ASC, ["Cheese Burger", "Cola", "Family Pizza", "Hamburger", "Pizza Margherita"]),
    ],
)
def test_sort_orders(ranker, records, sort, expected):
    assert names(ranker.search("", records, True, sort=sort)) == expected


def test_result_cap_applies_after_sort(records):
    ranker = FuzzyRanker.create(max_results=2)

    hits = ranker.search("", records, True, sort=SortOrder.PRICE_DESC)

    assert names(hits) == ["Family Pizza", "Pizza Margherita"]


def test_vendor_dataset_ignores_category(ranker):
    vendors = [
        VendorEntry(mapping=mapping("b1", "t1", "Beta Burger", "Beta")),
        VendorEntry(mapping=mapping("a1", "t2", "Alpha Burger", "Alpha")),
    ]
    filters = SearchFilters(category=SearchCategory.TF_CHEAPER)

    hits = ranker.search("burger", vendors, has_product_data=False, filters=filters, sort=SortOrder.NAME_ASC)

    assert [hit.item.mapping.sf_code for hit in hits] == ["a1", "b1"]


def test_result_window_grows_to_total():
    window = ResultWindow(initial=2, step=2)
    hits = list(range(5))

    assert window.slice(hits) == [0, 1]
    assert window.load_more(5)
    assert window.load_more(5)
    assert window.visible == 5
    assert not window.load_more(5)
    assert window.remaining(5) == 0

    window.reset()
    assert window.visible == 2
    assert window.remaining(5) == 3


def test_history_dedupes_and_caps():
    now = iter(range(100))
    history = SearchHistory(max_entries=3, clock=lambda: next(now))

    for query in ("pizza", "burger", "cola", "PIZZA", "kebab"):
        history.add(query, 4)

    assert [entry.query for entry in history.entries] == ["kebab", "PIZZA", "cola"]
    assert history.total_searches == 5
    assert history.last_search_time == 4


def test_history_ignores_short_queries():
    history = SearchHistory(min_length=2)

    assert not history.add(" a ", 10)
    assert history.entries == []
    assert history.total_searches == 0


def test_history_average_is_a_true_mean():
    history = SearchHistory()
    history.add("pizza", 10)
    history.add("burger", 0)
    history.add("cola", 5)

    assert history.average_result_count == 5.0
    assert history.stats()["history_size"] == 3

    history.reset_stats()
    assert history.average_result_count == 0.0
    assert len(history.entries) == 3
