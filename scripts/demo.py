#!/usr/bin/env python3
"""
Demo script for the price reconciler.

This script demonstrates price comparison, ranked search and the caches with
a small built-in menu, and optionally against a running comparison API.
"""

import asyncio
import sys

from price_reconciler import PriceService, ProviderFailure, compare, describe_failure
from price_reconciler.entities import ProductRecord
from price_reconciler.repositories import TTLCache
from price_reconciler.services import FuzzyRanker, SearchCategory, SearchFilters, SortOrder


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


def sample_menus() -> tuple[dict[int, ProductRecord], dict[int, ProductRecord], dict[int, int]]:
    """Two menus of the same restaurant and the id mapping between them."""
    snappfood = {
        101: ProductRecord(101, "برگر کلاسیک", 185_000, 185_000),
        102: ProductRecord(102, "چیز برگر", 210_000, 230_000, discount=20_000),
        103: ProductRecord(103, "سیب زمینی سرخ کرده", 75_000, 75_000),
        104: ProductRecord(104, "نوشابه", 30_000, 30_000),
        105: ProductRecord(105, "سالاد سزار", 160_000, 160_000),
    }
    tapsifood = {
        9001: ProductRecord(9001, "برگر کلاسیک", 172_000, 172_000),
        9002: ProductRecord(9002, "چیز برگر", 219_000, 219_000),
        9003: ProductRecord(9003, "سیب زمینی سرخ کرده", 75_000, 75_000),
        9004: ProductRecord(9004, "نوشابه", 28_000, 28_000),
    }
    return snappfood, tapsifood, {101: 9001, 102: 9002, 103: 9003, 104: 9004, 105: 9005}


def demo_comparison() -> None:
    """Demonstrate comparing two menus."""
    print_section("Price Comparison")

    snappfood, tapsifood, mapping = sample_menus()
    records = compare(snappfood, tapsifood, mapping)

    print(f"\n📊 {len(records)} of {len(snappfood)} products compared (SnappFood as base):")
    for record in records.values():
        if record.is_cheaper:
            verdict = f"✓ {record.percent_diff}% cheaper on TapsiFood"
        elif record.is_more_expensive:
            verdict = f"✗ {record.percent_diff}% more expensive on TapsiFood"
        else:
            verdict = "= same price"
        print(f"  {record.base_product.name}: {record.base_product.price:,} -> {record.counterpart_product.price:,}  {verdict}")


def demo_search() -> None:
    """Demonstrate ranked search with filters and the result cache."""
    print_section("Ranked Search")

    snappfood, tapsifood, mapping = sample_menus()
    records = list(compare(snappfood, tapsifood, mapping).values())
    ranker = FuzzyRanker.create(cache_size=20, cache_ttl=60)

    # Arabic kaf/yeh and a misspelling still match
    for query in ("برگر", "چيز", "سيب زميني", "برگ"):
        hits = ranker.search(query, records, has_product_data=True)
        names = ", ".join(f"{hit.item.base_product.name} ({hit.score})" for hit in hits) or "-"
        print(f"\n  🔍 '{query}': {names}")

    cheaper = ranker.search(
        "",
        records,
        has_product_data=True,
        filters=SearchFilters(category=SearchCategory.TF_CHEAPER),
        sort=SortOrder.SAVINGS_DESC,
    )
    print("\n  Cheaper on TapsiFood, biggest savings first:")
    for hit in cheaper:
        print(f"    {hit.item.base_product.name}: saves {hit.item.price_diff:,}")

    ranker.search("برگر", records, has_product_data=True)
    stats = ranker.cache.stats()
    print(f"\n  Search cache: {stats.size} entries, {stats.hits} hits, {stats.misses} misses")


def demo_cache() -> None:
    """Demonstrate TTL + LRU eviction."""
    print_section("Cache Eviction")

    cache = TTLCache(capacity=2, ttl=60, name="demo")
    cache.set("A", 1)
    cache.set("B", 2)
    cache.get("A")
    cache.set("C", 3)

    print(f"\n  After set A, set B, get A, set C: A={cache.get('A')} B={cache.get('B')} C={cache.get('C')}")
    print(f"  Stats: {cache.stats().to_dict()}")


async def demo_live(vendor_code: str) -> None:
    """Compare a real vendor through a running comparison API."""
    print_section(f"Live Comparison: {vendor_code}")

    service = PriceService.create()
    try:
        comparison = await service.fetch_prices("snappfood", sf_code=vendor_code)
    except (ProviderFailure, LookupError) as e:
        print(f"\n  ❌ {describe_failure(e).message}")
        return
    finally:
        await service.provider.close()

    print(f"\n  {comparison.vendor_info.sf_name} <-> {comparison.vendor_info.tf_name}")
    print(f"  {comparison.comparison_count} comparisons in {comparison.processing_time_ms:.0f}ms")


def main() -> None:
    """Run all demos."""
    print("\n🚀 Price Reconciler Demo")
    print("=" * 70)
    print("This demo compares SnappFood and TapsiFood menus of one restaurant")

    demo_comparison()
    demo_search()
    demo_cache()

    if len(sys.argv) > 1:
        asyncio.run(demo_live(sys.argv[1]))
    else:
        print("\nPass a SnappFood vendor code to compare it through the running API.")

    print("\n" + "=" * 70)
    print("✅ Demo completed successfully!")
    print("=" * 70)


if __name__ == "__main__":
    main()
