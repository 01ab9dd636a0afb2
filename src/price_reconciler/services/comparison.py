"""Comparison engine.

Pure functions only: nothing here touches caches, the network or the page.
"""

import logging
import time
from collections.abc import Mapping

from price_reconciler.entities import ComparisonRecord, ProductRecord
from price_reconciler.repositories.http_data_provider import SNAPPFOOD, TAPSIFOOD

logger = logging.getLogger(__name__)


def compare_pair(base: ProductRecord, counterpart: ProductRecord) -> ComparisonRecord | None:
    """Compare one base product with its counterpart.

    Returns None when the base price is not positive.
    """
    if base.price <= 0:
        return None

    price_diff = base.price - counterpart.price
    percent_diff = round(abs(price_diff) / base.price * 100)
    return ComparisonRecord(
        base_product=base,
        counterpart_product=counterpart,
        price_diff=price_diff,
        percent_diff=percent_diff,
        is_cheaper=price_diff > 0,
        is_more_expensive=price_diff < 0,
        is_same_price=price_diff == 0,
    )


def compare(
    base_products: Mapping[int, ProductRecord],
    counterpart_products: Mapping[int, ProductRecord],
    id_mapping: Mapping[int, int],
) -> dict[int, ComparisonRecord]:
    """Build a comparison record for every mapped product pair.

    Base ids without a mapping, mappings whose counterpart is not on the menu
    and base products with a non-positive price are left out of the result.

    Args:
        base_products: Base platform products keyed by id
        counterpart_products: Counterpart platform products keyed by id
        id_mapping: Base product id -> counterpart product id

    Returns:
        New dict of base id -> ComparisonRecord, in base product order
    """
    start = time.perf_counter()
    results: dict[int, ComparisonRecord] = {}
    mapped = 0

    for base_id, base in base_products.items():
        counterpart_id = id_mapping.get(base_id)
        if not counterpart_id:
            continue
        mapped += 1

        counterpart = counterpart_products.get(counterpart_id)
        if counterpart is None:
            continue

        record = compare_pair(base, counterpart)
        if record is not None:
            results[base_id] = record

    logger.debug(
        "compared %d mapped products, %d comparisons in %.2fms",
        mapped,
        len(results),
        (time.perf_counter() - start) * 1000,
    )
    return results


def select_base(
    source_platform: str,
    snappfood_products: Mapping[int, ProductRecord],
    tapsifood_products: Mapping[int, ProductRecord],
) -> tuple[Mapping[int, ProductRecord], Mapping[int, ProductRecord]]:
    """Order two product collections as ``(base, counterpart)``.

    The platform the user is browsing is always the base.
    """
    if source_platform == SNAPPFOOD:
        return snappfood_products, tapsifood_products
    if source_platform == TAPSIFOOD:
        return tapsifood_products, snappfood_products
    raise ValueError(f"unknown platform: {source_platform!r}")
