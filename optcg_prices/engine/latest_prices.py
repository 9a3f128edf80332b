"""
OPTCG Price Lookup — Latest Price Selection

The prices table is an append-only time series per (product_id, sub_type_name).
Callers only ever see the newest snapshot of each sub-type.

Given rows already ordered by recorded_at DESC, the first row seen for a
(product_id, sub_type_name) pair is the latest one, so a single pass with a
seen-set is enough. No per-product query.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol, TypeVar


class PriceRowLike(Protocol):
    product_id: int
    sub_type_name: str


RowT = TypeVar("RowT", bound=PriceRowLike)


def select_latest_prices(rows_newest_first: Iterable[RowT]) -> dict[int, list[RowT]]:
    """
    Keep the first-seen row per (product_id, sub_type_name).

    Args:
        rows_newest_first: Price rows ordered by recorded_at descending.

    Returns:
        product_id -> latest rows, one per sub-type, in first-seen order.
        Products with no rows are absent from the mapping.
    """
    latest: dict[int, list[RowT]] = {}
    seen: set[tuple[int, str]] = set()

    for row in rows_newest_first:
        key = (row.product_id, row.sub_type_name)
        if key in seen:
            continue
        seen.add(key)
        latest.setdefault(row.product_id, []).append(row)

    return latest
