from __future__ import annotations

from datetime import datetime, timedelta
from typing import Iterable

from collection_curator.domain.catalog.models import Item
from collection_curator.domain.common.ids import ItemId
from collection_curator.domain.sales.aggregator import OrderLineAggregate, SalesAggregates

TRENDING_BUCKET = timedelta(hours=12)


def recency_bucket_index(last_sold_at: datetime, now: datetime, bucket: timedelta = TRENDING_BUCKET) -> int:
    """
    Index of the recency bucket a sale falls in, 0 being the most recent.

    Sales in the future relative to now (clock skew) land in bucket 0.
    """
    age = now - last_sold_at
    if age < timedelta(0):
        return 0
    return int(age // bucket)


def rank_by_units(aggregates: SalesAggregates) -> list[ItemId]:
    """
    Sort items with sales by units_sold DESC, then item_id ASC.

    Args:
        aggregates: Per-item sales statistics

    Returns:
        Item ids with units_sold > 0 in rank order
    """
    selling = [(item_id, agg) for item_id, agg in aggregates.items() if agg.units_sold > 0]
    selling.sort(key=lambda pair: (-pair[1].units_sold, pair[0]))
    return [item_id for item_id, _ in selling]


def rank_by_recency_then_units(aggregates: SalesAggregates, now: datetime) -> list[ItemId]:
    """
    Sort items by recency bucket ASC, then units_sold DESC, then item_id ASC.

    Items sold within the same 12 hour bucket are co-recent and compared by
    volume. A single composite key keeps the ordering a strict total order.
    """

    def sort_key(pair: tuple[ItemId, OrderLineAggregate]) -> tuple:
        item_id, agg = pair
        return (recency_bucket_index(agg.last_sold_at, now), -agg.units_sold, item_id)

    selling = [(item_id, agg) for item_id, agg in aggregates.items() if agg.units_sold > 0]
    selling.sort(key=sort_key)
    return [item_id for item_id, _ in selling]


def rank_newest_first(items: Iterable[Item], created_since: datetime) -> list[ItemId]:
    recent = [item for item in items if item.created_at >= created_since]
    # Two stable passes: id ASC as tie-breaker, then created_at DESC
    recent.sort(key=lambda item: item.item_id)
    recent.sort(key=lambda item: item.created_at, reverse=True)
    return [item.item_id for item in recent]


def rank_oldest_first(items: Iterable[Item], excluded_ids: set[ItemId]) -> list[ItemId]:
    remaining = [item for item in items if item.item_id not in excluded_ids]
    remaining.sort(key=lambda item: (item.created_at, item.item_id))
    return [item.item_id for item in remaining]


def apply_target_count(item_ids: list[ItemId], target_count: int) -> list[ItemId]:
    """Take the first target_count ids, preserving order."""
    return item_ids[: max(target_count, 0)]
