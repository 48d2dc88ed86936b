from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import Decimal
from typing import Iterable, Mapping

from collection_curator.domain.catalog.models import OrderRecord
from collection_curator.domain.common.ids import ItemId

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrderLineAggregate:
    """Per-item sales statistics for one lookback window."""

    units_sold: int
    revenue: Decimal
    last_sold_at: datetime

    def combine(self, other: "OrderLineAggregate") -> "OrderLineAggregate":
        return OrderLineAggregate(
            units_sold=self.units_sold + other.units_sold,
            revenue=self.revenue + other.revenue,
            last_sold_at=max(self.last_sold_at, other.last_sold_at),
        )


SalesAggregates = Mapping[ItemId, OrderLineAggregate]


@dataclass(frozen=True)
class OrderWindow:
    """Half-open interval [start, end) of order creation times."""

    start: datetime
    end: datetime

    @classmethod
    def trailing(cls, now: datetime, lookback_days: int) -> "OrderWindow":
        return cls(start=now - timedelta(days=lookback_days), end=now)

    def contains(self, ts: datetime) -> bool:
        return self.start <= ts < self.end


def aggregate_sales(orders: Iterable[OrderRecord]) -> dict[ItemId, OrderLineAggregate]:
    """
    Accumulate order line items into per-item aggregates.

    Lines without an item reference are skipped. An empty order set yields an
    empty map, which callers treat as "no qualifying activity".

    Args:
        orders: Order records for one window (materialized or streamed)

    Returns:
        Dictionary mapping item_id to OrderLineAggregate
    """
    aggregates: dict[ItemId, OrderLineAggregate] = {}
    order_count = 0
    skipped_lines = 0

    for order in orders:
        order_count += 1
        for line in order.lines:
            if not line.item_id:
                skipped_lines += 1
                continue

            contribution = OrderLineAggregate(
                units_sold=line.quantity,
                revenue=line.amount,
                last_sold_at=order.created_at,
            )
            existing = aggregates.get(line.item_id)
            aggregates[line.item_id] = existing.combine(contribution) if existing else contribution

    if skipped_lines:
        logger.debug(f"Skipped {skipped_lines} line items without an item reference")
    logger.info(f"Aggregated {order_count} orders into {len(aggregates)} items with sales")
    return aggregates


def merge_aggregates(left: SalesAggregates, right: SalesAggregates) -> dict[ItemId, OrderLineAggregate]:
    """Combine two aggregate maps; commutative and associative."""
    merged: dict[ItemId, OrderLineAggregate] = dict(left)
    for item_id, aggregate in right.items():
        existing = merged.get(item_id)
        merged[item_id] = existing.combine(aggregate) if existing else aggregate
    return merged


def items_with_sales(aggregates: SalesAggregates) -> set[ItemId]:
    return {item_id for item_id, agg in aggregates.items() if agg.units_sold > 0}
