from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from collection_curator.domain.catalog.models import OrderLine, OrderRecord
from collection_curator.domain.common.ids import ItemId
from collection_curator.domain.sales.aggregator import (
    OrderWindow,
    aggregate_sales,
    items_with_sales,
    merge_aggregates,
)

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _order(order_id: str, hours_ago: int, *lines: tuple) -> OrderRecord:
    return OrderRecord(
        order_id=order_id,
        created_at=NOW - timedelta(hours=hours_ago),
        lines=tuple(
            OrderLine(item_id=ItemId(item_id) if item_id else None, quantity=qty, amount=Decimal(amount))
            for item_id, qty, amount in lines
        ),
    )


ORDERS = [
    _order("o1", 30, ("A", 2, "20.00"), ("B", 1, "5.50")),
    _order("o2", 10, ("A", 1, "10.00")),
    _order("o3", 5, ("C", 4, "40.00"), (None, 9, "99.00")),
    _order("o4", 1, ("B", 3, "16.50")),
]


def test_aggregate_sales_accumulates_units_revenue_and_last_sale():
    aggregates = aggregate_sales(ORDERS)

    assert aggregates[ItemId("A")].units_sold == 3
    assert aggregates[ItemId("A")].revenue == Decimal("30.00")
    assert aggregates[ItemId("A")].last_sold_at == NOW - timedelta(hours=10)
    assert aggregates[ItemId("B")].units_sold == 4
    assert aggregates[ItemId("B")].revenue == Decimal("22.00")
    assert aggregates[ItemId("B")].last_sold_at == NOW - timedelta(hours=1)


def test_lines_without_item_reference_are_skipped():
    aggregates = aggregate_sales(ORDERS)

    assert set(aggregates) == {"A", "B", "C"}
    assert aggregates[ItemId("C")].units_sold == 4


def test_empty_order_set_yields_empty_map():
    assert aggregate_sales([]) == {}


def test_aggregation_is_additive_over_disjoint_batches():
    """Merging aggregates of two batches equals aggregating their union."""
    first, second = ORDERS[:2], ORDERS[2:]

    merged = merge_aggregates(aggregate_sales(first), aggregate_sales(second))

    assert merged == aggregate_sales(ORDERS)


def test_merge_is_commutative():
    left, right = aggregate_sales(ORDERS[:3]), aggregate_sales(ORDERS[3:])
    assert merge_aggregates(left, right) == merge_aggregates(right, left)


def test_items_with_sales():
    assert items_with_sales(aggregate_sales(ORDERS)) == {"A", "B", "C"}


def test_order_window_is_half_open():
    window = OrderWindow.trailing(NOW, 7)

    assert window.start == NOW - timedelta(days=7)
    assert window.contains(NOW - timedelta(days=7))
    assert window.contains(NOW - timedelta(seconds=1))
    assert not window.contains(NOW)
