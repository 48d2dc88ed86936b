from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Iterable, Optional, Sequence, TypeVar

from collection_curator.application.errors import MutationError
from collection_curator.domain.catalog.models import (
    SORT_ORDER_MANUAL,
    CollectionInfo,
    Item,
    JobStatus,
    JobSubmission,
    OrderLine,
    OrderRecord,
    Page,
    UserError,
)
from collection_curator.domain.common.ids import CollectionId, ItemId, JobRef
from collection_curator.domain.ordering.models import Move
from collection_curator.domain.sales.aggregator import OrderWindow
from collection_curator.ports.catalog_gateway import CatalogGateway

T = TypeVar("T")


@dataclass
class StoredCollection:
    info: CollectionInfo
    item_ids: list[ItemId] = field(default_factory=list)
    tag: Optional[str] = None


def _page(records: Sequence[T], page_size: int, cursor: Optional[str]) -> Page[T]:
    start = int(cursor) if cursor else 0
    end = start + page_size
    return Page(records=list(records[start:end]), next_cursor=str(end) if end < len(records) else None)


class InMemoryCatalogGateway(CatalogGateway):
    """
    CatalogGateway over in-process state, used by the local adapters and tests.

    Every mutation is recorded (patches, submitted orders, created collections)
    so callers can assert on what would have been sent to the platform.
    """

    def __init__(
        self,
        items: Optional[Iterable[Item]] = None,
        orders: Optional[Iterable[OrderRecord]] = None,
        polls_until_done: Optional[int] = 1,
        failing_items: Optional[set[str]] = None,
        failing_operations: Optional[set[str]] = None,
        reorder_errors: Optional[list[str]] = None,
    ) -> None:
        self.items: dict[ItemId, Item] = {item.item_id: item for item in items or []}
        self.orders: list[OrderRecord] = list(orders or [])
        self.collections: dict[CollectionId, StoredCollection] = {}
        # None means the reorder job never reports done
        self.polls_until_done = polls_until_done
        self.failing_items = failing_items or set()
        self.failing_operations = failing_operations or set()
        self.reorder_errors = reorder_errors or []

        self.patches: list[tuple[ItemId, frozenset[str]]] = []
        self.submitted_orders: list[tuple[CollectionId, list[Move]]] = []
        self.poll_count = 0
        self.page_requests = 0
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    def _maybe_fail(self, operation: str) -> None:
        if operation in self.failing_operations:
            raise ConnectionError(f"Simulated failure in {operation}")

    def add_collection(
        self,
        collection_id: str,
        item_ids: Iterable[str],
        sort_order: str = SORT_ORDER_MANUAL,
        title: str = "",
    ) -> None:
        ids = [ItemId(item_id) for item_id in item_ids]
        info = CollectionInfo(
            collection_id=CollectionId(collection_id),
            title=title or collection_id,
            sort_order=sort_order,
            items_count=len(ids),
        )
        self.collections[CollectionId(collection_id)] = StoredCollection(info=info, item_ids=ids)

    def fetch_orders_page(
        self, window: OrderWindow, page_size: int, cursor: Optional[str], paid_only: bool = True
    ) -> Page[OrderRecord]:
        self._maybe_fail("fetch_orders_page")
        self.page_requests += 1
        in_window = [
            order
            for order in self.orders
            if window.contains(order.created_at) and (order.is_paid or not paid_only)
        ]
        return _page(in_window, page_size, cursor)

    def fetch_products_page(self, page_size: int, cursor: Optional[str]) -> Page[Item]:
        self._maybe_fail("fetch_products_page")
        self.page_requests += 1
        return _page(sorted(self.items.values(), key=lambda item: item.item_id), page_size, cursor)

    def fetch_collection_items_page(
        self, collection_id: CollectionId, page_size: int, cursor: Optional[str]
    ) -> Page[Item]:
        self._maybe_fail("fetch_collection_items_page")
        self.page_requests += 1
        stored = self.collections[collection_id]
        return _page([self.items[item_id] for item_id in stored.item_ids], page_size, cursor)

    def get_collection(self, collection_id: CollectionId) -> Optional[CollectionInfo]:
        self._maybe_fail("get_collection")
        stored = self.collections.get(collection_id)
        return stored.info if stored else None

    def patch_tags(self, item_id: ItemId, tags: frozenset[str]) -> None:
        if item_id in self.failing_items:
            raise MutationError(f"Simulated rejection for {item_id}", item_id=item_id)
        with self._lock:
            self.items[item_id] = replace(self.items[item_id], tags=frozenset(tags))
            self.patches.append((item_id, frozenset(tags)))

    def submit_order(self, collection_id: CollectionId, moves: Sequence[Move]) -> JobSubmission:
        self._maybe_fail("submit_order")
        self.submitted_orders.append((collection_id, list(moves)))
        if self.reorder_errors:
            return JobSubmission(user_errors=[UserError(message=message) for message in self.reorder_errors])

        stored = self.collections[collection_id]
        ordered = sorted(moves, key=lambda move: move.new_position)
        stored.item_ids = [move.item_id for move in ordered]
        self.poll_count = 0
        return JobSubmission(job_ref=JobRef(f"job-{next(self._ids)}"), done=self.polls_until_done == 0)

    def poll_job(self, job_ref: JobRef) -> JobStatus:
        self._maybe_fail("poll_job")
        self.poll_count += 1
        done = self.polls_until_done is not None and self.poll_count >= self.polls_until_done
        return JobStatus(job_ref=job_ref, done=done)

    def collection_exists(self, collection_id: CollectionId) -> bool:
        return collection_id in self.collections

    def create_tag_collection(self, title: str, tag: str) -> CollectionId:
        self._maybe_fail("create_tag_collection")
        collection_id = CollectionId(f"collection-{next(self._ids)}")
        info = CollectionInfo(collection_id=collection_id, title=title, sort_order="BEST_SELLING")
        self.collections[collection_id] = StoredCollection(info=info, tag=tag)
        return collection_id

    def update_tag_collection(self, collection_id: CollectionId, title: str, tag: str) -> None:
        stored = self.collections[collection_id]
        stored.info = replace(stored.info, title=title)
        stored.tag = tag

    def collection_order(self, collection_id: str) -> list[ItemId]:
        return list(self.collections[CollectionId(collection_id)].item_ids)

    @classmethod
    def with_demo_data(cls, now: Optional[datetime] = None) -> "InMemoryCatalogGateway":
        """A small catalog with recent orders and one manual collection named demo-collection."""
        now = now or datetime.now(timezone.utc)
        items = [
            Item(ItemId("demo-1"), "Linen Shirt", frozenset({"summer"}), 12, now - timedelta(days=200)),
            Item(ItemId("demo-2"), "Wool Scarf", frozenset({"clearance"}), 0, now - timedelta(days=120)),
            Item(ItemId("demo-3"), "Canvas Tote", frozenset(), 30, now - timedelta(days=3)),
            Item(ItemId("demo-4"), "Rain Jacket", frozenset(), 5, now - timedelta(days=40)),
        ]
        orders = [
            OrderRecord(
                "order-1",
                now - timedelta(hours=5),
                (OrderLine(ItemId("demo-1"), 3, Decimal("90.00")), OrderLine(ItemId("demo-4"), 1, Decimal("60.00"))),
            ),
            OrderRecord("order-2", now - timedelta(days=2), (OrderLine(ItemId("demo-1"), 1, Decimal("30.00")),)),
        ]
        gateway = cls(items=items, orders=orders)
        gateway.add_collection("demo-collection", [item.item_id for item in items], title="Demo")
        return gateway
