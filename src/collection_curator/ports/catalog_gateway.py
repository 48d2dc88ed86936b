from __future__ import annotations

from typing import Optional, Protocol, Sequence

from collection_curator.domain.catalog.models import (
    CollectionInfo,
    Item,
    JobStatus,
    JobSubmission,
    OrderRecord,
    Page,
)
from collection_curator.domain.common.ids import CollectionId, ItemId, JobRef
from collection_curator.domain.ordering.models import Move
from collection_curator.domain.sales.aggregator import OrderWindow


class CatalogGateway(Protocol):
    """Reads and writes against the commerce platform."""

    def fetch_orders_page(
        self, window: OrderWindow, page_size: int, cursor: Optional[str], paid_only: bool = True
    ) -> Page[OrderRecord]: ...

    def fetch_products_page(self, page_size: int, cursor: Optional[str]) -> Page[Item]: ...

    def fetch_collection_items_page(
        self, collection_id: CollectionId, page_size: int, cursor: Optional[str]
    ) -> Page[Item]: ...

    def get_collection(self, collection_id: CollectionId) -> Optional[CollectionInfo]: ...

    def patch_tags(self, item_id: ItemId, tags: frozenset[str]) -> None: ...

    def submit_order(self, collection_id: CollectionId, moves: Sequence[Move]) -> JobSubmission: ...

    def poll_job(self, job_ref: JobRef) -> JobStatus: ...

    def collection_exists(self, collection_id: CollectionId) -> bool: ...

    def create_tag_collection(self, title: str, tag: str) -> CollectionId: ...

    def update_tag_collection(self, collection_id: CollectionId, title: str, tag: str) -> None: ...
