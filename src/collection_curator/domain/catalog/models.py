from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Generic, Optional, TypeVar

from collection_curator.domain.common.ids import CollectionId, ItemId, JobRef

T = TypeVar("T")

SORT_ORDER_MANUAL = "MANUAL"
FINANCIAL_STATUS_PAID = "PAID"


@dataclass(frozen=True)
class Item:
    """Catalog entry as seen by the engine."""

    item_id: ItemId
    title: str
    tags: frozenset[str]
    available_quantity: int
    created_at: datetime

    @property
    def in_stock(self) -> bool:
        return self.available_quantity > 0

    def has_tag(self, tag: str) -> bool:
        return tag in self.tags

    def has_any_tag(self, tags: frozenset[str]) -> bool:
        return not self.tags.isdisjoint(tags)


@dataclass(frozen=True)
class OrderLine:
    """One line of an order; item_id is None when the product was deleted."""

    item_id: Optional[ItemId]
    quantity: int
    amount: Decimal = Decimal("0")


@dataclass(frozen=True)
class OrderRecord:
    order_id: str
    created_at: datetime
    lines: tuple[OrderLine, ...] = ()
    financial_status: str = FINANCIAL_STATUS_PAID

    @property
    def is_paid(self) -> bool:
        return self.financial_status.upper() == FINANCIAL_STATUS_PAID


@dataclass(frozen=True)
class CollectionInfo:
    collection_id: CollectionId
    title: str
    sort_order: str
    items_count: Optional[int] = None

    @property
    def is_manual(self) -> bool:
        return self.sort_order.upper() == SORT_ORDER_MANUAL


@dataclass(frozen=True)
class Page(Generic[T]):
    """One page of a cursor-paginated result set."""

    records: list[T] = field(default_factory=list)
    next_cursor: Optional[str] = None


@dataclass(frozen=True)
class UserError:
    message: str
    field: Optional[list[str]] = None


@dataclass(frozen=True)
class JobSubmission:
    """Response of a set-order request: an async job reference or inline errors."""

    job_ref: Optional[JobRef] = None
    done: bool = False
    user_errors: list[UserError] = field(default_factory=list)


@dataclass(frozen=True)
class JobStatus:
    job_ref: JobRef
    done: bool
