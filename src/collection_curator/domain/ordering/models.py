from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional

from collection_curator.domain.common.ids import ItemId


class PositionBucket(str, Enum):
    AFTER_FEATURED = "after-featured"
    BEFORE_OUT_OF_STOCK = "before-out-of-stock"
    BOTTOM = "bottom"


class Tier(int, Enum):
    """Placement tiers, evaluated top to bottom."""

    FEATURED = 1
    AFTER_FEATURED = 2
    NEW = 3
    REGULAR = 4
    BEFORE_OUT_OF_STOCK = 5
    OUT_OF_STOCK = 6
    BOTTOM = 7
    FAILSAFE = 8


BUCKET_TIERS: dict[PositionBucket, Tier] = {
    PositionBucket.AFTER_FEATURED: Tier.AFTER_FEATURED,
    PositionBucket.BEFORE_OUT_OF_STOCK: Tier.BEFORE_OUT_OF_STOCK,
    PositionBucket.BOTTOM: Tier.BOTTOM,
}

# Conflict resolution between behaviour toggles and other tiers
KEEP_FEATURED = "keep-featured"
PUSH_NEW = "push-new"
PUSH_DOWN = "push-down"


@dataclass(frozen=True)
class TagPositionRule:
    tag_name: str
    bucket: PositionBucket


@dataclass(frozen=True)
class BehaviorFlags:
    push_new_items_up: bool = False
    push_out_of_stock_down: bool = False
    new_item_window_days: int = 7
    out_of_stock_vs_featured: str = KEEP_FEATURED  # or PUSH_DOWN
    out_of_stock_vs_new: str = PUSH_NEW  # or PUSH_DOWN


@dataclass(frozen=True)
class FeaturedEntry:
    """A manually curated pin; scheduled pins are active for a date window only."""

    item_id: ItemId
    featured_type: str = "manual"  # "manual" | "scheduled"
    start_date: Optional[datetime] = None
    days_to_feature: Optional[int] = None

    def is_active(self, now: datetime) -> bool:
        if self.featured_type != "scheduled":
            return True
        if self.start_date is None or self.days_to_feature is None:
            return True
        return self.start_date <= now < self.start_date + timedelta(days=self.days_to_feature)


@dataclass(frozen=True)
class FeaturedList:
    entries: tuple[FeaturedEntry, ...] = ()
    limit: int = 0  # 0 means every active entry is pinned

    @classmethod
    def of(cls, item_ids: list[str], limit: int = 0) -> "FeaturedList":
        return cls(entries=tuple(FeaturedEntry(item_id=ItemId(i)) for i in item_ids), limit=limit)

    def pinned_ids(self, now: datetime) -> list[ItemId]:
        """Active entries in curated order, de-duplicated, capped at limit."""
        pinned: list[ItemId] = []
        for entry in self.entries:
            if not entry.is_active(now) or entry.item_id in pinned:
                continue
            pinned.append(entry.item_id)
        if self.limit > 0:
            return pinned[: self.limit]
        return pinned


@dataclass(frozen=True)
class Move:
    item_id: ItemId
    new_position: int


@dataclass(frozen=True)
class CollectionOrderResult:
    """Total order of a collection expressed as a move-list."""

    moves: tuple[Move, ...] = ()
    tier_counts: dict[str, int] = field(default_factory=dict)

    @property
    def item_ids(self) -> list[ItemId]:
        return [move.item_id for move in self.moves]

    def __len__(self) -> int:
        return len(self.moves)
