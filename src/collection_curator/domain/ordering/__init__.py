from __future__ import annotations

from collection_curator.domain.ordering.composer import compose_collection_order
from collection_curator.domain.ordering.models import (
    BehaviorFlags,
    CollectionOrderResult,
    FeaturedEntry,
    FeaturedList,
    Move,
    PositionBucket,
    TagPositionRule,
    Tier,
)

__all__ = [
    "compose_collection_order",
    "BehaviorFlags",
    "CollectionOrderResult",
    "FeaturedEntry",
    "FeaturedList",
    "Move",
    "PositionBucket",
    "TagPositionRule",
    "Tier",
]
