from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from collection_curator.domain.common.ids import CollectionId, ItemId


class CohortName(str, Enum):
    BESTSELLERS = "bestsellers"
    TRENDING = "trending"
    NEW_ARRIVALS = "new_arrivals"
    AGING = "aging"


@dataclass(frozen=True)
class CohortRule:
    """Configuration for one cohort run."""

    cohort: CohortName
    enabled: bool = True
    tag: str = ""
    target_count: int = 50
    lookback_days: int = 30
    exclude_out_of_stock: bool = False
    create_collection: bool = False
    paid_orders_only: bool = True
    collection_id: Optional[CollectionId] = None
    collection_title: Optional[str] = None


@dataclass(frozen=True)
class ExclusionPolicy:
    """Items bearing any of these tags never receive a cohort tag."""

    enabled: bool = False
    tags: frozenset[str] = field(default_factory=frozenset)

    def excludes(self, item_tags: frozenset[str]) -> bool:
        return self.enabled and not item_tags.isdisjoint(self.tags)


@dataclass(frozen=True)
class CohortRanking:
    """Ranked item ids before the cap, and the capped selection."""

    cohort: CohortName
    ranked: list[ItemId]
    selected: list[ItemId]

    @property
    def is_empty(self) -> bool:
        return not self.ranked
