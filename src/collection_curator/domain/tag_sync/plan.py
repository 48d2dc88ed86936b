from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional, Sequence

from collection_curator.domain.catalog.models import Item
from collection_curator.domain.cohorts.models import ExclusionPolicy
from collection_curator.domain.common.ids import ItemId
from collection_curator.domain.tag_sync.exclusions import (
    NOT_IN_CATALOG,
    build_exclusion_checks,
    first_exclusion,
)


@dataclass(frozen=True)
class SkippedItem:
    item_id: ItemId
    reason: str


@dataclass(frozen=True)
class TagSyncPlan:
    """Minimal set of tag changes needed to converge a cohort tag."""

    tag: str
    to_tag: list[ItemId] = field(default_factory=list)
    to_untag: list[ItemId] = field(default_factory=list)
    already_tagged: list[ItemId] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)

    @property
    def is_noop(self) -> bool:
        return not self.to_tag and not self.to_untag

    def skip_reason_counts(self) -> dict[str, int]:
        counts: dict[str, int] = {}
        for skipped in self.skipped:
            counts[skipped.reason] = counts.get(skipped.reason, 0) + 1
        return counts


def index_catalog(items: Iterable[Item]) -> dict[ItemId, Item]:
    return {item.item_id: item for item in items}


def plan_tag_sync(
    ranked: Sequence[ItemId],
    catalog: Mapping[ItemId, Item],
    tag: str,
    exclusion: ExclusionPolicy,
    exclude_out_of_stock: bool,
    target_count: Optional[int] = None,
) -> TagSyncPlan:
    """
    Compute which items gain and which lose the cohort tag.

    Candidates are taken from the ranked list in order. Each one is dropped if it
    is missing from the catalog snapshot, then if it is out of stock (when
    exclude_out_of_stock), then if it carries an excluded tag. The first
    target_count survivors are selected, so a filtered item frees its slot for
    the next ranked one.

    Current tag membership is checked on both sides, so re-running with
    unchanged inputs yields empty to_tag and to_untag.

    Args:
        ranked: Cohort item ids in rank order
        catalog: Current catalog snapshot keyed by item id
        tag: Cohort tag name
        exclusion: Excluded-tag policy
        exclude_out_of_stock: Drop candidates with available quantity <= 0
        target_count: Maximum selected items; None selects every survivor

    Returns:
        TagSyncPlan with disjoint to_tag and to_untag lists
    """
    checks = build_exclusion_checks(exclude_out_of_stock, exclusion)
    limit = len(ranked) if target_count is None else max(target_count, 0)

    selected: list[ItemId] = []
    selected_ids: set[ItemId] = set()
    skipped: list[SkippedItem] = []

    for item_id in ranked:
        if len(selected) >= limit:
            break
        if item_id in selected_ids:
            continue
        item = catalog.get(item_id)
        if item is None:
            skipped.append(SkippedItem(item_id=item_id, reason=NOT_IN_CATALOG))
            continue
        reason = first_exclusion(item, checks)
        if reason is not None:
            skipped.append(SkippedItem(item_id=item_id, reason=reason))
            continue
        selected.append(item_id)
        selected_ids.add(item_id)

    to_tag = [item_id for item_id in selected if not catalog[item_id].has_tag(tag)]
    already_tagged = [item_id for item_id in selected if catalog[item_id].has_tag(tag)]
    to_untag = [
        item_id for item_id, item in catalog.items() if item.has_tag(tag) and item_id not in selected_ids
    ]

    return TagSyncPlan(
        tag=tag,
        to_tag=to_tag,
        to_untag=to_untag,
        already_tagged=already_tagged,
        skipped=skipped,
    )
