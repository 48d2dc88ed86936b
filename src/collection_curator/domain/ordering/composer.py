from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional, Sequence

from collection_curator.domain.catalog.models import Item
from collection_curator.domain.common.ids import ItemId
from collection_curator.domain.ordering.models import (
    BUCKET_TIERS,
    PUSH_DOWN,
    BehaviorFlags,
    CollectionOrderResult,
    FeaturedList,
    Move,
    PositionBucket,
    TagPositionRule,
    Tier,
)

logger = logging.getLogger(__name__)

# Tiers filled from per-item classification, in placement order
CLASSIFIED_TIERS = (
    Tier.AFTER_FEATURED,
    Tier.NEW,
    Tier.REGULAR,
    Tier.BEFORE_OUT_OF_STOCK,
    Tier.OUT_OF_STOCK,
    Tier.BOTTOM,
)


def match_tag_rule(item: Item, tag_rules: Sequence[TagPositionRule]) -> Optional[int]:
    """Index of the first declared rule whose tag the item carries."""
    for index, rule in enumerate(tag_rules):
        if item.has_tag(rule.tag_name):
            return index
    return None


def _is_new(item: Item, behavior: BehaviorFlags, now: datetime) -> bool:
    return item.created_at >= now - timedelta(days=behavior.new_item_window_days)


def _assign_tier(
    item: Item,
    tag_rules: Sequence[TagPositionRule],
    behavior: BehaviorFlags,
    now: datetime,
) -> tuple[Tier, int]:
    """
    Classify a non-featured item into the first tier it qualifies for, top to bottom.

    Only after-featured buckets outrank the new-item tier. An item in a
    before-out-of-stock or bottom bucket that also qualifies as new, or as
    out of stock ahead of a bottom bucket, takes the higher tier. Returns
    (tier, rule_index) where rule_index orders items inside a tag bucket by
    rule declaration.
    """
    rule_index = match_tag_rule(item, tag_rules)
    bucket = tag_rules[rule_index].bucket if rule_index is not None else None
    if bucket == PositionBucket.AFTER_FEATURED:
        return Tier.AFTER_FEATURED, rule_index

    out_of_stock = behavior.push_out_of_stock_down and not item.in_stock
    if behavior.push_new_items_up and _is_new(item, behavior, now):
        if not (out_of_stock and behavior.out_of_stock_vs_new == PUSH_DOWN):
            return Tier.NEW, 0
    if bucket is None and not out_of_stock:
        return Tier.REGULAR, 0
    if bucket == PositionBucket.BEFORE_OUT_OF_STOCK:
        return Tier.BEFORE_OUT_OF_STOCK, rule_index
    if out_of_stock:
        return Tier.OUT_OF_STOCK, 0
    return BUCKET_TIERS[bucket], rule_index


def _keeps_featured_pin(item: Item, behavior: BehaviorFlags) -> bool:
    if item.in_stock or not behavior.push_out_of_stock_down:
        return True
    return behavior.out_of_stock_vs_featured != PUSH_DOWN


def compose_collection_order(
    items: Sequence[Item],
    featured: FeaturedList,
    tag_rules: Sequence[TagPositionRule],
    behavior: BehaviorFlags,
    now: datetime,
) -> CollectionOrderResult:
    """
    Merge featured pins, tag position rules and behaviour toggles into one total order.

    Tiers, top to bottom:
    1. Featured pins (first M active entries, curated order)
    2. Tag rule bucket after-featured (rule order, then catalog order)
    3. New items, if push_new_items_up
    4. Everything else, catalog order
    5. Tag rule bucket before-out-of-stock
    6. Out-of-stock items, if push_out_of_stock_down
    7. Tag rule bucket bottom
    8. Failsafe: anything left unplaced, appended rather than dropped

    Args:
        items: Collection items in catalog order
        featured: Curated pins with optional cap
        tag_rules: Tag position rules in declaration order
        behavior: Behaviour toggles
        now: Reference time for the new-item window and scheduled pins

    Returns:
        CollectionOrderResult covering every input item exactly once
    """
    catalog: dict[ItemId, Item] = {}
    for item in items:
        catalog.setdefault(item.item_id, item)

    ordered: list[ItemId] = []
    placed: set[ItemId] = set()
    tier_counts: dict[str, int] = {}

    def place(item_id: ItemId, tier: Tier) -> None:
        ordered.append(item_id)
        placed.add(item_id)
        tier_counts[tier.name] = tier_counts.get(tier.name, 0) + 1

    for item_id in featured.pinned_ids(now):
        item = catalog.get(item_id)
        if item is None or item_id in placed:
            continue
        if _keeps_featured_pin(item, behavior):
            place(item_id, Tier.FEATURED)

    tiers: dict[Tier, list[tuple[int, int, ItemId]]] = {tier: [] for tier in CLASSIFIED_TIERS}
    for position, item in enumerate(catalog.values()):
        if item.item_id in placed:
            continue
        tier, rule_index = _assign_tier(item, tag_rules, behavior, now)
        if tier in tiers:
            tiers[tier].append((rule_index, position, item.item_id))

    for tier in CLASSIFIED_TIERS:
        for _, _, item_id in sorted(tiers[tier]):
            if item_id not in placed:
                place(item_id, tier)

    leftovers = [item_id for item_id in catalog if item_id not in placed]
    if leftovers:
        logger.warning(f"{len(leftovers)} items were not classified into any tier; appending them at the end")
        for item_id in leftovers:
            place(item_id, Tier.FAILSAFE)

    moves = tuple(Move(item_id=item_id, new_position=index) for index, item_id in enumerate(ordered))
    return CollectionOrderResult(moves=moves, tier_counts=tier_counts)
