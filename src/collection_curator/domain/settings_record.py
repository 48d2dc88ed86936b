"""Per-tenant business settings: JSON schema, defaults and parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

import jsonschema

from collection_curator.domain.cohorts.models import CohortName, CohortRule, ExclusionPolicy
from collection_curator.domain.common.ids import CollectionId, ItemId
from collection_curator.domain.common.timestamps import parse_timestamp
from collection_curator.domain.ordering.models import (
    KEEP_FEATURED,
    PUSH_DOWN,
    PUSH_NEW,
    BehaviorFlags,
    FeaturedEntry,
    FeaturedList,
    PositionBucket,
    TagPositionRule,
)

DEFAULT_COHORTS: dict[CohortName, dict[str, Any]] = {
    CohortName.BESTSELLERS: {
        "enabled": True,
        "tag": "bestsellers-resort",
        "target_count": 50,
        "lookback_days": 180,
        "exclude_out_of_stock": True,
        "paid_orders_only": True,
        "create_collection": True,
        "collection_title": "Bestsellers",
    },
    CohortName.TRENDING: {
        "enabled": True,
        "tag": "br-trending",
        "target_count": 50,
        "lookback_days": 7,
        "exclude_out_of_stock": False,
        "paid_orders_only": True,
        "create_collection": False,
        "collection_title": "Trending Now",
    },
    CohortName.NEW_ARRIVALS: {
        "enabled": True,
        "tag": "br-new",
        "target_count": 50,
        "lookback_days": 7,
        "exclude_out_of_stock": True,
        "paid_orders_only": True,
        "create_collection": True,
        "collection_title": "New Arrivals",
    },
    CohortName.AGING: {
        "enabled": True,
        "tag": "br-aging",
        "target_count": 50,
        "lookback_days": 90,
        "exclude_out_of_stock": False,
        "paid_orders_only": True,
        "create_collection": True,
        "collection_title": "Aging Inventory",
    },
}

_COHORT_RULE_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "enabled": {"type": "boolean"},
        "tag": {"type": "string"},
        "target_count": {"type": "integer"},
        "lookback_days": {"type": "integer", "minimum": 1},
        "exclude_out_of_stock": {"type": "boolean"},
        "paid_orders_only": {"type": "boolean"},
        "create_collection": {"type": "boolean"},
        "collection_id": {"type": ["string", "null"]},
        "collection_title": {"type": ["string", "null"]},
    },
}

SETTINGS_SCHEMA: dict[str, Any] = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "cohorts": {
            "type": "object",
            "propertyNames": {"enum": [cohort.value for cohort in CohortName]},
            "additionalProperties": _COHORT_RULE_SCHEMA,
        },
        "exclusions": {
            "type": "object",
            "properties": {
                "enabled": {"type": "boolean"},
                "tags": {"type": "array", "items": {"type": "string"}},
            },
        },
        "collections": {
            "type": "object",
            "additionalProperties": {
                "type": "object",
                "properties": {
                    "featured": {
                        "type": "object",
                        "properties": {
                            "limit": {"type": "integer", "minimum": 0},
                            "items": {
                                "type": "array",
                                "items": {
                                    "type": "object",
                                    "required": ["item_id"],
                                    "properties": {
                                        "item_id": {"type": "string"},
                                        "featured_type": {"enum": ["manual", "scheduled"]},
                                        "start_date": {"type": ["string", "null"]},
                                        "days_to_feature": {"type": ["integer", "null"], "minimum": 1},
                                    },
                                },
                            },
                        },
                    },
                    "tag_rules": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "required": ["tag_name", "position"],
                            "properties": {
                                "tag_name": {"type": "string", "minLength": 1},
                                "position": {"enum": [bucket.value for bucket in PositionBucket]},
                            },
                        },
                    },
                    "behavior": {
                        "type": "object",
                        "properties": {
                            "push_new_items_up": {"type": "boolean"},
                            "push_out_of_stock_down": {"type": "boolean"},
                            "new_item_window_days": {"type": "integer", "minimum": 1},
                            "out_of_stock_vs_featured": {"enum": [KEEP_FEATURED, PUSH_DOWN]},
                            "out_of_stock_vs_new": {"enum": [PUSH_NEW, PUSH_DOWN]},
                        },
                    },
                },
            },
        },
    },
}


@dataclass(frozen=True)
class CollectionSortConfig:
    featured: FeaturedList = field(default_factory=FeaturedList)
    tag_rules: tuple[TagPositionRule, ...] = ()
    behavior: BehaviorFlags = field(default_factory=BehaviorFlags)


@dataclass(frozen=True)
class SettingsRecord:
    """Validated, immutable tenant configuration for one invocation."""

    cohorts: dict[CohortName, CohortRule]
    exclusions: ExclusionPolicy = field(default_factory=ExclusionPolicy)
    collections: dict[CollectionId, CollectionSortConfig] = field(default_factory=dict)

    def cohort_rule(self, cohort: CohortName) -> CohortRule:
        return self.cohorts[cohort]

    def sort_config(self, collection_id: CollectionId) -> CollectionSortConfig:
        """Sort configuration for a collection; an unconfigured collection keeps natural order."""
        return self.collections.get(collection_id, CollectionSortConfig())


def validate_settings_document(document: Mapping[str, Any]) -> None:
    try:
        jsonschema.validate(instance=dict(document), schema=SETTINGS_SCHEMA)
    except jsonschema.ValidationError as e:
        raise ValueError(f"Settings validation failed: {e.message}") from e


def _parse_cohort_rule(cohort: CohortName, overrides: Mapping[str, Any]) -> CohortRule:
    values = {**DEFAULT_COHORTS[cohort], **overrides}
    collection_id = values.get("collection_id")
    return CohortRule(
        cohort=cohort,
        enabled=values["enabled"],
        tag=values["tag"].strip(),
        target_count=values["target_count"],
        lookback_days=values["lookback_days"],
        exclude_out_of_stock=values["exclude_out_of_stock"],
        paid_orders_only=values["paid_orders_only"],
        create_collection=values["create_collection"],
        collection_id=CollectionId(collection_id) if collection_id else None,
        collection_title=values.get("collection_title"),
    )


def _parse_featured(raw: Mapping[str, Any]) -> FeaturedList:
    entries = tuple(
        FeaturedEntry(
            item_id=ItemId(entry["item_id"]),
            featured_type=entry.get("featured_type", "manual"),
            start_date=parse_timestamp(entry.get("start_date")),
            days_to_feature=entry.get("days_to_feature"),
        )
        for entry in raw.get("items", [])
    )
    return FeaturedList(entries=entries, limit=raw.get("limit", 0))


def _parse_sort_config(raw: Mapping[str, Any]) -> CollectionSortConfig:
    behavior_raw = raw.get("behavior", {})
    defaults = BehaviorFlags()
    behavior = BehaviorFlags(
        push_new_items_up=behavior_raw.get("push_new_items_up", defaults.push_new_items_up),
        push_out_of_stock_down=behavior_raw.get("push_out_of_stock_down", defaults.push_out_of_stock_down),
        new_item_window_days=behavior_raw.get("new_item_window_days", defaults.new_item_window_days),
        out_of_stock_vs_featured=behavior_raw.get("out_of_stock_vs_featured", defaults.out_of_stock_vs_featured),
        out_of_stock_vs_new=behavior_raw.get("out_of_stock_vs_new", defaults.out_of_stock_vs_new),
    )
    tag_rules = tuple(
        TagPositionRule(tag_name=rule["tag_name"].strip(), bucket=PositionBucket(rule["position"]))
        for rule in raw.get("tag_rules", [])
    )
    return CollectionSortConfig(
        featured=_parse_featured(raw.get("featured", {})),
        tag_rules=tag_rules,
        behavior=behavior,
    )


def parse_settings_record(document: Optional[Mapping[str, Any]]) -> SettingsRecord:
    """
    Validate a stored settings document and build a SettingsRecord.

    Cohorts missing from the document get their defaults; fields missing from
    a cohort entry are filled from the same defaults.

    Args:
        document: Raw settings as returned by the settings store (None for a new tenant)

    Returns:
        SettingsRecord

    Raises:
        ValueError: If the document does not match SETTINGS_SCHEMA
    """
    document = document or {}
    validate_settings_document(document)

    cohorts_raw = document.get("cohorts", {})
    cohorts = {cohort: _parse_cohort_rule(cohort, cohorts_raw.get(cohort.value, {})) for cohort in CohortName}

    exclusions_raw = document.get("exclusions", {})
    exclusions = ExclusionPolicy(
        enabled=exclusions_raw.get("enabled", False),
        tags=frozenset(tag.strip() for tag in exclusions_raw.get("tags", []) if tag.strip()),
    )

    collections = {
        CollectionId(collection_id): _parse_sort_config(raw)
        for collection_id, raw in document.get("collections", {}).items()
    }
    return SettingsRecord(cohorts=cohorts, exclusions=exclusions, collections=collections)
