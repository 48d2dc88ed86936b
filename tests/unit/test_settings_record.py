from __future__ import annotations

from datetime import datetime, timezone

import pytest

from collection_curator.domain.cohorts.models import CohortName
from collection_curator.domain.ordering.models import PUSH_DOWN, PositionBucket
from collection_curator.domain.settings_record import parse_settings_record


def test_empty_document_uses_defaults():
    record = parse_settings_record(None)

    bestsellers = record.cohort_rule(CohortName.BESTSELLERS)
    assert bestsellers.tag == "bestsellers-resort"
    assert bestsellers.target_count == 50
    assert bestsellers.exclude_out_of_stock is True
    assert bestsellers.paid_orders_only is True
    assert record.cohort_rule(CohortName.TRENDING).tag == "br-trending"
    assert record.cohort_rule(CohortName.NEW_ARRIVALS).lookback_days == 7
    assert record.cohort_rule(CohortName.AGING).lookback_days == 90
    assert record.exclusions.enabled is False
    assert record.collections == {}


def test_cohort_overrides_merge_with_defaults():
    record = parse_settings_record(
        {"cohorts": {"aging": {"target_count": 10, "tag": " slow-movers ", "collection_id": "gid://c/5"}}}
    )

    aging = record.cohort_rule(CohortName.AGING)
    assert aging.target_count == 10
    assert aging.tag == "slow-movers"
    assert aging.collection_id == "gid://c/5"
    assert aging.lookback_days == 90


def test_paid_orders_filter_can_be_turned_off_per_cohort():
    record = parse_settings_record({"cohorts": {"trending": {"paid_orders_only": False}}})

    assert record.cohort_rule(CohortName.TRENDING).paid_orders_only is False
    assert record.cohort_rule(CohortName.BESTSELLERS).paid_orders_only is True


def test_collection_sort_config_is_parsed():
    record = parse_settings_record(
        {
            "exclusions": {"enabled": True, "tags": ["hidden", " "]},
            "collections": {
                "gid://c/1": {
                    "featured": {
                        "limit": 2,
                        "items": [
                            {"item_id": "p1"},
                            {
                                "item_id": "p2",
                                "featured_type": "scheduled",
                                "start_date": "2025-05-30T00:00:00Z",
                                "days_to_feature": 5,
                            },
                        ],
                    },
                    "tag_rules": [{"tag_name": "clearance", "position": "bottom"}],
                    "behavior": {"push_out_of_stock_down": True, "out_of_stock_vs_featured": "push-down"},
                }
            },
        }
    )

    config = record.sort_config("gid://c/1")
    assert record.exclusions.tags == frozenset({"hidden"})
    assert config.featured.limit == 2
    assert config.featured.entries[1].start_date == datetime(2025, 5, 30, tzinfo=timezone.utc)
    assert config.tag_rules[0].bucket == PositionBucket.BOTTOM
    assert config.behavior.push_out_of_stock_down is True
    assert config.behavior.push_new_items_up is False
    assert config.behavior.out_of_stock_vs_featured == PUSH_DOWN


def test_unconfigured_collection_gets_natural_order_config():
    config = parse_settings_record({}).sort_config("gid://c/unknown")
    assert config.tag_rules == ()
    assert config.featured.entries == ()


@pytest.mark.parametrize(
    "document",
    [
        {"cohorts": {"unknown_cohort": {}}},
        {"cohorts": {"bestsellers": {"target_count": "fifty"}}},
        {"cohorts": {"bestsellers": {"paid_orders_only": "yes"}}},
        {"collections": {"c": {"tag_rules": [{"tag_name": "x", "position": "top"}]}}},
        {"collections": {"c": {"behavior": {"out_of_stock_vs_new": "sideways"}}}},
        {"exclusions": {"tags": "hidden"}},
    ],
)
def test_invalid_documents_are_rejected(document):
    with pytest.raises(ValueError):
        parse_settings_record(document)
