from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest

from collection_curator.adapters.shopify import queries
from collection_curator.adapters.shopify.catalog_gateway import ShopifyCatalogGateway
from collection_curator.adapters.shopify.client import ShopifyApiError, ShopifyGraphQLClient
from collection_curator.application.errors import FetchFailure, MutationError
from collection_curator.application.pagination import fetch_all
from collection_curator.domain.common.ids import CollectionId, ItemId, JobRef
from collection_curator.domain.ordering.models import Move
from collection_curator.domain.sales.aggregator import OrderWindow

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


def _gateway(*payloads) -> tuple[ShopifyCatalogGateway, Mock]:
    client = Mock(spec=ShopifyGraphQLClient)
    client.execute.side_effect = list(payloads)
    return ShopifyCatalogGateway(client), client


def _product(product_id: str, tags=("a",), inventory=3) -> dict:
    return {
        "id": product_id,
        "title": f"Product {product_id}",
        "tags": list(tags),
        "totalInventory": inventory,
        "createdAt": "2025-05-01T10:00:00Z",
    }


def test_fetch_orders_page_parses_lines_and_cursor():
    payload = {
        "orders": {
            "edges": [
                {
                    "node": {
                        "id": "gid://shopify/Order/1",
                        "createdAt": "2025-05-31T08:00:00Z",
                        "lineItems": {
                            "edges": [
                                {
                                    "node": {
                                        "quantity": 2,
                                        "product": {"id": "gid://shopify/Product/7"},
                                        "originalTotalSet": {"shopMoney": {"amount": "19.90"}},
                                    }
                                },
                                {"node": {"quantity": 1, "product": None, "originalTotalSet": None}},
                            ]
                        },
                    }
                }
            ],
            "pageInfo": {"hasNextPage": True, "endCursor": "cursor-1"},
        }
    }
    gateway, client = _gateway(payload)

    page = gateway.fetch_orders_page(OrderWindow.trailing(NOW, 7), 250, None)

    order = page.records[0]
    assert page.next_cursor == "cursor-1"
    assert order.created_at == datetime(2025, 5, 31, 8, tzinfo=timezone.utc)
    assert order.lines[0].item_id == "gid://shopify/Product/7"
    assert order.lines[0].amount == Decimal("19.90")
    assert order.lines[1].item_id is None
    variables = client.execute.call_args.args[1]
    assert variables["query"] == (
        "financial_status:paid AND created_at:>='2025-05-25T12:00:00Z' AND created_at:<'2025-06-01T12:00:00Z'"
    )
    assert variables["first"] == 250


def _order_node(order_id: str, lines: list[dict], page_info: dict | None = None, status: str = "PAID") -> dict:
    line_items: dict = {"edges": [{"node": line} for line in lines]}
    if page_info is not None:
        line_items["pageInfo"] = page_info
    return {"id": order_id, "createdAt": "2025-05-31T08:00:00Z", "displayFinancialStatus": status, "lineItems": line_items}


def _line(product_id: str, quantity: int = 1, amount="5.00") -> dict:
    return {
        "quantity": quantity,
        "product": {"id": product_id},
        "originalTotalSet": {"shopMoney": {"amount": amount}},
    }


def test_fetch_orders_page_without_paid_filter_searches_all_orders():
    payload = {"orders": {"edges": [{"node": _order_node("o1", [_line("p1")], status="PENDING")}]}}
    gateway, client = _gateway(payload)

    page = gateway.fetch_orders_page(OrderWindow.trailing(NOW, 7), 250, None, paid_only=False)

    variables = client.execute.call_args.args[1]
    assert variables["query"] == "created_at:>='2025-05-25T12:00:00Z' AND created_at:<'2025-06-01T12:00:00Z'"
    assert page.records[0].financial_status == "PENDING"
    assert not page.records[0].is_paid


def test_fetch_orders_page_follows_line_item_cursor():
    first = {
        "orders": {
            "edges": [
                {
                    "node": _order_node(
                        "gid://shopify/Order/1",
                        [_line("p1", 2)],
                        page_info={"hasNextPage": True, "endCursor": "line-1"},
                    )
                }
            ],
            "pageInfo": {"hasNextPage": False, "endCursor": None},
        }
    }
    rest = {
        "order": {
            "lineItems": {
                "edges": [{"node": _line("p2", 3)}],
                "pageInfo": {"hasNextPage": False, "endCursor": "line-2"},
            }
        }
    }
    gateway, client = _gateway(first, rest)

    page = gateway.fetch_orders_page(OrderWindow.trailing(NOW, 7), 250, None)

    order = page.records[0]
    assert [(line.item_id, line.quantity) for line in order.lines] == [("p1", 2), ("p2", 3)]
    query, variables = client.execute.call_args.args
    assert query == queries.ORDER_LINE_ITEMS_QUERY
    assert variables == {"id": "gid://shopify/Order/1", "first": 250, "after": "line-1"}


def test_order_missing_while_paging_line_items_raises():
    first = {
        "orders": {
            "edges": [{"node": _order_node("o1", [_line("p1")], page_info={"hasNextPage": True, "endCursor": "c"})}]
        }
    }
    gateway, _ = _gateway(first, {"order": None})

    with pytest.raises(ShopifyApiError, match="disappeared"):
        gateway.fetch_orders_page(OrderWindow.trailing(NOW, 7), 250, None)


def test_malformed_line_amount_raises():
    payload = {"orders": {"edges": [{"node": _order_node("o1", [_line("p1", amount="12,50")])}]}}
    gateway, _ = _gateway(payload)

    with pytest.raises(ValueError, match="Invalid money amount"):
        gateway.fetch_orders_page(OrderWindow.trailing(NOW, 7), 250, None)


def test_malformed_line_amount_fails_the_whole_fetch():
    payload = {"orders": {"edges": [{"node": _order_node("o1", [_line("p1", amount="NaN")])}]}}
    gateway, _ = _gateway(payload)
    window = OrderWindow.trailing(NOW, 7)

    with pytest.raises(FetchFailure):
        fetch_all(lambda size, cursor: gateway.fetch_orders_page(window, size, cursor), 250, label="orders")



def test_fetch_products_page_parses_items():
    payload = {
        "products": {
            "edges": [{"node": _product("p1", tags=("sale", " "))}, {"node": _product("p2", inventory=None)}],
            "pageInfo": {"hasNextPage": False, "endCursor": "ignored"},
        }
    }
    gateway, _ = _gateway(payload)

    page = gateway.fetch_products_page(100, "after-1")

    assert page.next_cursor is None
    assert page.records[0].tags == frozenset({"sale"})
    assert page.records[0].available_quantity == 3
    assert page.records[1].available_quantity == 0


def test_get_collection_returns_none_when_missing():
    gateway, _ = _gateway({"collection": None})
    assert gateway.get_collection(CollectionId("gid://c/1")) is None


def test_get_collection_reads_sort_order():
    gateway, _ = _gateway(
        {"collection": {"id": "gid://c/1", "title": "Summer", "sortOrder": "MANUAL", "productsCount": {"count": 4}}}
    )

    info = gateway.get_collection(CollectionId("gid://c/1"))

    assert info.is_manual
    assert info.items_count == 4


def test_patch_tags_sends_full_sorted_tag_set():
    gateway, client = _gateway({"productUpdate": {"product": {"id": "p1"}, "userErrors": []}})

    gateway.patch_tags(ItemId("p1"), frozenset({"b", "a"}))

    query, variables = client.execute.call_args.args
    assert query == queries.UPDATE_PRODUCT_TAGS_MUTATION
    assert variables == {"input": {"id": "p1", "tags": ["a", "b"]}}


def test_patch_tags_user_errors_raise_mutation_error():
    gateway, _ = _gateway({"productUpdate": {"userErrors": [{"field": ["tags"], "message": "Tags are invalid"}]}})

    with pytest.raises(MutationError, match="Tags are invalid"):
        gateway.patch_tags(ItemId("p1"), frozenset())


def test_patch_tags_api_failure_raises_mutation_error():
    gateway, _ = _gateway(ShopifyApiError("GraphQL HTTP 502"))

    with pytest.raises(MutationError):
        gateway.patch_tags(ItemId("p1"), frozenset({"a"}))


def test_submit_order_sends_string_positions():
    gateway, client = _gateway(
        {"collectionReorderProducts": {"job": {"id": "gid://shopify/Job/1", "done": False}, "userErrors": []}}
    )

    submission = gateway.submit_order(CollectionId("gid://c/1"), [Move(ItemId("p2"), 0), Move(ItemId("p1"), 1)])

    assert submission.job_ref == "gid://shopify/Job/1"
    assert submission.user_errors == []
    variables = client.execute.call_args.args[1]
    assert variables["moves"] == [{"id": "p2", "newPosition": "0"}, {"id": "p1", "newPosition": "1"}]


def test_submit_order_reports_user_errors():
    gateway, _ = _gateway(
        {"collectionReorderProducts": {"job": None, "userErrors": [{"field": ["id"], "message": "Not manual"}]}}
    )

    submission = gateway.submit_order(CollectionId("gid://c/1"), [])

    assert submission.job_ref is None
    assert submission.user_errors[0].message == "Not manual"


def test_poll_job():
    gateway, _ = _gateway({"job": {"id": "gid://shopify/Job/1", "done": True}})
    assert gateway.poll_job(JobRef("gid://shopify/Job/1")).done is True


def test_create_tag_collection_uses_tag_rule_set():
    gateway, client = _gateway({"collectionCreate": {"collection": {"id": "gid://c/9", "title": "Bestsellers"}, "userErrors": []}})

    collection_id = gateway.create_tag_collection("Bestsellers", "bestsellers-resort")

    assert collection_id == "gid://c/9"
    rule_set = client.execute.call_args.args[1]["input"]["ruleSet"]
    assert rule_set == {
        "appliedDisjunctively": False,
        "rules": [{"column": "TAG", "relation": "EQUALS", "condition": "bestsellers-resort"}],
    }


def test_create_tag_collection_user_errors_raise():
    gateway, _ = _gateway({"collectionCreate": {"collection": None, "userErrors": [{"message": "Title taken"}]}})

    with pytest.raises(ShopifyApiError, match="Title taken"):
        gateway.create_tag_collection("Bestsellers", "tag")
