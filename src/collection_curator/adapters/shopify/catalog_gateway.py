from __future__ import annotations

import logging
from dataclasses import replace
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Sequence

from collection_curator.adapters.shopify import queries
from collection_curator.adapters.shopify.client import ShopifyApiError, ShopifyGraphQLClient
from collection_curator.application.errors import MutationError
from collection_curator.domain.catalog.models import (
    CollectionInfo,
    Item,
    JobStatus,
    JobSubmission,
    OrderLine,
    OrderRecord,
    Page,
    UserError,
)
from collection_curator.domain.common.ids import CollectionId, ItemId, JobRef
from collection_curator.domain.common.timestamps import format_timestamp, parse_timestamp
from collection_curator.domain.ordering.models import Move
from collection_curator.domain.sales.aggregator import OrderWindow
from collection_curator.settings import MAX_PAGE_SIZE

logger = logging.getLogger(__name__)


def _edges(connection: Optional[dict[str, Any]]) -> list[dict[str, Any]]:
    if not connection:
        return []
    return [edge["node"] for edge in connection.get("edges", []) if edge.get("node")]


def _next_cursor(connection: Optional[dict[str, Any]]) -> Optional[str]:
    page_info = (connection or {}).get("pageInfo") or {}
    return page_info.get("endCursor") if page_info.get("hasNextPage") else None


def _user_errors(raw: Optional[list[dict[str, Any]]]) -> list[UserError]:
    return [UserError(message=error.get("message", ""), field=error.get("field")) for error in raw or []]


def _money(value: Any) -> Decimal:
    """Parse a money amount; an absent amount is zero, a malformed one is rejected."""
    if value is None:
        return Decimal("0")
    try:
        amount = Decimal(str(value))
    except InvalidOperation as e:
        raise ValueError(f"Invalid money amount {value!r}") from e
    if not amount.is_finite():
        raise ValueError(f"Invalid money amount {value!r}")
    return amount


def _tag_rule_set(tag: str) -> dict[str, Any]:
    return {
        "appliedDisjunctively": False,
        "rules": [{"column": "TAG", "relation": "EQUALS", "condition": tag}],
    }


def parse_item(node: dict[str, Any]) -> Item:
    return Item(
        item_id=ItemId(node["id"]),
        title=node.get("title") or "",
        tags=frozenset(tag.strip() for tag in node.get("tags") or [] if tag.strip()),
        available_quantity=int(node.get("totalInventory") or 0),
        created_at=parse_timestamp(node["createdAt"]),
    )


def parse_line(line: dict[str, Any]) -> OrderLine:
    product = line.get("product") or {}
    amount = ((line.get("originalTotalSet") or {}).get("shopMoney") or {}).get("amount")
    return OrderLine(
        item_id=ItemId(product["id"]) if product.get("id") else None,
        quantity=int(line.get("quantity") or 0),
        amount=_money(amount),
    )


def parse_order(node: dict[str, Any]) -> OrderRecord:
    return OrderRecord(
        order_id=node["id"],
        created_at=parse_timestamp(node["createdAt"]),
        lines=tuple(parse_line(line) for line in _edges(node.get("lineItems"))),
        financial_status=node.get("displayFinancialStatus") or "",
    )


class ShopifyCatalogGateway:
    """CatalogGateway backed by the Shopify Admin GraphQL API."""

    def __init__(self, client: ShopifyGraphQLClient) -> None:
        self.client = client

    def fetch_orders_page(
        self, window: OrderWindow, page_size: int, cursor: Optional[str], paid_only: bool = True
    ) -> Page[OrderRecord]:
        search = f"created_at:>='{format_timestamp(window.start)}' AND created_at:<'{format_timestamp(window.end)}'"
        if paid_only:
            search = f"financial_status:paid AND {search}"
        data = self.client.execute(queries.ORDERS_QUERY, {"first": page_size, "after": cursor, "query": search})
        connection = data.get("orders")
        return Page(records=[self._complete_order(node) for node in _edges(connection)], next_cursor=_next_cursor(connection))

    def _complete_order(self, node: dict[str, Any]) -> OrderRecord:
        """Parse an order, following its line item cursor when the first page is not all of it."""
        order = parse_order(node)
        cursor = _next_cursor(node.get("lineItems"))
        if cursor is None:
            return order

        lines = list(order.lines)
        while cursor:
            data = self.client.execute(
                queries.ORDER_LINE_ITEMS_QUERY, {"id": order.order_id, "first": MAX_PAGE_SIZE, "after": cursor}
            )
            order_node = data.get("order")
            if order_node is None:
                raise ShopifyApiError(f"Order {order.order_id} disappeared while reading its line items")
            connection = order_node.get("lineItems")
            lines.extend(parse_line(line) for line in _edges(connection))
            cursor = _next_cursor(connection)
        logger.debug(f"Order {order.order_id} has {len(lines)} line items across several pages")
        return replace(order, lines=tuple(lines))

    def fetch_products_page(self, page_size: int, cursor: Optional[str]) -> Page[Item]:
        data = self.client.execute(queries.PRODUCTS_QUERY, {"first": page_size, "after": cursor})
        connection = data.get("products")
        return Page(records=[parse_item(node) for node in _edges(connection)], next_cursor=_next_cursor(connection))

    def fetch_collection_items_page(
        self, collection_id: CollectionId, page_size: int, cursor: Optional[str]
    ) -> Page[Item]:
        data = self.client.execute(
            queries.COLLECTION_PRODUCTS_QUERY, {"id": collection_id, "first": page_size, "after": cursor}
        )
        collection = data.get("collection")
        if collection is None:
            raise ShopifyApiError(f"Collection {collection_id} not found")
        connection = collection.get("products")
        return Page(records=[parse_item(node) for node in _edges(connection)], next_cursor=_next_cursor(connection))

    def get_collection(self, collection_id: CollectionId) -> Optional[CollectionInfo]:
        data = self.client.execute(queries.COLLECTION_QUERY, {"id": collection_id})
        collection = data.get("collection")
        if collection is None:
            return None
        return CollectionInfo(
            collection_id=CollectionId(collection["id"]),
            title=collection.get("title") or "",
            sort_order=collection.get("sortOrder") or "",
            items_count=(collection.get("productsCount") or {}).get("count"),
        )

    def patch_tags(self, item_id: ItemId, tags: frozenset[str]) -> None:
        try:
            data = self.client.execute(
                queries.UPDATE_PRODUCT_TAGS_MUTATION, {"input": {"id": item_id, "tags": sorted(tags)}}
            )
        except ShopifyApiError as e:
            raise MutationError(str(e), item_id=item_id) from e
        errors = _user_errors((data.get("productUpdate") or {}).get("userErrors"))
        if errors:
            raise MutationError("; ".join(error.message for error in errors), item_id=item_id)

    def submit_order(self, collection_id: CollectionId, moves: Sequence[Move]) -> JobSubmission:
        variables = {
            "id": collection_id,
            "moves": [{"id": move.item_id, "newPosition": str(move.new_position)} for move in moves],
        }
        data = self.client.execute(queries.COLLECTION_REORDER_MUTATION, variables)
        payload = data.get("collectionReorderProducts") or {}
        job = payload.get("job") or {}
        return JobSubmission(
            job_ref=JobRef(job["id"]) if job.get("id") else None,
            done=bool(job.get("done")),
            user_errors=_user_errors(payload.get("userErrors")),
        )

    def poll_job(self, job_ref: JobRef) -> JobStatus:
        data = self.client.execute(queries.JOB_QUERY, {"id": job_ref})
        job = data.get("job") or {}
        return JobStatus(job_ref=job_ref, done=bool(job.get("done")))

    def collection_exists(self, collection_id: CollectionId) -> bool:
        return self.get_collection(collection_id) is not None

    def create_tag_collection(self, title: str, tag: str) -> CollectionId:
        data = self.client.execute(
            queries.CREATE_COLLECTION_MUTATION, {"input": {"title": title, "ruleSet": _tag_rule_set(tag)}}
        )
        payload = data.get("collectionCreate") or {}
        errors = _user_errors(payload.get("userErrors"))
        if errors or not payload.get("collection"):
            raise ShopifyApiError(f"Error creating collection: {'; '.join(error.message for error in errors)}")
        return CollectionId(payload["collection"]["id"])

    def update_tag_collection(self, collection_id: CollectionId, title: str, tag: str) -> None:
        data = self.client.execute(
            queries.UPDATE_COLLECTION_MUTATION,
            {"input": {"id": collection_id, "title": title, "ruleSet": _tag_rule_set(tag)}},
        )
        errors = _user_errors((data.get("collectionUpdate") or {}).get("userErrors"))
        if errors:
            raise ShopifyApiError(f"Error updating collection: {'; '.join(error.message for error in errors)}")
        logger.debug(f"Refreshed collection {collection_id} for tag '{tag}'")
