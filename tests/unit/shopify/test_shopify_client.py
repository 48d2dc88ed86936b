from __future__ import annotations

from unittest.mock import Mock

import pytest
import requests

from collection_curator.adapters.shopify.client import ShopifyApiError, ShopifyGraphQLClient
from collection_curator.domain.common.ids import CorrelationId
from collection_curator.settings import Settings

SETTINGS = Settings(
    shopify_shop_domain="demo.myshopify.com",
    shopify_access_token="shpat_test",
    shopify_api_version="2024-10",
    request_timeout_seconds=12.0,
    request_max_retries=3,
)


def _response(status_code: int = 200, payload: dict | None = None) -> Mock:
    response = Mock()
    response.status_code = status_code
    response.json.return_value = payload if payload is not None else {"data": {}}
    response.text = "error body"
    return response


def _client(*responses) -> tuple[ShopifyGraphQLClient, Mock, Mock]:
    session = Mock()
    session.post.side_effect = list(responses)
    sleep = Mock()
    client = ShopifyGraphQLClient(SETTINGS, CorrelationId("corr-1"), session=session, sleep=sleep)
    return client, session, sleep


def test_execute_posts_query_and_returns_data():
    client, session, sleep = _client(_response(payload={"data": {"shop": {"name": "Demo"}}}))

    data = client.execute("query { shop { name } }", {"a": 1})

    assert data == {"shop": {"name": "Demo"}}
    args, kwargs = session.post.call_args
    assert args[0] == "https://demo.myshopify.com/admin/api/2024-10/graphql.json"
    assert kwargs["headers"]["X-Shopify-Access-Token"] == "shpat_test"
    assert kwargs["json"] == {"query": "query { shop { name } }", "variables": {"a": 1}}
    assert kwargs["timeout"] == 12.0
    sleep.assert_not_called()


def test_throttled_response_is_retried():
    throttled = _response(payload={"errors": [{"message": "Throttled", "extensions": {"code": "THROTTLED"}}]})
    client, session, sleep = _client(throttled, _response(payload={"data": {"ok": True}}))

    assert client.execute("query") == {"ok": True}
    assert session.post.call_count == 2
    assert sleep.call_count == 1


@pytest.mark.parametrize("status_code", [429, 502])
def test_retries_exhausted_raise(status_code):
    client, session, sleep = _client(*[_response(status_code) for _ in range(3)])

    with pytest.raises(ShopifyApiError):
        client.execute("query")

    assert session.post.call_count == 3
    assert sleep.call_count == 2


def test_network_timeout_is_retried():
    client, session, _ = _client(requests.Timeout("read timeout"), _response(payload={"data": {"ok": 1}}))

    assert client.execute("query") == {"ok": 1}
    assert session.post.call_count == 2


def test_client_error_is_not_retried():
    client, session, _ = _client(_response(401))

    with pytest.raises(ShopifyApiError, match="401"):
        client.execute("query")

    assert session.post.call_count == 1


def test_graphql_errors_are_not_retried():
    client, session, _ = _client(_response(payload={"errors": [{"message": "Field 'x' doesn't exist"}]}))

    with pytest.raises(ShopifyApiError, match="doesn't exist"):
        client.execute("query")

    assert session.post.call_count == 1


def test_missing_credentials_rejected():
    with pytest.raises(ValueError):
        ShopifyGraphQLClient(Settings())
