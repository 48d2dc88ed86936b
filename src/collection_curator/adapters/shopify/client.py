from __future__ import annotations

import logging
import random
import time
from typing import Any, Callable, Optional

import requests

from collection_curator.domain.common.ids import CorrelationId
from collection_curator.settings import Settings

logger = logging.getLogger(__name__)


class ShopifyApiError(Exception):
    """Non-retryable GraphQL or HTTP failure."""


class ShopifyTransientError(ShopifyApiError):
    """Throttling, 429 or 5xx; retried with backoff."""


class ShopifyGraphQLClient:
    """Client for the Shopify Admin GraphQL API using requests."""

    def __init__(
        self,
        settings: Settings,
        correlation_id: Optional[CorrelationId] = None,
        session: Optional[requests.Session] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if not settings.shopify_shop_domain or not settings.shopify_access_token:
            raise ValueError("Shopify client requires SHOPIFY_SHOP_DOMAIN and SHOPIFY_ACCESS_TOKEN")
        self.settings = settings
        self.correlation_id = correlation_id
        self.session = session or requests.Session()
        self.sleep = sleep
        self.url = f"https://{settings.shopify_shop_domain}/admin/api/{settings.shopify_api_version}/graphql.json"

    def _get_log_extra(self) -> dict[str, str]:
        extra = {}
        if self.correlation_id:
            extra["correlation_id"] = self.correlation_id.value
        return extra

    def _headers(self) -> dict[str, str]:
        return {
            "X-Shopify-Access-Token": self.settings.shopify_access_token or "",
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    def _post(self, query: str, variables: dict[str, Any]) -> dict[str, Any]:
        try:
            response = self.session.post(
                self.url,
                headers=self._headers(),
                json={"query": query, "variables": variables},
                timeout=self.settings.request_timeout_seconds,
            )
        except (requests.Timeout, requests.ConnectionError) as e:
            raise ShopifyTransientError(f"Request to {self.settings.shopify_shop_domain} failed: {e}") from e

        if response.status_code == 429 or response.status_code >= 500:
            raise ShopifyTransientError(f"GraphQL HTTP {response.status_code}")
        if response.status_code != 200:
            raise ShopifyApiError(f"GraphQL HTTP {response.status_code}: {response.text}")

        payload = response.json()
        errors = payload.get("errors")
        if errors:
            if any((error.get("extensions") or {}).get("code", "").upper() == "THROTTLED" for error in errors):
                raise ShopifyTransientError("GraphQL request throttled")
            raise ShopifyApiError(f"GraphQL errors: {errors}")
        return payload.get("data") or {}

    def _backoff_delay(self, attempt: int, base: float = 0.5, cap: float = 10.0) -> float:
        return min(cap, base * (2**attempt)) + random.uniform(0, 0.25)

    def execute(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict[str, Any]:
        """
        Execute a GraphQL document and return its data object.

        Throttling, HTTP 429, 5xx and network errors are retried up to
        REQUEST_MAX_RETRIES times with exponential backoff.

        Raises:
            ShopifyApiError: On a non-retryable error or once retries are exhausted
        """
        max_retries = max(1, self.settings.request_max_retries)
        last_exception: Optional[Exception] = None
        for attempt in range(max_retries):
            try:
                return self._post(query, variables or {})
            except ShopifyTransientError as e:
                last_exception = e
                if attempt < max_retries - 1:
                    delay = self._backoff_delay(attempt)
                    logger.warning(
                        f"GraphQL request failed (attempt {attempt + 1}/{max_retries}), retrying in {delay:.2f}s: {e}",
                        extra=self._get_log_extra(),
                    )
                    self.sleep(delay)
        logger.error(f"GraphQL request failed after {max_retries} attempts", extra=self._get_log_extra())
        raise ShopifyApiError(f"GraphQL request failed after {max_retries} attempts: {last_exception}") from last_exception
