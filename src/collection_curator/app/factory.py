from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from collection_curator.ports.catalog_gateway import CatalogGateway
    from collection_curator.ports.event_publisher import EventPublisher
    from collection_curator.ports.lock_manager import LockManager
    from collection_curator.ports.settings_store import SettingsStore

from collection_curator.adapters.events.logging_publisher import LoggingEventPublisher
from collection_curator.adapters.events.noop_publisher import NoopEventPublisher
from collection_curator.adapters.locks.in_process_lock_manager import InProcessLockManager
from collection_curator.adapters.memory.in_memory_catalog import InMemoryCatalogGateway
from collection_curator.adapters.settings.in_memory_settings_store import InMemorySettingsStore
from collection_curator.adapters.settings.json_file_settings_store import JsonFileSettingsStore
from collection_curator.adapters.shopify.catalog_gateway import ShopifyCatalogGateway
from collection_curator.adapters.shopify.client import ShopifyGraphQLClient
from collection_curator.domain.common.ids import CorrelationId
from collection_curator.settings import get_settings

# Shared so that concurrent runs in one process see each other's locks
_lock_manager = InProcessLockManager()
_memory_settings_store = InMemorySettingsStore()


def create_adapters(
    correlation_id: Optional[str] = None,
) -> tuple[
    "CatalogGateway",
    "SettingsStore",
    "EventPublisher",
    "LockManager",
]:
    """
    Factory function to create adapters based on RUNTIME_ADAPTERS environment variable.

    If RUNTIME_ADAPTERS=shopify, creates the Shopify GraphQL gateway and the JSON file settings store.
    Otherwise, creates in-memory adapters with a small demo catalog (default).
    """
    settings = get_settings()
    lock_manager: LockManager = _lock_manager

    if settings.runtime_adapters == "shopify":
        required_settings = [
            ("SHOPIFY_SHOP_DOMAIN", settings.shopify_shop_domain),
            ("SHOPIFY_ACCESS_TOKEN", settings.shopify_access_token),
        ]
        missing = [name for name, value in required_settings if not value]
        if missing:
            raise ValueError(f"Missing required Shopify settings: {', '.join(missing)}")

        correlation_id_obj = CorrelationId(correlation_id) if correlation_id else None
        client = ShopifyGraphQLClient(settings, correlation_id_obj)
        gateway: CatalogGateway = ShopifyCatalogGateway(client)
        settings_store: SettingsStore = JsonFileSettingsStore(settings.settings_store_path)
        event_publisher: EventPublisher = LoggingEventPublisher()
    else:
        gateway = InMemoryCatalogGateway.with_demo_data()
        settings_store = _memory_settings_store
        event_publisher = NoopEventPublisher()

    return (gateway, settings_store, event_publisher, lock_manager)
