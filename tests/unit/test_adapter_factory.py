from __future__ import annotations

import json
import logging

import pytest

from collection_curator.adapters.events.logging_publisher import LoggingEventPublisher
from collection_curator.adapters.events.noop_publisher import NoopEventPublisher
from collection_curator.adapters.memory.in_memory_catalog import InMemoryCatalogGateway
from collection_curator.adapters.settings.json_file_settings_store import JsonFileSettingsStore
from collection_curator.adapters.shopify.catalog_gateway import ShopifyCatalogGateway
from collection_curator.app import factory
from collection_curator.application.run_context import OPERATION_RESORT, RunContext
from collection_curator.settings import Settings


def test_memory_adapters_are_default(monkeypatch):
    monkeypatch.setattr(factory, "get_settings", lambda: Settings())

    gateway, store, publisher, lock_manager = factory.create_adapters()

    assert isinstance(gateway, InMemoryCatalogGateway)
    assert gateway.get_collection("demo-collection").is_manual
    assert isinstance(publisher, NoopEventPublisher)
    assert store is factory._memory_settings_store
    assert lock_manager is factory._lock_manager


def test_shopify_adapters_require_credentials(monkeypatch):
    monkeypatch.setattr(factory, "get_settings", lambda: Settings(runtime_adapters="shopify"))

    with pytest.raises(ValueError, match="SHOPIFY_SHOP_DOMAIN, SHOPIFY_ACCESS_TOKEN"):
        factory.create_adapters()


def test_shopify_adapters(monkeypatch, tmp_path):
    settings = Settings(
        runtime_adapters="shopify",
        shopify_shop_domain="example.myshopify.com",
        shopify_access_token="shpat_test",
        settings_store_path=str(tmp_path / "settings.json"),
    )
    monkeypatch.setattr(factory, "get_settings", lambda: settings)

    gateway, store, publisher, _ = factory.create_adapters(correlation_id="c-1")

    assert isinstance(gateway, ShopifyCatalogGateway)
    assert gateway.client.url == "https://example.myshopify.com/admin/api/2024-10/graphql.json"
    assert isinstance(store, JsonFileSettingsStore)
    assert isinstance(publisher, LoggingEventPublisher)


def test_logging_publisher_emits_json_summary(caplog):
    ctx = RunContext.from_args("t1", OPERATION_RESORT, "c1", correlation_id="corr-9")

    with caplog.at_level(logging.INFO, logger="collection_curator.adapters.events.logging_publisher"):
        LoggingEventPublisher().publish_run_completed(ctx, {"status": "SUCCESS", "move_count": 3})

    record = caplog.records[-1]
    assert record.correlation_id == "corr-9"
    assert json.loads(record.getMessage().removeprefix("run_completed ")) == {"move_count": 3, "status": "SUCCESS"}
