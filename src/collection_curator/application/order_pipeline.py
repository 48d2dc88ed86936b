from __future__ import annotations

import logging

from collection_curator.application.errors import ConfigurationError
from collection_curator.application.pagination import fetch_all
from collection_curator.application.reorder_driver import JobState, ReorderJobDriver
from collection_curator.application.results import OrderRunResult, RunStatus
from collection_curator.application.run_context import RunContext
from collection_curator.application.tenant_settings import load_settings_record
from collection_curator.domain.common.ids import CollectionId
from collection_curator.domain.ordering.composer import compose_collection_order
from collection_curator.observability.logging import log_extra
from collection_curator.ports.catalog_gateway import CatalogGateway
from collection_curator.ports.settings_store import SettingsStore
from collection_curator.settings import MAX_PAGE_SIZE

logger = logging.getLogger(__name__)


class OrderPipeline:
    """Compose the full order of one manual collection and drive the reorder job."""

    def __init__(
        self,
        gateway: CatalogGateway,
        settings_store: SettingsStore,
        driver: ReorderJobDriver,
        page_size: int = MAX_PAGE_SIZE,
    ) -> None:
        self.gateway = gateway
        self.settings_store = settings_store
        self.driver = driver
        self.page_size = page_size

    def run(self, ctx: RunContext) -> OrderRunResult:
        extra = log_extra(ctx.correlation_id.value)
        collection_id = CollectionId(ctx.target)

        record = load_settings_record(self.settings_store, ctx.tenant_id)
        info = self.gateway.get_collection(collection_id)
        if info is None:
            raise ConfigurationError(f"Collection {collection_id} not found")
        if not info.is_manual:
            raise ConfigurationError(
                f"Collection {collection_id} uses sort order {info.sort_order}; only MANUAL collections can be reordered"
            )

        items = fetch_all(
            lambda size, cursor: self.gateway.fetch_collection_items_page(collection_id, size, cursor),
            self.page_size,
            label=f"items in collection {collection_id}",
        )
        if not items:
            return OrderRunResult.of(
                RunStatus.NO_ACTIVITY, f"No products found in collection {collection_id}", collection_id=collection_id
            )

        config = record.sort_config(collection_id)
        result = compose_collection_order(items, config.featured, config.tag_rules, config.behavior, ctx.as_of_ts)
        logger.info(f"Composed order for {collection_id}: {result.tier_counts}", extra=extra)

        outcome = self.driver.run(collection_id, result)
        fields = {
            "job_id": outcome.job_ref,
            "move_count": outcome.move_count,
            "tier_counts": dict(result.tier_counts),
        }
        if outcome.state == JobState.TIMED_OUT:
            return OrderRunResult.of(
                RunStatus.SUCCESS_WITH_WARNING,
                f"Reorder of {collection_id} submitted but not confirmed after {outcome.poll_attempts} polls",
                collection_id=collection_id,
                **fields,
            )
        return OrderRunResult.of(
            RunStatus.SUCCESS,
            f"Reordered {outcome.move_count} items in {collection_id}",
            collection_id=collection_id,
            **fields,
        )
