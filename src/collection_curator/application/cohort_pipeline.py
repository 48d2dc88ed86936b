from __future__ import annotations

import logging
from typing import Callable, Optional

from collection_curator.application.pagination import fetch_all
from collection_curator.application.registry import Registry
from collection_curator.application.results import CohortRunResult, RunStatus
from collection_curator.application.run_context import RunContext
from collection_curator.application.tag_synchronizer import TagSynchronizer
from collection_curator.application.tenant_settings import load_settings_record, validate_cohort_rule
from collection_curator.domain.cohorts.models import CohortName, CohortRule
from collection_curator.domain.common.ids import CollectionId
from collection_curator.domain.sales.aggregator import OrderWindow, aggregate_sales
from collection_curator.domain.tag_sync.plan import index_catalog, plan_tag_sync
from collection_curator.observability.logging import log_extra
from collection_curator.ports.catalog_gateway import CatalogGateway
from collection_curator.ports.settings_store import SettingsStore
from collection_curator.settings import MAX_PAGE_SIZE

logger = logging.getLogger(__name__)


class CohortPipeline:
    """Fetch, aggregate, classify, attach the cohort collection, then converge the cohort tag."""

    def __init__(
        self,
        gateway: CatalogGateway,
        settings_store: SettingsStore,
        registry: Registry,
        page_size: int = MAX_PAGE_SIZE,
        mutation_concurrency: int = 1,
        cancellation_check: Optional[Callable[[], bool]] = None,
    ) -> None:
        self.gateway = gateway
        self.settings_store = settings_store
        self.registry = registry
        self.page_size = page_size
        self.mutation_concurrency = mutation_concurrency
        self.cancellation_check = cancellation_check

    def run(self, ctx: RunContext) -> CohortRunResult:
        extra = log_extra(ctx.correlation_id.value)
        cohort = self.registry.resolve(ctx.target)
        strategy = self.registry.get(cohort)

        # Configuration is checked before anything is fetched
        record = load_settings_record(self.settings_store, ctx.tenant_id)
        rule = record.cohort_rule(cohort)
        validate_cohort_rule(rule)

        lookback_days = strategy.lookback_days(rule)
        aggregates = {}
        if strategy.requires_sales:
            window = OrderWindow.trailing(ctx.as_of_ts, lookback_days)
            orders = fetch_all(
                lambda size, cursor: self.gateway.fetch_orders_page(window, size, cursor, rule.paid_orders_only),
                self.page_size,
                label="orders",
            )
            aggregates = aggregate_sales(orders)
        items = fetch_all(self.gateway.fetch_products_page, self.page_size, label="products")

        ranking = strategy.classify(aggregates, items, rule, ctx.as_of_ts)
        if ranking.is_empty:
            logger.info(f"No qualifying items for {cohort.value} in the last {lookback_days} days", extra=extra)
            return CohortRunResult.of(
                RunStatus.NO_ACTIVITY,
                f"No qualifying items for {cohort.value} in the last {lookback_days} days",
                cohort=cohort.value,
            )

        collection_id = self._attach_collection(ctx, rule) if rule.create_collection else rule.collection_id

        catalog = index_catalog(items)
        plan = plan_tag_sync(
            ranked=ranking.ranked,
            catalog=catalog,
            tag=rule.tag,
            exclusion=record.exclusions,
            exclude_out_of_stock=rule.exclude_out_of_stock,
            target_count=rule.target_count,
        )
        if plan.skipped:
            logger.info(f"Skipped candidates by reason: {plan.skip_reason_counts()}", extra=extra)

        synchronizer = TagSynchronizer(
            self.gateway,
            concurrency=self.mutation_concurrency,
            cancellation_check=self.cancellation_check,
            correlation_id=ctx.correlation_id.value,
        )
        summary = synchronizer.apply(plan, catalog)

        counts = {
            "tagged": summary.tagged,
            "skipped": summary.skipped,
            "removed": summary.removed,
            "failed": summary.failed,
            "already_tagged": summary.already_tagged,
            "collection_id": collection_id,
        }
        if summary.has_failures:
            return CohortRunResult.of(
                RunStatus.PARTIAL_FAILURE,
                f"{summary.failed} tag mutations failed for {cohort.value}",
                cohort=cohort.value,
                **counts,
            )
        return CohortRunResult.of(
            RunStatus.SUCCESS,
            f"Tagged {summary.tagged} and untagged {summary.removed} items for {cohort.value}",
            cohort=cohort.value,
            **counts,
        )

    def _attach_collection(self, ctx: RunContext, rule: CohortRule) -> Optional[CollectionId]:
        """
        Make sure a smart collection matching the cohort tag exists.

        A stored collection that still exists is refreshed in place. Otherwise a
        new one is created and its id is written back to the tenant settings.
        Failures are logged and leave tagging unaffected.
        """
        extra = log_extra(ctx.correlation_id.value)
        title = rule.collection_title or _default_title(rule.cohort)
        try:
            if rule.collection_id and self.gateway.collection_exists(rule.collection_id):
                self.gateway.update_tag_collection(rule.collection_id, title, rule.tag)
                return rule.collection_id

            if rule.collection_id:
                logger.warning(f"Stored collection {rule.collection_id} no longer exists; recreating", extra=extra)
            collection_id = self.gateway.create_tag_collection(title, rule.tag)
            self.settings_store.upsert_settings(
                ctx.tenant_id, {"cohorts": {rule.cohort.value: {"collection_id": collection_id}}}
            )
            logger.info(f"Created collection {collection_id} for tag '{rule.tag}'", extra=extra)
            return collection_id
        except Exception as e:
            logger.error(f"Could not attach collection for {rule.cohort.value}: {e}", extra=extra)
            return None


def _default_title(cohort: CohortName) -> str:
    return cohort.value.replace("_", " ").title()
