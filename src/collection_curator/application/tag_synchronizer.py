from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, Sequence

from collection_curator.application.errors import RunCancelledError
from collection_curator.domain.catalog.models import Item
from collection_curator.domain.common.ids import ItemId
from collection_curator.domain.tag_sync.plan import TagSyncPlan
from collection_curator.observability.logging import log_extra
from collection_curator.ports.catalog_gateway import CatalogGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TagSyncSummary:
    tagged: int = 0
    removed: int = 0
    failed: int = 0
    skipped: int = 0
    already_tagged: int = 0

    @property
    def has_failures(self) -> bool:
        return self.failed > 0


class TagSynchronizer:
    """Applies a TagSyncPlan through the gateway, one patch per changed item."""

    def __init__(
        self,
        gateway: CatalogGateway,
        concurrency: int = 1,
        cancellation_check: Optional[Callable[[], bool]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.gateway = gateway
        self.concurrency = max(1, concurrency)
        self.cancellation_check = cancellation_check
        self.correlation_id = correlation_id

    def apply(self, plan: TagSyncPlan, catalog: Mapping[ItemId, Item]) -> TagSyncSummary:
        """
        Remove the tag from items leaving the cohort, then add it to new members.

        A failed patch is logged and counted; the batch carries on.

        Raises:
            RunCancelledError: If the cancellation check fires before a mutation
        """
        removed, removal_failures = self._run_phase(
            plan.to_untag, lambda item: item.tags - {plan.tag}, catalog, "remove"
        )
        tagged, addition_failures = self._run_phase(
            plan.to_tag, lambda item: item.tags | {plan.tag}, catalog, "add"
        )

        summary = TagSyncSummary(
            tagged=tagged,
            removed=removed,
            failed=removal_failures + addition_failures,
            skipped=len(plan.skipped),
            already_tagged=len(plan.already_tagged),
        )
        logger.info(
            f"Tag '{plan.tag}' sync: tagged={summary.tagged} removed={summary.removed} "
            f"failed={summary.failed} skipped={summary.skipped} already_tagged={summary.already_tagged}",
            extra=log_extra(self.correlation_id),
        )
        return summary

    def _run_phase(
        self,
        item_ids: Sequence[ItemId],
        new_tags: Callable[[Item], frozenset[str]],
        catalog: Mapping[ItemId, Item],
        action: str,
    ) -> tuple[int, int]:
        def mutate(item_id: ItemId) -> bool:
            self._check_cancelled()
            try:
                self.gateway.patch_tags(item_id, new_tags(catalog[item_id]))
                return True
            except Exception as e:
                logger.error(f"Failed to {action} tag on {item_id}: {e}", extra=log_extra(self.correlation_id))
                return False

        if self.concurrency == 1 or len(item_ids) <= 1:
            outcomes = [mutate(item_id) for item_id in item_ids]
        else:
            with ThreadPoolExecutor(max_workers=self.concurrency) as pool:
                outcomes = list(pool.map(mutate, item_ids))

        succeeded = sum(1 for ok in outcomes if ok)
        return succeeded, len(outcomes) - succeeded

    def _check_cancelled(self) -> None:
        if self.cancellation_check and self.cancellation_check():
            raise RunCancelledError(f"Run cancelled for correlation_id={self.correlation_id}")
