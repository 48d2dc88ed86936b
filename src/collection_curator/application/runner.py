from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from collection_curator.application.cohort_pipeline import CohortPipeline
from collection_curator.application.errors import (
    ConcurrentRunError,
    ConfigurationError,
    FetchFailure,
    JobSubmissionError,
    RunCancelledError,
)
from collection_curator.application.order_pipeline import OrderPipeline
from collection_curator.application.registry import Registry
from collection_curator.application.reorder_driver import ReorderJobDriver
from collection_curator.application.results import CohortRunResult, OrderRunResult, RunStatus
from collection_curator.application.run_context import OPERATION_COHORT, OPERATION_RESORT, RunContext
from collection_curator.observability.logging import log_extra
from collection_curator.ports.catalog_gateway import CatalogGateway
from collection_curator.ports.event_publisher import EventPublisher
from collection_curator.ports.lock_manager import LockManager
from collection_curator.ports.settings_store import SettingsStore
from collection_curator.settings import Settings, get_settings

logger = logging.getLogger(__name__)

RunResult = Union[CohortRunResult, OrderRunResult]


class Runner:
    """
    Invocation boundary for cohort and reorder runs.

    Takes the per-target lock, dispatches to a pipeline and converts every
    failure into a structured result. No exception escapes run_cohort or
    run_resort.
    """

    def __init__(
        self,
        gateway: CatalogGateway,
        settings_store: SettingsStore,
        event_publisher: EventPublisher,
        lock_manager: LockManager,
        registry: Registry,
        settings: Optional[Settings] = None,
        cancellation_check: Optional[Callable[[], bool]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.gateway = gateway
        self.settings_store = settings_store
        self.event_publisher = event_publisher
        self.lock_manager = lock_manager
        self.registry = registry
        self.settings = settings or get_settings()
        self.cancellation_check = cancellation_check
        self.sleep = sleep

    def run_cohort(self, ctx: RunContext) -> CohortRunResult:
        pipeline = CohortPipeline(
            gateway=self.gateway,
            settings_store=self.settings_store,
            registry=self.registry,
            page_size=self.settings.page_size,
            mutation_concurrency=self.settings.mutation_concurrency,
            cancellation_check=self.cancellation_check,
        )

        def failed(status: RunStatus, message: str) -> CohortRunResult:
            return CohortRunResult.of(status, message, cohort=ctx.target)

        return self._run(ctx, OPERATION_COHORT, pipeline.run, failed)

    def run_resort(self, ctx: RunContext) -> OrderRunResult:
        driver = ReorderJobDriver(
            self.gateway,
            poll_interval_seconds=self.settings.job_poll_interval_seconds,
            max_attempts=self.settings.job_poll_max_attempts,
            sleep=self.sleep,
            cancellation_check=self.cancellation_check,
            correlation_id=ctx.correlation_id.value,
        )
        pipeline = OrderPipeline(
            gateway=self.gateway,
            settings_store=self.settings_store,
            driver=driver,
            page_size=self.settings.page_size,
        )

        def failed(status: RunStatus, message: str) -> OrderRunResult:
            return OrderRunResult.of(status, message, collection_id=ctx.target)

        return self._run(ctx, OPERATION_RESORT, pipeline.run, failed)

    def _run(
        self,
        ctx: RunContext,
        operation: str,
        pipeline: Callable[[RunContext], RunResult],
        failed: Callable[[RunStatus, str], RunResult],
    ) -> RunResult:
        extra = log_extra(ctx.correlation_id.value)
        started_at = datetime.now(timezone.utc)
        logger.info(f"Starting {operation} run for tenant={ctx.tenant_id} target={ctx.target}", extra=extra)

        try:
            self.lock_manager.acquire(ctx)
        except ConcurrentRunError as e:
            logger.warning(str(e), extra=extra)
            return self._finish(ctx, started_at, failed(RunStatus.FAILED, str(e)))

        try:
            result = pipeline(ctx)
        except RunCancelledError as e:
            logger.info(str(e), extra=extra)
            result = failed(RunStatus.CANCELLED, str(e))
        except ConfigurationError as e:
            logger.error(f"Configuration error: {e}", extra=extra)
            result = failed(RunStatus.FAILED, f"Configuration error: {e}")
        except FetchFailure as e:
            logger.error(f"Fetch failed, nothing was changed: {e}", extra=extra)
            result = failed(RunStatus.FAILED, f"Fetch failed: {e}")
        except JobSubmissionError as e:
            logger.error(str(e), extra=extra)
            result = failed(RunStatus.FAILED, str(e))
        except Exception as e:
            logger.exception(f"Unexpected error during {operation} run: {e}", extra=extra)
            result = failed(RunStatus.FAILED, f"Unexpected error: {e}")
        finally:
            self.lock_manager.release(ctx)

        return self._finish(ctx, started_at, result)

    def _finish(self, ctx: RunContext, started_at: datetime, result: RunResult) -> RunResult:
        extra = log_extra(ctx.correlation_id.value)
        duration_ms = int((datetime.now(timezone.utc) - started_at).total_seconds() * 1000)
        summary = {
            "tenant_id": ctx.tenant_id,
            "operation": ctx.operation,
            "target": ctx.target,
            "correlation_id": ctx.correlation_id.value,
            "duration_ms": duration_ms,
            **result.to_dict(),
        }
        logger.info(f"Run finished with status {result.status.value}: {result.message}", extra=extra)
        try:
            self.event_publisher.publish_run_completed(ctx, summary)
        except Exception as e:
            logger.error(f"Failed to publish run summary: {e}", extra=extra)
        return result
