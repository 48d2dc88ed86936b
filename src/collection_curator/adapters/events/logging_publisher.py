from __future__ import annotations

import json
import logging

from collection_curator.application.run_context import RunContext
from collection_curator.observability.logging import log_extra
from collection_curator.ports.event_publisher import EventPublisher

logger = logging.getLogger(__name__)


class LoggingEventPublisher(EventPublisher):
    """Emits the run summary as one JSON log line."""

    def publish_run_completed(self, ctx: RunContext, summary: dict) -> None:
        logger.info(
            f"run_completed {json.dumps(summary, default=str, sort_keys=True)}",
            extra=log_extra(ctx.correlation_id.value),
        )
