from __future__ import annotations

from collection_curator.application.run_context import RunContext
from collection_curator.ports.event_publisher import EventPublisher


class NoopEventPublisher(EventPublisher):
    def publish_run_completed(self, ctx: RunContext, summary: dict) -> None:
        return None
