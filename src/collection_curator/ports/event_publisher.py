from __future__ import annotations

from typing import Protocol

from collection_curator.application.run_context import RunContext


class EventPublisher(Protocol):
    def publish_run_completed(self, ctx: RunContext, summary: dict) -> None: ...
