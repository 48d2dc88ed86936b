from __future__ import annotations

from collection_curator.application.run_context import RunContext
from collection_curator.ports.lock_manager import LockManager


class NoopLockManager(LockManager):
    def acquire(self, ctx: RunContext) -> None:
        return None

    def release(self, ctx: RunContext) -> None:
        return None
