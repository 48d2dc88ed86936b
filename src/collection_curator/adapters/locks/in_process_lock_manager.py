from __future__ import annotations

import threading

from collection_curator.application.errors import ConcurrentRunError
from collection_curator.application.run_context import RunContext
from collection_curator.ports.lock_manager import LockManager


class InProcessLockManager(LockManager):
    """One non-blocking lock per run lock key; a busy key is rejected, not queued."""

    def __init__(self) -> None:
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def acquire(self, ctx: RunContext) -> None:
        with self._guard:
            lock = self._locks.setdefault(ctx.lock_key, threading.Lock())
            if not lock.acquire(blocking=False):
                raise ConcurrentRunError(f"A run is already in progress for {ctx.lock_key}")

    def release(self, ctx: RunContext) -> None:
        # Nothing ever waits on a key, so a released key can be forgotten
        with self._guard:
            lock = self._locks.pop(ctx.lock_key, None)
            if lock is not None and lock.locked():
                lock.release()
