from __future__ import annotations

import pytest

from collection_curator.adapters.locks.in_process_lock_manager import InProcessLockManager
from collection_curator.adapters.locks.noop_lock_manager import NoopLockManager
from collection_curator.application.errors import ConcurrentRunError
from collection_curator.application.run_context import OPERATION_COHORT, OPERATION_RESORT, RunContext


def _ctx(target: str = "bestsellers", operation: str = OPERATION_COHORT, tenant: str = "t1") -> RunContext:
    return RunContext.from_args(tenant, operation, target)


def test_cohort_lock_key_covers_the_whole_tenant():
    assert _ctx().lock_key == "t1:cohort"
    assert _ctx("trending").lock_key == "t1:cohort"


def test_resort_lock_key_is_scoped_by_collection():
    assert _ctx("c1", OPERATION_RESORT).lock_key == "t1:resort:c1"


def test_busy_key_is_rejected():
    manager = InProcessLockManager()
    manager.acquire(_ctx())

    with pytest.raises(ConcurrentRunError):
        manager.acquire(_ctx())


def test_different_cohorts_on_one_tenant_contend():
    manager = InProcessLockManager()
    manager.acquire(_ctx("bestsellers"))

    with pytest.raises(ConcurrentRunError, match="t1:cohort"):
        manager.acquire(_ctx("trending"))


def test_different_keys_do_not_contend():
    manager = InProcessLockManager()
    manager.acquire(_ctx())

    manager.acquire(_ctx(tenant="t2"))
    manager.acquire(_ctx("c1", OPERATION_RESORT))
    manager.acquire(_ctx("c2", OPERATION_RESORT))


def test_released_key_can_be_reacquired():
    manager = InProcessLockManager()
    manager.acquire(_ctx())
    manager.release(_ctx())
    manager.release(_ctx())

    manager.acquire(_ctx())


def test_released_keys_are_forgotten():
    manager = InProcessLockManager()
    for index in range(5):
        ctx = _ctx(f"c{index}", OPERATION_RESORT)
        manager.acquire(ctx)
        manager.release(ctx)

    assert manager._locks == {}


def test_release_of_unknown_key_is_harmless():
    manager = InProcessLockManager()

    manager.release(_ctx())

    assert manager._locks == {}


def test_noop_lock_manager_never_blocks():
    manager = NoopLockManager()
    manager.acquire(_ctx())
    manager.acquire(_ctx())
    manager.release(_ctx())
