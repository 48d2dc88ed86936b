from __future__ import annotations

import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, Optional

from collection_curator.application.results import OrderRunResult, RunStatus
from collection_curator.application.run_context import RunContext


class JobPhase(str, Enum):
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


@dataclass
class BackgroundJob:
    """A run started by the API and tracked until it finishes."""

    correlation_id: str
    tenant_id: str
    operation: str
    target: str
    phase: JobPhase
    started_at: datetime
    completed_at: Optional[datetime] = None
    result: Optional[dict] = None
    error: Optional[str] = None

    @property
    def duration_ms(self) -> Optional[int]:
        if self.completed_at is None:
            return None
        return int((self.completed_at - self.started_at).total_seconds() * 1000)

    def _finish(self, phase: JobPhase) -> None:
        self.phase = phase
        self.completed_at = datetime.now(timezone.utc)


class JobManager:
    """Tracks background runs by correlation id, with one cancellation flag each."""

    def __init__(self) -> None:
        self._jobs: Dict[str, BackgroundJob] = {}
        self._cancellation_flags: Dict[str, threading.Event] = {}
        self._lock = threading.Lock()

    def register(self, ctx: RunContext) -> BackgroundJob:
        correlation_id = ctx.correlation_id.value
        job = BackgroundJob(
            correlation_id=correlation_id,
            tenant_id=ctx.tenant_id,
            operation=ctx.operation,
            target=ctx.target,
            phase=JobPhase.RUNNING,
            started_at=datetime.now(timezone.utc),
        )
        with self._lock:
            self._jobs[correlation_id] = job
            self._cancellation_flags[correlation_id] = threading.Event()
        return job

    def is_cancelled(self, correlation_id: str) -> bool:
        with self._lock:
            flag = self._cancellation_flags.get(correlation_id)
            return flag.is_set() if flag else False

    def cancellation_check(self, correlation_id: str) -> Callable[[], bool]:
        """Callable handed to the Runner so a running job can observe cancel requests."""
        return lambda: self.is_cancelled(correlation_id)

    def cancel(self, correlation_id: str) -> bool:
        """
        Flag a running job as cancelled.

        The run itself stops at its next cancellation check; the job is marked
        cancelled immediately.

        Returns:
            True if the job was running, False if unknown or already finished
        """
        with self._lock:
            job = self._jobs.get(correlation_id)
            if job is None or job.phase != JobPhase.RUNNING:
                return False
            self._cancellation_flags[correlation_id].set()
            job._finish(JobPhase.CANCELLED)
            return True

    def record_result(self, correlation_id: str, result: OrderRunResult) -> None:
        """Attach a run result and move the job to the phase the result implies."""
        with self._lock:
            job = self._jobs.get(correlation_id)
            if job is None:
                return
            job.result = result.to_dict()
            # A cancelled job keeps its phase; the result records where it stopped
            if job.phase != JobPhase.RUNNING:
                return
            if result.success:
                job._finish(JobPhase.COMPLETED)
            elif result.status == RunStatus.CANCELLED:
                job._finish(JobPhase.CANCELLED)
            else:
                job.error = result.message
                job._finish(JobPhase.FAILED)

    def record_error(self, correlation_id: str, error: str) -> None:
        with self._lock:
            job = self._jobs.get(correlation_id)
            if job is None:
                return
            job.error = error
            job._finish(JobPhase.FAILED)

    def get(self, correlation_id: str) -> Optional[BackgroundJob]:
        with self._lock:
            return self._jobs.get(correlation_id)

    def cleanup_old_jobs(self, max_age_hours: int = 24) -> None:
        """Forget finished jobs older than max_age_hours."""
        cutoff = datetime.now(timezone.utc) - timedelta(hours=max_age_hours)
        with self._lock:
            expired = [
                cid
                for cid, job in self._jobs.items()
                if job.phase != JobPhase.RUNNING and job.completed_at and job.completed_at < cutoff
            ]
            for cid in expired:
                del self._jobs[cid]
                self._cancellation_flags.pop(cid, None)


job_manager = JobManager()
