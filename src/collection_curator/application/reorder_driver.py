from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from collection_curator.application.errors import JobSubmissionError, RunCancelledError
from collection_curator.domain.common.ids import CollectionId, JobRef
from collection_curator.domain.ordering.models import CollectionOrderResult
from collection_curator.observability.logging import log_extra
from collection_curator.ports.catalog_gateway import CatalogGateway

logger = logging.getLogger(__name__)


class JobState(str, Enum):
    SUBMITTED = "SUBMITTED"
    POLLING = "POLLING"
    DONE = "DONE"
    TIMED_OUT = "TIMED_OUT"


@dataclass(frozen=True)
class ReorderOutcome:
    state: JobState
    job_ref: Optional[JobRef]
    move_count: int
    poll_attempts: int = 0

    @property
    def timed_out(self) -> bool:
        return self.state == JobState.TIMED_OUT


class ReorderJobDriver:
    """Submits one full move-list and polls the asynchronous job until done or the cap is hit."""

    def __init__(
        self,
        gateway: CatalogGateway,
        poll_interval_seconds: float = 2.0,
        max_attempts: int = 30,
        sleep: Callable[[float], None] = time.sleep,
        cancellation_check: Optional[Callable[[], bool]] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        self.gateway = gateway
        self.poll_interval_seconds = poll_interval_seconds
        self.max_attempts = max_attempts
        self.sleep = sleep
        self.cancellation_check = cancellation_check
        self.correlation_id = correlation_id

    def run(self, collection_id: CollectionId, result: CollectionOrderResult) -> ReorderOutcome:
        """
        Drive SUBMITTED -> POLLING -> DONE | TIMED_OUT.

        Args:
            collection_id: Manual-sort collection to reorder
            result: Composed order covering every item in the collection

        Returns:
            ReorderOutcome; TIMED_OUT means the platform accepted the job but
            did not report completion within max_attempts polls

        Raises:
            JobSubmissionError: If the platform rejects the request inline
        """
        extra = log_extra(self.correlation_id)
        submission = self.gateway.submit_order(collection_id, result.moves)
        if submission.user_errors:
            messages = [error.message for error in submission.user_errors]
            raise JobSubmissionError(f"Reorder rejected for {collection_id}: {'; '.join(messages)}", messages)

        state = JobState.SUBMITTED
        logger.info(
            f"Submitted {len(result)} moves for {collection_id}, job={submission.job_ref}, state={state.value}",
            extra=extra,
        )
        if submission.job_ref is None or submission.done:
            return ReorderOutcome(state=JobState.DONE, job_ref=submission.job_ref, move_count=len(result))

        state = JobState.POLLING
        for attempt in range(1, self.max_attempts + 1):
            if self.cancellation_check and self.cancellation_check():
                raise RunCancelledError(f"Run cancelled for correlation_id={self.correlation_id}")
            self.sleep(self.poll_interval_seconds)
            try:
                status = self.gateway.poll_job(submission.job_ref)
            except Exception as e:
                logger.warning(
                    f"Poll {attempt}/{self.max_attempts} for job {submission.job_ref} failed: {e}",
                    extra=extra,
                )
                continue
            if status.done:
                logger.info(f"Job {submission.job_ref} done after {attempt} polls", extra=extra)
                return ReorderOutcome(
                    state=JobState.DONE,
                    job_ref=submission.job_ref,
                    move_count=len(result),
                    poll_attempts=attempt,
                )

        logger.warning(
            f"Job {submission.job_ref} still running after {self.max_attempts} polls; "
            f"the platform may finish it later (state={state.value})",
            extra=extra,
        )
        return ReorderOutcome(
            state=JobState.TIMED_OUT,
            job_ref=submission.job_ref,
            move_count=len(result),
            poll_attempts=self.max_attempts,
        )
