from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Optional


class RunStatus(str, Enum):
    SUCCESS = "SUCCESS"
    NO_ACTIVITY = "NO_ACTIVITY"
    PARTIAL_FAILURE = "PARTIAL_FAILURE"
    SUCCESS_WITH_WARNING = "SUCCESS_WITH_WARNING"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"

    @property
    def success(self) -> bool:
        return self in (RunStatus.SUCCESS, RunStatus.NO_ACTIVITY, RunStatus.SUCCESS_WITH_WARNING)


@dataclass(frozen=True)
class CohortRunResult:
    """Outcome of one cohort tagging run."""

    status: RunStatus
    success: bool
    message: str
    cohort: str = ""
    tagged: int = 0
    skipped: int = 0
    removed: int = 0
    failed: int = 0
    already_tagged: int = 0
    collection_id: Optional[str] = None

    @classmethod
    def of(cls, status: RunStatus, message: str, cohort: str = "", **counts: Any) -> "CohortRunResult":
        return cls(status=status, success=status.success, message=message, cohort=cohort, **counts)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


@dataclass(frozen=True)
class OrderRunResult:
    """Outcome of one collection reorder run."""

    status: RunStatus
    success: bool
    message: str
    collection_id: str = ""
    job_id: Optional[str] = None
    move_count: int = 0
    tier_counts: Optional[dict[str, int]] = None

    @classmethod
    def of(cls, status: RunStatus, message: str, collection_id: str = "", **fields: Any) -> "OrderRunResult":
        return cls(status=status, success=status.success, message=message, collection_id=collection_id, **fields)

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data
