"""Pydantic models for run API requests and responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class RunRequest(BaseModel):
    as_of_ts: datetime | None = None
    correlation_id: str | None = None


class CohortRunResponse(BaseModel):
    """Result of a cohort tagging run."""

    status: str = Field(..., description="SUCCESS | NO_ACTIVITY | PARTIAL_FAILURE | FAILED | CANCELLED")
    success: bool
    message: str
    cohort: str
    tagged: int = 0
    skipped: int = 0
    removed: int = 0
    failed: int = 0
    already_tagged: int = 0
    collection_id: str | None = None


class ResortRunResponse(BaseModel):
    """Result of a collection reorder run."""

    status: str = Field(..., description="SUCCESS | NO_ACTIVITY | SUCCESS_WITH_WARNING | FAILED | CANCELLED")
    success: bool
    message: str
    collection_id: str
    job_id: str | None = None
    move_count: int = 0
    tier_counts: dict[str, int] | None = None


class JobStartedResponse(BaseModel):
    correlation_id: str
    status: str = "started"
    message: str = "Job started. Use /status/{correlation_id} to check progress."


class JobStatusResponse(BaseModel):
    correlation_id: str
    tenant_id: str
    target: str
    status: str = Field(..., description="running | completed | cancelled | failed")
    started_at: datetime
    completed_at: datetime | None = None
    duration_ms: int | None = None
    result: dict | None = None
    error: str | None = None


class CancelResponse(BaseModel):
    correlation_id: str
    status: str = "cancelled"
    message: str = "Job cancellation requested"
