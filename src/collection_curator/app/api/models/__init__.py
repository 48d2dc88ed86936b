"""Pydantic models for API responses."""

from collection_curator.app.api.models.runs import (
    CancelResponse,
    CohortRunResponse,
    JobStartedResponse,
    JobStatusResponse,
    ResortRunResponse,
    RunRequest,
)

__all__ = [
    "CancelResponse",
    "CohortRunResponse",
    "JobStartedResponse",
    "JobStatusResponse",
    "ResortRunResponse",
    "RunRequest",
]
