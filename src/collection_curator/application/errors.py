from __future__ import annotations

from typing import Optional


class RunCancelledError(Exception):
    pass


class ConfigurationError(Exception):
    """Raised before any fetch when tenant settings cannot drive a run."""


class FetchFailure(Exception):
    """Raised when a page request fails; the whole fetch sequence is aborted."""

    def __init__(self, message: str, cursor: Optional[str] = None, pages_fetched: int = 0) -> None:
        super().__init__(message)
        self.cursor = cursor
        self.pages_fetched = pages_fetched


class MutationError(Exception):
    """Raised by the gateway when a single tag patch is rejected."""

    def __init__(self, message: str, item_id: Optional[str] = None) -> None:
        super().__init__(message)
        self.item_id = item_id


class JobSubmissionError(Exception):
    """Raised when the platform rejects a reorder request inline."""

    def __init__(self, message: str, user_errors: Optional[list[str]] = None) -> None:
        super().__init__(message)
        self.user_errors = user_errors or []


class ConcurrentRunError(Exception):
    pass


class UnknownCohortError(ConfigurationError):
    pass
