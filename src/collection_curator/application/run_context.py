from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from collection_curator.domain.common.ids import CorrelationId, TenantId


@dataclass(frozen=True)
class RunContext:
    """Identity of one invocation; target is the cohort name or the collection id."""

    tenant_id: TenantId
    operation: str
    target: str
    as_of_ts: datetime
    correlation_id: CorrelationId

    @property
    def lock_key(self) -> str:
        # Cohort runs rewrite full tag sets, so any two of them on one tenant conflict
        if self.operation == OPERATION_COHORT:
            return f"{self.tenant_id}:{self.operation}"
        return f"{self.tenant_id}:{self.operation}:{self.target}"

    @classmethod
    def from_args(
        cls,
        tenant_id: str,
        operation: str,
        target: str,
        as_of_ts: Optional[datetime] = None,
        correlation_id: Optional[str] = None,
    ) -> "RunContext":
        return cls(
            tenant_id=TenantId(tenant_id),
            operation=operation,
            target=target,
            as_of_ts=as_of_ts or datetime.now(timezone.utc),
            correlation_id=CorrelationId(correlation_id or "auto"),
        )


OPERATION_COHORT = "cohort"
OPERATION_RESORT = "resort"
