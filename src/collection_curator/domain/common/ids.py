from __future__ import annotations

from dataclasses import dataclass
from typing import NewType

TenantId = NewType("TenantId", str)
ItemId = NewType("ItemId", str)
CollectionId = NewType("CollectionId", str)
JobRef = NewType("JobRef", str)


@dataclass(frozen=True)
class CorrelationId:
    value: str
