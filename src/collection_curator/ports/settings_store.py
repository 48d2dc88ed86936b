from __future__ import annotations

from typing import Any, Protocol

from collection_curator.domain.common.ids import TenantId


class SettingsStore(Protocol):
    def get_settings(self, tenant_id: TenantId) -> dict[str, Any]: ...

    def upsert_settings(self, tenant_id: TenantId, patch: dict[str, Any]) -> None: ...
