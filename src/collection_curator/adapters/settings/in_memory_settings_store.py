from __future__ import annotations

import copy
import threading
from typing import Any, Optional

from collection_curator.adapters.settings.merge import deep_merge
from collection_curator.domain.common.ids import TenantId
from collection_curator.ports.settings_store import SettingsStore


class InMemorySettingsStore(SettingsStore):
    def __init__(self, documents: Optional[dict[str, dict[str, Any]]] = None) -> None:
        self.documents: dict[str, dict[str, Any]] = copy.deepcopy(documents or {})
        self._lock = threading.Lock()

    def get_settings(self, tenant_id: TenantId) -> dict[str, Any]:
        with self._lock:
            return copy.deepcopy(self.documents.get(tenant_id, {}))

    def upsert_settings(self, tenant_id: TenantId, patch: dict[str, Any]) -> None:
        with self._lock:
            self.documents[tenant_id] = deep_merge(self.documents.get(tenant_id, {}), patch)
