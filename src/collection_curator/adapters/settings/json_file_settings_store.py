from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import Any, Optional

from collection_curator.adapters.settings.merge import deep_merge
from collection_curator.domain.common.ids import TenantId
from collection_curator.ports.settings_store import SettingsStore
from collection_curator.settings import get_settings

logger = logging.getLogger(__name__)


class JsonFileSettingsStore(SettingsStore):
    """Tenant settings kept in one JSON file keyed by tenant id."""

    def __init__(self, path: Optional[str] = None) -> None:
        self.path = Path(path or get_settings().settings_store_path)
        self._lock = threading.Lock()

    def _read(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in settings file {self.path}: {e}") from e

    def get_settings(self, tenant_id: TenantId) -> dict[str, Any]:
        with self._lock:
            return self._read().get(tenant_id, {})

    def upsert_settings(self, tenant_id: TenantId, patch: dict[str, Any]) -> None:
        with self._lock:
            documents = self._read()
            documents[tenant_id] = deep_merge(documents.get(tenant_id, {}), patch)
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp_path = self.path.with_suffix(".tmp")
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(documents, f, indent=2, sort_keys=True)
            tmp_path.replace(self.path)
            logger.info(f"Updated settings for tenant {tenant_id} in {self.path}")
