from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

MAX_PAGE_SIZE = 250


@dataclass(frozen=True)
class Settings:
    """Runtime settings sourced from environment variables."""

    log_level: str = "INFO"
    runtime_adapters: str = "memory"
    # Shopify Admin API
    shopify_shop_domain: Optional[str] = None
    shopify_access_token: Optional[str] = None
    shopify_api_version: str = "2024-10"
    request_timeout_seconds: float = 30.0
    request_max_retries: int = 3
    page_size: int = MAX_PAGE_SIZE
    # Reorder job polling
    job_poll_interval_seconds: float = 2.0
    job_poll_max_attempts: int = 30
    # Tag mutations in flight at once; 1 keeps them sequential
    mutation_concurrency: int = 1
    settings_store_path: str = "/tmp/collection-curator/settings.json"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            log_level=os.getenv("LOG_LEVEL", cls.log_level),
            runtime_adapters=os.getenv("RUNTIME_ADAPTERS", cls.runtime_adapters).lower(),
            shopify_shop_domain=os.getenv("SHOPIFY_SHOP_DOMAIN"),
            shopify_access_token=os.getenv("SHOPIFY_ACCESS_TOKEN"),
            shopify_api_version=os.getenv("SHOPIFY_API_VERSION", cls.shopify_api_version),
            request_timeout_seconds=float(os.getenv("REQUEST_TIMEOUT_SECONDS", cls.request_timeout_seconds)),
            request_max_retries=int(os.getenv("REQUEST_MAX_RETRIES", cls.request_max_retries)),
            page_size=min(int(os.getenv("PAGE_SIZE", cls.page_size)), MAX_PAGE_SIZE),
            job_poll_interval_seconds=float(os.getenv("JOB_POLL_INTERVAL_SECONDS", cls.job_poll_interval_seconds)),
            job_poll_max_attempts=int(os.getenv("JOB_POLL_MAX_ATTEMPTS", cls.job_poll_max_attempts)),
            mutation_concurrency=max(1, min(int(os.getenv("MUTATION_CONCURRENCY", cls.mutation_concurrency)), 10)),
            settings_store_path=os.getenv("SETTINGS_STORE_PATH", cls.settings_store_path),
        )


def get_settings(_cache: dict[str, Settings] = {}) -> Settings:
    """Provide a simple cached settings object."""

    if "settings" not in _cache:
        _cache["settings"] = Settings.from_env()
    return _cache["settings"]
