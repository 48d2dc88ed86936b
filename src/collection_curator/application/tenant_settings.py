from __future__ import annotations

from collection_curator.application.errors import ConfigurationError
from collection_curator.domain.cohorts.models import CohortRule
from collection_curator.domain.common.ids import TenantId
from collection_curator.domain.settings_record import SettingsRecord, parse_settings_record
from collection_curator.ports.settings_store import SettingsStore


def load_settings_record(store: SettingsStore, tenant_id: TenantId) -> SettingsRecord:
    """Read and validate tenant settings; an invalid document is a configuration error."""
    document = store.get_settings(tenant_id)
    try:
        return parse_settings_record(document)
    except ValueError as e:
        raise ConfigurationError(f"Invalid settings for tenant {tenant_id}: {e}") from e


def validate_cohort_rule(rule: CohortRule) -> None:
    """
    Reject a cohort rule that cannot drive a run.

    Raises:
        ConfigurationError: If the cohort is disabled, has no tag, or a non-positive target count
    """
    name = rule.cohort.value
    if not rule.enabled:
        raise ConfigurationError(f"Cohort {name} is disabled")
    if not rule.tag:
        raise ConfigurationError(f"Cohort {name} has no tag configured")
    if rule.target_count <= 0:
        raise ConfigurationError(f"Cohort {name} target count must be positive, got {rule.target_count}")
