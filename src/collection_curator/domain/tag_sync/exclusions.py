from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

from collection_curator.domain.catalog.models import Item
from collection_curator.domain.cohorts.models import ExclusionPolicy

# Skip reasons
NOT_IN_CATALOG = "NOT_IN_CATALOG"
OUT_OF_STOCK = "OUT_OF_STOCK"
EXCLUDED_TAG = "EXCLUDED_TAG"


@dataclass(frozen=True)
class ExclusionResult:
    """Result of an exclusion check on a cohort candidate."""

    excluded: bool
    reasons: list[str] = field(default_factory=list)


ExclusionCheck = Callable[[Item], ExclusionResult]


def exclude_if_out_of_stock(item: Item) -> ExclusionResult:
    if item.available_quantity <= 0:
        return ExclusionResult(excluded=True, reasons=[OUT_OF_STOCK])
    return ExclusionResult(excluded=False)


def exclude_if_tagged(policy: ExclusionPolicy) -> ExclusionCheck:
    """Build a check rejecting items that carry any tag from the policy."""

    def check(item: Item) -> ExclusionResult:
        if policy.excludes(item.tags):
            return ExclusionResult(excluded=True, reasons=[EXCLUDED_TAG])
        return ExclusionResult(excluded=False)

    return check


def build_exclusion_checks(exclude_out_of_stock: bool, policy: ExclusionPolicy) -> list[ExclusionCheck]:
    """Checks in evaluation order: availability first, then excluded tags."""
    checks: list[ExclusionCheck] = []
    if exclude_out_of_stock:
        checks.append(exclude_if_out_of_stock)
    if policy.enabled and policy.tags:
        checks.append(exclude_if_tagged(policy))
    return checks


def first_exclusion(item: Item, checks: list[ExclusionCheck]) -> str | None:
    """Return the first reason an item is excluded, or None if it passes all checks."""
    for check in checks:
        result = check(item)
        if result.excluded:
            return result.reasons[0] if result.reasons else "EXCLUDED"
    return None
