from __future__ import annotations

from typing import Dict

from collection_curator.application.errors import UnknownCohortError
from collection_curator.domain.cohorts.models import CohortName
from collection_curator.domain.cohorts.strategies import (
    AgingStrategy,
    BestsellersStrategy,
    CohortStrategy,
    NewArrivalsStrategy,
    TrendingStrategy,
)


class Registry:
    def __init__(self) -> None:
        self._strategies: Dict[CohortName, CohortStrategy] = {}
        self.register(BestsellersStrategy())
        self.register(TrendingStrategy())
        self.register(NewArrivalsStrategy())
        self.register(AgingStrategy())

    def register(self, strategy: CohortStrategy) -> None:
        self._strategies[strategy.cohort] = strategy

    def resolve(self, cohort: str) -> CohortName:
        """Map a cohort name from a request onto CohortName."""
        try:
            return CohortName(cohort)
        except ValueError:
            raise UnknownCohortError(f"Unknown cohort {cohort}") from None

    def get(self, cohort: CohortName) -> CohortStrategy:
        if cohort not in self._strategies:
            raise UnknownCohortError(f"Cohort {cohort.value} has no registered strategy")
        return self._strategies[cohort]

    def names(self) -> list[str]:
        return [cohort.value for cohort in self._strategies]
