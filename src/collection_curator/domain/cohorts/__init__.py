from __future__ import annotations

from collection_curator.domain.cohorts.models import (
    CohortName,
    CohortRanking,
    CohortRule,
    ExclusionPolicy,
)
from collection_curator.domain.cohorts.strategies import (
    AgingStrategy,
    BestsellersStrategy,
    CohortStrategy,
    NewArrivalsStrategy,
    TrendingStrategy,
)

__all__ = [
    "CohortName",
    "CohortRanking",
    "CohortRule",
    "ExclusionPolicy",
    "CohortStrategy",
    "BestsellersStrategy",
    "TrendingStrategy",
    "NewArrivalsStrategy",
    "AgingStrategy",
]
