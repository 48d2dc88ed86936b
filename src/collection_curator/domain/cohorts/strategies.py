from __future__ import annotations

from datetime import datetime, timedelta
from typing import ClassVar, Optional, Sequence

from collection_curator.domain.catalog.models import Item
from collection_curator.domain.cohorts.models import CohortName, CohortRanking, CohortRule
from collection_curator.domain.cohorts.ranking import (
    apply_target_count,
    rank_by_recency_then_units,
    rank_by_units,
    rank_newest_first,
    rank_oldest_first,
)
from collection_curator.domain.common.ids import ItemId
from collection_curator.domain.sales.aggregator import SalesAggregates, items_with_sales


class CohortStrategy:
    """
    Common ranking interface shared by all cohorts.

    Subclasses declare which inputs they need so the pipeline can skip fetching
    orders or the catalog when a strategy does not use them.
    """

    cohort: ClassVar[CohortName]
    requires_sales: ClassVar[bool] = True
    requires_catalog: ClassVar[bool] = False
    fixed_lookback_days: ClassVar[Optional[int]] = None

    def lookback_days(self, rule: CohortRule) -> int:
        return self.fixed_lookback_days if self.fixed_lookback_days is not None else rule.lookback_days

    def rank(
        self,
        aggregates: SalesAggregates,
        catalog: Sequence[Item],
        rule: CohortRule,
        now: datetime,
    ) -> list[ItemId]:
        raise NotImplementedError

    def classify(
        self,
        aggregates: SalesAggregates,
        catalog: Sequence[Item],
        rule: CohortRule,
        now: datetime,
    ) -> CohortRanking:
        ranked = self.rank(aggregates, catalog, rule, now)
        return CohortRanking(
            cohort=self.cohort,
            ranked=ranked,
            selected=apply_target_count(ranked, rule.target_count),
        )


class BestsellersStrategy(CohortStrategy):
    cohort = CohortName.BESTSELLERS
    fixed_lookback_days = 180

    def rank(self, aggregates, catalog, rule, now):
        return rank_by_units(aggregates)


class TrendingStrategy(CohortStrategy):
    cohort = CohortName.TRENDING
    fixed_lookback_days = 7

    def rank(self, aggregates, catalog, rule, now):
        return rank_by_recency_then_units(aggregates, now)


class NewArrivalsStrategy(CohortStrategy):
    cohort = CohortName.NEW_ARRIVALS
    requires_sales = False
    requires_catalog = True

    def rank(self, aggregates, catalog, rule, now):
        return rank_newest_first(catalog, now - timedelta(days=self.lookback_days(rule)))


class AgingStrategy(CohortStrategy):
    """Items without a sale in the lookback window, oldest first; never-sold items qualify."""

    cohort = CohortName.AGING
    requires_catalog = True

    def rank(self, aggregates, catalog, rule, now):
        return rank_oldest_first(catalog, items_with_sales(aggregates))
