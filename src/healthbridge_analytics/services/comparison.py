"""
Comparison service for analysing two time windows side by side.

Runs the analytics aggregation independently for each period and reports
how weight, trend and consistency differ between them.
"""

import logging
from datetime import datetime
from typing import Any

from healthbridge_analytics.services.analytics import AnalyticsService, DashboardAnalytics
from healthbridge_analytics.utils.exceptions import InsufficientDataError, NoDataError
from healthbridge_analytics.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)


class ComparisonResult:
    """Results of comparing two analytics periods."""

    def __init__(
        self,
        period1_days: int,
        period2_days: int,
        period1: DashboardAnalytics,
        period2: DashboardAnalytics,
    ) -> None:
        """
        Initialize comparison result.

        Args:
            period1_days: Length of the first window.
            period2_days: Length of the second window.
            period1: Analytics for the first window.
            period2: Analytics for the second window.
        """
        self.period1_days = period1_days
        self.period2_days = period2_days
        self.period1 = period1
        self.period2 = period2

        self.weight_change = period2.current_weight - period1.current_weight
        self.weight_change_percentage = self.weight_change / period1.current_weight * 100
        self.improvement = self.weight_change < 0
        self.trend_comparison_equal = period1.overall_trend == period2.overall_trend
        self.consistency_improvement = period2.consistency_score > period1.consistency_score

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "period1": {"days": self.period1_days, "analytics": self.period1.to_dict()},
            "period2": {"days": self.period2_days, "analytics": self.period2.to_dict()},
            "comparison": {
                "weightChange": self.weight_change,
                "weightChangePercentage": self.weight_change_percentage,
                "improvement": self.improvement,
                "trendComparisonEqual": self.trend_comparison_equal,
                "consistencyImprovement": self.consistency_improvement,
            },
        }


class ComparisonService:
    """
    Service for comparing analytics across two periods.

    Either period failing to aggregate fails the whole comparison.
    """

    def __init__(self, analytics: AnalyticsService) -> None:
        """
        Initialize comparison service.

        Args:
            analytics: Aggregator used for each period.
        """
        self.analytics = analytics

    def _period(self, period_days: int, now: datetime) -> DashboardAnalytics:
        try:
            return self.analytics.dashboard(period_days, now=now)
        except (NoDataError, InsufficientDataError) as e:
            minimum = getattr(e, "minimum_required", None) or self.analytics.config.min_projection_samples
            raise InsufficientDataError(
                minimum_required=minimum,
                available=getattr(e, "available", 0),
                message=f"Cannot compare periods with insufficient data ({period_days} days): {e}",
            ) from e

    def compare(
        self,
        period1_days: int = 30,
        period2_days: int = 60,
        now: datetime | None = None,
    ) -> ComparisonResult:
        """
        Compare analytics of two trailing windows.

        Args:
            period1_days: Length of the first window.
            period2_days: Length of the second window.
            now: Reference instant shared by both windows.

        Returns:
            Comparison result.

        Raises:
            InsufficientDataError: If either period cannot be aggregated.
        """
        now = now or utc_now()

        logger.info(f"Comparing {period1_days}-day and {period2_days}-day periods")

        first = self._period(period1_days, now)
        second = self._period(period2_days, now)

        return ComparisonResult(period1_days, period2_days, first, second)
