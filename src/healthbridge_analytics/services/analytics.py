"""
Analytics aggregation service.

Builds the dashboard payload for one trailing window: summary metrics, trend
classification with weekly averages and a consistency score, and a 30-day
projection.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from healthbridge_analytics.infrastructure.database.repository import MeasurementStore
from healthbridge_analytics.services.projection import ProjectionResult, calculate_projections
from healthbridge_analytics.services.trends import classify_trend, validate_period
from healthbridge_analytics.utils.exceptions import NoDataError
from healthbridge_analytics.utils.parameters import AnalyticsConfig
from healthbridge_analytics.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)

DASHBOARD_HORIZON_DAYS = 30


def weekly_averages(weights: list[float]) -> list[float] | None:
    """
    Mean of each complete block of 7 consecutive samples, oldest first.

    Returns None when fewer than 7 samples exist.
    """
    if len(weights) < 7:
        return None

    return [sum(weights[i - 6 : i + 1]) / 7 for i in range(6, len(weights), 7)]


def consistency_score(weights: list[float], threshold_kg: float = 0.5) -> float:
    """Percentage of consecutive pairs whose change is at most the threshold; 0 below 2 samples."""
    if len(weights) < 2:
        return 0.0

    consistent = sum(
        1 for i in range(1, len(weights)) if abs(weights[i] - weights[i - 1]) <= threshold_kg
    )
    return consistent / (len(weights) - 1) * 100


class DashboardAnalytics:
    """Aggregated analytics for one period."""

    def __init__(
        self,
        period_days: int,
        metrics: dict[str, Any],
        trends: dict[str, Any],
        projections: ProjectionResult,
        generated_at: datetime,
    ) -> None:
        self.period_days = period_days
        self.metrics = metrics
        self.trends = trends
        self.projections = projections
        self.generated_at = generated_at

    @property
    def current_weight(self) -> float:
        return self.metrics["currentWeight"]

    @property
    def overall_trend(self) -> str:
        return self.trends["overallTrend"]

    @property
    def consistency_score(self) -> float:
        return self.trends["consistencyScore"]

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "metrics": self.metrics,
            "trends": self.trends,
            "projections": self.projections.to_dict(),
            "generatedAt": self.generated_at.isoformat(),
        }


class AnalyticsService:
    """Single-window analytics over the measurement store."""

    def __init__(self, measurements: MeasurementStore, config: AnalyticsConfig) -> None:
        self.measurements = measurements
        self.config = config

    def dashboard(self, period_days: int | None = None, now: datetime | None = None) -> DashboardAnalytics:
        """
        Aggregate metrics, trends and projections for the trailing period.

        Args:
            period_days: Window length in days.
            now: Reference instant (naive UTC).

        Returns:
            Dashboard analytics.

        Raises:
            NoDataError: If the period contains no measurements.
            InsufficientDataError: If the period holds too few samples to project.
        """
        if period_days is None:
            period_days = self.config.default_period_days
        validate_period(period_days)
        now = now or utc_now()

        samples = self.measurements.since(now - timedelta(days=period_days), until=now)
        if not samples:
            raise NoDataError(f"No data available for analytics over the last {period_days} days")

        weights = [m.weight_kg for m in samples]
        dates = [m.timestamp for m in samples]

        metrics = {
            "totalMeasurements": len(weights),
            "periodDays": period_days,
            "currentWeight": weights[-1],
            "startingWeight": weights[0],
            "totalChange": weights[-1] - weights[0],
            "averageWeight": sum(weights) / len(weights),
            "minWeight": min(weights),
            "maxWeight": max(weights),
        }

        trends = {
            "overallTrend": classify_trend(weights, dates, self.config.trend_rate_threshold_kg).value,
            "weeklyAverage": weekly_averages(weights),
            "consistencyScore": consistency_score(weights, self.config.consistency_threshold_kg),
        }

        projections = calculate_projections(
            samples,
            DASHBOARD_HORIZON_DAYS,
            now=now,
            timezone=self.config.timezone,
            min_samples=self.config.min_projection_samples,
        )

        logger.info(
            f"Built dashboard over {period_days} days from {len(weights)} measurements "
            f"(trend: {trends['overallTrend']})"
        )

        return DashboardAnalytics(period_days, metrics, trends, projections, now)
