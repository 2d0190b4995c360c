"""
Trend analysis service.

Computes sliding moving averages, per-pair plateau intervals and the overall
direction of a window of measurements.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from healthbridge_analytics.domain.weight import TrendDirection, WeightMeasurement
from healthbridge_analytics.infrastructure.database.repository import MeasurementStore
from healthbridge_analytics.utils.exceptions import NoDataError, ValidationError
from healthbridge_analytics.utils.parameters import AnalyticsConfig
from healthbridge_analytics.utils.timezone_utils import elapsed_days, utc_now

logger = logging.getLogger(__name__)


def moving_average(values: list[float], window: int) -> list[float] | None:
    """
    Simple moving average, one entry per full window position, oldest first.

    Returns None when there are fewer values than the window size.
    """
    if len(values) < window:
        return None

    return [sum(values[i - window + 1 : i + 1]) / window for i in range(window - 1, len(values))]


def detect_plateaus(
    weights: list[float],
    dates: list[datetime],
    threshold_kg: float = 0.5,
) -> list[dict[str, Any]]:
    """
    Record one interval for every consecutive pair whose change is below the threshold.

    Adjacent qualifying pairs are reported separately, never merged.
    """
    plateaus: list[dict[str, Any]] = []

    for i in range(1, len(weights)):
        change = abs(weights[i] - weights[i - 1])
        if change < threshold_kg:
            plateaus.append(
                {
                    "startDate": dates[i - 1].date().isoformat(),
                    "endDate": dates[i].date().isoformat(),
                    "durationDays": 1,
                    "weightChange": change,
                }
            )

    return plateaus


def classify_trend(
    weights: list[float],
    dates: list[datetime],
    rate_threshold_kg: float = 0.1,
) -> TrendDirection:
    """Classify the overall direction from the first and last sample."""
    if len(weights) < 2:
        return TrendDirection.INSUFFICIENT_DATA

    total_days = elapsed_days(dates[0], dates[-1])
    if total_days == 0:
        return TrendDirection.NO_CHANGE

    daily_rate = (weights[-1] - weights[0]) / total_days

    if daily_rate > rate_threshold_kg:
        return TrendDirection.GAINING
    if daily_rate < -rate_threshold_kg:
        return TrendDirection.LOSING
    return TrendDirection.STABLE


class TrendAnalysis:
    """Results of analysing one window of measurements."""

    def __init__(
        self,
        period_days: int,
        moving_averages: dict[int, list[float] | None],
        plateaus: list[dict[str, Any]],
        overall_trend: TrendDirection,
        data_points: int,
        analysis_date: datetime,
    ) -> None:
        self.period_days = period_days
        self.moving_averages = moving_averages
        self.plateaus = plateaus
        self.overall_trend = overall_trend
        self.data_points = data_points
        self.analysis_date = analysis_date

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "periodDays": self.period_days,
            "movingAverages": {str(w): avg for w, avg in self.moving_averages.items()},
            "plateaus": self.plateaus,
            "overallTrend": self.overall_trend.value,
            "dataPoints": self.data_points,
            "analysisDate": self.analysis_date.isoformat(),
        }


def analyze_trends(
    measurements: list[WeightMeasurement],
    period_days: int,
    now: datetime | None = None,
    config: AnalyticsConfig | None = None,
) -> TrendAnalysis:
    """
    Analyse an ordered window of measurements.

    Args:
        measurements: Measurements, oldest first.
        period_days: Length of the window the measurements were drawn from.
        now: Analysis instant recorded in the result.
        config: Thresholds; defaults apply when omitted.

    Raises:
        NoDataError: If the sequence is empty.
    """
    if not measurements:
        raise NoDataError("No data available for trend analysis")

    config = config or AnalyticsConfig()

    weights = [m.weight_kg for m in measurements]
    dates = [m.timestamp for m in measurements]

    return TrendAnalysis(
        period_days=period_days,
        moving_averages={w: moving_average(weights, w) for w in config.moving_average_windows},
        plateaus=detect_plateaus(weights, dates, config.plateau_threshold_kg),
        overall_trend=classify_trend(weights, dates, config.trend_rate_threshold_kg),
        data_points=len(measurements),
        analysis_date=now or utc_now(),
    )


def validate_period(period_days: Any, field: str = "periodDays") -> int:
    """
    Raises:
        ValidationError: If the period is not a positive integer.
    """
    if isinstance(period_days, bool) or not isinstance(period_days, int) or period_days <= 0:
        raise ValidationError(field, f"{field} must be a positive integer, got {period_days!r}")
    return period_days


class TrendService:
    """Trend analysis over a trailing window of stored measurements."""

    def __init__(self, measurements: MeasurementStore, config: AnalyticsConfig) -> None:
        self.measurements = measurements
        self.config = config

    def window(self, period_days: int, now: datetime) -> list[WeightMeasurement]:
        """Measurements in the trailing `period_days` before `now`, oldest first."""
        validate_period(period_days)
        return self.measurements.since(now - timedelta(days=period_days), until=now)

    def analyze(self, period_days: int | None = None, now: datetime | None = None) -> TrendAnalysis:
        """
        Raises:
            NoDataError: If the window holds no measurements.
        """
        if period_days is None:
            period_days = self.config.default_period_days
        now = now or utc_now()

        samples = self.window(period_days, now)
        logger.info(f"Analyzing {len(samples)} measurements over {period_days} days")

        return analyze_trends(samples, period_days, now=now, config=self.config)
