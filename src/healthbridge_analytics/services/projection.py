"""
Projection engine.

Extrapolates the straight-line rate between the first and last of the most
recent measurements, and attaches a variance-based confidence score. The
pure calculation is separate from the cache write so callers may always
recompute live.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from healthbridge_analytics.domain.weight import (
    PROJECTION_ALGORITHM,
    WeightMeasurement,
    WeightProjection,
)
from healthbridge_analytics.infrastructure.database.repository import (
    MeasurementStore,
    ProjectionCache,
)
from healthbridge_analytics.utils.exceptions import InsufficientDataError, ValidationError
from healthbridge_analytics.utils.parameters import AnalyticsConfig
from healthbridge_analytics.utils.timezone_utils import elapsed_days, local_date, utc_now

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 0.1
MAX_CONFIDENCE = 0.95
MIN_SAMPLES = 7


class ProjectionResult:
    """Output of one projection run."""

    def __init__(
        self,
        current_weight: float,
        daily_rate: float,
        confidence: float,
        projections: list[WeightProjection],
        algorithm: str = PROJECTION_ALGORITHM,
    ) -> None:
        self.current_weight = current_weight
        self.daily_rate = daily_rate
        self.confidence = confidence
        self.projections = projections
        self.algorithm = algorithm

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "currentWeight": self.current_weight,
            "dailyRate": self.daily_rate,
            "confidence": self.confidence,
            "projections": [p.to_dict() for p in self.projections],
            "algorithm": self.algorithm,
        }


def population_variance(values: list[float]) -> float:
    mean = sum(values) / len(values)
    return sum((v - mean) ** 2 for v in values) / len(values)


def confidence_from_variance(variance: float) -> float:
    """Map sample variance to a score in [0.1, 0.95]; noisier data scores lower."""
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, 1 - variance / 100))


def calculate_projections(
    measurements: list[WeightMeasurement],
    horizon_days: int = 30,
    now: datetime | None = None,
    timezone: str = "UTC",
    min_samples: int = MIN_SAMPLES,
) -> ProjectionResult:
    """
    Project weight forward one point per day.

    The daily rate is the signed change per day between the oldest and the
    newest sample (negative while losing weight).

    Args:
        measurements: Samples in any order; sorted by timestamp internally.
        horizon_days: Number of days to project.
        now: Reference instant (naive UTC). Defaults to the current time.
        timezone: Timezone whose calendar "today" anchors projected dates.
        min_samples: Minimum number of samples required.

    Returns:
        Projection result with exactly `horizon_days` points.

    Raises:
        ValidationError: If horizon_days is not a positive integer.
        InsufficientDataError: If fewer than `min_samples` samples are given.
    """
    if isinstance(horizon_days, bool) or not isinstance(horizon_days, int) or horizon_days <= 0:
        raise ValidationError("horizonDays", f"horizonDays must be a positive integer, got {horizon_days!r}")

    if len(measurements) < min_samples:
        raise InsufficientDataError(
            minimum_required=min_samples,
            available=len(measurements),
            message=(
                f"Insufficient data for projections. Need at least {min_samples} "
                f"measurements, got {len(measurements)}"
            ),
        )

    ordered = sorted(measurements, key=lambda m: m.timestamp)
    first, last = ordered[0], ordered[-1]

    total_days = elapsed_days(first.timestamp, last.timestamp)
    if total_days > 0:
        daily_rate = (last.weight_kg - first.weight_kg) / total_days
    else:
        daily_rate = 0.0

    confidence = confidence_from_variance(population_variance([m.weight_kg for m in ordered]))

    current_weight = last.weight_kg
    today = local_date(now or utc_now(), timezone)

    projections = [
        WeightProjection(
            projected_date=today + timedelta(days=i),
            projected_weight_kg=max(0.0, current_weight + daily_rate * i),
            confidence=confidence,
            daily_rate=daily_rate,
            days_from_now=i,
        )
        for i in range(1, horizon_days + 1)
    ]

    return ProjectionResult(current_weight, daily_rate, confidence, projections)


class ProjectionService:
    """
    Cache-aside projection access over the measurement store.

    `compute` always derives projections live; `refresh_cache` is the
    optional write-through step run after ingestion.
    """

    def __init__(
        self,
        measurements: MeasurementStore,
        config: AnalyticsConfig,
        cache: ProjectionCache | None = None,
    ) -> None:
        self.measurements = measurements
        self.config = config
        self.cache = cache

    def compute(self, horizon_days: int | None = None, now: datetime | None = None) -> ProjectionResult:
        """
        Project from the most recent measurements.

        Raises:
            InsufficientDataError: If too few measurements are stored.
        """
        samples = self.measurements.recent(self.config.projection_sample_limit)
        return calculate_projections(
            samples,
            self.config.default_horizon_days if horizon_days is None else horizon_days,
            now=now,
            timezone=self.config.timezone,
            min_samples=self.config.min_projection_samples,
        )

    def refresh_cache(self, now: datetime | None = None) -> int:
        """
        Recompute projections and upsert them into the cache.

        Returns:
            Number of cached points written (0 when caching is disabled).

        Raises:
            InsufficientDataError: If too few measurements are stored; nothing is written.
            StoreError: If the cache write fails.
        """
        if self.cache is None:
            return 0

        result = self.compute(now=now)
        written = self.cache.upsert(result.projections, result.algorithm)
        logger.info(f"Cached {written} projection points (daily rate {result.daily_rate:.4f} kg/day)")
        return written

    def cached(self) -> list[WeightProjection]:
        """Cached projection points ordered by date; empty when caching is disabled."""
        if self.cache is None:
            return []
        return self.cache.all()
