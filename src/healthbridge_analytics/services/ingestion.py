"""
Measurement ingestion service.

Validates and normalizes incoming samples, stores them, and refreshes the
projection cache as a best-effort post-write step.
"""

import logging
from datetime import datetime, timedelta
from typing import Any

from healthbridge_analytics.domain.weight import WeightMeasurement, WeightUnit
from healthbridge_analytics.infrastructure.database.repository import MeasurementStore
from healthbridge_analytics.services.normalization import normalize_weight, parse_unit, to_kilograms
from healthbridge_analytics.services.projection import ProjectionService
from healthbridge_analytics.utils.exceptions import ValidationError
from healthbridge_analytics.utils.parameters import AnalyticsConfig
from healthbridge_analytics.utils.timezone_utils import parse_timestamp, utc_now

logger = logging.getLogger(__name__)


def _optional_float(value: Any, field: str) -> float | None:
    if value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(field, f"{field} must be a number, got {value!r}") from e


def _optional_mass(value: Any, unit: WeightUnit, field: str) -> float | None:
    number = _optional_float(value, field)
    return None if number is None else to_kilograms(number, unit)


def _timestamp(value: Any, field: str) -> datetime:
    if value is None or value == "":
        raise ValidationError(field, f"Missing required field: {field}")
    try:
        return parse_timestamp(value)
    except (TypeError, ValueError, OverflowError) as e:
        raise ValidationError(field, f"Invalid ISO-8601 timestamp for {field}: {value!r}") from e


class IngestionService:
    """
    Service for recording weight measurements.

    A failed projection refresh never fails the ingestion call.
    """

    def __init__(
        self,
        measurements: MeasurementStore,
        config: AnalyticsConfig,
        projections: ProjectionService | None = None,
    ) -> None:
        """
        Initialize ingestion service.

        Args:
            measurements: Measurement store.
            config: Analytics configuration (default source tag).
            projections: Projection service whose cache is refreshed after each write.
        """
        self.measurements = measurements
        self.config = config
        self.projections = projections

    def ingest(
        self,
        weight: Any,
        unit: Any,
        timestamp: Any,
        body_fat: Any = None,
        muscle_mass: Any = None,
        water_percentage: Any = None,
        source: str | None = None,
    ) -> int:
        """
        Store one measurement.

        Args:
            weight: Positive body weight in `unit`.
            unit: "kg" or "lb".
            timestamp: ISO-8601 string or datetime of the measurement.
            body_fat: Optional body fat percentage.
            muscle_mass: Optional muscle mass in `unit`.
            water_percentage: Optional body water percentage.
            source: Optional provenance tag.

        Returns:
            The new measurement id.

        Raises:
            ValidationError: If weight, unit or timestamp is missing or malformed.
            StoreError: If the insert fails.
        """
        if weight is None or weight == "":
            raise ValidationError("weight", "Missing required field: weight")
        resolved_unit = parse_unit(unit)
        measured_at = _timestamp(timestamp, "timestamp")

        measurement = WeightMeasurement(
            weight_kg=normalize_weight(weight, resolved_unit),
            body_fat_percentage=_optional_float(body_fat, "bodyFat"),
            muscle_mass_kg=_optional_mass(muscle_mass, resolved_unit, "muscleMass"),
            water_percentage=_optional_float(water_percentage, "waterPercentage"),
            timestamp=measured_at,
            source=source or self.config.default_source,
        )

        measurement_id = self.measurements.add(measurement)
        logger.info(
            f"Recorded measurement {measurement_id}: {measurement.weight_kg:.2f} kg at "
            f"{measured_at.isoformat()} ({measurement.source})"
        )

        self._refresh_projections()
        return measurement_id

    def _refresh_projections(self) -> None:
        if self.projections is None:
            return

        try:
            self.projections.refresh_cache()
        except Exception as e:
            logger.warning(f"Projection refresh skipped after ingest: {e}", exc_info=True)

    def list_measurements(
        self,
        days: int | None = None,
        start: Any = None,
        end: Any = None,
        limit: int = 100,
        now: datetime | None = None,
    ) -> list[WeightMeasurement]:
        """
        List stored measurements, newest first.

        Either a trailing `days` window or an explicit start/end range may be
        given; `days` wins when both are.

        Raises:
            ValidationError: If a filter is malformed.
        """
        if isinstance(limit, bool) or not isinstance(limit, int) or limit <= 0:
            raise ValidationError("limit", f"limit must be a positive integer, got {limit!r}")

        range_start: datetime | None = None
        range_end: datetime | None = None

        if days is not None:
            if isinstance(days, bool) or not isinstance(days, int) or days <= 0:
                raise ValidationError("days", f"days must be a positive integer, got {days!r}")
            range_start = (now or utc_now()) - timedelta(days=days)
        else:
            if start is not None:
                range_start = _timestamp(start, "start")
            if end is not None:
                range_end = _timestamp(end, "end")
                # a bare date covers the whole day
                if isinstance(end, str) and len(end.strip()) == 10:
                    range_end = range_end + timedelta(days=1) - timedelta(microseconds=1)

        return self.measurements.search(range_start, range_end, limit)
