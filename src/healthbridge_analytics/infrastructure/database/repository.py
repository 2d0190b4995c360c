"""
Durable stores for measurements, goals and the projection cache.

Each write commits on its own; every SQLAlchemy failure is rolled back and
surfaced as StoreError.
"""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from healthbridge_analytics.domain.weight import WeightGoal, WeightMeasurement, WeightProjection
from healthbridge_analytics.infrastructure.database.models import (
    GoalRow,
    MeasurementRow,
    ProjectionRow,
)
from healthbridge_analytics.utils.exceptions import StoreError
from healthbridge_analytics.utils.timezone_utils import utc_now

logger = logging.getLogger(__name__)


@contextmanager
def _store_operation(db: Session, action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        raise StoreError(f"Failed to {action}: {e}") from e


class MeasurementStore:
    """Timestamp-ordered collection of weight measurements."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def add(self, measurement: WeightMeasurement) -> int:
        """
        Insert a measurement and return its store-assigned id.

        Args:
            measurement: Measurement with weight already in kilograms.

        Raises:
            StoreError: If the insert fails.
        """
        with _store_operation(self.db, "insert measurement"):
            row = MeasurementRow(
                timestamp=measurement.timestamp,
                weight_kg=measurement.weight_kg,
                body_fat_percentage=measurement.body_fat_percentage,
                muscle_mass_kg=measurement.muscle_mass_kg,
                water_percentage=measurement.water_percentage,
                source=measurement.source,
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)

        return row.id

    def latest(self) -> WeightMeasurement | None:
        """Most recent measurement by timestamp, if any."""
        with _store_operation(self.db, "read latest measurement"):
            row = (
                self.db.query(MeasurementRow)
                .order_by(MeasurementRow.timestamp.desc(), MeasurementRow.id.desc())
                .first()
            )

        return WeightMeasurement.model_validate(row) if row else None

    def recent(self, limit: int) -> list[WeightMeasurement]:
        """
        The `limit` most recent measurements, returned oldest first.
        """
        with _store_operation(self.db, "read recent measurements"):
            rows = (
                self.db.query(MeasurementRow)
                .order_by(MeasurementRow.timestamp.desc(), MeasurementRow.id.desc())
                .limit(limit)
                .all()
            )

        return [WeightMeasurement.model_validate(r) for r in reversed(rows)]

    def since(self, start: datetime, until: datetime | None = None) -> list[WeightMeasurement]:
        """All measurements in [start, until], oldest first. Open-ended when `until` is None."""
        with _store_operation(self.db, "read measurements"):
            query = self.db.query(MeasurementRow).filter(MeasurementRow.timestamp >= start)
            if until is not None:
                query = query.filter(MeasurementRow.timestamp <= until)

            rows = (
                query.order_by(MeasurementRow.timestamp.asc(), MeasurementRow.id.asc())
                .all()
            )

        return [WeightMeasurement.model_validate(r) for r in rows]

    def search(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        limit: int = 100,
    ) -> list[WeightMeasurement]:
        """
        Measurements within an optional [start, end] range, newest first.
        """
        with _store_operation(self.db, "search measurements"):
            query = self.db.query(MeasurementRow)
            if start is not None:
                query = query.filter(MeasurementRow.timestamp >= start)
            if end is not None:
                query = query.filter(MeasurementRow.timestamp <= end)

            rows = (
                query.order_by(MeasurementRow.timestamp.desc(), MeasurementRow.id.desc())
                .limit(limit)
                .all()
            )

        return [WeightMeasurement.model_validate(r) for r in rows]


class GoalStore:
    """Collection of weight goals with a single-active invariant."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def replace_active(self, goal: WeightGoal) -> int:
        """
        Deactivate every goal, then insert `goal` as the active one.

        The two statements commit separately; the store's per-statement
        atomicity leaves at most one active goal visible afterwards.

        Raises:
            StoreError: If either statement fails.
        """
        with _store_operation(self.db, "deactivate goals"):
            deactivated = (
                self.db.query(GoalRow)
                .filter(GoalRow.is_active.is_(True))
                .update({GoalRow.is_active: False}, synchronize_session=False)
            )
            self.db.commit()

        if deactivated:
            logger.info(f"Deactivated {deactivated} previous goal(s)")

        with _store_operation(self.db, "insert goal"):
            row = GoalRow(
                start_weight_kg=goal.start_weight_kg,
                target_weight_kg=goal.target_weight_kg,
                start_date=goal.start_date,
                target_date=goal.target_date,
                weekly_goal_kg=goal.weekly_goal_kg,
                is_active=True,
            )
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)

        return row.id

    def active(self) -> WeightGoal | None:
        """The active goal, newest first if the invariant was ever broken externally."""
        with _store_operation(self.db, "read active goal"):
            row = (
                self.db.query(GoalRow)
                .filter(GoalRow.is_active.is_(True))
                .order_by(GoalRow.id.desc())
                .first()
            )

        return WeightGoal.model_validate(row) if row else None

    def count_active(self) -> int:
        with _store_operation(self.db, "count active goals"):
            return self.db.query(GoalRow).filter(GoalRow.is_active.is_(True)).count()


class ProjectionCache:
    """Derived projection rows, upserted by projected date."""

    def __init__(self, db: Session) -> None:
        self.db = db

    def upsert(self, projections: list[WeightProjection], algorithm_version: str) -> int:
        """
        Write projection points, replacing any existing row for the same date.

        Rows for dates outside the new run are dropped, so the cache only ever
        holds the latest computation.

        Returns:
            Number of rows written.

        Raises:
            StoreError: If the write fails.
        """
        calculated_at = utc_now()

        with _store_operation(self.db, "store projections"):
            stale = (
                self.db.query(ProjectionRow)
                .filter(ProjectionRow.projected_date.notin_([p.projected_date for p in projections]))
                .delete(synchronize_session=False)
            )
            if stale:
                logger.debug(f"Dropped {stale} stale projection row(s)")

            for projection in projections:
                row = (
                    self.db.query(ProjectionRow)
                    .filter(ProjectionRow.projected_date == projection.projected_date)
                    .one_or_none()
                )

                if row is None:
                    row = ProjectionRow(projected_date=projection.projected_date)
                    self.db.add(row)

                row.projected_weight_kg = projection.projected_weight_kg
                row.confidence = projection.confidence
                row.daily_rate = projection.daily_rate
                row.days_from_now = projection.days_from_now
                row.algorithm_version = algorithm_version
                row.calculated_at = calculated_at

            self.db.commit()

        return len(projections)

    def all(self) -> list[WeightProjection]:
        """Cached points ordered by projected date."""
        with _store_operation(self.db, "read projections"):
            rows = self.db.query(ProjectionRow).order_by(ProjectionRow.projected_date.asc()).all()

        return [WeightProjection.model_validate(r) for r in rows]
