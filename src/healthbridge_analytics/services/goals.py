"""
Goal service.

Sets the single active weight goal and measures progress against it.
"""

import logging
from datetime import date, datetime
from typing import Any

from healthbridge_analytics.domain.weight import WeightGoal, WeightMeasurement
from healthbridge_analytics.infrastructure.database.repository import GoalStore, MeasurementStore
from healthbridge_analytics.services.normalization import normalize_weight
from healthbridge_analytics.utils.exceptions import NoActiveGoalError, NoDataError, ValidationError
from healthbridge_analytics.utils.timezone_utils import days_since, parse_date, utc_now

logger = logging.getLogger(__name__)


class GoalProgress:
    """Progress of the active goal as of the latest measurement."""

    def __init__(
        self,
        goal: WeightGoal,
        current_weight: float,
        progress_percentage: float,
        days_since_start: int,
        is_on_track: bool | None,
    ) -> None:
        self.goal = goal
        self.current_weight = current_weight
        self.progress_percentage = progress_percentage
        self.days_since_start = days_since_start
        self.is_on_track = is_on_track

    @property
    def weight_lost(self) -> float:
        return self.goal.start_weight_kg - self.current_weight

    @property
    def weight_remaining(self) -> float:
        return self.current_weight - self.goal.target_weight_kg

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "goalId": self.goal.id,
            "startWeight": self.goal.start_weight_kg,
            "targetWeight": self.goal.target_weight_kg,
            "currentWeight": self.current_weight,
            "weightLost": self.weight_lost,
            "weightRemaining": self.weight_remaining,
            "progressPercentage": self.progress_percentage,
            "daysSinceStart": self.days_since_start,
            "projectedCompletion": (
                self.goal.target_date.isoformat() if self.goal.target_date else None
            ),
            "weeklyGoal": self.goal.weekly_goal_kg,
            "isOnTrack": self.is_on_track,
        }


def calculate_goal_progress(
    goal: WeightGoal,
    latest: WeightMeasurement,
    now: datetime | None = None,
) -> GoalProgress:
    """
    Combine a goal with the latest measurement.

    Progress is clamped to [0, 100]. On-track compares progress against the
    pace implied by the weekly goal and is None when no weekly goal is set.
    """
    total_to_lose = goal.start_weight_kg - goal.target_weight_kg
    lost = goal.start_weight_kg - latest.weight_kg

    if total_to_lose != 0:
        raw_progress = lost / total_to_lose * 100
    else:
        raw_progress = 100.0 if latest.weight_kg <= goal.target_weight_kg else 0.0

    progress = max(0.0, min(100.0, raw_progress))
    elapsed = days_since(goal.start_date, now or utc_now())

    on_track = None
    if goal.weekly_goal_kg is not None:
        on_track = progress >= (elapsed / 7) * goal.weekly_goal_kg

    return GoalProgress(goal, latest.weight_kg, progress, elapsed, on_track)


def _date(value: Any, field: str, required: bool = True) -> date | None:
    if value is None or value == "":
        if required:
            raise ValidationError(field, f"Missing required field: {field}")
        return None
    try:
        return parse_date(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(field, f"Invalid date for {field}: {value!r}") from e


class GoalService:
    """Goal operations over the goal and measurement stores."""

    def __init__(self, goals: GoalStore, measurements: MeasurementStore) -> None:
        self.goals = goals
        self.measurements = measurements

    def set_goal(
        self,
        target_weight: Any,
        start_weight: Any,
        start_date: Any,
        target_date: Any = None,
        weekly_goal: Any = None,
        unit: str = "kg",
    ) -> int:
        """
        Replace the active goal.

        Every existing goal is deactivated before the new one is inserted, so
        exactly one goal is active afterwards.

        Returns:
            The new goal id.

        Raises:
            ValidationError: If a field is missing or malformed.
            StoreError: If the store rejects a write.
        """
        goal = WeightGoal(
            start_weight_kg=normalize_weight(start_weight, unit, field="startWeight"),
            target_weight_kg=normalize_weight(target_weight, unit, field="targetWeight"),
            start_date=_date(start_date, "startDate"),
            target_date=_date(target_date, "targetDate", required=False),
            weekly_goal_kg=(
                normalize_weight(weekly_goal, unit, field="weeklyGoal")
                if weekly_goal is not None
                else None
            ),
            is_active=True,
        )

        goal_id = self.goals.replace_active(goal)
        logger.info(
            f"Set goal {goal_id}: {goal.start_weight_kg:.1f} kg -> {goal.target_weight_kg:.1f} kg"
        )
        return goal_id

    def active_goal(self) -> WeightGoal:
        """
        Raises:
            NoActiveGoalError: If no goal is active.
        """
        goal = self.goals.active()
        if goal is None:
            raise NoActiveGoalError("No active weight goal")
        return goal

    def progress(self, now: datetime | None = None) -> GoalProgress:
        """
        Progress of the active goal against the most recent measurement.

        Raises:
            NoActiveGoalError: If no goal is active.
            NoDataError: If no measurement exists.
        """
        goal = self.active_goal()

        latest = self.measurements.latest()
        if latest is None:
            raise NoDataError("No measurements available for goal progress")

        return calculate_goal_progress(goal, latest, now)
