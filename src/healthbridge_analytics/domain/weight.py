"""
Weight domain models.

This module defines the canonical shapes of measurements, goals and derived
projections, and their JSON-ready payload form.
"""

from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

PROJECTION_ALGORITHM = "linear_regression_v1"


class WeightUnit(str, Enum):
    """Enumeration of accepted input units."""

    KG = "kg"
    LB = "lb"


class TrendDirection(str, Enum):
    """Overall trend classification."""

    GAINING = "gaining"
    LOSING = "losing"
    STABLE = "stable"
    NO_CHANGE = "no_change"
    INSUFFICIENT_DATA = "insufficient_data"


class WeightMeasurement(BaseModel):
    """
    Canonical weight measurement.

    Weights are in kilograms; the timestamp is a naive UTC instant.
    """

    id: int | None = Field(None, description="Store-assigned identifier")
    weight_kg: float = Field(gt=0, description="Weight in kilograms")
    body_fat_percentage: float | None = Field(None, description="Body fat percentage")
    muscle_mass_kg: float | None = Field(None, description="Muscle mass in kilograms")
    water_percentage: float | None = Field(None, description="Body water percentage")
    timestamp: datetime = Field(description="Measurement instant (UTC)")
    source: str = Field("manual", description="Provenance tag of the upstream device or integration")

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert measurement to its payload representation."""
        return {
            "id": self.id,
            "weightKg": self.weight_kg,
            "bodyFatPercentage": self.body_fat_percentage,
            "muscleMassKg": self.muscle_mass_kg,
            "waterPercentage": self.water_percentage,
            "timestamp": self.timestamp.isoformat(),
            "source": self.source,
        }


class WeightGoal(BaseModel):
    """Weight-loss goal record. At most one is active at a time."""

    id: int | None = None
    start_weight_kg: float = Field(gt=0)
    target_weight_kg: float = Field(gt=0)
    start_date: date
    target_date: date | None = None
    weekly_goal_kg: float | None = None
    is_active: bool = True

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert goal to its payload representation."""
        return {
            "goalId": self.id,
            "startWeight": self.start_weight_kg,
            "targetWeight": self.target_weight_kg,
            "startDate": self.start_date.isoformat(),
            "targetDate": self.target_date.isoformat() if self.target_date else None,
            "weeklyGoal": self.weekly_goal_kg,
            "isActive": self.is_active,
        }


class WeightProjection(BaseModel):
    """A single forward-extrapolated point. Derived, never authoritative."""

    projected_date: date
    projected_weight_kg: float = Field(ge=0)
    confidence: float = Field(ge=0, le=1)
    daily_rate: float
    days_from_now: int

    model_config = ConfigDict(from_attributes=True)

    def to_dict(self) -> dict[str, Any]:
        """Convert projection point to its payload representation."""
        return {
            "date": self.projected_date.isoformat(),
            "projectedWeightKg": self.projected_weight_kg,
            "confidence": self.confidence,
            "dailyRate": self.daily_rate,
            "daysFromNow": self.days_from_now,
        }
