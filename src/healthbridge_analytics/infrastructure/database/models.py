"""ORM models for measurements, goals and cached projections."""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, Integer, String, UniqueConstraint
from sqlalchemy.orm import declarative_base

from healthbridge_analytics.utils.timezone_utils import utc_now

Base = declarative_base()


class MeasurementRow(Base):
    """
    One body-weight sample, weight already normalized to kilograms.
    Rows are append-only.
    """

    __tablename__ = "weight_measurements"

    id = Column(Integer, primary_key=True, index=True)

    # When the measurement happened (naive UTC)
    timestamp = Column(DateTime, nullable=False, index=True)

    weight_kg = Column(Float, nullable=False)

    # Optional composition, stored as reported
    body_fat_percentage = Column(Float)
    muscle_mass_kg = Column(Float)
    water_percentage = Column(Float)

    # Upstream device / integration that produced the sample
    source = Column(String(64), default="manual")

    created_at = Column(DateTime, default=utc_now)


class GoalRow(Base):
    __tablename__ = "weight_goals"

    id = Column(Integer, primary_key=True, index=True)

    start_weight_kg = Column(Float, nullable=False)
    target_weight_kg = Column(Float, nullable=False)
    start_date = Column(Date, nullable=False)
    target_date = Column(Date)
    weekly_goal_kg = Column(Float)

    is_active = Column(Boolean, nullable=False, default=True, index=True)

    created_at = Column(DateTime, default=utc_now)


class ProjectionRow(Base):
    """Cached projection point; replaceable wholesale by projected date."""

    __tablename__ = "weight_projections"
    __table_args__ = (UniqueConstraint("projected_date", name="uq_projection_date"),)

    id = Column(Integer, primary_key=True)
    projected_date = Column(Date, nullable=False, index=True)

    projected_weight_kg = Column(Float, nullable=False)
    confidence = Column(Float, nullable=False)
    daily_rate = Column(Float, nullable=False)
    days_from_now = Column(Integer, nullable=False)

    algorithm_version = Column(String(64), nullable=False)
    calculated_at = Column(DateTime, default=utc_now)
