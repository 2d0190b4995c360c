"""Pytest fixtures for analytics engine tests."""

from collections.abc import Callable, Iterator
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from healthbridge_analytics.domain.weight import WeightMeasurement
from healthbridge_analytics.infrastructure.database.models import Base
from healthbridge_analytics.infrastructure.database.repository import (
    GoalStore,
    MeasurementStore,
    ProjectionCache,
)
from healthbridge_analytics.utils.parameters import AnalyticsConfig

BASE_TIME = datetime(2024, 1, 1, 8, 0, 0)

# 2 kg lost every 7 days over six weeks
WEEKLY_LOSS_SERIES = [(100.0 - 2 * i, 7 * i) for i in range(7)]


def make_measurements(pairs: list[tuple[float, float]]) -> list[WeightMeasurement]:
    """Build measurements from (weight_kg, day_offset) pairs relative to BASE_TIME."""
    return [
        WeightMeasurement(weight_kg=weight, timestamp=BASE_TIME + timedelta(days=day))
        for weight, day in pairs
    ]


@pytest.fixture
def db() -> Iterator[Session]:
    """In-memory SQLite session with the schema applied."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()

    yield session

    session.close()
    engine.dispose()


@pytest.fixture
def analytics_config() -> AnalyticsConfig:
    return AnalyticsConfig()


@pytest.fixture
def measurement_store(db: Session) -> MeasurementStore:
    return MeasurementStore(db)


@pytest.fixture
def goal_store(db: Session) -> GoalStore:
    return GoalStore(db)


@pytest.fixture
def projection_cache(db: Session) -> ProjectionCache:
    return ProjectionCache(db)


@pytest.fixture
def add_measurements(
    measurement_store: MeasurementStore,
) -> Callable[[list[tuple[float, float]]], list[int]]:
    """Insert (weight_kg, day_offset) pairs and return their ids."""

    def _add(pairs: list[tuple[float, float]]) -> list[int]:
        return [measurement_store.add(m) for m in make_measurements(pairs)]

    return _add
