"""
Command-line interface for HealthBridge Analytics.

Provides commands for recording measurements, managing the weight goal and
producing projections, trends, dashboards and comparisons. Every command
prints a JSON payload on stdout; failures print a JSON error on stderr.
"""

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
from sqlalchemy.orm import Session

from healthbridge_analytics.infrastructure.database.connection import create_session_factory
from healthbridge_analytics.infrastructure.database.repository import (
    GoalStore,
    MeasurementStore,
    ProjectionCache,
)
from healthbridge_analytics.services.analytics import AnalyticsService
from healthbridge_analytics.services.comparison import ComparisonService
from healthbridge_analytics.services.goals import GoalService
from healthbridge_analytics.services.ingestion import IngestionService
from healthbridge_analytics.services.output import OutputService
from healthbridge_analytics.services.projection import ProjectionService
from healthbridge_analytics.services.trends import TrendService
from healthbridge_analytics.utils.exceptions import HealthBridgeError
from healthbridge_analytics.utils.logging_config import get_logger, setup_logging
from healthbridge_analytics.utils.parameters import ParameterLoader

app = typer.Typer(help="HealthBridge Analytics - weight trends, projections and goals")

logger = get_logger(__name__)

CONFIG_OPTION = typer.Option("config/config.yaml", help="Path to configuration file")


def init_config(config_path: str = "config/config.yaml") -> ParameterLoader:
    """
    Initialize configuration and logging.

    Args:
        config_path: Path to configuration file.

    Returns:
        Parameter loader instance.
    """
    param_loader = ParameterLoader(config_path)
    setup_logging(param_loader.get_logging_config())
    return param_loader


@contextmanager
def open_session(param_loader: ParameterLoader) -> Iterator[Session]:
    """One session per command."""
    session_factory = create_session_factory(param_loader.get_database_config())
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


def emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


def fail(command: str, error: HealthBridgeError) -> typer.Exit:
    logger.error(f"{command} failed: {error}")
    typer.echo(json.dumps(error.to_dict()), err=True)
    return typer.Exit(code=1)


@app.command()
def ingest(
    weight: float = typer.Option(..., help="Body weight in the given unit"),
    unit: str = typer.Option("kg", help="Unit of weight and muscle mass: kg or lb"),
    timestamp: str = typer.Option(..., help="ISO-8601 measurement instant"),
    body_fat: float | None = typer.Option(None, help="Body fat percentage"),
    muscle_mass: float | None = typer.Option(None, help="Muscle mass in the given unit"),
    water_percentage: float | None = typer.Option(None, help="Body water percentage"),
    source: str | None = typer.Option(None, help="Provenance tag (device or integration)"),
    config_path: str = CONFIG_OPTION,
) -> None:
    """
    Record a weight measurement.

    Refreshes cached projections afterwards; a failed refresh is logged only.
    """
    try:
        param_loader = init_config(config_path)
        analytics_config = param_loader.get_analytics_config()

        with open_session(param_loader) as db:
            measurements = MeasurementStore(db)
            projections = ProjectionService(measurements, analytics_config, ProjectionCache(db))
            service = IngestionService(measurements, analytics_config, projections)

            measurement_id = service.ingest(
                weight,
                unit,
                timestamp,
                body_fat=body_fat,
                muscle_mass=muscle_mass,
                water_percentage=water_percentage,
                source=source,
            )

        emit({"id": measurement_id})

    except HealthBridgeError as e:
        raise fail("Ingest", e) from e


@app.command()
def measurements(
    days: int | None = typer.Option(None, help="Only the trailing N days"),
    start: str | None = typer.Option(None, help="Range start (ISO-8601)"),
    end: str | None = typer.Option(None, help="Range end (ISO-8601, bare dates are inclusive)"),
    limit: int = typer.Option(100, help="Maximum number of rows"),
    config_path: str = CONFIG_OPTION,
) -> None:
    """List stored measurements, newest first."""
    try:
        param_loader = init_config(config_path)

        with open_session(param_loader) as db:
            service = IngestionService(MeasurementStore(db), param_loader.get_analytics_config())
            rows = service.list_measurements(days=days, start=start, end=end, limit=limit)

        emit([m.to_dict() for m in rows])

    except HealthBridgeError as e:
        raise fail("Listing", e) from e


@app.command()
def projections(
    horizon_days: int | None = typer.Option(None, help="Days to project (default from config)"),
    cached: bool = typer.Option(False, help="Read cached points instead of recomputing"),
    config_path: str = CONFIG_OPTION,
) -> None:
    """Project weight forward from the most recent measurements."""
    try:
        param_loader = init_config(config_path)

        with open_session(param_loader) as db:
            service = ProjectionService(
                MeasurementStore(db), param_loader.get_analytics_config(), ProjectionCache(db)
            )
            if cached:
                payload: Any = [p.to_dict() for p in service.cached()]
            else:
                payload = service.compute(horizon_days).to_dict()

        emit(payload)

    except HealthBridgeError as e:
        raise fail("Projection", e) from e


@app.command()
def trends(
    period_days: int | None = typer.Option(None, help="Trailing window in days"),
    config_path: str = CONFIG_OPTION,
) -> None:
    """Moving averages, plateaus and overall trend for a trailing window."""
    try:
        param_loader = init_config(config_path)

        with open_session(param_loader) as db:
            service = TrendService(MeasurementStore(db), param_loader.get_analytics_config())
            analysis = service.analyze(period_days)

        emit(analysis.to_dict())

    except HealthBridgeError as e:
        raise fail("Trend analysis", e) from e


@app.command()
def set_goal(
    target_weight: float = typer.Option(..., help="Target weight"),
    start_weight: float = typer.Option(..., help="Starting weight"),
    start_date: str = typer.Option(..., help="Start date (YYYY-MM-DD)"),
    target_date: str | None = typer.Option(None, help="Target date (YYYY-MM-DD)"),
    weekly_goal: float | None = typer.Option(None, help="Weekly loss target"),
    unit: str = typer.Option("kg", help="Unit of the weights: kg or lb"),
    config_path: str = CONFIG_OPTION,
) -> None:
    """Replace the active weight goal."""
    try:
        param_loader = init_config(config_path)

        with open_session(param_loader) as db:
            service = GoalService(GoalStore(db), MeasurementStore(db))
            goal_id = service.set_goal(
                target_weight,
                start_weight,
                start_date,
                target_date=target_date,
                weekly_goal=weekly_goal,
                unit=unit,
            )

        emit({"goalId": goal_id})

    except HealthBridgeError as e:
        raise fail("Set goal", e) from e


@app.command()
def goal(config_path: str = CONFIG_OPTION) -> None:
    """Show the active weight goal."""
    try:
        param_loader = init_config(config_path)

        with open_session(param_loader) as db:
            active = GoalService(GoalStore(db), MeasurementStore(db)).active_goal()

        emit(active.to_dict())

    except HealthBridgeError as e:
        raise fail("Goal lookup", e) from e


@app.command()
def progress(config_path: str = CONFIG_OPTION) -> None:
    """Progress of the active goal against the latest measurement."""
    try:
        param_loader = init_config(config_path)

        with open_session(param_loader) as db:
            result = GoalService(GoalStore(db), MeasurementStore(db)).progress()

        emit(result.to_dict())

    except HealthBridgeError as e:
        raise fail("Goal progress", e) from e


@app.command()
def dashboard(
    period_days: int | None = typer.Option(None, help="Trailing window in days"),
    config_path: str = CONFIG_OPTION,
) -> None:
    """Aggregated metrics, trends and projections for one window."""
    try:
        param_loader = init_config(config_path)

        with open_session(param_loader) as db:
            service = AnalyticsService(MeasurementStore(db), param_loader.get_analytics_config())
            analytics = service.dashboard(period_days)

        emit(analytics.to_dict())

    except HealthBridgeError as e:
        raise fail("Dashboard", e) from e


@app.command()
def compare(
    period1_days: int = typer.Option(30, help="First trailing window in days"),
    period2_days: int = typer.Option(60, help="Second trailing window in days"),
    config_path: str = CONFIG_OPTION,
) -> None:
    """Compare analytics between two trailing windows."""
    try:
        param_loader = init_config(config_path)

        with open_session(param_loader) as db:
            analytics = AnalyticsService(MeasurementStore(db), param_loader.get_analytics_config())
            result = ComparisonService(analytics).compare(period1_days, period2_days)

        emit(result.to_dict())

    except HealthBridgeError as e:
        raise fail("Comparison", e) from e


@app.command()
def export(
    period_days: int | None = typer.Option(None, help="Dashboard window in days"),
    period1_days: int = typer.Option(30, help="First comparison window in days"),
    period2_days: int = typer.Option(60, help="Second comparison window in days"),
    limit: int = typer.Option(10000, help="Maximum measurements in the CSV"),
    config_path: str = CONFIG_OPTION,
) -> None:
    """
    Export dashboard and comparison JSON plus the measurement history CSV.

    Written to the configured output directory.
    """
    try:
        param_loader = init_config(config_path)
        analytics_config = param_loader.get_analytics_config()
        output_service = OutputService(param_loader.get_output_config())

        with open_session(param_loader) as db:
            store = MeasurementStore(db)
            analytics = AnalyticsService(store, analytics_config)

            written = [
                output_service.write_dashboard(analytics.dashboard(period_days).to_dict()),
                output_service.write_comparison(
                    ComparisonService(analytics).compare(period1_days, period2_days).to_dict()
                ),
            ]

            history = IngestionService(store, analytics_config).list_measurements(limit=limit)
            csv_path = output_service.write_measurements_csv(history)
            if csv_path:
                written.append(csv_path)

        emit({"written": [str(p) for p in written]})

    except HealthBridgeError as e:
        raise fail("Export", e) from e


if __name__ == "__main__":
    app()
