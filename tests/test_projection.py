"""Unit tests for the projection engine."""

from datetime import date, datetime, timedelta

import pytest
from conftest import BASE_TIME, WEEKLY_LOSS_SERIES, make_measurements

from healthbridge_analytics.domain.weight import PROJECTION_ALGORITHM
from healthbridge_analytics.services.projection import (
    ProjectionService,
    calculate_projections,
    confidence_from_variance,
)
from healthbridge_analytics.utils.exceptions import InsufficientDataError, ValidationError

NOW = BASE_TIME + timedelta(days=42, hours=1)


def test_linear_loss_scenario() -> None:
    """Test rate and seventh-day projection for a steady 2 kg/week loss."""
    result = calculate_projections(make_measurements(WEEKLY_LOSS_SERIES), horizon_days=7, now=NOW)

    if result.daily_rate != pytest.approx(-0.2857, abs=1e-4):
        raise AssertionError(f"Expected daily_rate≈-0.2857, got {result.daily_rate}")

    last = result.projections[-1]
    if last.projected_weight_kg != pytest.approx(86.0, abs=1e-6):
        raise AssertionError(f"Expected last projection≈86.0, got {last.projected_weight_kg}")

    if result.current_weight != 88.0:
        raise AssertionError(f"Expected current_weight=88.0, got {result.current_weight}")

    if result.algorithm != PROJECTION_ALGORITHM:
        raise AssertionError(f"Unexpected algorithm tag {result.algorithm}")


def test_confidence_from_population_variance() -> None:
    """Test that confidence is 1 - variance/100 inside the clamp bounds."""
    # population variance of 100, 98, ..., 88 is 16
    result = calculate_projections(make_measurements(WEEKLY_LOSS_SERIES), now=NOW)

    if result.confidence != pytest.approx(0.84):
        raise AssertionError(f"Expected confidence=0.84, got {result.confidence}")


@pytest.mark.parametrize(
    "variance, expected",
    [(0.0, 0.95), (1.0, 0.95), (50.0, 0.5), (500.0, 0.1), (1e9, 0.1)],
)
def test_confidence_clamp_bounds(variance: float, expected: float) -> None:
    """Test confidence is clamped to [0.1, 0.95]."""
    if confidence_from_variance(variance) != pytest.approx(expected):
        raise AssertionError(f"variance={variance}: expected {expected}")


def test_noisy_data_keeps_confidence_in_range() -> None:
    """Test that wildly varying samples still yield confidence within bounds."""
    pairs = [(60.0 if i % 2 else 140.0, i) for i in range(10)]
    result = calculate_projections(make_measurements(pairs), now=NOW)

    if not 0.1 <= result.confidence <= 0.95:
        raise AssertionError(f"Confidence out of range: {result.confidence}")


@pytest.mark.parametrize("horizon", [1, 7, 30, 365])
def test_horizon_point_count(horizon: int) -> None:
    """Test exactly `horizon` points with days_from_now 1..horizon."""
    result = calculate_projections(make_measurements(WEEKLY_LOSS_SERIES), horizon_days=horizon, now=NOW)

    days = [p.days_from_now for p in result.projections]
    if days != list(range(1, horizon + 1)):
        raise AssertionError(f"Unexpected days_from_now sequence for horizon {horizon}")

    first_date = result.projections[0].projected_date
    if first_date != date(2024, 2, 13):
        raise AssertionError(f"Expected first projected date 2024-02-13, got {first_date}")


def test_projection_never_negative() -> None:
    """Test that projections clamp at zero for steep losses over long horizons."""
    pairs = [(100.0 - 10 * i, i) for i in range(7)]
    result = calculate_projections(make_measurements(pairs), horizon_days=400, now=NOW)

    if any(p.projected_weight_kg < 0 for p in result.projections):
        raise AssertionError("Found a negative projected weight")

    if result.projections[-1].projected_weight_kg != 0.0:
        raise AssertionError("Expected the far projection to be clamped at 0")


def test_points_share_rate_and_confidence() -> None:
    """Test every point carries the run's rate and confidence."""
    result = calculate_projections(make_measurements(WEEKLY_LOSS_SERIES), now=NOW)

    for point in result.projections:
        if point.confidence != result.confidence or point.daily_rate != result.daily_rate:
            raise AssertionError("Projection point does not share the run's rate/confidence")


def test_unordered_input_is_sorted() -> None:
    """Test samples are ordered by timestamp before the rate is computed."""
    measurements = make_measurements(WEEKLY_LOSS_SERIES)
    result = calculate_projections(list(reversed(measurements)), horizon_days=7, now=NOW)

    if result.current_weight != 88.0:
        raise AssertionError(f"Expected newest weight 88.0, got {result.current_weight}")


def test_fewer_than_seven_samples() -> None:
    """Test that fewer than 7 samples raise InsufficientDataError."""
    with pytest.raises(InsufficientDataError) as exc_info:
        calculate_projections(make_measurements(WEEKLY_LOSS_SERIES[:6]), now=NOW)

    if exc_info.value.minimum_required != 7:
        raise AssertionError("Expected minimum_required=7")
    if exc_info.value.to_dict()["error"] != "insufficient_data":
        raise AssertionError("Unexpected error kind")


def test_single_instant_gives_zero_rate() -> None:
    """Test that samples sharing one timestamp project a flat line."""
    pairs = [(80.0 + i * 0.1, 0) for i in range(7)]
    result = calculate_projections(make_measurements(pairs), horizon_days=3, now=NOW)

    if result.daily_rate != 0.0:
        raise AssertionError(f"Expected zero rate, got {result.daily_rate}")


@pytest.mark.parametrize("horizon", [0, -5])
def test_invalid_horizon(horizon: int) -> None:
    """Test non-positive horizons are rejected."""
    with pytest.raises(ValidationError):
        calculate_projections(make_measurements(WEEKLY_LOSS_SERIES), horizon_days=horizon, now=NOW)


def test_projected_dates_follow_configured_timezone() -> None:
    """Test that 'today' is taken in the configured timezone."""
    late_evening_utc = datetime(2024, 2, 12, 3, 0, 0)
    result = calculate_projections(
        make_measurements(WEEKLY_LOSS_SERIES),
        horizon_days=1,
        now=late_evening_utc,
        timezone="America/New_York",
    )

    # 03:00 UTC on Feb 12 is still Feb 11 in New York
    if result.projections[0].projected_date != date(2024, 2, 12):
        raise AssertionError(f"Unexpected date {result.projections[0].projected_date}")


def test_refresh_cache_writes_default_horizon(
    add_measurements, measurement_store, projection_cache, analytics_config
) -> None:
    """Test the write-through step caches one row per projected day."""
    add_measurements(WEEKLY_LOSS_SERIES)
    service = ProjectionService(measurement_store, analytics_config, projection_cache)

    written = service.refresh_cache(now=NOW)
    cached = service.cached()

    if written != 30 or len(cached) != 30:
        raise AssertionError(f"Expected 30 cached rows, got {written}/{len(cached)}")

    if cached[6].projected_weight_kg != pytest.approx(86.0):
        raise AssertionError(f"Expected cached day 7 ≈ 86.0, got {cached[6].projected_weight_kg}")


def test_refresh_cache_upserts_by_date(
    add_measurements, measurement_store, projection_cache, analytics_config
) -> None:
    """Test that recomputing replaces rows for the same dates instead of duplicating."""
    add_measurements(WEEKLY_LOSS_SERIES)
    service = ProjectionService(measurement_store, analytics_config, projection_cache)
    service.refresh_cache(now=NOW)

    add_measurements([(87.0, 43)])
    service.refresh_cache(now=NOW)
    cached = service.cached()

    if len(cached) != 30:
        raise AssertionError(f"Expected 30 rows after upsert, got {len(cached)}")

    if cached[0].projected_weight_kg >= 87.0:
        raise AssertionError("Expected cached rows to reflect the newest measurement")


def test_refresh_cache_insufficient_data_writes_nothing(
    add_measurements, measurement_store, projection_cache, analytics_config
) -> None:
    """Test that a failed projection leaves the cache empty."""
    add_measurements(WEEKLY_LOSS_SERIES[:3])
    service = ProjectionService(measurement_store, analytics_config, projection_cache)

    with pytest.raises(InsufficientDataError):
        service.refresh_cache(now=NOW)

    if projection_cache.all():
        raise AssertionError("Expected no projection rows to be written")


def test_compute_uses_recent_sample_limit(add_measurements, measurement_store, analytics_config) -> None:
    """Test that only the most recent samples feed the live projection."""
    # 20 days gaining, then 30 days of steady loss
    gaining = [(70.0 + i, i) for i in range(20)]
    losing = [(90.0 - 0.2 * i, 20 + i) for i in range(30)]
    add_measurements(gaining + losing)

    result = ProjectionService(measurement_store, analytics_config).compute(horizon_days=5, now=NOW)

    if result.daily_rate != pytest.approx(-0.2):
        raise AssertionError(f"Expected rate from last 30 samples (-0.2), got {result.daily_rate}")


def test_refresh_on_a_later_day_drops_past_rows(
    add_measurements, measurement_store, projection_cache, analytics_config
) -> None:
    """Test the cache only holds the latest run after refreshing on two different days."""
    add_measurements(WEEKLY_LOSS_SERIES)
    service = ProjectionService(measurement_store, analytics_config, projection_cache)

    service.refresh_cache(now=NOW)
    later = NOW + timedelta(days=10)
    service.refresh_cache(now=later)
    cached = service.cached()

    if len(cached) != 30:
        raise AssertionError(f"Expected 30 rows, got {len(cached)}")

    if cached[0].projected_date != later.date() + timedelta(days=1) or cached[0].days_from_now != 1:
        raise AssertionError(f"Stale first row {cached[0]}")

    if any(p.projected_date <= later.date() for p in cached):
        raise AssertionError("Past-dated projections remain in the cache")
