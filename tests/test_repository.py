"""Unit tests for the measurement store."""

from datetime import timedelta

from conftest import BASE_TIME


def test_since_excludes_samples_after_until(add_measurements, measurement_store) -> None:
    """Test the upper bound drops measurements after the reference instant."""
    add_measurements([(90.0, 0), (89.0, 5), (88.0, 10)])

    rows = measurement_store.since(BASE_TIME, until=BASE_TIME + timedelta(days=7))

    if [r.weight_kg for r in rows] != [90.0, 89.0]:
        raise AssertionError(f"Unexpected window {[r.weight_kg for r in rows]}")


def test_since_bounds_are_inclusive(add_measurements, measurement_store) -> None:
    """Test samples exactly on either bound are kept."""
    add_measurements([(90.0, 0), (89.0, 5)])

    rows = measurement_store.since(BASE_TIME, until=BASE_TIME + timedelta(days=5))

    if len(rows) != 2:
        raise AssertionError(f"Expected both boundary samples, got {len(rows)}")


def test_since_without_until_is_open_ended(add_measurements, measurement_store) -> None:
    """Test omitting the upper bound returns everything from start on."""
    add_measurements([(90.0, -1), (89.0, 5), (88.0, 400)])

    rows = measurement_store.since(BASE_TIME)

    if [r.weight_kg for r in rows] != [89.0, 88.0]:
        raise AssertionError(f"Unexpected rows {[r.weight_kg for r in rows]}")
