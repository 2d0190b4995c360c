"""Unit normalization: every stored mass is in kilograms."""

import math
from typing import Any

from healthbridge_analytics.domain.weight import WeightUnit
from healthbridge_analytics.utils.exceptions import ValidationError

KG_PER_LB = 0.453592

_UNIT_ALIASES = {
    "kg": WeightUnit.KG,
    "kgs": WeightUnit.KG,
    "lb": WeightUnit.LB,
    "lbs": WeightUnit.LB,
}


def parse_unit(unit: Any) -> WeightUnit:
    """
    Resolve a unit string to a WeightUnit.

    Raises:
        ValidationError: If the unit is missing or unknown.
    """
    if isinstance(unit, WeightUnit):
        return unit
    if not unit:
        raise ValidationError("unit", "Missing required field: unit")

    resolved = _UNIT_ALIASES.get(str(unit).strip().lower())
    if resolved is None:
        raise ValidationError("unit", f"Unsupported unit '{unit}', expected 'kg' or 'lb'")
    return resolved


def normalize_weight(value: Any, unit: Any, field: str = "weight") -> float:
    """
    Convert a mass to kilograms.

    Args:
        value: Positive finite number.
        unit: "kg" or "lb".
        field: Field name reported on validation failure.

    Returns:
        Value in kilograms.

    Raises:
        ValidationError: If the value is not a positive finite number or the unit is unknown.
    """
    if value is None:
        raise ValidationError(field, f"Missing required field: {field}")
    if isinstance(value, bool):
        raise ValidationError(field, f"{field} must be a number")

    try:
        number = float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(field, f"{field} must be a number, got {value!r}") from e

    if not math.isfinite(number) or number <= 0:
        raise ValidationError(field, f"{field} must be a positive finite number, got {value!r}")

    return to_kilograms(number, unit)


def to_kilograms(value: float, unit: Any) -> float:
    """Unit conversion only, without range checks."""
    if parse_unit(unit) is WeightUnit.LB:
        return value * KG_PER_LB
    return value
