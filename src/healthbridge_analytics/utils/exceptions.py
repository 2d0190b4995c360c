"""Custom exceptions for the health bridge analytics engine."""

from typing import Any


class HealthBridgeError(Exception):
    """Base exception for all health bridge analytics errors."""

    kind = "error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict[str, Any]:
        """Convert to a structured error payload."""
        return {"error": self.kind, "message": self.message}


class ConfigurationError(HealthBridgeError):
    """Raised when there is a configuration error."""

    kind = "configuration_error"


class ValidationError(HealthBridgeError):
    """Raised when caller-supplied input is missing or malformed."""

    kind = "validation_error"

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["field"] = self.field
        return payload


class InsufficientDataError(HealthBridgeError):
    """Raised when fewer samples exist than an algorithm requires."""

    kind = "insufficient_data"

    def __init__(
        self, minimum_required: int, available: int | None = None, message: str | None = None
    ) -> None:
        super().__init__(
            message
            or f"Insufficient data: need at least {minimum_required} measurements, got {available}"
        )
        self.minimum_required = minimum_required
        self.available = available

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["minimumRequired"] = self.minimum_required
        payload["available"] = self.available
        return payload


class NoDataError(HealthBridgeError):
    """Raised when a query yields zero relevant measurements."""

    kind = "no_data"


class NoActiveGoalError(HealthBridgeError):
    """Raised when a goal-dependent operation finds no active goal."""

    kind = "no_active_goal"


class StoreError(HealthBridgeError):
    """Raised when the underlying persistence layer fails."""

    kind = "store_error"
