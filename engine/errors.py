"""
Error taxonomy for the analytics engine.

Every failure is raised as a subclass of EngineError so callers can turn it
into a structured payload ({kind, error}) without string matching. Input
problems also subclass ValueError, so existing ``except ValueError`` handlers
keep working.
"""

from typing import Any, Dict, Optional


class EngineError(Exception):
    """Base class for all engine failures."""

    kind = "engine_error"

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> Dict[str, Any]:
        """Structured error payload. No partial result is ever attached."""
        payload = {
            'ok': False,
            'kind': self.kind,
            'error': self.message,
        }
        if self.field is not None:
            payload['field'] = self.field
        return payload


class InputValidationError(EngineError, ValueError):
    """A caller-supplied input violates a precondition."""

    kind = "input_validation"


class InsufficientDataError(InputValidationError):
    """Not enough observations to compute anything."""

    kind = "insufficient_data"


class InvalidNumericInputError(InputValidationError):
    """Non-finite or out-of-domain numeric field."""

    kind = "invalid_numeric_input"


class InvalidDateError(InputValidationError):
    """Date string is not a valid YYYY-MM-DD calendar date."""

    kind = "invalid_date"


class InvalidHorizonError(InputValidationError):
    """Dates are in the wrong order (e.g. expiry not after current date)."""

    kind = "invalid_horizon"


class SimulationCancelledError(EngineError):
    """Monte Carlo run stopped by its deadline or cancel event."""

    kind = "simulation_cancelled"
