"""Error taxonomy for the overhaul monitoring engine.

All engine errors inherit from OverhaulMonitorError so hosts can catch a
single base class. Errors that invalidate a whole operation (unknown
aircraft, hours going backward) are raised before any write happens;
errors local to one component or parameter are caught by the propagation
engine and recorded in its report instead.
"""

from typing import Optional


class OverhaulMonitorError(Exception):
    """Base exception for all engine errors.

    Attributes:
        message: Human-readable error message.
        hint: Optional troubleshooting hint for operators.
        exit_code: Suggested exit code for CLI hosts.
    """

    exit_code: int = 1

    def __init__(
        self,
        message: str,
        hint: Optional[str] = None,
        exit_code: Optional[int] = None,
    ) -> None:
        self.message = message
        self.hint = hint
        if exit_code is not None:
            self.exit_code = exit_code
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        """Format the exception message with optional hint."""
        if self.hint:
            return f"{self.message}\n\nHint: {self.hint}"
        return self.message


class NotFoundError(OverhaulMonitorError):
    """A referenced aircraft, component or parameter does not exist.

    Fatal to the single operation that referenced it, never to a batch.
    """

    exit_code: int = 2

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(message=f"{entity} '{entity_id}' not found")


class InvalidConfigurationError(OverhaulMonitorError):
    """Threshold or overhaul configuration cannot be evaluated.

    This typically occurs when:
    - The overhaul interval is zero or negative
    - Threshold bands are not in descending order (red > orange > yellow >= green)
    - Percent thresholds fall outside 0..100
    """

    exit_code: int = 1


class NotApplicableError(OverhaulMonitorError):
    """The overhaul model was invoked on a parameter without overhauls enabled."""

    exit_code: int = 1

    def __init__(self, message: str, parameter_id: Optional[str] = None) -> None:
        self.parameter_id = parameter_id
        super().__init__(message=message)


class ValidationFailureError(OverhaulMonitorError):
    """A single component or parameter update was rejected by its store.

    Example: the component has no hours-tracked life record.
    """

    exit_code: int = 3


class HoursDecrementError(ValidationFailureError):
    """A new cumulative flight-hour reading is lower than the stored one.

    Flight hours never go backward, so the whole propagation is rejected
    before any write.
    """

    def __init__(self, aircraft_id: str, current_hours: float, new_hours: float) -> None:
        self.aircraft_id = aircraft_id
        self.current_hours = current_hours
        self.new_hours = new_hours
        super().__init__(
            message=(
                f"New flight hours {new_hours} for aircraft '{aircraft_id}' are lower "
                f"than the recorded {current_hours}"
            ),
            hint="Flight hours are cumulative. Submit the aircraft's total hours, not a delta.",
        )
