"""Propagation report models."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field

from .enums import LifecycleState, OutcomeStatus, PropagationStatus


class ParameterOutcome(BaseModel):
    """Result of applying an increment to one monitored parameter."""

    model_config = ConfigDict(from_attributes=True)

    parameter_id: str
    control_code: str
    status: OutcomeStatus
    new_value: Optional[float] = None
    lifecycle_state: Optional[LifecycleState] = None
    error: Optional[str] = None
    recompute_error: Optional[str] = Field(
        default=None,
        description="Set when the increment was stored but derived fields could not be refreshed",
    )


class ComponentOutcome(BaseModel):
    """Result of applying an increment to one installed component."""

    model_config = ConfigDict(from_attributes=True)

    component_id: str
    serial_number: str
    status: OutcomeStatus
    new_hours: Optional[float] = None
    parameters_updated: int = 0
    parameter_outcomes: List[ParameterOutcome] = Field(default_factory=list)
    error: Optional[str] = None


class PropagationReport(BaseModel):
    """Structured outcome of one hour propagation call.

    ``success`` is true when there were no errors, or when at least one
    component was updated despite errors. A cancelled run is never a
    success. When it had already written to some components, the
    aircraft's reading is advanced and the components in ``incomplete``
    are left as a pending increment for the next run
    (``hours_advanced`` is then true).
    """

    model_config = ConfigDict(from_attributes=True)

    aircraft_id: str
    previous_hours: float
    new_hours: float
    increment: float
    components_updated: int = 0
    parameters_updated: int = 0
    component_outcomes: List[ComponentOutcome] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    incomplete: List[str] = Field(
        default_factory=list, description="Component ids skipped by cancellation"
    )
    cancelled: bool = False
    hours_advanced: bool = False
    resumed_increment: float = 0.0
    resumed_components: List[str] = Field(
        default_factory=list, description="Component ids given a pending increment first"
    )
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @computed_field
    @property
    def success(self) -> bool:
        if self.cancelled:
            return False
        return len(self.errors) == 0 or self.components_updated > 0

    @computed_field
    @property
    def status(self) -> PropagationStatus:
        """SUCCEEDED, PARTIAL (succeeded with item errors), REJECTED or CANCELLED."""
        if self.cancelled:
            return PropagationStatus.CANCELLED
        if not self.success:
            return PropagationStatus.REJECTED
        if self.errors:
            return PropagationStatus.PARTIAL
        return PropagationStatus.SUCCEEDED
