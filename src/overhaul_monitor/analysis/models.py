"""Result types produced by the overhaul analysis engine.

Plain dataclasses: they are computed on read and never persisted.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from overhaul_monitor.models.enums import AlertColor, LifecycleState, SeverityLevel
from overhaul_monitor.models.parameter import ThresholdConfig


@dataclass(frozen=True)
class ThresholdResult:
    """Colour decision of the threshold evaluator."""

    color: AlertColor
    description: str
    remaining: float
    threshold_value: float
    percent_consumed: float  # clamped to 0-100 for display

    @property
    def severity_rank(self) -> int:
        """0 = most severe (PURPLE) ... 4 = OK (GREEN)."""
        return self.color.severity_rank

    @property
    def severity_level(self) -> SeverityLevel:
        return self.color.severity_level

    @property
    def requires_attention(self) -> bool:
        """True for PURPLE, RED and ORANGE."""
        return self.color.requires_attention


@dataclass(frozen=True)
class RepairResult:
    """Outcome of validating a threshold config against its overhaul interval."""

    config: ThresholdConfig
    repaired: bool = False
    reason: Optional[str] = None


@dataclass
class OverhaulStatus:
    """Overhaul cycle evaluation of one monitored parameter."""

    parameter_id: str
    component_id: str
    control_code: str
    current_value: float
    limit_value: float
    current_cycle: int
    max_cycles: int
    interval_hours: float
    time_since_overhaul: float
    hours_until_next_overhaul: float
    next_overhaul_at: float
    requires_overhaul_now: bool
    life_expired: bool
    lifecycle_state: LifecycleState
    requires_attention: bool
    message: str
    color_result: Optional[ThresholdResult] = None
    thresholds_repaired: bool = False

    @property
    def requires_overhaul(self) -> bool:
        """Overhaul due now, or life limit reached with cycles left."""
        return self.lifecycle_state == LifecycleState.OVERHAUL_REQUIRED

    @property
    def severity_rank(self) -> int:
        """Rank used for sorting alerts; states outrank colours when set."""
        if self.lifecycle_state == LifecycleState.LIFE_EXPIRED:
            return AlertColor.PURPLE.severity_rank
        if self.color_result is not None:
            return self.color_result.severity_rank
        if self.lifecycle_state in (
            LifecycleState.OVERHAUL_REQUIRED,
            LifecycleState.OVERDUE,
        ):
            return AlertColor.RED.severity_rank
        if self.lifecycle_state == LifecycleState.DUE_SOON:
            return AlertColor.ORANGE.severity_rank
        return AlertColor.GREEN.severity_rank


@dataclass
class OverhaulAlert:
    """One alert row produced by the fleet aggregator."""

    aircraft_id: Optional[str]
    component_serial: str
    status: OverhaulStatus

    @property
    def parameter_id(self) -> str:
        return self.status.parameter_id

    @property
    def severity_rank(self) -> int:
        return self.status.severity_rank

    @property
    def hours_until_next_overhaul(self) -> float:
        return self.status.hours_until_next_overhaul

    @property
    def color(self) -> Optional[AlertColor]:
        result = self.status.color_result
        return result.color if result is not None else None


@dataclass
class AlertSummary:
    """Counts over a list of overhaul alerts."""

    total: int = 0
    by_color: Dict[str, int] = field(default_factory=dict)
    by_state: Dict[str, int] = field(default_factory=dict)
    requiring_overhaul: int = 0
    due_soon: int = 0
    life_expired: int = 0

    @property
    def has_alerts(self) -> bool:
        return self.total > 0
