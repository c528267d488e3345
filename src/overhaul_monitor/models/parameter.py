"""Monitored parameter, overhaul configuration and threshold models."""

from datetime import datetime, timezone
from typing import List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import LifecycleState, MonitoringStatus, Unit


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ThresholdDescriptions(BaseModel):
    """Operator-facing text for each semaphore colour."""

    model_config = ConfigDict(frozen=True)

    purple: str = "Over-critical - component overdue and still in service"
    red: str = "Critical - schedule overhaul immediately"
    orange: str = "High - prepare upcoming overhaul"
    yellow: str = "Medium - monitor progress"
    green: str = "OK - operating normally"


class ThresholdConfig(BaseModel):
    """Five-band semaphore configuration.

    In HOURS mode the bands are hours-before-boundary cutoffs, except
    ``purple`` which is the tolerated overdue amount past the boundary.
    In PERCENT mode the bands are percent-of-interval-consumed cutoffs and
    ``purple`` is the percent allowed beyond 100.

    Only ``red`` is required. An unset ``orange`` takes ``red``'s value and
    an unset ``yellow`` takes ``orange``'s, which collapses the inner bands
    into the most urgent one. Unset ``purple`` and ``green`` are 0.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    unit: Unit = Field(default=Unit.HOURS, description="HOURS or PERCENT")
    red: float = Field(..., ge=0, description="Outer edge of the alert zone")
    orange: Optional[float] = Field(default=None, ge=0)
    yellow: Optional[float] = Field(default=None, ge=0)
    green: Optional[float] = Field(default=None, ge=0)
    purple: Optional[float] = Field(
        default=None, ge=0, description="Overdue tolerance before purple"
    )
    descriptions: ThresholdDescriptions = Field(default_factory=ThresholdDescriptions)

    @property
    def effective_orange(self) -> float:
        return self.red if self.orange is None else self.orange

    @property
    def effective_yellow(self) -> float:
        return self.effective_orange if self.yellow is None else self.yellow

    @property
    def effective_green(self) -> float:
        return 0.0 if self.green is None else self.green

    @property
    def effective_purple(self) -> float:
        return 0.0 if self.purple is None else self.purple

    def ordering_errors(self, strict: bool = True) -> List[str]:
        """List ordering problems among the explicitly configured bands.

        Args:
            strict: Require red > orange > yellow (manual entry rule). When
                False only an inverted order is reported, so zero-width
                bands pass.

        Returns:
            Human-readable error strings, empty when the config is usable.
        """
        errors: List[str] = []
        chain = [("red", self.red), ("orange", self.orange), ("yellow", self.yellow)]
        present = [(name, value) for name, value in chain if value is not None]

        for (upper_name, upper), (lower_name, lower) in zip(present, present[1:]):
            if upper < lower or (strict and upper == lower):
                relation = "greater than" if strict else "at least"
                errors.append(
                    f"{upper_name} threshold ({upper}) must be {relation} "
                    f"{lower_name} threshold ({lower})"
                )

        if self.green is not None and self.effective_yellow < self.green:
            errors.append(
                f"yellow threshold ({self.effective_yellow}) must be at least "
                f"green threshold ({self.green})"
            )

        if self.unit == Unit.PERCENT:
            for name, value in chain + [("green", self.green)]:
                if value is not None and value > 100:
                    errors.append(f"{name} threshold ({value}) must be between 0 and 100 percent")

        return errors


class OverhaulConfig(BaseModel):
    """Overhaul cycle configuration attached to a monitored parameter."""

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    enabled: bool = True
    interval_hours: float = Field(..., gt=0, description="Hours between overhauls")
    current_cycle: int = Field(default=0, ge=0, description="Overhauls completed")
    max_cycles: int = Field(..., ge=0, description="Overhauls allowed before retirement")
    hours_at_last_overhaul: float = Field(default=0.0, ge=0)
    threshold_config: Optional[ThresholdConfig] = None
    requires_overhaul: bool = Field(default=False, description="Cached; see recompute()")
    last_overhaul_at: Optional[datetime] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def cycle_within_max(self) -> "OverhaulConfig":
        """Validate that current_cycle <= max_cycles."""
        if self.current_cycle > self.max_cycles:
            raise ValueError(
                f"current_cycle ({self.current_cycle}) exceeds max_cycles ({self.max_cycles})"
            )
        return self

    @property
    def next_overhaul_at(self) -> float:
        """Cumulative value at which the next overhaul falls due."""
        return (self.current_cycle + 1) * self.interval_hours


class MonitoredParameter(BaseModel):
    """One tracked wear dimension of a component (component x control code).

    ``current_value`` only ever grows through hour propagation. The
    lifecycle fields below it are a cache refreshed by
    ``analysis.overhaul.recompute``; consumers that need fresh state should
    recompute from ``current_value`` and ``overhaul_config``.
    """

    model_config = ConfigDict(from_attributes=True, validate_assignment=True)

    id: str = Field(default_factory=lambda: uuid4().hex)
    component_id: str
    control_code: str = Field(..., description="What is tracked, e.g. 'time-to-removal'")
    current_value: float = Field(default=0.0, ge=0)
    limit_value: float = Field(..., ge=0)
    unit: Unit = Unit.HOURS
    overhaul_config: Optional[OverhaulConfig] = None
    anticipation_hours: float = Field(
        default=50.0, ge=0, description="Warning window for the plain limit status"
    )

    # Derived, cached on save
    status: MonitoringStatus = MonitoringStatus.OK
    alert_active: bool = False
    lifecycle_state: Optional[LifecycleState] = None
    updated_at: datetime = Field(default_factory=_utcnow)

    @property
    def overhaul_enabled(self) -> bool:
        return self.overhaul_config is not None and self.overhaul_config.enabled

    @property
    def time_since_overhaul(self) -> Optional[float]:
        """Current value minus the value recorded at the last overhaul."""
        if self.overhaul_config is None:
            return None
        return self.current_value - self.overhaul_config.hours_at_last_overhaul

    @property
    def hours_until_next_overhaul(self) -> Optional[float]:
        """Interval minus time since overhaul; negative once past the boundary."""
        tso = self.time_since_overhaul
        if tso is None:
            return None
        return self.overhaul_config.interval_hours - tso
