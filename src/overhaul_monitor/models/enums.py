"""Shared enumerations for the Overhaul Monitor models."""

from enum import Enum


class Unit(str, Enum):
    """Unit of a monitored value or threshold band."""

    HOURS = "HOURS"
    PERCENT = "PERCENT"


class LifeUnit(str, Enum):
    """Unit of a component life record."""

    HOURS = "HOURS"
    CYCLES = "CYCLES"
    CALENDAR_MONTHS = "CALENDAR_MONTHS"
    CALENDAR_YEARS = "CALENDAR_YEARS"


class SeverityLevel(str, Enum):
    """Implementation-level severity behind each alert colour."""

    INT_SEVERE = "INT_SEVERE"
    CRITICAL = "CRITICAL"
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    OK = "OK"


class AlertColor(str, Enum):
    """Five-colour semaphore, most severe first."""

    PURPLE = "PURPLE"
    RED = "RED"
    ORANGE = "ORANGE"
    YELLOW = "YELLOW"
    GREEN = "GREEN"

    @property
    def severity_rank(self) -> int:
        """0 for PURPLE (most severe) up to 4 for GREEN."""
        return _COLOR_ORDER.index(self)

    @property
    def severity_level(self) -> SeverityLevel:
        return _COLOR_SEVERITY[self]

    @property
    def requires_attention(self) -> bool:
        return self in (AlertColor.PURPLE, AlertColor.RED, AlertColor.ORANGE)


_COLOR_ORDER = [
    AlertColor.PURPLE,
    AlertColor.RED,
    AlertColor.ORANGE,
    AlertColor.YELLOW,
    AlertColor.GREEN,
]

_COLOR_SEVERITY = {
    AlertColor.PURPLE: SeverityLevel.INT_SEVERE,
    AlertColor.RED: SeverityLevel.CRITICAL,
    AlertColor.ORANGE: SeverityLevel.HIGH,
    AlertColor.YELLOW: SeverityLevel.MEDIUM,
    AlertColor.GREEN: SeverityLevel.OK,
}


class LifecycleState(str, Enum):
    """Derived overhaul lifecycle state of a monitored parameter."""

    OK = "OK"
    DUE_SOON = "DUE_SOON"
    OVERDUE = "OVERDUE"
    OVERHAUL_REQUIRED = "OVERHAUL_REQUIRED"
    LIFE_EXPIRED = "LIFE_EXPIRED"


class MonitoringStatus(str, Enum):
    """Plain limit status for parameters tracked without overhaul cycles."""

    OK = "OK"
    DUE_SOON = "DUE_SOON"
    EXPIRED = "EXPIRED"


class ThresholdProfile(str, Enum):
    """Named profiles for deriving thresholds from an overhaul interval."""

    STANDARD = "STANDARD"
    CONSERVATIVE = "CONSERVATIVE"
    AGGRESSIVE = "AGGRESSIVE"


class LegacyCriticality(str, Enum):
    """Four-level criticality used before the semaphore model existed."""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


class OutcomeStatus(str, Enum):
    """Outcome of one component or parameter within a propagation batch."""

    UPDATED = "UPDATED"
    FAILED = "FAILED"
    SKIPPED = "SKIPPED"


class PropagationStatus(str, Enum):
    """Overall outcome of a propagation call."""

    SUCCEEDED = "SUCCEEDED"
    PARTIAL = "PARTIAL"
    REJECTED = "REJECTED"
    CANCELLED = "CANCELLED"
