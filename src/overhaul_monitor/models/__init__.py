"""Data models for Overhaul Monitor."""

from .enums import (
    AlertColor,
    LegacyCriticality,
    LifecycleState,
    LifeUnit,
    MonitoringStatus,
    OutcomeStatus,
    PropagationStatus,
    SeverityLevel,
    ThresholdProfile,
    Unit,
)
from .fleet import Aircraft, Component, LifeRecord, PendingIncrement
from .parameter import (
    MonitoredParameter,
    OverhaulConfig,
    ThresholdConfig,
    ThresholdDescriptions,
)
from .report import ComponentOutcome, ParameterOutcome, PropagationReport

__all__ = [
    "Aircraft",
    "AlertColor",
    "Component",
    "ComponentOutcome",
    "LegacyCriticality",
    "LifeRecord",
    "LifeUnit",
    "LifecycleState",
    "MonitoredParameter",
    "MonitoringStatus",
    "OutcomeStatus",
    "OverhaulConfig",
    "ParameterOutcome",
    "PendingIncrement",
    "PropagationReport",
    "PropagationStatus",
    "SeverityLevel",
    "ThresholdConfig",
    "ThresholdDescriptions",
    "ThresholdProfile",
    "Unit",
]
