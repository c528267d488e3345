"""Overhaul analysis engine: thresholds, cycles, propagation and alerts."""

from overhaul_monitor.analysis.alerts import FleetAlertAggregator, sort_alerts
from overhaul_monitor.analysis.autoconfig import (
    derive_defaults,
    from_legacy_criticality,
    validate_and_repair,
)
from overhaul_monitor.analysis.models import (
    AlertSummary,
    OverhaulAlert,
    OverhaulStatus,
    RepairResult,
    ThresholdResult,
)
from overhaul_monitor.analysis.overhaul import (
    complete_overhaul,
    detect_cycle_drift,
    evaluate_overhaul,
    recompute,
)
from overhaul_monitor.analysis.propagation import HourPropagationEngine
from overhaul_monitor.analysis.thresholds import (
    PRESET_CONFIGS,
    compare_configs,
    create_custom_config,
    evaluate_thresholds,
    get_preset,
)

__all__ = [
    "AlertSummary",
    "FleetAlertAggregator",
    "HourPropagationEngine",
    "OverhaulAlert",
    "OverhaulStatus",
    "PRESET_CONFIGS",
    "RepairResult",
    "ThresholdResult",
    "compare_configs",
    "complete_overhaul",
    "create_custom_config",
    "derive_defaults",
    "detect_cycle_drift",
    "evaluate_overhaul",
    "evaluate_thresholds",
    "from_legacy_criticality",
    "get_preset",
    "recompute",
    "sort_alerts",
]
