"""Threshold auto-configuration from overhaul intervals.

When a parameter is overhauled on a fixed interval, its thresholds must be
sized against that interval (e.g. 50h), not against the parameter's total
life limit (e.g. 2000h). This module derives default bands from the
interval and repairs configs that were sized against the life limit.
"""

import math
from typing import Dict, Optional

import structlog

from overhaul_monitor.analysis.models import RepairResult
from overhaul_monitor.exceptions import InvalidConfigurationError
from overhaul_monitor.models.enums import LegacyCriticality, ThresholdProfile, Unit
from overhaul_monitor.models.parameter import ThresholdConfig, ThresholdDescriptions

logger = structlog.get_logger(__name__)


# Fractions of the overhaul interval: (purple, red, orange, yellow)
PROFILE_FRACTIONS: Dict[ThresholdProfile, Dict[str, float]] = {
    ThresholdProfile.STANDARD: {"purple": 0.20, "red": 0.40, "orange": 0.30, "yellow": 0.20},
    ThresholdProfile.CONSERVATIVE: {"purple": 0.30, "red": 0.60, "orange": 0.50, "yellow": 0.30},
    ThresholdProfile.AGGRESSIVE: {"purple": 0.10, "red": 0.30, "orange": 0.20, "yellow": 0.10},
}

# Multipliers of the anticipation window for each legacy criticality
LEGACY_MULTIPLIERS: Dict[LegacyCriticality, Dict[str, float]] = {
    LegacyCriticality.LOW: {"purple": 6, "red": 4, "orange": 3, "yellow": 2, "green": 1},
    LegacyCriticality.MEDIUM: {"purple": 5, "red": 3, "orange": 2.5, "yellow": 1.5, "green": 1},
    LegacyCriticality.HIGH: {"purple": 3, "red": 2, "orange": 1.5, "yellow": 1.2, "green": 1},
    LegacyCriticality.CRITICAL: {"purple": 2, "red": 1.5, "orange": 1.2, "yellow": 1.1, "green": 1},
}

# Derived bands never collapse below one hour
MIN_BAND_HOURS = 1


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def derive_defaults(
    interval_hours: float,
    profile: ThresholdProfile = ThresholdProfile.STANDARD,
) -> ThresholdConfig:
    """Derive a threshold config as fractions of the overhaul interval.

    Args:
        interval_hours: Hours between overhauls.
        profile: STANDARD, CONSERVATIVE (alerts earlier) or AGGRESSIVE
            (alerts later).

    Returns:
        HOURS-unit ThresholdConfig with every band floored at 1 and green 0.

    Raises:
        InvalidConfigurationError: If interval_hours is not positive.
    """
    if interval_hours is None or interval_hours <= 0:
        raise InvalidConfigurationError(
            f"Cannot derive thresholds from interval {interval_hours}",
            hint="The overhaul interval must be a positive number of hours.",
        )

    fractions = PROFILE_FRACTIONS[ThresholdProfile(profile)]
    bands = {
        name: max(MIN_BAND_HOURS, _round_half_up(interval_hours * fraction))
        for name, fraction in fractions.items()
    }

    logger.debug(
        "thresholds_derived",
        interval_hours=interval_hours,
        profile=ThresholdProfile(profile).value,
        **bands,
    )

    return ThresholdConfig(
        unit=Unit.HOURS,
        purple=bands["purple"],
        red=bands["red"],
        orange=bands["orange"],
        yellow=bands["yellow"],
        green=0,
    )


def validate_and_repair(
    config: Optional[ThresholdConfig],
    interval_hours: float,
    limit_value: float,
) -> RepairResult:
    """Check a config against its overhaul interval and replace it if misconfigured.

    A red threshold larger than the interval means the bands were sized
    against the total life limit. Such a config is discarded in favour of
    ``derive_defaults(interval_hours, STANDARD)`` and the substitution is
    logged. A missing config gets STANDARD defaults without being counted
    as a repair.

    Args:
        config: Configured thresholds, or None.
        interval_hours: Hours between overhauls.
        limit_value: Total life limit of the parameter (for the log event).

    Returns:
        RepairResult carrying the config to use and whether it was substituted.
    """
    if config is None:
        return RepairResult(config=derive_defaults(interval_hours, ThresholdProfile.STANDARD))

    if config.unit == Unit.HOURS and config.red > interval_hours:
        reason = (
            f"red threshold ({config.red}h) exceeds overhaul interval ({interval_hours}h)"
        )
        logger.warning(
            "threshold_config_repaired",
            red_threshold=config.red,
            interval_hours=interval_hours,
            limit_value=limit_value,
            reason=reason,
            profile=ThresholdProfile.STANDARD.value,
        )
        return RepairResult(
            config=derive_defaults(interval_hours, ThresholdProfile.STANDARD),
            repaired=True,
            reason=reason,
        )

    return RepairResult(config=config)


def from_legacy_criticality(
    criticality: LegacyCriticality,
    anticipation_hours: float,
) -> ThresholdConfig:
    """Convert a legacy criticality level and warning window into thresholds."""
    level = LegacyCriticality(criticality)
    multipliers = LEGACY_MULTIPLIERS[level]
    bands = {
        name: _round_half_up(anticipation_hours * factor)
        for name, factor in multipliers.items()
    }
    label = level.value
    return ThresholdConfig(
        unit=Unit.HOURS,
        descriptions=ThresholdDescriptions(
            purple=f"Over-critical ({label}) - component overdue and still in service",
            red=f"Critical ({label}) - overhaul required",
            orange=f"High ({label}) - prepare overhaul",
            yellow=f"Medium ({label}) - monitor",
            green=f"OK ({label}) - normal",
        ),
        **bands,
    )
