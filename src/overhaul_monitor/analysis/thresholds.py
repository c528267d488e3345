"""Threshold evaluator for the five-colour overhaul semaphore.

Maps a signed remaining amount (negative once past the overhaul boundary)
and a reference interval to a colour. Pure computation: no store access.

HOURS bands, for a config with red=100, orange=50, yellow=25, purple=10:

    remaining > 100          GREEN
    50 < remaining <= 100    YELLOW
    25 < remaining <= 50     ORANGE
    0 <= remaining <= 25     RED
    -10 <= remaining < 0     RED     (overdue within tolerance)
    remaining < -10          PURPLE

``red`` is the outer edge of the alert zone and ``yellow`` the innermost
cutoff, so the descending order red > orange > yellow yields nested bands.
"""

from typing import Dict, Optional, Tuple

import structlog

from overhaul_monitor.analysis.models import ThresholdResult
from overhaul_monitor.exceptions import InvalidConfigurationError
from overhaul_monitor.models.enums import AlertColor, Unit
from overhaul_monitor.models.parameter import ThresholdConfig, ThresholdDescriptions

logger = structlog.get_logger(__name__)


PRESET_CONFIGS: Dict[str, ThresholdConfig] = {
    "STANDARD": ThresholdConfig(
        unit=Unit.HOURS, purple=100, red=100, orange=50, yellow=25, green=0
    ),
    "CONSERVATIVE": ThresholdConfig(
        unit=Unit.HOURS,
        purple=50,
        red=150,
        orange=100,
        yellow=50,
        green=25,
        descriptions=ThresholdDescriptions(
            purple="Over-critical - stop operation",
            red="Critical - immediate action required",
            orange="High - plan urgent overhaul",
            yellow="Medium - start preparations",
            green="Low - routine monitoring",
        ),
    ),
    "AGGRESSIVE": ThresholdConfig(
        unit=Unit.HOURS,
        purple=200,
        red=50,
        orange=25,
        yellow=10,
        green=0,
        descriptions=ThresholdDescriptions(
            purple="Over-critical - significantly exceeded",
            red="Critical - overhaul required",
            orange="High - prepare tooling",
            yellow="Medium - finish scheduled flights",
            green="OK - normal operation",
        ),
    ),
    "PERCENT": ThresholdConfig(
        unit=Unit.PERCENT,
        purple=10,
        red=95,
        orange=85,
        yellow=75,
        green=0,
        descriptions=ThresholdDescriptions(
            purple="Over-critical - exceeded by more than 10%",
            red="Critical - 95% or more of the interval consumed",
            orange="High - 85% or more of the interval consumed",
            yellow="Medium - 75% or more of the interval consumed",
            green="OK - less than 75% consumed",
        ),
    ),
}


def get_preset(name: str) -> Optional[ThresholdConfig]:
    """Get a predefined threshold config by name (case-insensitive)."""
    return PRESET_CONFIGS.get(name.upper())


def create_custom_config(
    red: float,
    orange: float,
    yellow: float,
    green: float = 0.0,
    purple: float = 0.0,
    unit: Unit = Unit.HOURS,
    descriptions: Optional[ThresholdDescriptions] = None,
) -> ThresholdConfig:
    """Build a manually entered config, enforcing red > orange > yellow >= green.

    Raises:
        InvalidConfigurationError: If the bands are not strictly descending.
    """
    config = ThresholdConfig(
        unit=unit,
        red=red,
        orange=orange,
        yellow=yellow,
        green=green,
        purple=purple,
        descriptions=descriptions or ThresholdDescriptions(),
    )
    errors = config.ordering_errors(strict=True)
    if errors:
        raise InvalidConfigurationError(
            f"Invalid threshold configuration: {'; '.join(errors)}",
            hint="Thresholds must descend: red > orange > yellow >= green.",
        )
    return config


def evaluate_thresholds(
    remaining: float,
    reference_interval: float,
    config: ThresholdConfig,
) -> ThresholdResult:
    """Decide the semaphore colour for a remaining amount.

    Args:
        remaining: Hours left before the boundary; negative when past it.
        reference_interval: Interval length, the denominator for percentages.
        config: Threshold bands to apply.

    Returns:
        ThresholdResult with colour, description and percent consumed.

    Raises:
        InvalidConfigurationError: If the interval is not positive or the
            bands are in inverted order.
    """
    if reference_interval is None or reference_interval <= 0:
        raise InvalidConfigurationError(
            f"Reference interval must be positive, got {reference_interval}",
            hint="Set a positive overhaul interval on the parameter.",
        )

    errors = config.ordering_errors(strict=False)
    if errors:
        raise InvalidConfigurationError(
            f"Malformed threshold ordering: {'; '.join(errors)}"
        )

    consumed = (reference_interval - remaining) / reference_interval * 100

    if config.unit == Unit.PERCENT:
        color, cutoff = _percent_band(consumed, config)
    else:
        color, cutoff = _hours_band(remaining, config)

    return ThresholdResult(
        color=color,
        description=getattr(config.descriptions, color.value.lower()),
        remaining=remaining,
        threshold_value=cutoff,
        percent_consumed=max(0.0, min(100.0, consumed)),
    )


def _hours_band(remaining: float, config: ThresholdConfig) -> Tuple[AlertColor, float]:
    if remaining < 0:
        if abs(remaining) > config.effective_purple:
            return AlertColor.PURPLE, -config.effective_purple
        return AlertColor.RED, 0.0

    # Most urgent first; ties go to the more urgent band
    bands = (
        (AlertColor.RED, config.effective_yellow),
        (AlertColor.ORANGE, config.effective_orange),
        (AlertColor.YELLOW, config.red),
    )
    for color, cutoff in bands:
        if remaining <= cutoff:
            return color, cutoff
    return AlertColor.GREEN, config.red


def _percent_band(consumed: float, config: ThresholdConfig) -> Tuple[AlertColor, float]:
    purple_limit = 100 + config.effective_purple
    if consumed > purple_limit:
        return AlertColor.PURPLE, purple_limit

    bands = (
        (AlertColor.RED, config.red),
        (AlertColor.ORANGE, config.effective_orange),
        (AlertColor.YELLOW, config.effective_yellow),
    )
    for color, cutoff in bands:
        if consumed >= cutoff:
            return color, cutoff
    return AlertColor.GREEN, config.effective_green


def compare_configs(
    remaining: float,
    reference_interval: float,
    configs: Dict[str, ThresholdConfig],
) -> Dict[str, ThresholdResult]:
    """Evaluate several named configs side by side.

    A config that cannot be evaluated is replaced by the STANDARD preset
    for that entry and the failure is logged.
    """
    results: Dict[str, ThresholdResult] = {}
    for name, config in configs.items():
        try:
            results[name] = evaluate_thresholds(remaining, reference_interval, config)
        except InvalidConfigurationError as e:
            logger.error(
                "threshold_comparison_failed",
                config_name=name,
                error=e.message,
            )
            results[name] = evaluate_thresholds(
                remaining, reference_interval, PRESET_CONFIGS["STANDARD"]
            )
    return results
