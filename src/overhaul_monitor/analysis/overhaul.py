"""Overhaul cycle model.

Alerts repeat every cycle: a component overhauled every 500h with a 50h
warning band alerts near 450h, 950h, 1450h and so on, not only near its
absolute life limit. Everything here is therefore computed from the time
since the last overhaul, not from the raw cumulative value.
"""

from datetime import datetime, timezone
from typing import Optional

import structlog

from overhaul_monitor.analysis.autoconfig import validate_and_repair
from overhaul_monitor.analysis.models import OverhaulStatus, ThresholdResult
from overhaul_monitor.analysis.thresholds import evaluate_thresholds
from overhaul_monitor.exceptions import NotApplicableError
from overhaul_monitor.models.enums import LifecycleState, MonitoringStatus
from overhaul_monitor.models.parameter import MonitoredParameter, OverhaulConfig

logger = structlog.get_logger(__name__)

DEFAULT_ANTICIPATION_HOURS = 50.0


def _require_overhaul_config(parameter: MonitoredParameter) -> OverhaulConfig:
    config = parameter.overhaul_config
    if config is None or not config.enabled:
        raise NotApplicableError(
            f"Parameter '{parameter.id}' ({parameter.control_code}) does not have "
            "overhauls enabled",
            parameter_id=parameter.id,
        )
    return config


def evaluate_overhaul(
    parameter: MonitoredParameter,
    default_anticipation_hours: float = DEFAULT_ANTICIPATION_HOURS,
) -> OverhaulStatus:
    """Evaluate where a parameter stands in its overhaul cycle.

    Decision order, first match wins:

    1. life limit reached and no cycles left -> LIFE_EXPIRED
    2. cumulative value at or past the next cycle boundary -> OVERHAUL_REQUIRED
    3. life limit reached with cycles left -> OVERHAUL_REQUIRED
    4. time-since-overhaul window overrun (cycle drift) -> OVERDUE
    5. semaphore needs attention, or inside the anticipation window when
       no thresholds are configured -> DUE_SOON
    6. otherwise OK

    Args:
        parameter: Parameter with an enabled overhaul config.
        default_anticipation_hours: Warning window used when the parameter
            has no threshold config.

    Returns:
        OverhaulStatus with the derived values and colour.

    Raises:
        NotApplicableError: If overhauls are not enabled on the parameter.
        InvalidConfigurationError: If the thresholds cannot be evaluated.
    """
    config = _require_overhaul_config(parameter)

    current = parameter.current_value
    time_since_overhaul = current - config.hours_at_last_overhaul
    hours_until = config.interval_hours - time_since_overhaul
    next_overhaul_at = config.next_overhaul_at
    requires_overhaul_now = current >= next_overhaul_at
    life_expired = current >= parameter.limit_value and config.current_cycle >= config.max_cycles

    color_result: Optional[ThresholdResult] = None
    repaired = False
    if config.threshold_config is not None:
        repair = validate_and_repair(
            config.threshold_config, config.interval_hours, parameter.limit_value
        )
        repaired = repair.repaired
        color_result = evaluate_thresholds(hours_until, config.interval_hours, repair.config)

    if life_expired:
        state = LifecycleState.LIFE_EXPIRED
        message = f"Life expired - maximum overhauls ({config.max_cycles}) reached"
    elif requires_overhaul_now:
        state = LifecycleState.OVERHAUL_REQUIRED
        message = (
            f"Overhaul required - {current:g}h reached boundary {next_overhaul_at:g}h "
            f"(interval {config.interval_hours:g}h)"
        )
    elif current >= parameter.limit_value:
        state = LifecycleState.OVERHAUL_REQUIRED
        message = (
            f"Life limit reached, overhaul required - {current:g}/{parameter.limit_value:g}h"
        )
    elif hours_until < 0:
        state = LifecycleState.OVERDUE
        message = f"Overdue by {abs(hours_until):g}h since last overhaul"
    elif color_result is not None:
        state = LifecycleState.DUE_SOON if color_result.requires_attention else LifecycleState.OK
        message = f"{color_result.description} - {hours_until:g}h remaining"
    elif 0 < hours_until <= default_anticipation_hours:
        state = LifecycleState.DUE_SOON
        message = (
            f"Overhaul approaching - {hours_until:g}h remaining "
            f"(warning at {default_anticipation_hours:g}h)"
        )
    else:
        state = LifecycleState.OK
        message = f"OK - next overhaul in {hours_until:g}h"

    return OverhaulStatus(
        parameter_id=parameter.id,
        component_id=parameter.component_id,
        control_code=parameter.control_code,
        current_value=current,
        limit_value=parameter.limit_value,
        current_cycle=config.current_cycle,
        max_cycles=config.max_cycles,
        interval_hours=config.interval_hours,
        time_since_overhaul=time_since_overhaul,
        hours_until_next_overhaul=hours_until,
        next_overhaul_at=next_overhaul_at,
        requires_overhaul_now=requires_overhaul_now,
        life_expired=life_expired,
        lifecycle_state=state,
        requires_attention=state != LifecycleState.OK,
        message=message,
        color_result=color_result,
        thresholds_repaired=repaired,
    )


def limit_status(parameter: MonitoredParameter) -> MonitoringStatus:
    """Plain status against the life limit, ignoring overhaul cycles."""
    remaining = parameter.limit_value - parameter.current_value
    if remaining <= 0:
        return MonitoringStatus.EXPIRED
    if remaining <= parameter.anticipation_hours:
        return MonitoringStatus.DUE_SOON
    return MonitoringStatus.OK


def recompute(
    parameter: MonitoredParameter,
    default_anticipation_hours: float = DEFAULT_ANTICIPATION_HOURS,
) -> Optional[OverhaulStatus]:
    """Refresh the cached derived fields of a parameter in place.

    Call after every change to ``current_value`` or the overhaul config,
    then persist the parameter.

    Returns:
        The OverhaulStatus for overhaul-enabled parameters, else None.
    """
    parameter.status = limit_status(parameter)

    status: Optional[OverhaulStatus] = None
    if parameter.overhaul_enabled:
        status = evaluate_overhaul(parameter, default_anticipation_hours)
        parameter.lifecycle_state = status.lifecycle_state
        parameter.alert_active = status.requires_attention
        parameter.overhaul_config.requires_overhaul = status.requires_overhaul
    else:
        parameter.lifecycle_state = None
        parameter.alert_active = parameter.status != MonitoringStatus.OK

    parameter.updated_at = datetime.now(timezone.utc)
    return status


def complete_overhaul(
    parameter: MonitoredParameter,
    notes: Optional[str] = None,
    completed_at: Optional[datetime] = None,
    default_anticipation_hours: float = DEFAULT_ANTICIPATION_HOURS,
) -> OverhaulStatus:
    """Record a completed overhaul on a parameter that requires one.

    Advances the cycle counter, resets ``hours_at_last_overhaul`` to the
    current value and clears the requires-overhaul flag. The caller
    persists the parameter afterwards.

    Raises:
        NotApplicableError: If overhauls are not enabled, no overhaul is
            currently required, or all cycles are used up.
    """
    config = _require_overhaul_config(parameter)
    before = evaluate_overhaul(parameter, default_anticipation_hours)

    if before.lifecycle_state == LifecycleState.LIFE_EXPIRED:
        raise NotApplicableError(
            f"Parameter '{parameter.id}' reached its maximum of {config.max_cycles} "
            "overhauls and must be retired",
            parameter_id=parameter.id,
        )
    if not before.requires_overhaul:
        raise NotApplicableError(
            f"Parameter '{parameter.id}' does not currently require an overhaul "
            f"({before.hours_until_next_overhaul:g}h remaining)",
            parameter_id=parameter.id,
        )
    if config.current_cycle >= config.max_cycles:
        raise NotApplicableError(
            f"Parameter '{parameter.id}' has no overhaul cycles left "
            f"({config.current_cycle}/{config.max_cycles})",
            parameter_id=parameter.id,
        )

    previous_cycle = config.current_cycle
    config.current_cycle = previous_cycle + 1
    config.hours_at_last_overhaul = parameter.current_value
    config.requires_overhaul = False
    config.last_overhaul_at = completed_at or datetime.now(timezone.utc)
    if notes:
        config.notes = notes

    status = recompute(parameter, default_anticipation_hours)
    logger.info(
        "overhaul_completed",
        parameter_id=parameter.id,
        component_id=parameter.component_id,
        previous_cycle=previous_cycle,
        current_cycle=config.current_cycle,
        max_cycles=config.max_cycles,
        hours_at_last_overhaul=config.hours_at_last_overhaul,
        next_overhaul_at=config.next_overhaul_at,
    )
    return status


def detect_cycle_drift(
    parameter: MonitoredParameter,
    tolerance_hours: float = 1.0,
) -> Optional[float]:
    """Compare ``hours_at_last_overhaul`` with the cycle boundary it should sit on.

    Under normal operation ``hours_at_last_overhaul == current_cycle *
    interval_hours``. A larger gap is a data-quality fault and is logged.

    Returns:
        The signed drift in hours when it exceeds the tolerance, else None.
    """
    config = _require_overhaul_config(parameter)
    expected = config.current_cycle * config.interval_hours
    drift = config.hours_at_last_overhaul - expected
    if abs(drift) <= tolerance_hours:
        return None

    logger.warning(
        "overhaul_cycle_drift",
        parameter_id=parameter.id,
        component_id=parameter.component_id,
        current_cycle=config.current_cycle,
        expected_hours=expected,
        recorded_hours=config.hours_at_last_overhaul,
        drift_hours=drift,
    )
    return drift
