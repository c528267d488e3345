"""Fleet alert aggregation.

Fans the overhaul cycle model out across the monitored parameters of one
aircraft or of the whole fleet and returns the ones that need attention,
most urgent first.
"""

from collections import Counter
from typing import Dict, Iterable, List

import structlog

from overhaul_monitor.analysis.models import AlertSummary, OverhaulAlert
from overhaul_monitor.analysis.overhaul import DEFAULT_ANTICIPATION_HOURS, evaluate_overhaul
from overhaul_monitor.exceptions import OverhaulMonitorError
from overhaul_monitor.models.enums import LifecycleState
from overhaul_monitor.models.parameter import MonitoredParameter
from overhaul_monitor.store.base import AircraftStore, ComponentStore, ParameterStore

logger = structlog.get_logger(__name__)


def sort_alerts(alerts: Iterable[OverhaulAlert]) -> List[OverhaulAlert]:
    """Most severe first (lowest rank), then least time to the next overhaul."""
    return sorted(alerts, key=lambda a: (a.severity_rank, a.hours_until_next_overhaul))


class FleetAlertAggregator:
    """Builds sorted, deduplicated overhaul alert lists.

    A parameter that cannot be evaluated is logged and left out. It never
    hides the alerts of the rest of the fleet.
    """

    def __init__(
        self,
        aircraft_store: AircraftStore,
        component_store: ComponentStore,
        parameter_store: ParameterStore,
        settings=None,
    ):
        self._aircraft = aircraft_store
        self._components = component_store
        self._parameters = parameter_store
        self._anticipation_hours = getattr(
            settings, "default_anticipation_hours", DEFAULT_ANTICIPATION_HOURS
        )

    def alerts_for_aircraft(self, aircraft_id: str) -> List[OverhaulAlert]:
        """Alerts for every overhaul-enabled parameter installed on one aircraft.

        Raises:
            NotFoundError: The aircraft does not exist.
        """
        self._aircraft.get(aircraft_id)
        parameters = [
            p
            for p in self._parameters.find_by_aircraft_via_components(aircraft_id)
            if p.overhaul_enabled
        ]
        return self._collect(parameters)

    def alerts_for_fleet(self) -> List[OverhaulAlert]:
        """Alerts across every overhaul-enabled parameter, installed or not."""
        return self._collect(self._parameters.find_all_with_overhaul_enabled())

    def summarize(self, alerts: List[OverhaulAlert]) -> AlertSummary:
        """Count alerts by colour and lifecycle state."""
        by_color: Counter = Counter()
        by_state: Counter = Counter()
        for alert in alerts:
            if alert.color is not None:
                by_color[alert.color.value] += 1
            by_state[alert.status.lifecycle_state.value] += 1

        return AlertSummary(
            total=len(alerts),
            by_color=dict(by_color),
            by_state=dict(by_state),
            requiring_overhaul=by_state.get(LifecycleState.OVERHAUL_REQUIRED.value, 0),
            due_soon=by_state.get(LifecycleState.DUE_SOON.value, 0),
            life_expired=by_state.get(LifecycleState.LIFE_EXPIRED.value, 0),
        )

    def _collect(self, parameters: Iterable[MonitoredParameter]) -> List[OverhaulAlert]:
        alerts: Dict[str, OverhaulAlert] = {}
        component_cache: Dict[str, tuple] = {}

        for parameter in parameters:
            if parameter.id in alerts:
                continue
            try:
                status = evaluate_overhaul(parameter, self._anticipation_hours)
                aircraft_id, serial = self._component_info(
                    parameter.component_id, component_cache
                )
            except OverhaulMonitorError as e:
                logger.warning(
                    "parameter_evaluation_failed",
                    parameter_id=parameter.id,
                    component_id=parameter.component_id,
                    control_code=parameter.control_code,
                    error=e.message,
                )
                continue

            if not status.requires_attention:
                continue
            alerts[parameter.id] = OverhaulAlert(
                aircraft_id=aircraft_id,
                component_serial=serial,
                status=status,
            )

        result = sort_alerts(alerts.values())
        logger.debug("alerts_collected", count=len(result))
        return result

    def _component_info(self, component_id: str, cache: Dict[str, tuple]) -> tuple:
        if component_id not in cache:
            component = self._components.get(component_id)
            cache[component_id] = (component.installed_on, component.serial_number)
        return cache[component_id]

