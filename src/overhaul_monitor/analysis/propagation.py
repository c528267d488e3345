"""Hour propagation from an aircraft to its installed components.

Turns a new cumulative flight-hour reading into an increment and applies it
to every installed component and to each of their monitored parameters.
One component's data defect never blocks the rest of the batch: local
failures are recorded in the report and processing continues.

A run cancelled after it has written to some components advances the
aircraft's reading and stores the increment still owed to the remaining
components on the aircraft. The next run applies that pending increment
before its own, so a retry never counts the same hours twice.
"""

import math
import threading
from typing import List, Optional

import structlog

from overhaul_monitor.analysis.overhaul import DEFAULT_ANTICIPATION_HOURS, recompute
from overhaul_monitor.exceptions import HoursDecrementError, OverhaulMonitorError
from overhaul_monitor.models.enums import OutcomeStatus
from overhaul_monitor.models.fleet import Aircraft, Component, PendingIncrement
from overhaul_monitor.models.report import (
    ComponentOutcome,
    ParameterOutcome,
    PropagationReport,
)
from overhaul_monitor.store.base import AircraftStore, ComponentStore, ParameterStore

logger = structlog.get_logger(__name__)

# Increments above this many hours in one call are flagged as suspicious
LARGE_INCREMENT_HOURS = 100.0


class HourPropagationEngine:
    """Applies flight-hour increments across an aircraft's component graph.

    Whole-operation errors (unknown aircraft, hours going backward) are
    raised before the first write. Everything after that is reported, not
    raised.

    Usage:
        engine = HourPropagationEngine(store.aircraft, store.components, store.parameters)
        report = engine.propagate("ac-1", 1050.0)
        if report.status == PropagationStatus.PARTIAL:
            for error in report.errors:
                ...
    """

    def __init__(
        self,
        aircraft_store: AircraftStore,
        component_store: ComponentStore,
        parameter_store: ParameterStore,
        settings=None,
    ):
        """Initialize the engine.

        Args:
            aircraft_store: Source of aircraft readings and installed components.
            component_store: Target of the per-component hour increments.
            parameter_store: Target of the per-parameter value increments.
            settings: Optional MonitorSettings. Supplies the anticipation
                window and the large-increment threshold.
        """
        self._aircraft = aircraft_store
        self._components = component_store
        self._parameters = parameter_store
        self._anticipation_hours = getattr(
            settings, "default_anticipation_hours", DEFAULT_ANTICIPATION_HOURS
        )
        self._large_increment_hours = getattr(
            settings, "large_increment_hours", LARGE_INCREMENT_HOURS
        )

    def propagate(
        self,
        aircraft_id: str,
        new_hours: float,
        cancel_event: Optional[threading.Event] = None,
    ) -> PropagationReport:
        """Propagate a new cumulative flight-hour reading.

        Args:
            aircraft_id: Aircraft whose reading changed.
            new_hours: The aircraft's new total flight hours (not a delta).
            cancel_event: Checked between components. Once set, the
                remaining components are listed as incomplete. If some
                components were already written, the reading is advanced
                and the remaining ones keep a pending increment.

        Returns:
            PropagationReport with per-component and per-parameter outcomes.

        Raises:
            NotFoundError: The aircraft does not exist.
            HoursDecrementError: ``new_hours`` is lower than the recorded
                reading, negative, or not a finite number.
        """
        with structlog.contextvars.bound_contextvars(aircraft_id=aircraft_id):
            return self._propagate(aircraft_id, new_hours, cancel_event)

    def resume(
        self,
        aircraft_id: str,
        cancel_event: Optional[threading.Event] = None,
    ) -> PropagationReport:
        """Apply only the pending increment left by a cancelled run."""
        aircraft = self._aircraft.get(aircraft_id)
        return self.propagate(aircraft_id, aircraft.cumulative_flight_hours, cancel_event)

    def _propagate(
        self,
        aircraft_id: str,
        new_hours: float,
        cancel_event: Optional[threading.Event],
    ) -> PropagationReport:
        aircraft = self._aircraft.get(aircraft_id)
        previous = aircraft.cumulative_flight_hours

        if new_hours is None or not math.isfinite(new_hours) or new_hours < 0:
            raise HoursDecrementError(aircraft_id, previous, new_hours)
        if new_hours < previous:
            raise HoursDecrementError(aircraft_id, previous, new_hours)

        increment = new_hours - previous
        report = PropagationReport(
            aircraft_id=aircraft_id,
            previous_hours=previous,
            new_hours=new_hours,
            increment=increment,
        )

        if aircraft.pending is not None and not self._resume_pending(aircraft, report, cancel_event):
            return report

        if increment == 0:
            logger.debug("propagation_noop", aircraft_id=aircraft_id, hours=new_hours)
            return report

        if increment > self._large_increment_hours:
            logger.warning(
                "large_hour_increment",
                aircraft_id=aircraft_id,
                registration=aircraft.registration,
                previous_hours=previous,
                new_hours=new_hours,
                increment=increment,
                threshold=self._large_increment_hours,
            )

        components = self._aircraft.list_installed_components(aircraft_id)
        remaining = self._run_batch(components, increment, report, cancel_event)

        if remaining:
            written = any(
                o.status == OutcomeStatus.UPDATED
                for o in report.component_outcomes[len(report.resumed_components):]
            )
            if written:
                self._aircraft.set_hours(
                    aircraft_id,
                    new_hours,
                    pending=PendingIncrement(
                        increment=increment, component_ids=[c.id for c in remaining]
                    ),
                )
                report.hours_advanced = True
        elif report.success:
            self._aircraft.set_hours(aircraft_id, new_hours)
            report.hours_advanced = True

        logger.info(
            "propagation_complete",
            aircraft_id=aircraft_id,
            increment=increment,
            status=report.status.value,
            components=len(components),
            components_updated=report.components_updated,
            parameters_updated=report.parameters_updated,
            hours_advanced=report.hours_advanced,
            errors=len(report.errors),
        )
        return report

    def _resume_pending(
        self,
        aircraft: Aircraft,
        report: PropagationReport,
        cancel_event: Optional[threading.Event],
    ) -> bool:
        """Apply the aircraft's pending increment. False when cancelled again."""
        pending = aircraft.pending
        components = []
        for component_id in pending.component_ids:
            try:
                components.append(self._components.get(component_id))
            except OverhaulMonitorError as e:
                error = f"Pending increment for component {component_id}: {e.message}"
                report.errors.append(error)
                logger.warning(
                    "component_propagation_failed", component_id=component_id, error=e.message
                )

        logger.info(
            "pending_increment_resumed",
            aircraft_id=aircraft.id,
            increment=pending.increment,
            components=len(components),
        )
        report.resumed_increment = pending.increment
        report.resumed_components = [c.id for c in components]

        remaining = self._run_batch(components, pending.increment, report, cancel_event)
        if remaining:
            report.resumed_components = report.resumed_components[: -len(remaining)]
            if len(remaining) < len(components):
                self._aircraft.set_hours(
                    aircraft.id,
                    aircraft.cumulative_flight_hours,
                    pending=PendingIncrement(
                        increment=pending.increment, component_ids=[c.id for c in remaining]
                    ),
                )
            return False

        self._aircraft.set_hours(aircraft.id, aircraft.cumulative_flight_hours)
        return True

    def _run_batch(
        self,
        components: List[Component],
        increment: float,
        report: PropagationReport,
        cancel_event: Optional[threading.Event],
    ) -> List[Component]:
        """Apply one increment to each component. Returns those skipped by cancellation."""
        for index, component in enumerate(components):
            if cancel_event is not None and cancel_event.is_set():
                remaining = components[index:]
                report.cancelled = True
                report.incomplete = [c.id for c in remaining]
                logger.warning(
                    "propagation_cancelled",
                    aircraft_id=report.aircraft_id,
                    completed=index,
                    remaining=len(remaining),
                )
                return remaining

            outcome = self._propagate_component(component, increment, report.errors)
            report.component_outcomes.append(outcome)
            if outcome.status == OutcomeStatus.UPDATED:
                report.components_updated += 1
                report.parameters_updated += outcome.parameters_updated
        return []

    def _propagate_component(
        self,
        component: Component,
        increment: float,
        errors: List[str],
    ) -> ComponentOutcome:
        """Increment one component and then its parameters."""
        if not component.is_hours_tracked:
            error = (
                f"Component {component.serial_number} ({component.id}) has no "
                "hours-tracked life record"
            )
            errors.append(error)
            logger.warning(
                "component_propagation_failed",
                component_id=component.id,
                serial_number=component.serial_number,
                error=error,
            )
            return ComponentOutcome(
                component_id=component.id,
                serial_number=component.serial_number,
                status=OutcomeStatus.SKIPPED,
                error=error,
            )

        try:
            updated = self._components.atomic_increment_hours(component.id, increment)
        except OverhaulMonitorError as e:
            error = f"Component {component.serial_number} ({component.id}): {e.message}"
            errors.append(error)
            logger.warning(
                "component_propagation_failed",
                component_id=component.id,
                serial_number=component.serial_number,
                error=e.message,
            )
            return ComponentOutcome(
                component_id=component.id,
                serial_number=component.serial_number,
                status=OutcomeStatus.FAILED,
                error=error,
            )

        outcome = ComponentOutcome(
            component_id=component.id,
            serial_number=component.serial_number,
            status=OutcomeStatus.UPDATED,
            new_hours=updated.cumulative_hours,
        )

        for parameter in self._parameters.find_by_component(component.id):
            parameter_outcome = self._propagate_parameter(
                parameter.id, parameter.control_code, increment
            )
            outcome.parameter_outcomes.append(parameter_outcome)
            if parameter_outcome.status != OutcomeStatus.UPDATED:
                errors.append(
                    f"Parameter {parameter.control_code} ({parameter.id}) of component "
                    f"{component.serial_number}: {parameter_outcome.error}"
                )
                continue
            outcome.parameters_updated += 1
            if parameter_outcome.recompute_error:
                errors.append(
                    f"Parameter {parameter.control_code} ({parameter.id}) of component "
                    f"{component.serial_number}: value stored, but derived fields are stale: "
                    f"{parameter_outcome.recompute_error}"
                )

        return outcome

    def _propagate_parameter(
        self,
        parameter_id: str,
        control_code: str,
        increment: float,
    ) -> ParameterOutcome:
        """Atomically add the increment, then recompute and save derived state.

        The recompute is not atomic with the increment. Derived fields are a
        cache; ``current_value`` is always correct once the add succeeds, so
        a recompute failure still reports the parameter as updated.
        """
        try:
            parameter = self._parameters.atomic_increment_value(parameter_id, increment)
        except OverhaulMonitorError as e:
            logger.warning(
                "parameter_propagation_failed",
                parameter_id=parameter_id,
                control_code=control_code,
                error=e.message,
            )
            return ParameterOutcome(
                parameter_id=parameter_id,
                control_code=control_code,
                status=OutcomeStatus.FAILED,
                error=e.message,
            )

        outcome = ParameterOutcome(
            parameter_id=parameter_id,
            control_code=control_code,
            status=OutcomeStatus.UPDATED,
            new_value=parameter.current_value,
        )
        try:
            status = recompute(parameter, self._anticipation_hours)
            self._parameters.save(parameter)
        except OverhaulMonitorError as e:
            logger.warning(
                "parameter_recompute_failed",
                parameter_id=parameter_id,
                control_code=control_code,
                current_value=parameter.current_value,
                error=e.message,
            )
            outcome.recompute_error = e.message
            return outcome

        outcome.lifecycle_state = status.lifecycle_state if status is not None else None
        return outcome
