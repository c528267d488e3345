"""Thread-safe in-memory implementation of the storage contract.

Records are copied on the way in and out, so callers mutating a returned
object see no effect until they ``save`` it, just like a database.
"""

import threading
from typing import Dict, List, Optional

import structlog

from overhaul_monitor.exceptions import NotFoundError, ValidationFailureError
from overhaul_monitor.models.fleet import Aircraft, Component, PendingIncrement
from overhaul_monitor.models.parameter import MonitoredParameter

log = structlog.get_logger(__name__)


class InMemoryFleetStore:
    """Holds aircraft, components and parameters behind a single lock.

    Exposes the three store protocols as ``aircraft``, ``components`` and
    ``parameters``. Every increment runs under the lock, so concurrent
    propagations never lose or double-count an increment.

    Usage:
        store = InMemoryFleetStore()
        store.add_aircraft(Aircraft(id="ac-1", registration="XA-ABC"))
        engine = HourPropagationEngine(store.aircraft, store.components, store.parameters)
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._aircraft: Dict[str, Aircraft] = {}
        self._components: Dict[str, Component] = {}
        self._parameters: Dict[str, MonitoredParameter] = {}

        self.aircraft = _AircraftView(self)
        self.components = _ComponentView(self)
        self.parameters = _ParameterView(self)

    def add_aircraft(self, aircraft: Aircraft) -> Aircraft:
        with self._lock:
            self._aircraft[aircraft.id] = aircraft.model_copy(deep=True)
        return aircraft

    def add_component(self, component: Component) -> Component:
        with self._lock:
            self._components[component.id] = component.model_copy(deep=True)
        return component

    def add_parameter(self, parameter: MonitoredParameter) -> MonitoredParameter:
        with self._lock:
            if parameter.component_id not in self._components:
                raise NotFoundError("Component", parameter.component_id)
            self._parameters[parameter.id] = parameter.model_copy(deep=True)
        return parameter

    def install(self, component_id: str, aircraft_id: Optional[str]) -> Component:
        """Install a component on an aircraft, or remove it with ``None``."""
        with self._lock:
            component = self._get_component(component_id)
            if aircraft_id is not None:
                self._get_aircraft(aircraft_id)
            component.installed_on = aircraft_id
            return component.model_copy(deep=True)

    def dump(self) -> Dict[str, list]:
        """Snapshot of every record as JSON-compatible dicts."""
        with self._lock:
            return {
                "aircraft": [a.model_dump(mode="json") for a in self._aircraft.values()],
                "components": [c.model_dump(mode="json") for c in self._components.values()],
                "parameters": [p.model_dump(mode="json") for p in self._parameters.values()],
            }

    @property
    def stats(self) -> Dict[str, int]:
        with self._lock:
            return {
                "aircraft": len(self._aircraft),
                "components": len(self._components),
                "parameters": len(self._parameters),
            }

    def _get_aircraft(self, aircraft_id: str) -> Aircraft:
        try:
            return self._aircraft[aircraft_id]
        except KeyError:
            raise NotFoundError("Aircraft", aircraft_id) from None

    def _get_component(self, component_id: str) -> Component:
        try:
            return self._components[component_id]
        except KeyError:
            raise NotFoundError("Component", component_id) from None

    def _get_parameter(self, parameter_id: str) -> MonitoredParameter:
        try:
            return self._parameters[parameter_id]
        except KeyError:
            raise NotFoundError("Monitored parameter", parameter_id) from None


class _AircraftView:
    """AircraftStore over an InMemoryFleetStore."""

    def __init__(self, store: InMemoryFleetStore) -> None:
        self._store = store

    def get(self, aircraft_id: str) -> Aircraft:
        with self._store._lock:
            return self._store._get_aircraft(aircraft_id).model_copy(deep=True)

    def list_all(self) -> List[Aircraft]:
        with self._store._lock:
            return [a.model_copy(deep=True) for a in self._store._aircraft.values()]

    def list_installed_components(self, aircraft_id: str) -> List[Component]:
        with self._store._lock:
            self._store._get_aircraft(aircraft_id)
            return [
                c.model_copy(deep=True)
                for c in self._store._components.values()
                if c.installed_on == aircraft_id
            ]

    def set_hours(
        self,
        aircraft_id: str,
        hours: float,
        pending: Optional[PendingIncrement] = None,
    ) -> Aircraft:
        with self._store._lock:
            aircraft = self._store._get_aircraft(aircraft_id)
            aircraft.cumulative_flight_hours = hours
            aircraft.pending = pending.model_copy(deep=True) if pending is not None else None
            return aircraft.model_copy(deep=True)


class _ComponentView:
    """ComponentStore over an InMemoryFleetStore."""

    def __init__(self, store: InMemoryFleetStore) -> None:
        self._store = store

    def get(self, component_id: str) -> Component:
        with self._store._lock:
            return self._store._get_component(component_id).model_copy(deep=True)

    def atomic_increment_hours(self, component_id: str, delta: float) -> Component:
        with self._store._lock:
            component = self._store._get_component(component_id)
            record = component.hours_record
            if record is None:
                raise ValidationFailureError(
                    f"Component '{component.serial_number}' has no hours-tracked life record"
                )
            record.accumulated += delta
            record.recompute_remaining()
            log.debug(
                "component_hours_incremented",
                component_id=component_id,
                delta=delta,
                accumulated=record.accumulated,
            )
            return component.model_copy(deep=True)


class _ParameterView:
    """ParameterStore over an InMemoryFleetStore."""

    def __init__(self, store: InMemoryFleetStore) -> None:
        self._store = store

    def get(self, parameter_id: str) -> MonitoredParameter:
        with self._store._lock:
            return self._store._get_parameter(parameter_id).model_copy(deep=True)

    def find_by_component(self, component_id: str) -> List[MonitoredParameter]:
        with self._store._lock:
            return [
                p.model_copy(deep=True)
                for p in self._store._parameters.values()
                if p.component_id == component_id
            ]

    def atomic_increment_value(self, parameter_id: str, delta: float) -> MonitoredParameter:
        with self._store._lock:
            parameter = self._store._get_parameter(parameter_id)
            parameter.current_value = parameter.current_value + delta
            return parameter.model_copy(deep=True)

    def save(self, parameter: MonitoredParameter) -> MonitoredParameter:
        """Persist derived fields without overwriting a concurrently incremented value."""
        with self._store._lock:
            stored = self._store._get_parameter(parameter.id)
            current_value = max(stored.current_value, parameter.current_value)
            updated = parameter.model_copy(deep=True, update={"current_value": current_value})
            self._store._parameters[parameter.id] = updated
            return updated.model_copy(deep=True)

    def find_by_aircraft_via_components(self, aircraft_id: str) -> List[MonitoredParameter]:
        with self._store._lock:
            installed = {
                c.id for c in self._store._components.values() if c.installed_on == aircraft_id
            }
            return [
                p.model_copy(deep=True)
                for p in self._store._parameters.values()
                if p.component_id in installed
            ]

    def find_all_with_overhaul_enabled(self) -> List[MonitoredParameter]:
        with self._store._lock:
            return [
                p.model_copy(deep=True)
                for p in self._store._parameters.values()
                if p.overhaul_enabled
            ]
