"""Storage contract between the engine and its host.

The engine never assumes a persistence technology. Any store works as long
as the increment operations are atomic at the storage layer (a single
``UPDATE ... SET v = v + ?`` or ``$inc``), never a read-modify-write.
"""

from typing import List, Optional, Protocol

from overhaul_monitor.models.fleet import Aircraft, Component, PendingIncrement
from overhaul_monitor.models.parameter import MonitoredParameter


class AircraftStore(Protocol):
    """Read/write access to aircraft records."""

    def get(self, aircraft_id: str) -> Aircraft:
        """Return the aircraft or raise NotFoundError."""
        ...

    def list_all(self) -> List[Aircraft]:
        ...

    def list_installed_components(self, aircraft_id: str) -> List[Component]:
        """Components currently installed on the aircraft."""
        ...

    def set_hours(
        self,
        aircraft_id: str,
        hours: float,
        pending: Optional[PendingIncrement] = None,
    ) -> Aircraft:
        """Record the aircraft's reading and its pending increment in one write.

        ``pending=None`` clears any pending increment.
        """
        ...


class ComponentStore(Protocol):
    """Read/write access to component records."""

    def get(self, component_id: str) -> Component:
        """Return the component or raise NotFoundError."""
        ...

    def atomic_increment_hours(self, component_id: str, delta: float) -> Component:
        """Atomically add ``delta`` to the HOURS life record and refresh its remaining life.

        Raises:
            NotFoundError: Unknown component.
            ValidationFailureError: The component has no HOURS life record.
        """
        ...


class ParameterStore(Protocol):
    """Read/write access to monitored parameters."""

    def get(self, parameter_id: str) -> MonitoredParameter:
        ...

    def find_by_component(self, component_id: str) -> List[MonitoredParameter]:
        ...

    def atomic_increment_value(self, parameter_id: str, delta: float) -> MonitoredParameter:
        """Atomically add ``delta`` to ``current_value`` and return the updated record."""
        ...

    def save(self, parameter: MonitoredParameter) -> MonitoredParameter:
        """Persist recomputed derived fields."""
        ...

    def find_by_aircraft_via_components(self, aircraft_id: str) -> List[MonitoredParameter]:
        """Parameters of every component installed on the aircraft."""
        ...

    def find_all_with_overhaul_enabled(self) -> List[MonitoredParameter]:
        ...
