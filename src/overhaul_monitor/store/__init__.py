"""Storage contract and implementations."""

from overhaul_monitor.store.base import AircraftStore, ComponentStore, ParameterStore
from overhaul_monitor.store.memory import InMemoryFleetStore
from overhaul_monitor.store.snapshot import FleetDocument, FleetFileError, load_fleet, save_fleet

__all__ = [
    "AircraftStore",
    "ComponentStore",
    "FleetDocument",
    "FleetFileError",
    "InMemoryFleetStore",
    "ParameterStore",
    "load_fleet",
    "save_fleet",
]
