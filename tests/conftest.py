"""Shared fixtures for the overhaul monitor test suite."""

import os
from typing import Optional

import pytest

from overhaul_monitor.models import (
    Aircraft,
    Component,
    LifeRecord,
    LifeUnit,
    MonitoredParameter,
    OverhaulConfig,
    ThresholdConfig,
)
from overhaul_monitor.store import InMemoryFleetStore


def make_component(
    component_id: str,
    installed_on: Optional[str] = "ac-1",
    accumulated: float = 1000.0,
    hours_tracked: bool = True,
) -> Component:
    if hours_tracked:
        records = [LifeRecord(unit=LifeUnit.HOURS, limit=5000, accumulated=accumulated)]
    else:
        records = [LifeRecord(unit=LifeUnit.CYCLES, limit=20000, accumulated=300)]
    return Component(
        id=component_id,
        serial_number=f"SN-{component_id}",
        name=f"Component {component_id}",
        installed_on=installed_on,
        life_records=records,
    )


def make_parameter(
    parameter_id: str,
    component_id: str,
    current_value: float = 1000.0,
    interval_hours: float = 50.0,
    current_cycle: int = 20,
    max_cycles: int = 40,
    hours_at_last_overhaul: float = 1000.0,
    limit_value: float = 2000.0,
    threshold_config: Optional[ThresholdConfig] = None,
    enabled: bool = True,
) -> MonitoredParameter:
    return MonitoredParameter(
        id=parameter_id,
        component_id=component_id,
        control_code="time-between-overhauls",
        current_value=current_value,
        limit_value=limit_value,
        overhaul_config=OverhaulConfig(
            enabled=enabled,
            interval_hours=interval_hours,
            current_cycle=current_cycle,
            max_cycles=max_cycles,
            hours_at_last_overhaul=hours_at_last_overhaul,
            threshold_config=threshold_config,
        ),
    )


@pytest.fixture
def store() -> InMemoryFleetStore:
    """One aircraft at 1000h with the end-to-end component installed."""
    fleet = InMemoryFleetStore()
    fleet.add_aircraft(Aircraft(id="ac-1", registration="XA-ABC", cumulative_flight_hours=1000))
    fleet.add_component(make_component("c-1"))
    fleet.add_parameter(
        make_parameter("p-1", "c-1", threshold_config=ThresholdConfig(red=10))
    )
    return fleet


@pytest.fixture
def three_component_store() -> InMemoryFleetStore:
    """Aircraft with three components, the last one not hours-tracked."""
    fleet = InMemoryFleetStore()
    fleet.add_aircraft(Aircraft(id="ac-1", registration="XA-ABC", cumulative_flight_hours=1000))
    fleet.add_component(make_component("c-1"))
    fleet.add_component(make_component("c-2"))
    fleet.add_component(make_component("c-3", hours_tracked=False))
    fleet.add_parameter(make_parameter("p-1", "c-1"))
    fleet.add_parameter(make_parameter("p-2", "c-2"))
    return fleet


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Hide the caller's OVERHAUL_* and CONFIG_PATH variables from every test."""
    # setenv first so teardown also removes a CONFIG_PATH written by load_config
    monkeypatch.setenv("CONFIG_PATH", "")
    monkeypatch.delenv("CONFIG_PATH")
    for name in list(os.environ):
        if name.startswith("OVERHAUL_"):
            monkeypatch.delenv(name)
