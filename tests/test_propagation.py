"""Tests for HourPropagationEngine."""

import math
import threading

import pytest
import structlog
from structlog.testing import LogCapture, capture_logs

from conftest import make_component, make_parameter
from overhaul_monitor.analysis.propagation import HourPropagationEngine
from overhaul_monitor.config import MonitorSettings
from overhaul_monitor.exceptions import (
    HoursDecrementError,
    NotFoundError,
    ValidationFailureError,
)
from overhaul_monitor.models import (
    Aircraft,
    LifecycleState,
    OutcomeStatus,
    PendingIncrement,
    PropagationStatus,
    ThresholdConfig,
)
from overhaul_monitor.store import InMemoryFleetStore


def engine_for(store: InMemoryFleetStore, **kwargs) -> HourPropagationEngine:
    return HourPropagationEngine(store.aircraft, store.components, store.parameters, **kwargs)


class TestEndToEnd:
    """Aircraft 1000h -> 1050h with one component on a 50h overhaul interval."""

    def test_propagation_reaches_overhaul_boundary(self, store):
        report = engine_for(store).propagate("ac-1", 1050)

        assert report.status == PropagationStatus.SUCCEEDED
        assert report.success is True
        assert report.increment == 50
        assert report.components_updated == 1
        assert report.parameters_updated == 1
        assert report.errors == []

        parameter = store.parameters.get("p-1")
        assert parameter.current_value == 1050
        assert parameter.time_since_overhaul == 50
        assert parameter.hours_until_next_overhaul == 0
        assert parameter.lifecycle_state == LifecycleState.OVERHAUL_REQUIRED
        assert parameter.overhaul_config.requires_overhaul is True
        assert parameter.alert_active is True

        component = store.components.get("c-1")
        assert component.cumulative_hours == 1050
        assert component.hours_record.remaining == 3950

        assert store.aircraft.get("ac-1").cumulative_flight_hours == 1050

    def test_outcomes_carry_new_values(self, store):
        report = engine_for(store).propagate("ac-1", 1050)

        outcome = report.component_outcomes[0]
        assert outcome.status == OutcomeStatus.UPDATED
        assert outcome.new_hours == 1050
        assert outcome.parameter_outcomes[0].new_value == 1050
        assert outcome.parameter_outcomes[0].lifecycle_state == LifecycleState.OVERHAUL_REQUIRED

    def test_completion_event_logged(self, store):
        with capture_logs() as logs:
            engine_for(store).propagate("ac-1", 1050)

        complete = next(log for log in logs if log["event"] == "propagation_complete")
        assert complete["status"] == "SUCCEEDED"
        assert complete["components_updated"] == 1


class TestRetryAndMonotonicity:
    """Idempotent retry, decrement rejection and monotonic values."""

    def test_same_reading_twice_is_noop(self, store):
        engine = engine_for(store)
        engine.propagate("ac-1", 1050)
        snapshot = store.dump()

        report = engine.propagate("ac-1", 1050)

        assert report.increment == 0
        assert report.components_updated == 0
        assert report.status == PropagationStatus.SUCCEEDED
        assert store.dump() == snapshot

    def test_decrement_rejected_without_writes(self, store):
        engine = engine_for(store)
        engine.propagate("ac-1", 1050)
        snapshot = store.dump()

        with pytest.raises(HoursDecrementError) as exc_info:
            engine.propagate("ac-1", 1049)

        assert exc_info.value.current_hours == 1050
        assert exc_info.value.exit_code == 3
        assert store.dump() == snapshot

    @pytest.mark.parametrize("bad_hours", [-1, math.nan, math.inf])
    def test_invalid_readings_rejected(self, store, bad_hours):
        snapshot = store.dump()
        with pytest.raises(HoursDecrementError):
            engine_for(store).propagate("ac-1", bad_hours)
        assert store.dump() == snapshot

    def test_values_never_decrease(self, three_component_store):
        engine = engine_for(three_component_store)
        previous = {"p-1": 1000.0, "p-2": 1000.0}

        for hours in [1000, 1010, 1010, 1100, 1250.5]:
            engine.propagate("ac-1", hours)
            for parameter_id, before in previous.items():
                value = three_component_store.parameters.get(parameter_id).current_value
                assert value >= before
                previous[parameter_id] = value

        assert previous == {"p-1": 1250.5, "p-2": 1250.5}

    def test_unknown_aircraft_not_found(self, store):
        snapshot = store.dump()
        with pytest.raises(NotFoundError):
            engine_for(store).propagate("ac-404", 1100)
        assert store.dump() == snapshot


class TestPartialFailure:
    """Per-item failures are reported, not raised."""

    def test_component_without_hours_record(self, three_component_store):
        with capture_logs() as logs:
            report = engine_for(three_component_store).propagate("ac-1", 1020)

        assert report.components_updated == 2
        assert report.parameters_updated == 2
        assert len(report.errors) == 1
        assert "SN-c-3" in report.errors[0]
        assert report.success is True
        assert report.status == PropagationStatus.PARTIAL

        skipped = [o for o in report.component_outcomes if o.status == OutcomeStatus.SKIPPED]
        assert [o.component_id for o in skipped] == ["c-3"]
        assert three_component_store.aircraft.get("ac-1").cumulative_flight_hours == 1020
        assert any(log["event"] == "component_propagation_failed" for log in logs)

    def test_all_components_failing_is_rejected(self):
        fleet = InMemoryFleetStore()
        fleet.add_aircraft(Aircraft(id="ac-9", registration="XA-ZZZ", cumulative_flight_hours=10))
        fleet.add_component(make_component("c-9", installed_on="ac-9", hours_tracked=False))

        report = engine_for(fleet).propagate("ac-9", 20)

        assert report.success is False
        assert report.status == PropagationStatus.REJECTED
        assert fleet.aircraft.get("ac-9").cumulative_flight_hours == 10

    def test_recompute_failure_still_counts_stored_value(self):
        fleet = InMemoryFleetStore()
        fleet.add_aircraft(Aircraft(id="ac-1", registration="XA-ABC", cumulative_flight_hours=1000))
        fleet.add_component(make_component("c-1"))
        fleet.add_parameter(
            make_parameter("p-1", "c-1", threshold_config=ThresholdConfig(red=10, orange=20))
        )

        with capture_logs() as logs:
            report = engine_for(fleet).propagate("ac-1", 1020)

        outcome = report.component_outcomes[0].parameter_outcomes[0]
        assert outcome.status == OutcomeStatus.UPDATED
        assert outcome.new_value == 1020
        assert "ordering" in outcome.recompute_error
        assert report.parameters_updated == 1
        assert report.status == PropagationStatus.PARTIAL
        assert any("derived fields are stale" in error for error in report.errors)
        assert fleet.parameters.get("p-1").current_value == 1020
        assert fleet.aircraft.get("ac-1").cumulative_flight_hours == 1020

        failed = next(log for log in logs if log["event"] == "parameter_recompute_failed")
        assert failed["current_value"] == 1020
        assert not any(log["event"] == "parameter_propagation_failed" for log in logs)

    def test_parameter_failure_does_not_stop_siblings(self, three_component_store):
        class FlakyParameters:
            def __init__(self, inner):
                self._inner = inner

            def __getattr__(self, name):
                return getattr(self._inner, name)

            def atomic_increment_value(self, parameter_id, delta):
                if parameter_id == "p-1":
                    raise ValidationFailureError("value field locked")
                return self._inner.atomic_increment_value(parameter_id, delta)

        engine = HourPropagationEngine(
            three_component_store.aircraft,
            three_component_store.components,
            FlakyParameters(three_component_store.parameters),
        )

        with capture_logs() as logs:
            report = engine.propagate("ac-1", 1020)

        assert report.components_updated == 2
        assert report.parameters_updated == 1
        assert len(report.errors) == 2
        assert any("value field locked" in error for error in report.errors)
        assert three_component_store.parameters.get("p-2").current_value == 1020
        assert three_component_store.parameters.get("p-1").current_value == 1000
        assert any(log["event"] == "parameter_propagation_failed" for log in logs)

    def test_empty_aircraft_succeeds(self):
        fleet = InMemoryFleetStore()
        fleet.add_aircraft(Aircraft(id="ac-2", registration="XA-EMP", cumulative_flight_hours=5))

        report = engine_for(fleet).propagate("ac-2", 15)

        assert report.status == PropagationStatus.SUCCEEDED
        assert fleet.aircraft.get("ac-2").cumulative_flight_hours == 15


class TestLargeIncrement:
    """Suspicious increments are logged and still applied."""

    def test_large_increment_warns(self, store):
        with capture_logs() as logs:
            report = engine_for(store).propagate("ac-1", 1200)

        warning = next(log for log in logs if log["event"] == "large_hour_increment")
        assert warning["increment"] == 200
        assert warning["log_level"] == "warning"
        assert report.components_updated == 1

    def test_threshold_comes_from_settings(self, store):
        settings = MonitorSettings(large_increment_hours=500)

        with capture_logs() as logs:
            engine_for(store, settings=settings).propagate("ac-1", 1200)

        assert not any(log["event"] == "large_hour_increment" for log in logs)

    def test_exactly_threshold_does_not_warn(self, store):
        with capture_logs() as logs:
            engine_for(store).propagate("ac-1", 1100)
        assert not any(log["event"] == "large_hour_increment" for log in logs)


class CancellingComponents:
    """ComponentStore wrapper that sets the cancel event after chosen increments."""

    def __init__(self, inner, cancel: threading.Event, after=("c-1",)):
        self._inner = inner
        self._cancel = cancel
        self._after = set(after)

    def get(self, component_id):
        return self._inner.get(component_id)

    def atomic_increment_hours(self, component_id, delta):
        result = self._inner.atomic_increment_hours(component_id, delta)
        if component_id in self._after:
            self._cancel.set()
        return result


def cancel_after(fleet: InMemoryFleetStore, *component_ids: str):
    cancel = threading.Event()
    engine = HourPropagationEngine(
        fleet.aircraft,
        CancellingComponents(fleet.components, cancel, after=component_ids),
        fleet.parameters,
    )
    return engine, cancel


class TestCancellation:
    """Cooperative cancellation between components."""

    def test_preset_event_processes_nothing(self, three_component_store):
        cancel = threading.Event()
        cancel.set()
        snapshot = three_component_store.dump()

        report = engine_for(three_component_store).propagate("ac-1", 1020, cancel)

        assert report.cancelled is True
        assert report.status == PropagationStatus.CANCELLED
        assert report.incomplete == ["c-1", "c-2", "c-3"]
        assert report.hours_advanced is False
        assert three_component_store.dump() == snapshot

    def test_cancel_midway_records_pending_increment(self, three_component_store):
        engine, cancel = cancel_after(three_component_store, "c-1")

        with capture_logs() as logs:
            report = engine.propagate("ac-1", 1020, cancel)

        assert report.components_updated == 1
        assert report.incomplete == ["c-2", "c-3"]
        assert report.success is False
        assert report.hours_advanced is True
        assert three_component_store.parameters.get("p-1").current_value == 1020
        assert three_component_store.parameters.get("p-2").current_value == 1000

        aircraft = three_component_store.aircraft.get("ac-1")
        assert aircraft.cumulative_flight_hours == 1020
        assert aircraft.pending.increment == 20
        assert aircraft.pending.component_ids == ["c-2", "c-3"]
        assert any(log["event"] == "propagation_cancelled" for log in logs)

    def test_retry_after_cancel_counts_hours_once(self, three_component_store):
        engine, cancel = cancel_after(three_component_store, "c-1")
        engine.propagate("ac-1", 1020, cancel)

        report = engine_for(three_component_store).propagate("ac-1", 1020)

        assert report.increment == 0
        assert report.resumed_increment == 20
        assert report.resumed_components == ["c-2", "c-3"]
        assert three_component_store.parameters.get("p-1").current_value == 1020
        assert three_component_store.parameters.get("p-2").current_value == 1020
        assert three_component_store.components.get("c-1").cumulative_hours == 1020
        assert three_component_store.components.get("c-2").cumulative_hours == 1020
        assert three_component_store.aircraft.get("ac-1").pending is None

    def test_retry_matches_uninterrupted_run(self, three_component_store):
        reference = InMemoryFleetStore()
        for aircraft in three_component_store.aircraft.list_all():
            reference.add_aircraft(aircraft)
        for component_id in ("c-1", "c-2", "c-3"):
            reference.add_component(three_component_store.components.get(component_id))
        for parameter_id in ("p-1", "p-2"):
            reference.add_parameter(three_component_store.parameters.get(parameter_id))
        engine_for(reference).propagate("ac-1", 1050)

        engine, cancel = cancel_after(three_component_store, "c-1")
        engine.propagate("ac-1", 1020, cancel)
        engine_for(three_component_store).propagate("ac-1", 1050)

        for parameter_id in ("p-1", "p-2"):
            assert (
                three_component_store.parameters.get(parameter_id).current_value
                == reference.parameters.get(parameter_id).current_value
                == 1050
            )
        for component_id in ("c-1", "c-2"):
            assert three_component_store.components.get(component_id).cumulative_hours == 1050
        assert three_component_store.aircraft.get("ac-1").cumulative_flight_hours == 1050

    def test_resume_applies_only_pending(self, three_component_store):
        engine, cancel = cancel_after(three_component_store, "c-1")
        engine.propagate("ac-1", 1020, cancel)

        report = engine_for(three_component_store).resume("ac-1")

        assert report.increment == 0
        assert report.resumed_components == ["c-2", "c-3"]
        assert three_component_store.parameters.get("p-2").current_value == 1020
        assert three_component_store.aircraft.get("ac-1").cumulative_flight_hours == 1020

    def test_cancel_during_resume_narrows_pending(self, three_component_store):
        engine, cancel = cancel_after(three_component_store, "c-1")
        engine.propagate("ac-1", 1020, cancel)

        engine, cancel = cancel_after(three_component_store, "c-2")
        report = engine.propagate("ac-1", 1020, cancel)

        assert report.cancelled is True
        assert report.resumed_components == ["c-2"]
        assert report.incomplete == ["c-3"]
        pending = three_component_store.aircraft.get("ac-1").pending
        assert pending.component_ids == ["c-3"]
        assert three_component_store.parameters.get("p-2").current_value == 1020

        engine_for(three_component_store).propagate("ac-1", 1020)
        assert three_component_store.parameters.get("p-2").current_value == 1020
        assert three_component_store.aircraft.get("ac-1").pending is None

    def test_pending_for_removed_component_is_reported(self, three_component_store):
        three_component_store.aircraft.set_hours(
            "ac-1", 1000, pending=PendingIncrement(increment=5, component_ids=["c-gone"])
        )

        report = engine_for(three_component_store).propagate("ac-1", 1000)

        assert any("c-gone" in error for error in report.errors)
        assert three_component_store.aircraft.get("ac-1").pending is None


class TestLogContext:
    """Every event emitted during a propagation carries the aircraft id."""

    @pytest.fixture
    def context_logs(self):
        capture = LogCapture()
        old_processors = structlog.get_config()["processors"]
        structlog.configure(processors=[structlog.contextvars.merge_contextvars, capture])
        yield capture.entries
        structlog.configure(processors=old_processors)

    def test_nested_events_bound_to_aircraft(self, three_component_store, context_logs):
        engine_for(three_component_store).propagate("ac-1", 1020)

        skipped = next(
            log for log in context_logs if log["event"] == "component_propagation_failed"
        )
        assert skipped["aircraft_id"] == "ac-1"
        assert skipped["component_id"] == "c-3"

    def test_context_cleared_afterwards(self, store, context_logs):
        engine_for(store).propagate("ac-1", 1010)

        assert structlog.contextvars.get_contextvars() == {}


class TestConcurrentAircraft:
    """Distinct aircraft propagate independently."""

    def test_parallel_propagations(self):
        fleet = InMemoryFleetStore()
        for n in range(4):
            fleet.add_aircraft(
                Aircraft(id=f"ac-{n}", registration=f"XA-{n}", cumulative_flight_hours=0)
            )
            fleet.add_component(make_component(f"c-{n}", installed_on=f"ac-{n}", accumulated=0))
        engine = engine_for(fleet)

        def fly(aircraft_id):
            for hours in range(1, 51):
                engine.propagate(aircraft_id, float(hours))

        threads = [threading.Thread(target=fly, args=(f"ac-{n}",)) for n in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        for n in range(4):
            assert fleet.components.get(f"c-{n}").cumulative_hours == 50
            assert fleet.aircraft.get(f"ac-{n}").cumulative_flight_hours == 50
