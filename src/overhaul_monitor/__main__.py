"""
Entry point for the overhaul-monitor CLI.

Usage:
    overhaul-monitor --fleet fleet.yaml --propagate AIRCRAFT HOURS
    overhaul-monitor --fleet fleet.yaml --alerts [AIRCRAFT]
    overhaul-monitor --fleet fleet.yaml --complete-overhaul PARAMETER
    overhaul-monitor --fleet fleet.yaml --derive-thresholds PARAMETER [--profile NAME]
    overhaul-monitor --fleet fleet.yaml --schedule
    overhaul-monitor --version

Exit Codes:
    0 - Success
    1 - Configuration error (invalid settings, unreadable fleet file)
    2 - Not found (unknown aircraft or parameter)
    3 - Rejected (hours going backward, overhaul not applicable)
    4 - Partial propagation (some components or parameters failed)
"""

from __future__ import annotations

import argparse
import signal
import sys
import threading
from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from overhaul_monitor.config import MonitorSettings
    from overhaul_monitor.store import InMemoryFleetStore

from overhaul_monitor import __version__

# Exit codes
EXIT_SUCCESS = 0
EXIT_CONFIG_ERROR = 1
EXIT_NOT_FOUND = 2
EXIT_REJECTED = 3
EXIT_PARTIAL = 4


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="overhaul-monitor",
        description="Propagate flight hours and report component overhaul alerts",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Exit Codes:
  0   Success
  1   Configuration error
  2   Aircraft or parameter not found
  3   Update rejected (no writes performed)
  4   Partial propagation (see errors in the report)

Environment Variables:
  CONFIG_PATH                          Path to YAML configuration file
  OVERHAUL_FLEET_FILE                  Fleet document (YAML or JSON)
  OVERHAUL_DEFAULT_ANTICIPATION_HOURS  Warning window without thresholds (default: 50)
  OVERHAUL_LARGE_INCREMENT_HOURS       Suspicious increment threshold (default: 100)
  OVERHAUL_DEFAULT_PROFILE             Profile for --derive-thresholds (default: STANDARD)
  OVERHAUL_SCHEDULE_CRON               Cron expression for --schedule
  OVERHAUL_SCHEDULE_PRESET             Preset name for --schedule
  OVERHAUL_LOG_LEVEL                   Logging level: DEBUG, INFO, WARNING, ERROR
  OVERHAUL_LOG_FORMAT                  Log format: json or text

Examples:
  # Record a new flight-hour reading
  overhaul-monitor --fleet fleet.yaml --propagate XA-ABC 1050

  # After Ctrl-C, rerun the same reading to finish the pending components
  overhaul-monitor --fleet fleet.yaml --propagate XA-ABC 1050

  # Alerts for the whole fleet, then for one aircraft
  overhaul-monitor --fleet fleet.yaml --alerts
  overhaul-monitor --fleet fleet.yaml --alerts ac-1
""",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument("--config", metavar="PATH", help="YAML configuration file")
    parser.add_argument("--fleet", metavar="PATH", help="Fleet document (YAML or JSON)")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not write the updated fleet back to disk",
    )

    actions = parser.add_mutually_exclusive_group(required=True)
    actions.add_argument(
        "--propagate",
        nargs=2,
        metavar=("AIRCRAFT", "HOURS"),
        help="Apply a new cumulative flight-hour reading to an aircraft",
    )
    actions.add_argument(
        "--alerts",
        nargs="?",
        const="",
        metavar="AIRCRAFT",
        help="Print overhaul alerts for one aircraft, or the whole fleet",
    )
    actions.add_argument(
        "--complete-overhaul",
        metavar="PARAMETER",
        help="Record a completed overhaul on a monitored parameter",
    )
    actions.add_argument(
        "--derive-thresholds",
        metavar="PARAMETER",
        help="Replace a parameter's thresholds with defaults derived from its interval",
    )
    actions.add_argument(
        "--schedule",
        action="store_true",
        help="Run fleet alert scans on the configured schedule",
    )
    parser.add_argument("--notes", help="Notes stored with --complete-overhaul")
    parser.add_argument(
        "--profile",
        choices=["STANDARD", "CONSERVATIVE", "AGGRESSIVE"],
        help="Profile for --derive-thresholds (default: settings.default_profile)",
    )
    return parser.parse_args(argv)


def resolve_aircraft(store: "InMemoryFleetStore", ref: str) -> str:
    """Accept an aircraft id or a registration."""
    for aircraft in store.aircraft.list_all():
        if aircraft.id == ref or aircraft.registration == ref:
            return aircraft.id
    return ref


def run_propagate(
    store: "InMemoryFleetStore",
    config: "MonitorSettings",
    aircraft_ref: str,
    hours: float,
) -> int:
    from overhaul_monitor.analysis import HourPropagationEngine
    from overhaul_monitor.models import PropagationStatus
    from overhaul_monitor.reports import AlertReportGenerator

    engine = HourPropagationEngine(
        store.aircraft, store.components, store.parameters, settings=config
    )
    cancel = threading.Event()
    previous_handler = signal.signal(signal.SIGINT, lambda signum, frame: cancel.set())
    try:
        report = engine.propagate(resolve_aircraft(store, aircraft_ref), hours, cancel)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    generator = AlertReportGenerator(report_title=config.report_title)
    print(generator.generate_propagation_text(report))

    if report.status == PropagationStatus.SUCCEEDED:
        return EXIT_SUCCESS
    if report.status == PropagationStatus.REJECTED:
        return EXIT_REJECTED
    return EXIT_PARTIAL


def run_alerts(
    store: "InMemoryFleetStore",
    config: "MonitorSettings",
    aircraft_ref: str,
) -> int:
    from overhaul_monitor.analysis import FleetAlertAggregator, detect_cycle_drift
    from overhaul_monitor.reports import AlertReportGenerator

    aggregator = FleetAlertAggregator(
        store.aircraft, store.components, store.parameters, settings=config
    )
    if aircraft_ref:
        aircraft_id = resolve_aircraft(store, aircraft_ref)
        alerts = aggregator.alerts_for_aircraft(aircraft_id)
        scope = aircraft_id
    else:
        alerts = aggregator.alerts_for_fleet()
        scope = "fleet"

    for parameter in store.parameters.find_all_with_overhaul_enabled():
        detect_cycle_drift(parameter, config.drift_tolerance_hours)

    generator = AlertReportGenerator(
        report_title=config.report_title,
        display_timezone=config.schedule_timezone,
    )
    print(generator.generate_text(alerts, aggregator.summarize(alerts), scope=scope))
    return EXIT_SUCCESS


def run_complete_overhaul(
    store: "InMemoryFleetStore",
    config: "MonitorSettings",
    parameter_id: str,
    notes: Optional[str],
) -> int:
    from overhaul_monitor.analysis import complete_overhaul

    parameter = store.parameters.get(parameter_id)
    status = complete_overhaul(
        parameter,
        notes=notes,
        default_anticipation_hours=config.default_anticipation_hours,
    )
    store.parameters.save(parameter)
    print(
        f"Overhaul recorded for {parameter.control_code} ({parameter.id}): "
        f"cycle {status.current_cycle}/{status.max_cycles}, "
        f"next overhaul at {status.next_overhaul_at:g}h"
    )
    return EXIT_SUCCESS


def run_derive_thresholds(
    store: "InMemoryFleetStore",
    config: "MonitorSettings",
    parameter_id: str,
    profile: Optional[str],
) -> int:
    from overhaul_monitor.analysis import derive_defaults, recompute
    from overhaul_monitor.exceptions import NotApplicableError
    from overhaul_monitor.models import ThresholdProfile

    parameter = store.parameters.get(parameter_id)
    if not parameter.overhaul_enabled:
        raise NotApplicableError(
            f"Parameter '{parameter.id}' ({parameter.control_code}) does not have "
            "overhauls enabled",
            parameter_id=parameter.id,
        )

    chosen = ThresholdProfile(profile) if profile else config.default_profile
    overhaul = parameter.overhaul_config
    overhaul.threshold_config = derive_defaults(overhaul.interval_hours, chosen)
    recompute(parameter, config.default_anticipation_hours)
    store.parameters.save(parameter)

    bands = overhaul.threshold_config
    print(
        f"Thresholds for {parameter.control_code} ({parameter.id}) from "
        f"{overhaul.interval_hours:g}h interval, {chosen.value} profile: "
        f"purple {bands.purple:g}, red {bands.red:g}, orange {bands.orange:g}, "
        f"yellow {bands.yellow:g}"
    )
    return EXIT_SUCCESS


def run_schedule(store: "InMemoryFleetStore", config: "MonitorSettings") -> int:
    from overhaul_monitor.analysis import FleetAlertAggregator
    from overhaul_monitor.reports import AlertReportGenerator
    from overhaul_monitor.scheduler import FleetScanJob, ScheduledRunner

    job = FleetScanJob(
        FleetAlertAggregator(store.aircraft, store.components, store.parameters, settings=config),
        AlertReportGenerator(
            report_title=config.report_title,
            display_timezone=config.schedule_timezone,
        ),
        output=sys.stdout,
    )
    runner = ScheduledRunner(timezone=config.schedule_timezone)
    try:
        runner.run(job, cron_expr=config.schedule_cron, preset=config.schedule_preset)
    except KeyboardInterrupt:
        runner.shutdown()
    return EXIT_SUCCESS


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for overhaul-monitor.

    Returns:
        Exit code (0=success, 1=config error, 2=not found, 3=rejected, 4=partial)
    """
    args = parse_args(argv)

    # Imported here so --help and --version work without loading settings
    from overhaul_monitor.config import ConfigurationError, load_config
    from overhaul_monitor.exceptions import (
        NotApplicableError,
        NotFoundError,
        OverhaulMonitorError,
        ValidationFailureError,
    )
    from overhaul_monitor.logging import configure_logging, get_logger
    from overhaul_monitor.store import load_fleet, save_fleet

    try:
        config = load_config(args.config)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR

    configure_logging(log_format=config.log_format, log_level=config.log_level)
    log = get_logger()

    fleet_path = args.fleet or config.fleet_file
    if not fleet_path:
        print(
            "Configuration error: no fleet file. Pass --fleet or set OVERHAUL_FLEET_FILE.",
            file=sys.stderr,
        )
        return EXIT_CONFIG_ERROR

    try:
        store = load_fleet(fleet_path)

        if args.propagate:
            aircraft_ref, raw_hours = args.propagate
            try:
                hours = float(raw_hours)
            except ValueError:
                print(f"Invalid hours value: {raw_hours}", file=sys.stderr)
                return EXIT_CONFIG_ERROR
            code = run_propagate(store, config, aircraft_ref, hours)
        elif args.alerts is not None:
            return run_alerts(store, config, args.alerts)
        elif args.complete_overhaul:
            code = run_complete_overhaul(store, config, args.complete_overhaul, args.notes)
        elif args.derive_thresholds:
            code = run_derive_thresholds(store, config, args.derive_thresholds, args.profile)
        else:
            return run_schedule(store, config)

    except NotFoundError as e:
        log.error("not_found", entity=e.entity, entity_id=e.entity_id)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except (ValidationFailureError, NotApplicableError) as e:
        log.error("operation_rejected", error=e.message)
        print(f"Rejected: {e}", file=sys.stderr)
        return EXIT_REJECTED
    except OverhaulMonitorError as e:
        print(f"Error: {e}", file=sys.stderr)
        return e.exit_code

    if not args.dry_run and code != EXIT_REJECTED:
        save_fleet(store, fleet_path)
    return code


if __name__ == "__main__":
    sys.exit(main())
