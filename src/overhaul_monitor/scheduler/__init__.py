"""Scheduler subsystem for periodic fleet scans."""

from overhaul_monitor.scheduler.presets import SCHEDULE_PRESETS, get_preset, list_presets
from overhaul_monitor.scheduler.runner import FleetScanJob, ScheduledRunner, SchedulerError

__all__ = [
    "FleetScanJob",
    "ScheduledRunner",
    "SchedulerError",
    "SCHEDULE_PRESETS",
    "get_preset",
    "list_presets",
]
