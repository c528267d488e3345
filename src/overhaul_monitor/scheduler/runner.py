"""Scheduled fleet scans using APScheduler."""

from typing import Any, Callable, Optional, TextIO

import structlog
from apscheduler.events import EVENT_JOB_ERROR
from apscheduler.schedulers.blocking import BlockingScheduler
from apscheduler.triggers.cron import CronTrigger

from overhaul_monitor.analysis.alerts import FleetAlertAggregator
from overhaul_monitor.analysis.models import AlertSummary
from overhaul_monitor.exceptions import OverhaulMonitorError
from overhaul_monitor.reports.generator import AlertReportGenerator
from overhaul_monitor.scheduler.presets import SCHEDULE_PRESETS, get_preset

log = structlog.get_logger()

JOB_ID = "fleet_scan"


class SchedulerError(OverhaulMonitorError):
    """Raised when scheduler configuration fails."""

    exit_code: int = 1


class FleetScanJob:
    """One fleet-wide alert scan: evaluate, summarize, render.

    Callable so it can be handed straight to the scheduler.
    """

    def __init__(
        self,
        aggregator: FleetAlertAggregator,
        generator: AlertReportGenerator,
        output: Optional[TextIO] = None,
    ) -> None:
        self.aggregator = aggregator
        self.generator = generator
        self.output = output
        self.last_summary: Optional[AlertSummary] = None

    def __call__(self) -> str:
        alerts = self.aggregator.alerts_for_fleet()
        summary = self.aggregator.summarize(alerts)
        text = self.generator.generate_text(alerts, summary)
        self.last_summary = summary

        log.info(
            "fleet_scan_complete",
            alerts=summary.total,
            requiring_overhaul=summary.requiring_overhaul,
            due_soon=summary.due_soon,
            life_expired=summary.life_expired,
        )
        if self.output is not None:
            self.output.write(text)
            self.output.flush()
        return text


class ScheduledRunner:
    """APScheduler-based runner for fleet scans.

    Supports cron expressions (5-field), named presets, one-shot mode when
    no schedule is given, and a configurable timezone.
    """

    def __init__(
        self,
        timezone: str = "UTC",
        misfire_grace_time: int = 3600,
    ) -> None:
        """Initialize scheduler.

        Args:
            timezone: IANA timezone for schedule (e.g., 'America/Mexico_City')
            misfire_grace_time: Seconds after scheduled time to still run missed job
        """
        self.timezone = timezone
        self.misfire_grace_time = misfire_grace_time
        self._scheduler: Optional[BlockingScheduler] = None

    def _create_scheduler(self) -> BlockingScheduler:
        return BlockingScheduler(
            timezone=self.timezone,
            job_defaults={
                "coalesce": True,
                "misfire_grace_time": self.misfire_grace_time,
                "max_instances": 1,
            },
        )

    def build_trigger(
        self,
        cron_expr: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> CronTrigger:
        """Turn a cron expression or preset name into a trigger.

        Raises:
            SchedulerError: Both or neither given, unknown preset, or bad cron.
        """
        if cron_expr and preset:
            raise SchedulerError("Cannot specify both cron expression and preset")
        if cron_expr:
            try:
                # from_crontab does not inherit the scheduler timezone
                return CronTrigger.from_crontab(cron_expr, timezone=self.timezone)
            except ValueError as e:
                raise SchedulerError(f"Invalid cron expression '{cron_expr}': {e}") from e
        if preset:
            params = get_preset(preset)
            if params is None:
                available = ", ".join(SCHEDULE_PRESETS.keys())
                raise SchedulerError(
                    f"Unknown schedule preset: '{preset}'. Available: {available}"
                )
            return CronTrigger(timezone=self.timezone, **params)
        raise SchedulerError("No schedule given")

    def run_once(self, func: Callable[[], Any]) -> Any:
        """Run the job immediately in the calling thread."""
        log.info("one_shot_mode", job=JOB_ID)
        return func()

    def run(
        self,
        func: Callable[[], Any],
        cron_expr: Optional[str] = None,
        preset: Optional[str] = None,
    ) -> None:
        """Run ``func`` on a schedule, or once if no schedule is configured.

        Blocks until interrupted.
        """
        if not cron_expr and not preset:
            self.run_once(func)
            return

        trigger = self.build_trigger(cron_expr, preset)
        self._scheduler = self._create_scheduler()
        self._scheduler.add_job(func, trigger, id=JOB_ID)

        def on_job_error(event: Any) -> None:
            log.error("job_failed", job=event.job_id, error=str(event.exception))

        self._scheduler.add_listener(on_job_error, EVENT_JOB_ERROR)

        log.info(
            "scheduler_starting",
            cron=cron_expr,
            preset=preset,
            timezone=self.timezone,
        )
        try:
            self._scheduler.start()
        except KeyboardInterrupt:
            log.info("scheduler_shutdown", reason="keyboard interrupt")

    def shutdown(self) -> None:
        """Gracefully shutdown the scheduler."""
        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=True)
            log.info("scheduler_shutdown", reason="explicit shutdown")
