"""Report generator with Jinja2 template support.

Renders plain text fleet alert reports and propagation summaries from the
analysis results.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from zoneinfo import ZoneInfo

from jinja2 import Environment, PackageLoader

from overhaul_monitor.analysis.models import AlertSummary, OverhaulAlert
from overhaul_monitor.models.report import PropagationReport


class AlertReportGenerator:
    """Generator for plain text reports using Jinja2 templates.

    Attributes:
        env: Jinja2 Environment configured with PackageLoader
        report_title: Default title for generated reports
    """

    def __init__(
        self,
        report_title: str = "Fleet Overhaul Alerts",
        display_timezone: str = "UTC",
    ) -> None:
        """Initialize AlertReportGenerator with Jinja2 environment.

        Args:
            report_title: Title printed at the top of alert reports.
            display_timezone: IANA timezone name for timestamp display.
        """
        self.report_title = report_title
        self.display_timezone = ZoneInfo(display_timezone)

        self.env = Environment(
            loader=PackageLoader("overhaul_monitor.reports", "templates"),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
        self.env.filters["hours"] = _format_hours

    def _format_time(self, value: Optional[datetime]) -> str:
        value = value or datetime.now(timezone.utc)
        return value.astimezone(self.display_timezone).strftime("%Y-%m-%d %H:%M %Z")

    def _alert_rows(self, alerts: List[OverhaulAlert]) -> List[Dict[str, Any]]:
        rows = []
        for alert in alerts:
            status = alert.status
            rows.append(
                {
                    "aircraft": alert.aircraft_id or "-",
                    "serial": alert.component_serial,
                    "control_code": status.control_code,
                    "state": status.lifecycle_state.value,
                    "color": alert.color.value if alert.color else "-",
                    "hours_until": status.hours_until_next_overhaul,
                    "cycle": f"{status.current_cycle}/{status.max_cycles}",
                    "message": status.message,
                }
            )
        return rows

    def generate_text(
        self,
        alerts: List[OverhaulAlert],
        summary: AlertSummary,
        generated_at: Optional[datetime] = None,
        scope: str = "fleet",
    ) -> str:
        """Render the alert list and its summary.

        Args:
            alerts: Sorted alerts from FleetAlertAggregator.
            summary: Counts from FleetAlertAggregator.summarize.
            generated_at: Report timestamp, defaults to now.
            scope: "fleet" or an aircraft id, printed in the header.
        """
        template = self.env.get_template("alerts.txt")
        return template.render(
            report_title=self.report_title,
            scope=scope,
            generated_at=self._format_time(generated_at),
            alerts=self._alert_rows(alerts),
            summary=summary,
        )

    def generate_propagation_text(self, report: PropagationReport) -> str:
        """Render a propagation report for operators."""
        template = self.env.get_template("propagation.txt")
        return template.render(
            report=report,
            status=report.status.value,
            generated_at=self._format_time(report.generated_at),
        )


def _format_hours(value: Optional[float]) -> str:
    if value is None:
        return "-"
    return f"{value:,.1f}h"
