"""Report generation for Overhaul Monitor."""

from overhaul_monitor.reports.generator import AlertReportGenerator

__all__ = ["AlertReportGenerator"]
