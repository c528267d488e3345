"""Configuration management for Overhaul Monitor."""

from overhaul_monitor.config.loader import (
    ConfigurationError,
    format_validation_errors,
    get_config,
    load_config,
    reload_config,
)
from overhaul_monitor.config.settings import MonitorSettings

__all__ = [
    "ConfigurationError",
    "MonitorSettings",
    "format_validation_errors",
    "get_config",
    "load_config",
    "reload_config",
]
