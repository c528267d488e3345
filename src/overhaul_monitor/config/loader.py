"""Configuration loading with YAML and environment override."""

from __future__ import annotations

import os
import threading
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError

from overhaul_monitor.config.settings import MonitorSettings
from overhaul_monitor.exceptions import OverhaulMonitorError


class ConfigurationError(OverhaulMonitorError):
    """Raised when configuration is invalid or cannot be loaded."""

    exit_code: int = 1


_config: Optional[MonitorSettings] = None
_config_lock = threading.Lock()


def load_yaml_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """Load configuration from YAML file if specified.

    Args:
        config_path: Path to YAML config file. If None, checks CONFIG_PATH env var.

    Returns:
        Dict of configuration values from YAML, or empty dict if no file.
    """
    path = config_path or os.environ.get("CONFIG_PATH")

    if not path:
        return {}

    try:
        with open(path) as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except FileNotFoundError:
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            hint="Point CONFIG_PATH at a valid YAML file, or unset it to use environment variables only.",
        )
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file {path}: {e}")
    except PermissionError:
        raise ConfigurationError(f"Cannot read configuration file {path}: permission denied")


def format_validation_errors(errors: List[Dict[str, Any]]) -> List[str]:
    """Format Pydantic validation errors into user-friendly messages."""
    messages: List[str] = []
    for error in errors:
        loc = ".".join(str(part) for part in error.get("loc", []))
        msg = error.get("msg", "Invalid value")
        input_val = error.get("input")

        if not loc:
            messages.append(f"Configuration error: {msg}")
        elif "missing" in msg.lower() or "required" in msg.lower():
            hint = f"Set OVERHAUL_{loc.upper()} environment variable or add '{loc}:' to config file."
            messages.append(f"Configuration error: '{loc}' is required. {hint}")
        elif input_val is not None:
            messages.append(f"Configuration error: '{loc}' {msg}, got: {input_val}")
        else:
            messages.append(f"Configuration error: '{loc}' {msg}")

    return messages


def load_config(config_path: Optional[str] = None) -> MonitorSettings:
    """Load and validate configuration.

    Args:
        config_path: Optional path to YAML config file (sets CONFIG_PATH env).

    Returns:
        Validated MonitorSettings instance.

    Raises:
        ConfigurationError: If the file cannot be read or validation fails.
    """
    global _config

    if config_path:
        os.environ["CONFIG_PATH"] = config_path

    # Surface unreadable files here; the settings source swallows them
    load_yaml_config()

    try:
        settings = MonitorSettings()
    except ValidationError as e:
        raise ConfigurationError("\n".join(format_validation_errors(e.errors()))) from e

    with _config_lock:
        _config = settings
    return settings


def get_config() -> MonitorSettings:
    """Get the current configuration.

    Raises:
        ConfigurationError: If configuration has not been loaded.
    """
    with _config_lock:
        if _config is None:
            raise ConfigurationError("Configuration not loaded. Call load_config() first.")
        return _config


def reload_config() -> MonitorSettings:
    """Reload configuration from disk."""
    global _config
    with _config_lock:
        _config = None
    return load_config()
