"""Tests for configuration loading."""

from pathlib import Path

import pytest

from overhaul_monitor.config import (
    ConfigurationError,
    MonitorSettings,
    format_validation_errors,
    get_config,
    load_config,
    reload_config,
)
from overhaul_monitor.models.enums import ThresholdProfile


@pytest.fixture(autouse=True)
def in_tmp_dir(monkeypatch, tmp_path):
    """Keep a stray .env file in the working directory out of these tests."""
    monkeypatch.chdir(tmp_path)


class TestMonitorSettings:
    """Tests for MonitorSettings defaults and validation."""

    def test_defaults(self):
        settings = MonitorSettings()
        assert settings.default_anticipation_hours == 50
        assert settings.large_increment_hours == 100
        assert settings.default_profile == ThresholdProfile.STANDARD
        assert settings.drift_tolerance_hours == 1.0
        assert settings.log_format == "json"
        assert settings.schedule_timezone == "UTC"

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("OVERHAUL_LARGE_INCREMENT_HOURS", "250")
        monkeypatch.setenv("OVERHAUL_DEFAULT_PROFILE", "conservative")
        monkeypatch.setenv("OVERHAUL_LOG_LEVEL", "warn")

        settings = MonitorSettings()

        assert settings.large_increment_hours == 250
        assert settings.default_profile == ThresholdProfile.CONSERVATIVE
        assert settings.log_level == "WARNING"

    def test_yaml_source_below_env(self, monkeypatch, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("default_anticipation_hours: 30\nreport_title: Base Ops\n")
        monkeypatch.setenv("CONFIG_PATH", str(config_file))
        monkeypatch.setenv("OVERHAUL_REPORT_TITLE", "Night Shift")

        settings = MonitorSettings()

        assert settings.default_anticipation_hours == 30
        assert settings.report_title == "Night Shift"

    def test_cron_and_preset_exclusive(self):
        with pytest.raises(ValueError, match="not both"):
            MonitorSettings(schedule_cron="0 6 * * *", schedule_preset="daily_6am")


class TestLoader:
    """Tests for load_config() and friends."""

    def test_load_and_get(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("fleet_file: /data/fleet.yaml\n")

        settings = load_config(str(config_file))

        assert settings.fleet_file == "/data/fleet.yaml"
        assert get_config() is settings

    def test_reload_picks_up_changes(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("large_increment_hours: 120\n")
        load_config(str(config_file))

        config_file.write_text("large_increment_hours: 80\n")

        assert reload_config().large_increment_hours == 80

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(str(tmp_path / "missing.yaml"))

    def test_invalid_yaml(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("log_level: [unclosed")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_config(str(config_file))

    def test_validation_errors_are_readable(self, tmp_path: Path):
        config_file = tmp_path / "config.yaml"
        config_file.write_text("default_anticipation_hours: -5\nlog_level: LOUD\n")

        with pytest.raises(ConfigurationError) as exc_info:
            load_config(str(config_file))

        message = str(exc_info.value)
        assert "'default_anticipation_hours'" in message
        assert "'log_level'" in message


class TestFormatValidationErrors:
    """Tests for format_validation_errors()."""

    def test_missing_field_hint(self):
        messages = format_validation_errors(
            [{"loc": ("fleet_file",), "msg": "Field required", "input": None}]
        )
        assert messages == [
            "Configuration error: 'fleet_file' is required. Set OVERHAUL_FLEET_FILE "
            "environment variable or add 'fleet_file:' to config file."
        ]

    def test_value_error_includes_input(self):
        messages = format_validation_errors(
            [{"loc": ("large_increment_hours",), "msg": "must be > 0", "input": -1}]
        )
        assert messages == ["Configuration error: 'large_increment_hours' must be > 0, got: -1"]
