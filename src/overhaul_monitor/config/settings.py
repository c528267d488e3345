"""Pydantic settings models for Overhaul Monitor configuration."""

from __future__ import annotations

import os
from typing import Any, Dict, Literal, Optional, Tuple, Type

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from overhaul_monitor.models.enums import ThresholdProfile


class YamlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source reading a YAML file named by CONFIG_PATH."""

    def get_field_value(
        self, field: Any, field_name: str
    ) -> Tuple[Any, str, bool]:
        yaml_config = self._load_yaml_config()
        return yaml_config.get(field_name), field_name, False

    def _load_yaml_config(self) -> Dict[str, Any]:
        config_path = os.environ.get("CONFIG_PATH")
        if not config_path:
            return {}

        try:
            with open(config_path) as f:
                data = yaml.safe_load(f)
                return data if isinstance(data, dict) else {}
        except (FileNotFoundError, yaml.YAMLError, PermissionError):
            # Reported with a proper message by loader.py
            return {}

    def __call__(self) -> Dict[str, Any]:
        return self._load_yaml_config()


class MonitorSettings(BaseSettings):
    """Overhaul Monitor configuration settings.

    Precedence (highest to lowest):
    1. Environment variables (OVERHAUL_ prefix)
    2. .env file
    3. YAML configuration file (via CONFIG_PATH)
    4. Default values
    """

    model_config = SettingsConfigDict(
        env_prefix="OVERHAUL_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Log output format: json (production) or text (development)",
    )

    # Engine settings
    default_anticipation_hours: float = Field(
        default=50.0,
        gt=0,
        description="Warning window for parameters without a threshold config",
    )
    large_increment_hours: float = Field(
        default=100.0,
        gt=0,
        description="Single-call increments above this are logged as suspicious",
    )
    default_profile: ThresholdProfile = Field(
        default=ThresholdProfile.STANDARD,
        description="Profile used when deriving thresholds from an interval",
    )
    drift_tolerance_hours: float = Field(
        default=1.0,
        ge=0,
        description="Allowed gap between hours_at_last_overhaul and its cycle boundary",
    )

    # Fleet data
    fleet_file: Optional[str] = Field(
        default=None,
        description="YAML or JSON fleet document loaded by the CLI",
    )

    # Schedule settings
    schedule_cron: Optional[str] = Field(
        default=None,
        description="Cron expression for periodic fleet scans (e.g. '0 6 * * *')",
    )
    schedule_preset: Optional[str] = Field(
        default=None,
        description="Named schedule preset (daily_6am, every_shift, ...)",
    )
    schedule_timezone: str = Field(
        default="UTC",
        description="Timezone for scheduled scans",
    )

    # Report settings
    report_title: str = Field(
        default="Fleet Overhaul Alerts",
        description="Title printed at the top of alert reports",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlConfigSettingsSource(settings_cls),
        )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "WARN", "ERROR", "CRITICAL"}
        normalized = v.upper()
        if normalized == "WARN":
            normalized = "WARNING"
        if normalized not in valid_levels:
            raise ValueError(
                f"Invalid log level '{v}'. Must be one of: DEBUG, INFO, WARNING, ERROR"
            )
        return normalized

    @field_validator("default_profile", mode="before")
    @classmethod
    def normalize_profile(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v

    @model_validator(mode="after")
    def validate_schedule(self) -> "MonitorSettings":
        """Cron and preset are alternatives, not both."""
        if self.schedule_cron and self.schedule_preset:
            raise ValueError("Set either schedule_cron or schedule_preset, not both")
        return self
