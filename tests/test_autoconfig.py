"""Tests for threshold auto-configuration."""

import pytest
from structlog.testing import capture_logs

from overhaul_monitor.analysis.autoconfig import (
    derive_defaults,
    from_legacy_criticality,
    validate_and_repair,
)
from overhaul_monitor.exceptions import InvalidConfigurationError
from overhaul_monitor.models.enums import LegacyCriticality, ThresholdProfile, Unit
from overhaul_monitor.models.parameter import ThresholdConfig


class TestDeriveDefaults:
    """Tests for derive_defaults()."""

    def test_standard_profile_fractions(self):
        config = derive_defaults(50, ThresholdProfile.STANDARD)
        assert config.unit == Unit.HOURS
        assert (config.purple, config.red, config.orange, config.yellow, config.green) == (
            10,
            20,
            15,
            10,
            0,
        )

    def test_conservative_alerts_earlier(self):
        conservative = derive_defaults(500, ThresholdProfile.CONSERVATIVE)
        standard = derive_defaults(500, ThresholdProfile.STANDARD)
        assert conservative.red == 300
        assert conservative.red > standard.red

    def test_aggressive_profile(self):
        config = derive_defaults(500, "AGGRESSIVE")
        assert (config.purple, config.red, config.orange, config.yellow) == (50, 150, 100, 50)

    def test_bands_floored_at_one(self):
        config = derive_defaults(2, ThresholdProfile.AGGRESSIVE)
        assert (config.purple, config.red, config.orange, config.yellow) == (1, 1, 1, 1)
        assert config.green == 0

    def test_rounds_half_up(self):
        config = derive_defaults(25, ThresholdProfile.STANDARD)
        assert config.orange == 8

    @pytest.mark.parametrize("interval", [0, -50])
    def test_non_positive_interval_rejected(self, interval):
        with pytest.raises(InvalidConfigurationError):
            derive_defaults(interval)

    def test_derived_config_passes_ordering_check(self):
        for profile in ThresholdProfile:
            assert derive_defaults(500, profile).ordering_errors(strict=True) == []


class TestValidateAndRepair:
    """Tests for validate_and_repair()."""

    def test_red_larger_than_interval_is_replaced(self):
        """A config sized against the life limit is swapped for interval defaults."""
        with capture_logs() as logs:
            result = validate_and_repair(ThresholdConfig(red=150), 50, 2000)

        assert result.repaired is True
        assert result.config == derive_defaults(50, ThresholdProfile.STANDARD)
        assert "150" in result.reason

        repaired_events = [log for log in logs if log["event"] == "threshold_config_repaired"]
        assert len(repaired_events) == 1
        assert repaired_events[0]["log_level"] == "warning"
        assert repaired_events[0]["interval_hours"] == 50
        assert repaired_events[0]["limit_value"] == 2000

    def test_valid_config_untouched(self):
        config = ThresholdConfig(red=40, orange=20, yellow=10)
        with capture_logs() as logs:
            result = validate_and_repair(config, 50, 2000)

        assert result.repaired is False
        assert result.config is config
        assert logs == []

    def test_red_equal_to_interval_is_valid(self):
        config = ThresholdConfig(red=50)
        assert validate_and_repair(config, 50, 2000).repaired is False

    def test_missing_config_gets_defaults_without_repair_flag(self):
        result = validate_and_repair(None, 500, 5000)
        assert result.repaired is False
        assert result.config == derive_defaults(500)

    def test_percent_config_not_compared_to_hours(self):
        config = ThresholdConfig(unit=Unit.PERCENT, red=95, orange=85, yellow=75)
        assert validate_and_repair(config, 50, 2000).repaired is False


class TestLegacyCriticality:
    """Tests for from_legacy_criticality()."""

    def test_high_criticality_multipliers(self):
        config = from_legacy_criticality(LegacyCriticality.HIGH, 50)
        assert (config.purple, config.red, config.orange, config.yellow, config.green) == (
            150,
            100,
            75,
            60,
            50,
        )
        assert "HIGH" in config.descriptions.red

    def test_every_level_is_descending(self):
        for level in LegacyCriticality:
            config = from_legacy_criticality(level, 40)
            assert config.ordering_errors(strict=True) == []
