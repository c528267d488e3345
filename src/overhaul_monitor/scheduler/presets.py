"""Schedule presets for periodic fleet scans."""

from typing import Any, Dict, List, Optional

# Cron-style parameters, aligned with typical maintenance shift changes
SCHEDULE_PRESETS: Dict[str, Dict[str, Any]] = {
    "hourly": {"minute": 0},
    "daily_6am": {"hour": 6, "minute": 0},
    "every_shift": {"hour": "6,14,22", "minute": 0},
    "weekly_monday_6am": {"day_of_week": "mon", "hour": 6, "minute": 0},
}


def get_preset(name: str) -> Optional[Dict[str, Any]]:
    """Get schedule preset by name, or None if unknown."""
    return SCHEDULE_PRESETS.get(name)


def list_presets() -> List[str]:
    return list(SCHEDULE_PRESETS.keys())
