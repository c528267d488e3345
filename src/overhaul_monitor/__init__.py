"""
Overhaul Monitor - Component lifecycle monitoring and overhaul alerts.

This package tracks flight-hour wear on installed aircraft components and
decides, per monitored parameter, which alert colour applies and whether an
overhaul is due.

Features:
- Hour propagation from an aircraft to its installed components and their
  monitored parameters, with per-item failure reporting
- Cycle-aware five-colour threshold model (purple/red/orange/yellow/green)
- Automatic threshold derivation and repair from the overhaul interval
- Fleet-wide alert aggregation
- Configuration via YAML with environment variable overrides
- Structured logging (JSON for production, text for development)
"""

__version__ = "0.3.0"
__all__ = ["__version__"]
