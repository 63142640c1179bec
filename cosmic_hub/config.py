"""
Centralized configuration for Cosmic Hub.

Deployment values are read from environment variables where marked.
Risk heuristics are grouped in RiskThresholds so callers can tune them
without touching the engines.
"""

import logging
import os
from dataclasses import dataclass, fields

logger = logging.getLogger(__name__)

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("COSMIC_HUB_LOG_LEVEL", "INFO")
"""Root log level for the API server and CLI."""

LOG_JSON: str | None = os.environ.get("COSMIC_HUB_LOG_JSON")
"""'1' forces JSON logs, '0' forces human logs, unset auto-detects from the TTY."""

# ============================================================
# Data
# ============================================================

SNAPSHOT_PATH: str | None = os.environ.get("COSMIC_HUB_SNAPSHOT")
"""JSON snapshot served by the API when no data source is injected."""

CORS_ORIGINS: list[str] = [
    o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()
]
"""Allowed CORS origins for the dashboard API."""


# ============================================================
# Risk heuristics
# ============================================================


@dataclass(frozen=True)
class RiskThresholds:
    """
    Business heuristics used by the deadline and red flag engines.

    Defaults match the numbers the dashboard has always used; every field
    can be overridden with COSMIC_HUB_<FIELD_NAME_UPPER>.
    """

    work_hours_per_day: float = 8.0

    # Conservative remaining-hours floor once a task overruns its estimate
    overrun_estimate_floor: float = 0.25
    overrun_logged_floor: float = 0.15

    # Deadline risk buckets (days) and availability ratios
    critical_overrun_days: float = 3.0
    high_capacity_days: float = 3.0
    high_capacity_ratio: float = 0.8
    high_completion_days: float = 7.0
    high_completion_percent: float = 30.0
    medium_capacity_days: float = 7.0
    medium_capacity_ratio: float = 0.6
    medium_completion_days: float = 14.0
    medium_completion_percent: float = 20.0
    low_days: float = 14.0

    # Risk without an estimate: days only
    no_estimate_high_days: float = 2.0
    no_estimate_medium_days: float = 7.0

    # Overrun anomaly ratios (logged / estimated)
    anomaly_high_ratio: float = 1.5
    anomaly_critical_ratio: float = 2.0

    # Red flag ageing (days)
    blocked_high_days: float = 3.0
    blocked_critical_days: float = 7.0
    stale_medium_days: float = 5.0
    stale_high_days: float = 10.0
    pending_medium_days: float = 3.0
    pending_high_days: float = 7.0

    # Unassigned work (priority stars)
    unassigned_medium_stars: int = 2
    unassigned_high_stars: int = 3

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}


DEFAULT_THRESHOLDS = RiskThresholds()


def get_thresholds(environ: dict[str, str] | None = None) -> RiskThresholds:
    """
    Build RiskThresholds from defaults plus environment overrides.

    Invalid override values are logged and ignored.
    """
    env = os.environ if environ is None else environ
    overrides: dict[str, float | int] = {}

    for f in fields(RiskThresholds):
        raw = env.get(f"COSMIC_HUB_{f.name.upper()}")
        if raw is None:
            continue
        cast = int if f.type in (int, "int") else float
        try:
            overrides[f.name] = cast(raw)
        except ValueError:
            logger.warning("Ignoring invalid threshold override %s=%r", f.name, raw)

    if not overrides:
        return DEFAULT_THRESHOLDS
    return RiskThresholds(**overrides)
