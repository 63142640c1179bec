"""
Timestamp helpers shared by the dashboard engines.

Backend rows carry ISO-8601 strings (with or without a trailing Z, with or
without an offset). Naive values are taken as UTC. Callers inject `now` so
results are reproducible; when they do not, the clock is read once per call.
"""

import logging
import math
from datetime import UTC, datetime

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


def utc_now() -> datetime:
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def resolve_now(now: datetime | None) -> datetime:
    return ensure_aware(now) if now is not None else utc_now()


def parse_timestamp(value: str | datetime | None) -> datetime | None:
    """Parse an ISO timestamp. Returns None for missing or unparseable input."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_aware(value)
    try:
        return ensure_aware(datetime.fromisoformat(str(value).replace("Z", "+00:00")))
    except (ValueError, TypeError) as e:
        logger.debug(f"Could not parse timestamp '{value}': {e}")
        return None


def days_between(later: datetime, earlier: datetime) -> float:
    """Fractional calendar days from earlier to later (negative if reversed)."""
    return (later - earlier).total_seconds() / SECONDS_PER_DAY


def isoformat_z(value: datetime) -> str:
    """Render a UTC timestamp the way the backend does (trailing Z)."""
    return ensure_aware(value).isoformat().replace("+00:00", "Z")


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward +inf (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)
