"""
Red Flags Engine — Cosmic Hub

Turns fetched rows into normalized RedFlag records. Six independent
generators, one per signal category, plus a merger that orders the feed.

Generators:
- deadline:          risk level critical/high
- anomaly:           logged hours past the estimate
- blocked:           blocked > 3 days = high, > 7 days = critical
- stale:             in progress with no activity 5-9 days = medium, 10+ = high
- unassigned:        priority 2 = medium, 3+ = high
- pending_approval:  task request open 3-7 days = medium, > 7 days = high

No data-source dependencies. Called by the dashboard service.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime
from typing import Any

from cosmic_hub.config import DEFAULT_THRESHOLDS, RiskThresholds

from .clock import days_between, isoformat_z, parse_timestamp, resolve_now, round_half_up
from .types import (
    SEVERITY_RANK,
    Assignee,
    DeadlineRisk,
    FlagMetrics,
    FlagSeverity,
    FlagType,
    RedFlag,
    RelatedEntity,
    RiskLevel,
)

logger = logging.getLogger(__name__)

UNKNOWN_PROJECT = "Unknown project"


def _nested(row: Mapping | None, *keys: str) -> Any:
    value: Any = row
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value


def get_project_name(row: Mapping) -> str:
    """Resolve the project name from whichever nesting the row carries."""
    return (
        _nested(row, "project", "name")
        or _nested(row, "module", "project", "name")
        or _nested(row, "parent_task", "module", "project", "name")
        or UNKNOWN_PROJECT
    )


def get_assignee(row: Mapping) -> Assignee | None:
    """Assignee from the embedded assigned_user row, if any."""
    user = row.get("assigned_user")
    if not isinstance(user, Mapping) or not user.get("id"):
        return None
    return Assignee(id=str(user["id"]), name=user.get("full_name") or "")


def _subtask_entity(row: Mapping) -> RelatedEntity:
    return RelatedEntity(type="subtask", id=str(row.get("id", "")), name=row.get("name") or "")


def _created_at(row: Mapping, fallback: datetime) -> str:
    return row.get("updated_at") or isoformat_z(fallback)


# =============================================================================
# GENERATORS
# =============================================================================


def process_deadline_flags(
    items: Iterable[Mapping],
    now: datetime | None = None,
) -> list[RedFlag]:
    """
    Deadline flags for subtasks whose risk is critical or high.

    items: [{"subtask": row, "risk": DeadlineRisk}]
    """
    current = resolve_now(now)
    flags = []
    for item in items:
        subtask, risk = item["subtask"], item["risk"]
        if risk.level not in (RiskLevel.CRITICAL, RiskLevel.HIGH):
            continue
        flags.append(
            RedFlag(
                id=f"deadline-{subtask.get('id')}",
                type=FlagType.DEADLINE,
                severity=FlagSeverity(risk.level),
                title=subtask.get("name") or "",
                description=risk.reason or f"Deadline risk: {risk.level}",
                related_entity=_subtask_entity(subtask),
                project_name=get_project_name(subtask),
                assigned_to=get_assignee(subtask),
                metrics=_deadline_metrics(risk),
                created_at=_created_at(subtask, current),
            )
        )
    return flags


def _deadline_metrics(risk: DeadlineRisk) -> FlagMetrics:
    return FlagMetrics(
        estimated=risk.estimated_hours or 0,
        logged=risk.hours_logged,
        percent=risk.effort_percent,
        days_left=risk.days_left or 0,
    )


def process_anomaly_flags(
    items: Iterable[Mapping],
    now: datetime | None = None,
) -> list[RedFlag]:
    """
    Time overrun flags.

    items: [{"subtask": row, "hours_logged": float, "severity": FlagSeverity}]
    The description carries the logged hours and the overrun percentage.
    """
    current = resolve_now(now)
    flags = []
    for item in items:
        subtask = item["subtask"]
        hours_logged = item["hours_logged"]
        estimated = subtask.get("estimated_hours") or 0
        percent = round_half_up(hours_logged / estimated * 100) if estimated > 0 else 0
        overrun = percent - 100 if estimated > 0 else 0
        flags.append(
            RedFlag(
                id=f"anomaly-{subtask.get('id')}",
                type=FlagType.ANOMALY,
                severity=FlagSeverity(item["severity"]),
                title=subtask.get("name") or "",
                description=(
                    f"Estimated {estimated}h, logged {hours_logged}h "
                    f"({percent}% of estimate, +{overrun}% over)"
                ),
                related_entity=_subtask_entity(subtask),
                project_name=get_project_name(subtask),
                assigned_to=get_assignee(subtask),
                metrics=FlagMetrics(estimated=estimated, logged=hours_logged, percent=percent),
                created_at=isoformat_z(current),
            )
        )
    return flags


def process_blocker_flags(
    subtasks: Iterable[Mapping],
    dependencies_by_subtask: Mapping[str, Sequence[Mapping]] | None = None,
    now: datetime | None = None,
    thresholds: RiskThresholds | None = None,
) -> list[RedFlag]:
    """
    Blocked subtask flags, aged from updated_at.

    <= 3 days medium, (3, 7] high, > 7 critical. Blocking subtask names are
    added to the description when dependency data exists.
    """
    t = thresholds or DEFAULT_THRESHOLDS
    current = resolve_now(now)
    deps_map = dependencies_by_subtask or {}
    flags = []

    for subtask in subtasks:
        if subtask.get("status") != "blocked":
            continue

        blocked_at = parse_timestamp(subtask.get("updated_at"))
        days_blocked = days_between(current, blocked_at) if blocked_at else 0.0
        # 2 decimals keeps exact-boundary inputs on the boundary
        days_rounded = round(days_blocked, 2)

        if days_rounded > t.blocked_critical_days:
            severity = FlagSeverity.CRITICAL
        elif days_rounded > t.blocked_high_days:
            severity = FlagSeverity.HIGH
        else:
            severity = FlagSeverity.MEDIUM

        blocker_names = ", ".join(
            name
            for dep in deps_map.get(str(subtask.get("id")), [])
            if (name := _nested(dep, "depends_on_subtask", "name"))
        )
        days_label = round_half_up(days_blocked)
        description = (
            f"Blocked by: {blocker_names} ({days_label} days)"
            if blocker_names
            else f"Blocked for {days_label} days"
        )

        flags.append(
            RedFlag(
                id=f"blocked-{subtask.get('id')}",
                type=FlagType.BLOCKED,
                severity=severity,
                title=subtask.get("name") or "",
                description=description,
                related_entity=_subtask_entity(subtask),
                project_name=get_project_name(subtask),
                assigned_to=get_assignee(subtask),
                metrics=FlagMetrics(days_left=-days_rounded),
                created_at=_created_at(subtask, current),
            )
        )
    return flags


def process_stale_flags(
    items: Iterable[Mapping],
    now: datetime | None = None,
    thresholds: RiskThresholds | None = None,
) -> list[RedFlag]:
    """
    Stale work flags.

    items: [{"subtask": row, "days_without_activity": float}]
    < 5 days no flag, [5, 10) medium, >= 10 high.
    """
    t = thresholds or DEFAULT_THRESHOLDS
    current = resolve_now(now)
    flags = []
    for item in items:
        subtask = item["subtask"]
        days = item["days_without_activity"]
        if days < t.stale_medium_days:
            continue
        severity = FlagSeverity.HIGH if days >= t.stale_high_days else FlagSeverity.MEDIUM
        flags.append(
            RedFlag(
                id=f"stale-{subtask.get('id')}",
                type=FlagType.STALE,
                severity=severity,
                title=subtask.get("name") or "",
                description=f"No activity for {round_half_up(days)} days",
                related_entity=_subtask_entity(subtask),
                project_name=get_project_name(subtask),
                assigned_to=get_assignee(subtask),
                metrics=FlagMetrics(days_left=-days),
                created_at=_created_at(subtask, current),
            )
        )
    return flags


def process_unassigned_flags(
    subtasks: Iterable[Mapping],
    now: datetime | None = None,
    thresholds: RiskThresholds | None = None,
) -> list[RedFlag]:
    """Unassigned priority work: 2 stars = medium, 3+ stars = high."""
    t = thresholds or DEFAULT_THRESHOLDS
    current = resolve_now(now)
    flags = []
    for subtask in subtasks:
        if subtask.get("assigned_to"):
            continue
        stars = subtask.get("priority_stars") or 0
        if stars >= t.unassigned_high_stars:
            severity = FlagSeverity.HIGH
        elif stars >= t.unassigned_medium_stars:
            severity = FlagSeverity.MEDIUM
        else:
            continue
        flags.append(
            RedFlag(
                id=f"unassigned-{subtask.get('id')}",
                type=FlagType.UNASSIGNED,
                severity=severity,
                title=subtask.get("name") or "",
                description=f"Priority {stars} stars, unassigned",
                related_entity=_subtask_entity(subtask),
                project_name=get_project_name(subtask),
                created_at=isoformat_z(current),
            )
        )
    return flags


def process_pending_approval_flags(
    requests: Iterable[Mapping],
    now: datetime | None = None,
    thresholds: RiskThresholds | None = None,
) -> list[RedFlag]:
    """Task requests awaiting approval: 3-7 days = medium, > 7 days = high."""
    t = thresholds or DEFAULT_THRESHOLDS
    current = resolve_now(now)
    flags = []
    for req in requests:
        created = parse_timestamp(req.get("created_at"))
        if created is None:
            continue
        days_pending = days_between(current, created)
        if days_pending > t.pending_high_days:
            severity = FlagSeverity.HIGH
        elif days_pending >= t.pending_medium_days:
            severity = FlagSeverity.MEDIUM
        else:
            continue
        flags.append(
            RedFlag(
                id=f"pending-{req.get('id')}",
                type=FlagType.PENDING_APPROVAL,
                severity=severity,
                title=req.get("task_name") or "",
                description=f"Pending for {round_half_up(days_pending)} days",
                related_entity=RelatedEntity(
                    type="task", id=str(req.get("id", "")), name=req.get("task_name") or ""
                ),
                project_name=_nested(req, "module", "project", "name") or UNKNOWN_PROJECT,
                created_at=req.get("created_at") or "",
            )
        )
    return flags


# =============================================================================
# MERGE
# =============================================================================


def _recency_key(flag: RedFlag) -> float:
    created = parse_timestamp(flag.created_at)
    # Unparseable timestamps sort after everything else in their tier
    return -created.timestamp() if created else float("inf")


def merge_and_sort_red_flags(flags: Iterable[RedFlag]) -> list[RedFlag]:
    """
    Merge flags into one feed: severity (critical > high > medium),
    then most recent first. Returns a new list; the input is untouched.
    """
    merged = sorted(
        flags,
        key=lambda f: (SEVERITY_RANK.get(f.severity, len(SEVERITY_RANK)), _recency_key(f)),
    )
    logger.debug("Merged %d red flags", len(merged))
    return merged
