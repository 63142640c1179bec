"""
Focus Queue — Cosmic Hub

Prioritized list of a worker's open subtasks. Each subtask gets an
urgency score; the first matching rule wins:

    100  overdue
     90  due today (UTC calendar day)
     80  due within 7 days and deadline risk high/critical
     60  in progress
     50  priority >= 2.5 stars
     40  due within 7 days
     10  everything else

The score maps to a display category; 40 and 10 both land in "normal".
"""

import logging
import math
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta

from cosmic_hub.config import DEFAULT_THRESHOLDS, RiskThresholds

from .clock import SECONDS_PER_DAY, parse_timestamp, resolve_now
from .deadline_engine import calculate_deadline_risk, sum_hours
from .red_flags_engine import get_project_name
from .types import FocusCategory, FocusTask, RiskLevel

logger = logging.getLogger(__name__)

FOCUS_STATUSES = ("todo", "in_progress", "blocked")
HIGH_PRIORITY_STARS = 2.5
DEFAULT_PRIORITY_STARS = 1
WEEK = timedelta(days=7)

SCORE_OVERDUE = 100
SCORE_DUE_TODAY = 90
SCORE_AT_RISK_THIS_WEEK = 80
SCORE_IN_PROGRESS = 60
SCORE_HIGH_PRIORITY = 50
SCORE_DUE_THIS_WEEK = 40
SCORE_NORMAL = 10

# Lowest score of each category, checked top-down
CATEGORY_FLOORS = (
    (SCORE_OVERDUE, FocusCategory.OVERDUE),
    (SCORE_DUE_TODAY, FocusCategory.DUE_TODAY),
    (SCORE_AT_RISK_THIS_WEEK, FocusCategory.DUE_THIS_WEEK),
    (SCORE_IN_PROGRESS, FocusCategory.IN_PROGRESS),
    (SCORE_HIGH_PRIORITY, FocusCategory.HIGH_PRIORITY),
)

CATEGORY_REASONS = {
    FocusCategory.DUE_TODAY: "Due today",
    FocusCategory.DUE_THIS_WEEK: "Due this week",
    FocusCategory.IN_PROGRESS: "In progress",
    FocusCategory.HIGH_PRIORITY: "High priority",
    FocusCategory.NORMAL: "Normal",
}


def is_overdue(due: datetime | None, now: datetime) -> bool:
    return due is not None and due < now


def is_due_today(due: datetime | None, now: datetime) -> bool:
    return due is not None and due.date() == now.date()


def is_due_this_week(due: datetime | None, now: datetime) -> bool:
    return due is not None and now <= due <= now + WEEK


def priority_stars(row: Mapping) -> float:
    stars = row.get("priority_stars")
    return DEFAULT_PRIORITY_STARS if stars is None else stars


def get_urgency_score(row: Mapping, risk_level: RiskLevel | str, now: datetime | None = None) -> int:
    current = resolve_now(now)
    due = parse_timestamp(row.get("due_date"))

    if is_overdue(due, current):
        return SCORE_OVERDUE
    if is_due_today(due, current):
        return SCORE_DUE_TODAY
    if is_due_this_week(due, current) and risk_level in (RiskLevel.HIGH, RiskLevel.CRITICAL):
        return SCORE_AT_RISK_THIS_WEEK
    if row.get("status") == "in_progress":
        return SCORE_IN_PROGRESS
    if priority_stars(row) >= HIGH_PRIORITY_STARS:
        return SCORE_HIGH_PRIORITY
    if is_due_this_week(due, current):
        return SCORE_DUE_THIS_WEEK
    return SCORE_NORMAL


def get_category(score: int) -> FocusCategory:
    for floor, category in CATEGORY_FLOORS:
        if score >= floor:
            return category
    return FocusCategory.NORMAL


def get_urgency_reason(row: Mapping, category: FocusCategory, now: datetime | None = None) -> str:
    if category != FocusCategory.OVERDUE:
        return CATEGORY_REASONS[category]

    due = parse_timestamp(row.get("due_date"))
    if due is None:
        return "Overdue"
    days = math.ceil((resolve_now(now) - due).total_seconds() / SECONDS_PER_DAY)
    return f"Overdue by {days} day{'' if days == 1 else 's'}"


def _due_sort_key(task: FocusTask) -> tuple:
    due = parse_timestamp(task.due_date)
    # Highest score first; within a score, earliest due date, undated last
    return (-task.urgency_score, due is None, due.timestamp() if due else 0.0)


def build_focus_queue(
    rows: Iterable[Mapping],
    siblings_by_parent: Mapping[str, Sequence[Mapping]] | None = None,
    now: datetime | None = None,
    thresholds: RiskThresholds | None = None,
) -> list[FocusTask]:
    """
    Score and order a worker's subtasks.

    rows should already be limited to the worker; rows outside
    FOCUS_STATUSES are skipped.
    """
    t = thresholds or DEFAULT_THRESHOLDS
    current = resolve_now(now)
    siblings_by_parent = siblings_by_parent or {}

    tasks = []
    for row in rows:
        status = row.get("status")
        if status not in FOCUS_STATUSES:
            continue
        work_logs = row.get("work_logs") or []
        risk = calculate_deadline_risk(
            row,
            work_logs,
            siblings_by_parent.get(row.get("parent_id"), []),
            now=current,
            thresholds=t,
        )
        score = get_urgency_score(row, risk.level, current)
        category = get_category(score)
        tasks.append(
            FocusTask(
                id=str(row.get("id", "")),
                name=row.get("name") or "",
                status=status,
                priority_stars=priority_stars(row),
                due_date=row.get("due_date"),
                project_name=get_project_name(row),
                urgency_score=score,
                urgency_reason=get_urgency_reason(row, category, current),
                category=category,
                deadline_risk=risk,
                hours_logged=sum_hours(work_logs),
                estimated_hours=row.get("estimated_hours"),
                parent_task_name=(row.get("parent_task") or {}).get("name"),
                module_name=((row.get("parent_task") or {}).get("module") or {}).get("name"),
            )
        )

    tasks.sort(key=_due_sort_key)
    logger.debug("Scored %d focus tasks", len(tasks))
    return tasks
