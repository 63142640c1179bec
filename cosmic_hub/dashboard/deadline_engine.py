"""
Deadline Risk Engine — Cosmic Hub

Pure logic over already-fetched rows:
- real remaining hours (linear under estimate, extrapolated once overrun)
- effort / parent-task completion metrics
- deadline risk level with a human reason
- overrun anomaly severity

No data-source dependencies. Safe to call concurrently.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime

from cosmic_hub.config import DEFAULT_THRESHOLDS, RiskThresholds

from .clock import days_between, parse_timestamp, resolve_now, round_half_up
from .types import DeadlineRisk, FlagSeverity, RiskLevel, TaskMetrics

logger = logging.getLogger(__name__)

DONE = "done"
IN_PROGRESS = "in_progress"


def sum_hours(work_logs: Iterable[Mapping] | None) -> float:
    """Total hours_spent across work log rows; missing values count as 0."""
    return sum((log.get("hours_spent") or 0) for log in (work_logs or []))


def sibling_completion(siblings: Sequence[Mapping] | None) -> float | None:
    """
    Fraction of sibling subtasks that are done.

    Returns None when siblings cannot inform a velocity estimate: fewer than
    two rows (only the task itself), nothing done yet, or everything done
    while the current task is still open.
    """
    if not siblings or len(siblings) < 2:
        return None
    done_count = sum(1 for s in siblings if s.get("status") == DONE)
    if done_count == 0 or done_count == len(siblings):
        return None
    return done_count / len(siblings)


def calculate_remaining_hours(
    task: Mapping,
    work_logs: Iterable[Mapping] | None,
    siblings: Sequence[Mapping] | None = None,
    thresholds: RiskThresholds | None = None,
) -> float | None:
    """
    Realistic remaining hours for a subtask.

    Path A (under estimate): estimated - logged.
    Path B (overrun): extrapolate total effort from sibling completion,
    or fall back to a conservative floor when siblings are unusable.
    """
    t = thresholds or DEFAULT_THRESHOLDS
    if task.get("status") == DONE:
        return 0
    estimated = task.get("estimated_hours")
    if estimated is None:
        return None

    hours_logged = sum_hours(work_logs)
    if hours_logged < estimated:
        return estimated - hours_logged

    completion = sibling_completion(siblings)
    if completion:
        projected_total = hours_logged / completion
        return max(0, projected_total - hours_logged)

    return max(estimated * t.overrun_estimate_floor, hours_logged * t.overrun_logged_floor)


def calculate_task_metrics(
    task: Mapping,
    hours_logged: float,
    siblings: Sequence[Mapping] | None = None,
) -> TaskMetrics:
    """Effort percent (logged vs. estimate) and parent task completion percent."""
    estimated = task.get("estimated_hours") or 0
    effort_percent = round_half_up(hours_logged / estimated * 100) if estimated > 0 else 0

    if siblings:
        done_count = sum(1 for s in siblings if s.get("status") == DONE)
        task_completion_percent = round_half_up(done_count / len(siblings) * 100)
    else:
        status = task.get("status")
        task_completion_percent = 100 if status == DONE else 50 if status == IN_PROGRESS else 0

    return TaskMetrics(
        effort_percent=effort_percent,
        task_completion_percent=task_completion_percent,
    )


def _risk_level(
    days_left: float | None,
    remaining: float | None,
    estimated: float | None,
    status: str | None,
    is_overrun: bool,
    completion_percent: float,
    t: RiskThresholds,
) -> RiskLevel:
    if status == DONE or days_left is None:
        return RiskLevel.NONE
    if days_left < 0:
        return RiskLevel.CRITICAL
    if is_overrun and days_left <= t.critical_overrun_days:
        return RiskLevel.CRITICAL

    if estimated is None:
        # No hour baseline: days are the only signal
        if days_left <= t.no_estimate_high_days:
            return RiskLevel.HIGH
        if days_left <= t.no_estimate_medium_days:
            return RiskLevel.MEDIUM
        return RiskLevel.NONE

    available_hours = days_left * t.work_hours_per_day
    if (
        days_left <= t.high_capacity_days
        and remaining is not None
        and remaining > available_hours * t.high_capacity_ratio
    ):
        return RiskLevel.HIGH
    if days_left <= t.high_completion_days and completion_percent < t.high_completion_percent:
        return RiskLevel.HIGH
    if (
        days_left <= t.medium_capacity_days
        and remaining is not None
        and remaining > available_hours * t.medium_capacity_ratio
    ):
        return RiskLevel.MEDIUM
    if days_left <= t.medium_completion_days and completion_percent < t.medium_completion_percent:
        return RiskLevel.MEDIUM
    if days_left <= t.low_days:
        return RiskLevel.LOW
    return RiskLevel.NONE


def _build_reason(
    level: RiskLevel,
    days_left: float | None,
    is_overrun: bool,
    effort_percent: int,
) -> str:
    if level == RiskLevel.NONE:
        return ""
    if days_left is None:
        return "Approaching deadline"

    days = round_half_up(days_left)
    if days_left < 0:
        return f"Overdue by {abs(days)} days"
    if level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
        if is_overrun:
            return f"{effort_percent}% of estimate, still in progress"
        if days_left <= 1:
            return "Due tomorrow or today"
        if days_left <= 3:
            return f"Due in {days} days"
        return f"Due in {days} days, low completion"
    if level == RiskLevel.MEDIUM:
        return f"Due in {days} days"
    return f"Due in {days} days, on track"


def calculate_deadline_risk(
    task: Mapping,
    work_logs: Iterable[Mapping] | None,
    siblings: Sequence[Mapping] | None = None,
    now: datetime | None = None,
    thresholds: RiskThresholds | None = None,
) -> DeadlineRisk:
    """
    Full deadline risk for a subtask.

    Precedence: done / no due date -> none; overdue -> critical;
    overrun within the critical window -> critical; then estimate-less
    day buckets, or capacity and completion rules.
    """
    t = thresholds or DEFAULT_THRESHOLDS
    work_logs = list(work_logs or [])
    hours_logged = sum_hours(work_logs)
    estimated = task.get("estimated_hours")
    status = task.get("status")
    is_overrun = estimated is not None and hours_logged >= estimated and status != DONE

    metrics = calculate_task_metrics(task, hours_logged, siblings)

    days_left: float | None = None
    due = parse_timestamp(task.get("due_date"))
    if due is not None:
        days_left = days_between(due, resolve_now(now))

    remaining = calculate_remaining_hours(task, work_logs, siblings, thresholds=t)

    projected_total: float | None = None
    if is_overrun:
        completion = sibling_completion(siblings)
        if completion:
            projected_total = hours_logged / completion

    level = _risk_level(
        days_left,
        remaining,
        estimated,
        status,
        is_overrun,
        metrics.task_completion_percent,
        t,
    )
    reason = _build_reason(level, days_left, is_overrun, metrics.effort_percent)

    if level != RiskLevel.NONE:
        logger.debug(
            "Deadline risk %s (%s) days_left=%s remaining=%s",
            level,
            reason,
            days_left,
            remaining,
        )

    return DeadlineRisk(
        level=level,
        reason=reason,
        is_overrun=is_overrun,
        hours_logged=hours_logged,
        hours_remaining=remaining,
        days_left=round(days_left, 1) if days_left is not None else None,
        estimated_hours=estimated,
        effort_percent=metrics.effort_percent,
        task_completion_percent=metrics.task_completion_percent,
        projected_total=projected_total,
    )


def get_overrun_anomaly_severity(
    hours_logged: float,
    estimated_hours: float | None,
    status: str | None,
    thresholds: RiskThresholds | None = None,
) -> FlagSeverity | None:
    """
    Severity of an effort overrun, or None when there is no overrun.

    ratio = logged / estimated:
      (1.0, 1.5) -> medium, [1.5, 2.0) -> high, >= 2.0 -> critical
    """
    t = thresholds or DEFAULT_THRESHOLDS
    if status == DONE or not estimated_hours:
        return None
    if hours_logged <= estimated_hours:
        return None

    ratio = hours_logged / estimated_hours
    if ratio >= t.anomaly_critical_ratio:
        return FlagSeverity.CRITICAL
    if ratio >= t.anomaly_high_ratio:
        return FlagSeverity.HIGH
    return FlagSeverity.MEDIUM
