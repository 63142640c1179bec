"""
Dashboard Service — Cosmic Hub

Aggregation layer between the data source and the pure engines.
Admin / PM views apply project scope and merge the red flag feed; worker
views (blockers, dependency waits, focus queue) are keyed by assignee.
Holds no state between calls, so a realtime change notification only
needs to call it again.
"""

import logging
from collections import defaultdict
from collections.abc import Mapping
from datetime import datetime, timedelta

from cosmic_hub.config import DEFAULT_THRESHOLDS, RiskThresholds

from .clock import days_between, parse_timestamp, resolve_now
from .data_source import DashboardDataSource
from .deadline_engine import calculate_deadline_risk, get_overrun_anomaly_severity, sum_hours
from .dependency_engine import find_blockers, find_dependency_waits
from .focus_queue import FOCUS_STATUSES, build_focus_queue
from .red_flags_engine import (
    get_assignee,
    get_project_name,
    merge_and_sort_red_flags,
    process_anomaly_flags,
    process_blocker_flags,
    process_deadline_flags,
    process_pending_approval_flags,
    process_stale_flags,
    process_unassigned_flags,
)
from .scope import filter_by_project_ids, filter_requests_by_project_ids, resolve_project_scope
from .types import (
    BUCKET_RANK,
    BlockedSubtask,
    DashboardDeadline,
    DeadlineBucket,
    DependencyWait,
    FocusTask,
    RedFlag,
    RiskLevel,
)

logger = logging.getLogger(__name__)

DASHBOARD_SCOPES = ("admin", "pm")


def group_by_parent(subtasks: list[Mapping]) -> dict[str, list[Mapping]]:
    """Sibling sets keyed by parent_id."""
    grouped: dict[str, list[Mapping]] = defaultdict(list)
    for row in subtasks:
        parent_id = row.get("parent_id")
        if parent_id is not None:
            grouped[parent_id].append(row)
    return grouped


def group_dependencies(dependencies: list[Mapping]) -> dict[str, list[Mapping]]:
    """Dependency edges keyed by the dependent subtask id."""
    grouped: dict[str, list[Mapping]] = defaultdict(list)
    for dep in dependencies:
        dependent_id = dep.get("dependent_task_id")
        if dependent_id is None:
            continue
        grouped[str(dependent_id)].append(
            {
                "dependent_task_id": dependent_id,
                "depends_on_subtask": dep.get("depends_on_subtask"),
            }
        )
    return grouped


def last_activity(row: Mapping) -> datetime | None:
    """Latest of updated_at and any work log work_date."""
    stamps = [parse_timestamp(row.get("updated_at"))]
    stamps.extend(parse_timestamp(log.get("work_date")) for log in row.get("work_logs") or [])
    stamps = [s for s in stamps if s is not None]
    return max(stamps) if stamps else None


def deadline_bucket(due: datetime, now: datetime) -> DeadlineBucket:
    today_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
    if due < today_start:
        return DeadlineBucket.OVERDUE
    if due < today_start + timedelta(days=1):
        return DeadlineBucket.TODAY
    if due < today_start + timedelta(days=7):
        return DeadlineBucket.THIS_WEEK
    return DeadlineBucket.THIS_MONTH


class DashboardService:
    """Admin / PM feeds and worker views over one data source."""

    def __init__(
        self,
        source: DashboardDataSource,
        thresholds: RiskThresholds | None = None,
    ) -> None:
        self.source = source
        self.thresholds = thresholds or DEFAULT_THRESHOLDS

    def project_scope(self, user_id: str | None, role: str | None) -> list[str] | None:
        return resolve_project_scope(self.source, user_id, role)

    def _scoped_subtasks(self, scope: str, user_id: str | None) -> tuple[list[dict], list[str] | None]:
        if scope not in DASHBOARD_SCOPES:
            raise ValueError(f"Unknown dashboard scope: {scope!r}")
        subtasks = self.source.list_subtasks()
        if scope == "admin":
            return subtasks, None
        if not user_id:
            raise ValueError("pm scope requires a user_id")
        project_ids = self.source.list_managed_project_ids(user_id)
        return filter_by_project_ids(subtasks, project_ids), project_ids

    def red_flags(
        self,
        scope: str,
        user_id: str | None = None,
        now: datetime | None = None,
    ) -> list[RedFlag]:
        """Merged red flag feed for the admin (everything) or PM (managed projects) view."""
        t = self.thresholds
        current = resolve_now(now)

        subtasks, project_ids = self._scoped_subtasks(scope, user_id)
        dependencies = self.source.list_dependencies()
        requests = filter_requests_by_project_ids(
            self.source.list_pending_task_requests(), project_ids
        )

        siblings_by_parent = group_by_parent(subtasks)
        open_rows = [row for row in subtasks if row.get("status") != "done"]

        deadline_items = []
        anomaly_items = []
        for row in open_rows:
            work_logs = row.get("work_logs") or []
            hours_logged = sum_hours(work_logs)
            estimated = row.get("estimated_hours")
            status = row.get("status")

            if row.get("due_date"):
                risk = calculate_deadline_risk(
                    row,
                    work_logs,
                    siblings_by_parent.get(row.get("parent_id"), []),
                    now=current,
                    thresholds=t,
                )
                if risk.level in (RiskLevel.CRITICAL, RiskLevel.HIGH):
                    deadline_items.append({"subtask": row, "risk": risk})

            if status in ("todo", "in_progress") and estimated:
                severity = get_overrun_anomaly_severity(hours_logged, estimated, status, thresholds=t)
                if severity:
                    anomaly_items.append(
                        {"subtask": row, "hours_logged": hours_logged, "severity": severity}
                    )

        stale_items = []
        for row in open_rows:
            if row.get("status") != "in_progress":
                continue
            last = last_activity(row)
            if last is None:
                continue
            idle_days = days_between(current, last)
            if idle_days >= t.stale_medium_days:
                stale_items.append({"subtask": row, "days_without_activity": idle_days})

        unassigned_rows = [
            row
            for row in open_rows
            if row.get("status") == "todo"
            and not row.get("assigned_to")
            and (row.get("priority_stars") or 0) >= t.unassigned_medium_stars
        ]

        flags = merge_and_sort_red_flags(
            [
                *process_deadline_flags(deadline_items, now=current),
                *process_anomaly_flags(anomaly_items, now=current),
                *process_blocker_flags(
                    open_rows, group_dependencies(dependencies), now=current, thresholds=t
                ),
                *process_stale_flags(stale_items, now=current, thresholds=t),
                *process_unassigned_flags(unassigned_rows, now=current, thresholds=t),
                *process_pending_approval_flags(requests, now=current, thresholds=t),
            ]
        )
        logger.info(
            "Computed %d red flags",
            len(flags),
            extra={"scope": scope, "user_id": user_id, "subtasks": len(subtasks)},
        )
        return flags

    def deadline_timeline(
        self,
        scope: str,
        user_id: str | None = None,
        now: datetime | None = None,
    ) -> list[DashboardDeadline]:
        """Open subtasks with a due date, bucketed and ordered by urgency."""
        current = resolve_now(now)
        subtasks, _ = self._scoped_subtasks(scope, user_id)
        siblings_by_parent = group_by_parent(subtasks)

        deadlines = []
        for row in subtasks:
            if row.get("status") == "done":
                continue
            due = parse_timestamp(row.get("due_date"))
            if due is None:
                continue
            risk = calculate_deadline_risk(
                row,
                row.get("work_logs") or [],
                siblings_by_parent.get(row.get("parent_id"), []),
                now=current,
                thresholds=self.thresholds,
            )
            deadlines.append(
                DashboardDeadline(
                    id=str(row.get("id", "")),
                    name=row.get("name") or "",
                    due_date=row["due_date"],
                    risk=risk,
                    project_name=get_project_name(row),
                    bucket=deadline_bucket(due, current),
                    assigned_to=get_assignee(row),
                )
            )

        deadlines.sort(
            key=lambda d: (BUCKET_RANK[d.bucket], parse_timestamp(d.due_date).timestamp())
        )
        return deadlines

    # =========================================================================
    # WORKER VIEWS
    # =========================================================================

    def my_blockers(self, user_id: str | None) -> list[BlockedSubtask]:
        """The user's blocked subtasks with the subtasks they depend on."""
        return find_blockers(self.source.list_subtasks(), self.source.list_dependencies(), user_id)

    def my_dependency_waits(self, user_id: str | None) -> list[DependencyWait]:
        """Dependencies of the user's todo / in_progress subtasks that are not done."""
        return find_dependency_waits(
            self.source.list_subtasks(), self.source.list_dependencies(), user_id
        )

    def focus_queue(self, user_id: str | None, now: datetime | None = None) -> list[FocusTask]:
        """The user's open subtasks ordered by urgency score."""
        if not user_id:
            return []
        subtasks = self.source.list_subtasks()
        mine = [
            row
            for row in subtasks
            if row.get("assigned_to") == user_id and row.get("status") in FOCUS_STATUSES
        ]
        queue = build_focus_queue(
            mine,
            group_by_parent(subtasks),
            now=resolve_now(now),
            thresholds=self.thresholds,
        )
        logger.info("Built focus queue of %d subtasks", len(queue), extra={"user_id": user_id})
        return queue
