"""
Dashboard analytics: deadline risk, red flags, project scope and the
worker views (blockers, dependency waits, focus queue).

Usage:
    from cosmic_hub.dashboard import DashboardService, load_snapshot

    service = DashboardService(load_snapshot("snapshot.json"))
    flags = service.red_flags("pm", user_id="u-42")
"""

from .data_source import DashboardDataSource, DataSourceError, InMemoryDataSource, load_snapshot
from .deadline_engine import (
    calculate_deadline_risk,
    calculate_remaining_hours,
    calculate_task_metrics,
    get_overrun_anomaly_severity,
)
from .dependency_engine import find_blockers, find_dependency_waits
from .focus_queue import build_focus_queue, get_category, get_urgency_score
from .red_flags_engine import (
    merge_and_sort_red_flags,
    process_anomaly_flags,
    process_blocker_flags,
    process_deadline_flags,
    process_pending_approval_flags,
    process_stale_flags,
    process_unassigned_flags,
)
from .scope import UserRole, filter_by_project_ids, resolve_project_scope
from .service import DashboardService
from .types import (
    BlockedSubtask,
    DashboardDeadline,
    DeadlineBucket,
    DeadlineRisk,
    DependencyWait,
    FlagSeverity,
    FlagType,
    FocusCategory,
    FocusTask,
    RedFlag,
    RiskLevel,
    TaskMetrics,
)

__all__ = [
    # Data access
    "DashboardDataSource",
    "DataSourceError",
    "InMemoryDataSource",
    "load_snapshot",
    # Deadline engine
    "calculate_remaining_hours",
    "calculate_task_metrics",
    "calculate_deadline_risk",
    "get_overrun_anomaly_severity",
    # Red flags engine
    "process_deadline_flags",
    "process_anomaly_flags",
    "process_blocker_flags",
    "process_stale_flags",
    "process_unassigned_flags",
    "process_pending_approval_flags",
    "merge_and_sort_red_flags",
    # Worker views
    "find_blockers",
    "find_dependency_waits",
    "build_focus_queue",
    "get_urgency_score",
    "get_category",
    # Scope / service
    "UserRole",
    "resolve_project_scope",
    "filter_by_project_ids",
    "DashboardService",
    # Types
    "BlockedSubtask",
    "DashboardDeadline",
    "DeadlineBucket",
    "DeadlineRisk",
    "DependencyWait",
    "FocusCategory",
    "FocusTask",
    "FlagSeverity",
    "FlagType",
    "RedFlag",
    "RiskLevel",
    "TaskMetrics",
]
