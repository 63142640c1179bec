"""
Dashboard types — Cosmic Hub

Output records produced by the deadline and red flag engines. Inputs are
plain row mappings coming straight from the backend and are never mutated.
"""

from dataclasses import dataclass, field
from enum import StrEnum


class RiskLevel(StrEnum):
    """Deadline risk classification."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    NONE = "none"


class FlagSeverity(StrEnum):
    """Red flag severity. Order of declaration is sort priority."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


class FlagType(StrEnum):
    """Signal category a red flag was raised from."""

    DEADLINE = "deadline"
    ANOMALY = "anomaly"
    BLOCKED = "blocked"
    STALE = "stale"
    UNASSIGNED = "unassigned"
    PENDING_APPROVAL = "pending_approval"


class FocusCategory(StrEnum):
    """Worker focus queue section, derived from the urgency score."""

    OVERDUE = "overdue"
    DUE_TODAY = "due_today"
    DUE_THIS_WEEK = "due_this_week"
    IN_PROGRESS = "in_progress"
    HIGH_PRIORITY = "high_priority"
    NORMAL = "normal"


class DeadlineBucket(StrEnum):
    """Timeline bucket for an upcoming deadline."""

    OVERDUE = "overdue"
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"


SEVERITY_RANK: dict[str, int] = {
    FlagSeverity.CRITICAL: 0,
    FlagSeverity.HIGH: 1,
    FlagSeverity.MEDIUM: 2,
}

BUCKET_RANK: dict[str, int] = {
    DeadlineBucket.OVERDUE: 0,
    DeadlineBucket.TODAY: 1,
    DeadlineBucket.THIS_WEEK: 2,
    DeadlineBucket.THIS_MONTH: 3,
}


@dataclass
class TaskMetrics:
    """Effort spent vs. estimate, and completion of the parent task."""

    effort_percent: int = 0
    task_completion_percent: int = 0

    def to_dict(self) -> dict:
        return {
            "effort_percent": self.effort_percent,
            "task_completion_percent": self.task_completion_percent,
        }


@dataclass
class DeadlineRisk:
    """
    Deadline risk for a single subtask.

    level is always NONE for done subtasks and for subtasks without a due date.
    """

    level: RiskLevel = RiskLevel.NONE
    reason: str = ""
    is_overrun: bool = False
    hours_logged: float = 0.0
    hours_remaining: float | None = None
    days_left: float | None = None
    estimated_hours: float | None = None
    effort_percent: int = 0
    task_completion_percent: int = 0
    projected_total: float | None = None

    def to_dict(self) -> dict:
        return {
            "level": str(self.level),
            "reason": self.reason,
            "is_overrun": self.is_overrun,
            "hours_logged": self.hours_logged,
            "hours_remaining": self.hours_remaining,
            "days_left": self.days_left,
            "estimated_hours": self.estimated_hours,
            "effort_percent": self.effort_percent,
            "task_completion_percent": self.task_completion_percent,
            "projected_total": self.projected_total,
        }


@dataclass
class RelatedEntity:
    """Navigation target of a red flag."""

    type: str  # subtask | task | module | project
    id: str
    name: str

    def to_dict(self) -> dict:
        return {"type": self.type, "id": self.id, "name": self.name}


@dataclass
class Assignee:
    id: str
    name: str

    def to_dict(self) -> dict:
        return {"id": self.id, "name": self.name}


@dataclass
class FlagMetrics:
    estimated: float = 0.0
    logged: float = 0.0
    percent: float = 0.0
    days_left: float = 0.0

    def to_dict(self) -> dict:
        return {
            "estimated": self.estimated,
            "logged": self.logged,
            "percent": self.percent,
            "days_left": self.days_left,
        }


@dataclass
class RedFlag:
    """A normalized attention item shown on the admin / PM dashboards."""

    id: str
    type: FlagType
    severity: FlagSeverity
    title: str
    description: str
    related_entity: RelatedEntity
    project_name: str
    created_at: str
    assigned_to: Assignee | None = None
    metrics: FlagMetrics | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": str(self.type),
            "severity": str(self.severity),
            "title": self.title,
            "description": self.description,
            "related_entity": self.related_entity.to_dict(),
            "project_name": self.project_name,
            "created_at": self.created_at,
            "assigned_to": self.assigned_to.to_dict() if self.assigned_to else None,
            "metrics": self.metrics.to_dict() if self.metrics else None,
        }


@dataclass
class DashboardDeadline:
    """An upcoming (or missed) subtask deadline with its risk."""

    id: str
    name: str
    due_date: str
    risk: DeadlineRisk
    project_name: str
    bucket: DeadlineBucket
    entity_type: str = "subtask"
    assigned_to: Assignee | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "entity_type": self.entity_type,
            "due_date": self.due_date,
            "risk": self.risk.to_dict(),
            "project_name": self.project_name,
            "assigned_to": self.assigned_to.to_dict() if self.assigned_to else None,
            "bucket": str(self.bucket),
        }


@dataclass
class SubtaskRef:
    """Short reference to the other end of a dependency edge."""

    id: str
    name: str
    status: str | None = None
    assignee_name: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "assignee_name": self.assignee_name,
        }


@dataclass
class BlockedSubtask:
    """A blocked subtask of the worker, with whatever it is waiting on."""

    id: str
    name: str
    project_name: str
    parent_task_name: str | None = None
    module_name: str | None = None
    blocked_since: str | None = None
    assigned_to: Assignee | None = None
    depends_on: list[SubtaskRef] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": "blocked",
            "project_name": self.project_name,
            "parent_task_name": self.parent_task_name,
            "module_name": self.module_name,
            "blocked_since": self.blocked_since,
            "assigned_to": self.assigned_to.to_dict() if self.assigned_to else None,
            "depends_on": [ref.to_dict() for ref in self.depends_on],
        }


@dataclass
class DependencyWait:
    """An open subtask of the worker that depends on unfinished work."""

    dependent: SubtaskRef
    depends_on: SubtaskRef | None

    def to_dict(self) -> dict:
        return {
            "dependent_task_id": self.dependent.id,
            "dependent_subtask": self.dependent.to_dict(),
            "depends_on_subtask": self.depends_on.to_dict() if self.depends_on else None,
        }


@dataclass
class FocusTask:
    """
    One entry of the worker focus queue.

    urgency_score drives ordering (highest first); category and
    urgency_reason are derived from it for display.
    """

    id: str
    name: str
    status: str
    priority_stars: float
    due_date: str | None
    project_name: str
    urgency_score: int
    urgency_reason: str
    category: FocusCategory
    deadline_risk: DeadlineRisk
    hours_logged: float
    estimated_hours: float | None = None
    parent_task_name: str | None = None
    module_name: str | None = None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status,
            "priority_stars": self.priority_stars,
            "due_date": self.due_date,
            "estimated_hours": self.estimated_hours,
            "project_name": self.project_name,
            "parent_task_name": self.parent_task_name,
            "module_name": self.module_name,
            "urgency_score": self.urgency_score,
            "urgency_reason": self.urgency_reason,
            "category": str(self.category),
            "deadline_risk": self.deadline_risk.to_dict(),
            "hours_logged": self.hours_logged,
        }
