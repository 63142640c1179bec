"""
Fixture snapshot for deterministic dashboard tests.

Every timestamp is relative to NOW, so expectations never depend on the
wall clock. The golden snapshot is small enough to reason about by hand:

    p-1 Apollo (client c-1, managed by u-pm1)
        t-1: s-1 overrun + due in 2 days, s-2 done, s-3 blocked 8 days
    p-2 Gemini (client c-2, managed by u-pm2)
        t-2: s-4 stale 12 days, s-5 unassigned 3 stars, s-6 overdue

    s-3 waits on s-2 (done); s-1 waits on s-3 (blocked) and s-2 (bare edge)

    r-1 pending 8 days (p-1), r-2 pending 1 day (p-2), r-3 approved
"""

import json
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=UTC)

PROJECTS = {"p-1": "Apollo", "p-2": "Gemini"}
PARENT_TASKS = {"t-1": ("m-1", "p-1"), "t-2": ("m-2", "p-2")}


def iso(value: datetime) -> str:
    return value.isoformat().replace("+00:00", "Z")


def days_from_now(days: float) -> str:
    return iso(NOW + timedelta(days=days))


def parent_task(task_id: str) -> dict:
    module_id, project_id = PARENT_TASKS[task_id]
    return {
        "id": task_id,
        "name": f"Task {task_id}",
        "module": {
            "id": module_id,
            "name": f"Module {module_id}",
            "project_id": project_id,
            "project": {"id": project_id, "name": PROJECTS[project_id]},
        },
    }


def make_subtask(
    id: str = "s-1",
    name: str = "Subtask",
    status: str = "todo",
    parent_id: str | None = "t-1",
    estimated_hours: float | None = None,
    due_date: str | None = None,
    updated_at: str | None = None,
    assigned_user: dict | None = None,
    priority_stars: int = 0,
    work_logs: list[dict] | None = None,
) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": id,
        "name": name,
        "status": status,
        "parent_id": parent_id,
        "estimated_hours": estimated_hours,
        "due_date": due_date,
        "updated_at": updated_at,
        "priority_stars": priority_stars,
        "assigned_to": assigned_user["id"] if assigned_user else None,
        "assigned_user": assigned_user,
        "work_logs": work_logs or [],
    }
    if parent_id in PARENT_TASKS:
        row["parent_task"] = parent_task(parent_id)
    return row


WORKER_1 = {"id": "u-w1", "full_name": "Wanda Worker"}
WORKER_2 = {"id": "u-w2", "full_name": "Walt Worker"}


def build_snapshot() -> dict[str, list]:
    """The golden snapshot (fresh copy on every call)."""
    subtasks = [
        make_subtask(
            "s-1",
            "Design review",
            status="in_progress",
            estimated_hours=10,
            due_date=days_from_now(2),
            updated_at=days_from_now(-1),
            assigned_user=WORKER_1,
            work_logs=[{"hours_spent": 12, "work_date": days_from_now(-1)}],
        ),
        make_subtask(
            "s-2",
            "Write copy",
            status="done",
            estimated_hours=5,
            updated_at=days_from_now(-3),
            assigned_user=WORKER_1,
            work_logs=[{"hours_spent": 5}],
        ),
        make_subtask(
            "s-3",
            "Blocked API",
            status="blocked",
            updated_at=days_from_now(-8),
            assigned_user=WORKER_1,
        ),
        make_subtask(
            "s-4",
            "Stale migration",
            status="in_progress",
            parent_id="t-2",
            estimated_hours=40,
            updated_at=days_from_now(-12),
            assigned_user=WORKER_2,
            work_logs=[{"hours_spent": 10, "work_date": days_from_now(-12)}],
        ),
        make_subtask(
            "s-5",
            "Unassigned spike",
            parent_id="t-2",
            estimated_hours=8,
            due_date=days_from_now(30),
            updated_at=days_from_now(-1),
            priority_stars=3,
        ),
        make_subtask(
            "s-6",
            "Overdue QA",
            parent_id="t-2",
            estimated_hours=4,
            due_date=days_from_now(-1),
            updated_at=days_from_now(-2),
            assigned_user=WORKER_2,
        ),
    ]
    return {
        "subtasks": subtasks,
        "dependencies": [
            {
                "dependent_task_id": "s-3",
                "depends_on_subtask": {"id": "s-2", "name": "Write copy", "status": "done"},
            },
            {
                "dependent_task_id": "s-1",
                "depends_on_subtask": {"id": "s-3", "name": "Blocked API", "status": "blocked"},
            },
            # Bare edge: the depended-on row comes from the subtask list
            {"dependent_task_id": "s-1", "depends_on_task_id": "s-2"},
        ],
        "task_requests": [
            {
                "id": "r-1",
                "task_name": "New landing page",
                "status": "pending",
                "created_at": days_from_now(-8),
                "module": {"name": "Web", "project_id": "p-1", "project": {"id": "p-1", "name": "Apollo"}},
            },
            {
                "id": "r-2",
                "task_name": "Logo refresh",
                "status": "pending",
                "created_at": days_from_now(-1),
                "module": {"name": "Brand", "project_id": "p-2", "project": {"id": "p-2", "name": "Gemini"}},
            },
            {
                "id": "r-3",
                "task_name": "Old request",
                "status": "approved",
                "created_at": days_from_now(-20),
                "module": {"name": "Web", "project_id": "p-1", "project": {"id": "p-1", "name": "Apollo"}},
            },
        ],
        "project_members": [
            {"project_id": "p-1", "user_id": "u-pm1", "role": "manager"},
            {"project_id": "p-2", "user_id": "u-pm2", "role": "manager"},
            {"project_id": "p-1", "user_id": "u-w1", "role": "member"},
        ],
        "projects": [
            {"id": "p-1", "name": "Apollo", "client_id": "c-1"},
            {"id": "p-2", "name": "Gemini", "client_id": "c-2"},
        ],
    }


# Golden expectations for build_snapshot() evaluated at NOW
GOLDEN_ADMIN_FLAG_IDS = [
    "deadline-s-1",
    "deadline-s-6",
    "blocked-s-3",
    "unassigned-s-5",
    "pending-r-1",
    "stale-s-4",
    "anomaly-s-1",
]
GOLDEN_PM1_FLAG_IDS = ["deadline-s-1", "blocked-s-3", "pending-r-1", "anomaly-s-1"]
GOLDEN_PM2_FLAG_IDS = ["deadline-s-6", "unassigned-s-5", "stale-s-4"]
GOLDEN_DEADLINE_IDS = ["s-6", "s-1", "s-5"]

# Worker views: u-w1 owns s-1, s-2, s-3; u-w2 owns s-4, s-6
GOLDEN_W1_FOCUS = [("s-1", 80, "due_this_week"), ("s-3", 10, "normal")]
GOLDEN_W2_FOCUS = [("s-6", 100, "overdue"), ("s-4", 60, "in_progress")]


def write_snapshot(path: str | Path, snapshot: dict | None = None) -> Path:
    path = Path(path)
    path.write_text(json.dumps(snapshot if snapshot is not None else build_snapshot()))
    return path
