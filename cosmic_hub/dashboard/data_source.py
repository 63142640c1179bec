"""
Dashboard data access — Cosmic Hub

The service never talks to the backend directly: it receives a
DashboardDataSource constructed by the caller. InMemoryDataSource serves
rows from a JSON snapshot (tests, CLI, local API runs); a backend-backed
implementation only needs to provide the same six methods.
"""

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Protocol

logger = logging.getLogger(__name__)

SNAPSHOT_KEYS = ("subtasks", "dependencies", "task_requests", "project_members", "projects")


class DataSourceError(Exception):
    """Raised when dashboard rows cannot be loaded."""

    pass


class DashboardDataSource(Protocol):
    def list_subtasks(self) -> list[dict]:
        """All subtasks with parent_task/module/project, assigned_user and work_logs."""
        ...

    def list_dependencies(self) -> list[dict]:
        """Dependency edges with the depends_on_subtask row embedded."""
        ...

    def list_pending_task_requests(self) -> list[dict]: ...

    def list_managed_project_ids(self, user_id: str) -> list[str]: ...

    def list_assigned_project_ids(self, user_id: str) -> list[str]: ...

    def list_client_project_ids(self, user_id: str) -> list[str]: ...


def row_project_id(row: Mapping) -> str | None:
    """Project id of a subtask row (parent_task.module.project_id or .project.id)."""
    parent = row.get("parent_task")
    module = parent.get("module") if isinstance(parent, Mapping) else None
    if not isinstance(module, Mapping):
        return None
    project = module.get("project")
    pid = module.get("project_id") or (project.get("id") if isinstance(project, Mapping) else None)
    return str(pid) if pid else None


class InMemoryDataSource:
    """DashboardDataSource over an in-memory snapshot dict."""

    def __init__(self, snapshot: Mapping[str, Any] | None = None):
        snapshot = snapshot or {}
        for key in SNAPSHOT_KEYS:
            value = snapshot.get(key, [])
            if not isinstance(value, list):
                raise DataSourceError(f"Snapshot field '{key}' must be a list, got {type(value).__name__}")
        self._subtasks: list[dict] = list(snapshot.get("subtasks", []))
        self._dependencies: list[dict] = list(snapshot.get("dependencies", []))
        self._task_requests: list[dict] = list(snapshot.get("task_requests", []))
        self._project_members: list[dict] = list(snapshot.get("project_members", []))
        self._projects: list[dict] = list(snapshot.get("projects", []))

    def list_subtasks(self) -> list[dict]:
        return list(self._subtasks)

    def list_dependencies(self) -> list[dict]:
        return list(self._dependencies)

    def list_pending_task_requests(self) -> list[dict]:
        return [r for r in self._task_requests if (r.get("status") or "pending") == "pending"]

    def list_managed_project_ids(self, user_id: str) -> list[str]:
        return [
            str(m["project_id"])
            for m in self._project_members
            if m.get("user_id") == user_id and m.get("role") == "manager" and m.get("project_id")
        ]

    def list_assigned_project_ids(self, user_id: str) -> list[str]:
        seen: dict[str, None] = {}
        for row in self._subtasks:
            if row.get("assigned_to") != user_id:
                continue
            pid = row_project_id(row)
            if pid:
                seen[pid] = None
        return list(seen)

    def list_client_project_ids(self, user_id: str) -> list[str]:
        return [str(p["id"]) for p in self._projects if p.get("client_id") == user_id and p.get("id")]


def load_snapshot(path: str | Path) -> InMemoryDataSource:
    """Read a JSON snapshot file into an InMemoryDataSource."""
    path = Path(path)
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DataSourceError(f"Snapshot not found: {path}") from e
    except (OSError, json.JSONDecodeError) as e:
        raise DataSourceError(f"Could not read snapshot {path}: {e}") from e

    if not isinstance(payload, dict):
        raise DataSourceError(f"Snapshot {path} must contain a JSON object")

    source = InMemoryDataSource(payload)
    logger.info(
        "Loaded snapshot %s: %d subtasks, %d dependencies, %d task requests",
        path,
        len(source.list_subtasks()),
        len(source.list_dependencies()),
        len(payload.get("task_requests", [])),
    )
    return source
