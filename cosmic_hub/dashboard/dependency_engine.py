"""
Dependency analysis for the worker dashboard.

Two views over the same dependency edges:
- blockers: the worker's blocked subtasks and what each one depends on
- waits: the worker's open (todo / in_progress) subtasks that depend on
  a subtask which is not done yet

Edges carry the depended-on subtask embedded as depends_on_subtask; when
the embed is missing or partial, the row is completed from the subtask
list by depends_on_task_id.
"""

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from .red_flags_engine import get_assignee, get_project_name
from .types import BlockedSubtask, DependencyWait, SubtaskRef

logger = logging.getLogger(__name__)

DONE = "done"
BLOCKED = "blocked"
WAITING_STATUSES = ("todo", "in_progress")


def _nested_name(row: Mapping, *keys: str) -> str | None:
    value: Any = row
    for key in keys:
        if not isinstance(value, Mapping):
            return None
        value = value.get(key)
    return value or None


def index_subtasks(subtasks: Iterable[Mapping]) -> dict[str, Mapping]:
    return {str(row["id"]): row for row in subtasks if row.get("id") is not None}


def resolve_depends_on(dep: Mapping, subtasks_by_id: Mapping[str, Mapping]) -> dict | None:
    """
    The depended-on subtask row of an edge, or None if it cannot be found.

    Embedded fields win over the indexed row; a list-shaped embed (one-row
    join) is unwrapped.
    """
    embedded = dep.get("depends_on_subtask")
    if isinstance(embedded, list):
        embedded = embedded[0] if embedded else None
    if not isinstance(embedded, Mapping):
        embedded = {}

    target_id = dep.get("depends_on_task_id") or embedded.get("id")
    indexed = subtasks_by_id.get(str(target_id)) if target_id is not None else None

    if not embedded and indexed is None:
        return None
    return {**(indexed or {}), **embedded}


def subtask_ref(row: Mapping) -> SubtaskRef:
    return SubtaskRef(
        id=str(row.get("id", "")),
        name=row.get("name") or "",
        status=row.get("status"),
        assignee_name=_nested_name(row, "assigned_user", "full_name"),
    )


def find_blockers(
    subtasks: Sequence[Mapping],
    dependencies: Iterable[Mapping],
    user_id: str | None,
) -> list[BlockedSubtask]:
    """Blocked subtasks assigned to user_id, each with the subtasks it depends on."""
    if not user_id:
        return []
    mine = [
        row for row in subtasks if row.get("assigned_to") == user_id and row.get("status") == BLOCKED
    ]
    if not mine:
        return []

    subtasks_by_id = index_subtasks(subtasks)
    edges: dict[str, list[SubtaskRef]] = {str(row.get("id")): [] for row in mine}
    for dep in dependencies:
        dependent_id = str(dep.get("dependent_task_id"))
        if dependent_id not in edges:
            continue
        target = resolve_depends_on(dep, subtasks_by_id)
        if target is not None:
            edges[dependent_id].append(subtask_ref(target))

    return [
        BlockedSubtask(
            id=str(row.get("id")),
            name=row.get("name") or "",
            project_name=get_project_name(row),
            parent_task_name=_nested_name(row, "parent_task", "name"),
            module_name=_nested_name(row, "parent_task", "module", "name"),
            blocked_since=row.get("updated_at"),
            assigned_to=get_assignee(row),
            depends_on=edges[str(row.get("id"))],
        )
        for row in mine
    ]


def find_dependency_waits(
    subtasks: Sequence[Mapping],
    dependencies: Iterable[Mapping],
    user_id: str | None,
) -> list[DependencyWait]:
    """
    Edges where one of the user's todo / in_progress subtasks depends on
    unfinished work. An edge whose target cannot be resolved counts as
    unfinished.
    """
    if not user_id:
        return []
    subtasks_by_id = index_subtasks(subtasks)
    mine = {
        sid: row
        for sid, row in subtasks_by_id.items()
        if row.get("assigned_to") == user_id and row.get("status") in WAITING_STATUSES
    }
    if not mine:
        return []

    waits = []
    for dep in dependencies:
        dependent = mine.get(str(dep.get("dependent_task_id")))
        if dependent is None:
            continue
        target = resolve_depends_on(dep, subtasks_by_id)
        if target is not None and target.get("status") == DONE:
            continue
        waits.append(
            DependencyWait(
                dependent=subtask_ref(dependent),
                depends_on=subtask_ref(target) if target is not None else None,
            )
        )

    logger.debug("User %s waits on %d dependencies", user_id, len(waits))
    return waits
