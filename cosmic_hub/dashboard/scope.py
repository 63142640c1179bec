"""
Project scope: which projects a user's dashboard covers.

None means "no project filter" (admins, anonymous callers, unknown roles).
An empty list means the user is scoped to nothing.
"""

import logging
from collections.abc import Iterable, Mapping
from enum import StrEnum

from .data_source import DashboardDataSource, row_project_id

logger = logging.getLogger(__name__)


class UserRole(StrEnum):
    ADMIN = "admin"
    PROJECT_MANAGER = "project_manager"
    WORKER = "worker"
    CLIENT = "client"


def resolve_project_scope(
    source: DashboardDataSource,
    user_id: str | None,
    role: str | None,
) -> list[str] | None:
    """Project ids in the user's scope, or None when everything is visible."""
    if not user_id or role == UserRole.ADMIN:
        return None
    if role == UserRole.WORKER:
        return source.list_assigned_project_ids(user_id)
    if role == UserRole.PROJECT_MANAGER:
        return source.list_managed_project_ids(user_id)
    if role == UserRole.CLIENT:
        return source.list_client_project_ids(user_id)

    logger.debug("No scope rule for role %r; returning unscoped", role)
    return None


def filter_by_project_ids(
    rows: Iterable[Mapping],
    project_ids: Iterable[str] | None,
) -> list:
    """Keep subtask rows whose project is in scope. None passes everything."""
    if project_ids is None:
        return list(rows)
    allowed = set(project_ids)
    if not allowed:
        return []
    return [row for row in rows if row_project_id(row) in allowed]


def filter_requests_by_project_ids(
    requests: Iterable[Mapping],
    project_ids: Iterable[str] | None,
) -> list:
    """Keep task requests whose module belongs to a project in scope."""
    if project_ids is None:
        return list(requests)
    allowed = set(project_ids)
    kept = []
    for req in requests:
        module = req.get("module")
        if not isinstance(module, Mapping):
            continue
        project = module.get("project")
        pid = module.get("project_id") or (project.get("id") if isinstance(project, Mapping) else None)
        if pid and str(pid) in allowed:
            kept.append(req)
    return kept
