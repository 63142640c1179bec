"""
Dashboard API Router - admin / PM feeds, worker views and ad-hoc deadline risk.

The DashboardService is built once by create_app() around an injected data
source and stored on app.state; routes receive it through get_service().
DataSourceError propagates to the app-level handler (502 envelope).

Usage in server.py:
    from api.dashboard_router import dashboard_router
    app.include_router(dashboard_router, prefix="/api/dashboard")
"""

import logging
from datetime import UTC, datetime
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from api.response_models import DashboardResponse, DeadlineRiskRequest
from cosmic_hub.dashboard import DashboardService, calculate_deadline_risk
from cosmic_hub.dashboard.clock import parse_timestamp

logger = logging.getLogger(__name__)

dashboard_router = APIRouter(tags=["Dashboard"])


def get_service(request: Request) -> DashboardService:
    return request.app.state.dashboard_service


def _wrap_response(data: dict | list | None, params: dict | None = None) -> dict:
    """Wrap response in standard envelope."""
    return {
        "status": "ok",
        "data": data,
        "computed_at": datetime.now(UTC).isoformat(),
        "params": params or {},
    }


def _parse_as_of(as_of: str | None) -> datetime | None:
    if as_of is None:
        return None
    parsed = parse_timestamp(as_of)
    if parsed is None:
        raise HTTPException(status_code=422, detail=f"Invalid as_of timestamp: {as_of!r}")
    return parsed


def _require_user_for_pm(scope: str, user_id: str | None) -> None:
    if scope == "pm" and not user_id:
        raise HTTPException(status_code=422, detail="user_id is required for pm scope")


# =============================================================================
# FEEDS
# =============================================================================


@dashboard_router.get("/red-flags", response_model=DashboardResponse)
def red_flags(
    scope: Literal["admin", "pm"] = Query("admin", description="admin sees all projects"),
    user_id: str | None = Query(None, description="Required for pm scope"),
    as_of: str | None = Query(None, description="Evaluate as of this ISO timestamp"),
    service: DashboardService = Depends(get_service),
):
    """
    Merged red flag feed ordered by severity, then most recent first.

    Combines deadline risk, effort anomalies, blockers, stale work,
    unassigned priority work and aging approval requests.
    """
    _require_user_for_pm(scope, user_id)
    now = _parse_as_of(as_of)
    flags = service.red_flags(scope, user_id=user_id, now=now)

    return _wrap_response(
        [f.to_dict() for f in flags],
        {"scope": scope, "user_id": user_id, "as_of": as_of},
    )


@dashboard_router.get("/deadlines", response_model=DashboardResponse)
def deadlines(
    scope: Literal["admin", "pm"] = Query("admin"),
    user_id: str | None = Query(None),
    as_of: str | None = Query(None),
    service: DashboardService = Depends(get_service),
):
    """Open subtask deadlines bucketed as overdue / today / this_week / this_month."""
    _require_user_for_pm(scope, user_id)
    now = _parse_as_of(as_of)
    timeline = service.deadline_timeline(scope, user_id=user_id, now=now)

    return _wrap_response(
        [d.to_dict() for d in timeline],
        {"scope": scope, "user_id": user_id, "as_of": as_of},
    )


@dashboard_router.get("/scope", response_model=DashboardResponse)
def project_scope(
    user_id: str | None = Query(None),
    role: str | None = Query(None, description="admin | project_manager | worker | client"),
    service: DashboardService = Depends(get_service),
):
    """Project ids visible to the user; null data means no project filter."""
    project_ids = service.project_scope(user_id, role)
    return _wrap_response(project_ids, {"user_id": user_id, "role": role})


# =============================================================================
# WORKER VIEWS
# =============================================================================


@dashboard_router.get("/my-blockers", response_model=DashboardResponse)
def my_blockers(
    user_id: str = Query(..., min_length=1, description="Assignee whose blocked subtasks to list"),
    service: DashboardService = Depends(get_service),
):
    """Blocked subtasks of the user, each with the subtasks it depends on."""
    blockers = service.my_blockers(user_id)
    return _wrap_response([b.to_dict() for b in blockers], {"user_id": user_id})


@dashboard_router.get("/my-dependency-waits", response_model=DashboardResponse)
def my_dependency_waits(
    user_id: str = Query(..., min_length=1),
    service: DashboardService = Depends(get_service),
):
    """Dependencies of the user's open subtasks that are not done yet."""
    waits = service.my_dependency_waits(user_id)
    return _wrap_response([w.to_dict() for w in waits], {"user_id": user_id})


@dashboard_router.get("/focus-queue", response_model=DashboardResponse)
def focus_queue(
    user_id: str = Query(..., min_length=1),
    as_of: str | None = Query(None, description="Evaluate as of this ISO timestamp"),
    service: DashboardService = Depends(get_service),
):
    """
    The user's todo / in_progress / blocked subtasks, highest urgency first.

    Scores: overdue 100, due today 90, at-risk this week 80, in progress 60,
    high priority 50, due this week 40, otherwise 10.
    """
    now = _parse_as_of(as_of)
    queue = service.focus_queue(user_id, now=now)
    return _wrap_response([t.to_dict() for t in queue], {"user_id": user_id, "as_of": as_of})


# =============================================================================
# AD-HOC RISK
# =============================================================================


@dashboard_router.post("/deadline-risk", response_model=DashboardResponse)
def deadline_risk(
    body: DeadlineRiskRequest,
    service: DashboardService = Depends(get_service),
):
    """Deadline risk for a single subtask supplied in the request body."""
    now = _parse_as_of(body.now)
    risk = calculate_deadline_risk(
        body.subtask.model_dump(),
        [log.model_dump() for log in body.work_logs],
        [s.model_dump() for s in body.siblings] if body.siblings is not None else None,
        now=now,
        thresholds=service.thresholds,
    )
    logger.debug("Ad-hoc deadline risk: %s (%s)", risk.level, risk.reason)
    return _wrap_response(risk.to_dict(), {"now": body.now})
