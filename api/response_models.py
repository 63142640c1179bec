"""
Shared Pydantic models for the dashboard API.

Response envelope shape: {status, data, computed_at, params, error?, error_code?}

Usage:
    from api.response_models import DashboardResponse

    @router.get("/endpoint", response_model=DashboardResponse)
    def my_endpoint(): ...
"""

from typing import Any, Literal

from pydantic import BaseModel, Field

# ==== Envelope ====


class DashboardResponse(BaseModel):
    """Standard dashboard endpoint envelope."""

    status: str = Field(description="ok or error")
    data: Any = Field(default=None, description="Response payload")
    computed_at: str = Field(description="ISO timestamp of computation")
    params: dict[str, Any] = Field(default_factory=dict, description="Echo of request params")
    error: str | None = Field(default=None, description="Error message if status=error")
    error_code: str | None = Field(default=None, description="Error code if status=error")


class HealthResponse(BaseModel):
    status: str = Field(description="healthy")
    version: str = Field(description="Service version")
    timestamp: str = Field(description="ISO timestamp")


# ==== Deadline risk input ====
# Rows are passed through verbatim; extra display fields are allowed.


class SubtaskInput(BaseModel):
    status: str = Field(description="todo | in_progress | done | blocked | review")
    estimated_hours: float | None = None
    due_date: str | None = Field(default=None, description="ISO timestamp")

    model_config = {"extra": "allow"}


class WorkLogInput(BaseModel):
    hours_spent: float = 0

    model_config = {"extra": "allow"}


class SiblingInput(BaseModel):
    status: str

    model_config = {"extra": "allow"}


class DeadlineRiskRequest(BaseModel):
    subtask: SubtaskInput
    work_logs: list[WorkLogInput] = Field(default_factory=list)
    siblings: list[SiblingInput] | None = None
    now: str | None = Field(default=None, description="Override 'now' (ISO timestamp)")


# ==== Chat permissions input ====


class PermissionContextInput(BaseModel):
    current_user_id: str
    current_member_role: Literal["owner", "moderator", "member"] | None = None
    current_user_profile_role: str | None = None


class TargetMemberInput(BaseModel):
    user_id: str
    member_role: Literal["owner", "moderator", "member"]
    user_profile_role: str | None = None


class MemberActionsRequest(BaseModel):
    context: PermissionContextInput
    target: TargetMemberInput
