"""
Chat API Router — member moderation rules for group channels.

Usage in server.py:
    from api.chat_router import chat_router
    app.include_router(chat_router, prefix="/api/chat")
"""

import logging
from datetime import UTC, datetime

from fastapi import APIRouter

from api.response_models import DashboardResponse, MemberActionsRequest
from cosmic_hub.chat import PermissionContext, TargetMember, member_actions

logger = logging.getLogger(__name__)

chat_router = APIRouter(tags=["Chat"])


@chat_router.post("/member-actions", response_model=DashboardResponse)
def member_actions_endpoint(body: MemberActionsRequest):
    """Which moderation actions the acting user may take on the target member."""
    ctx = PermissionContext(**body.context.model_dump())
    target = TargetMember(**body.target.model_dump())
    actions = member_actions(ctx, target)
    logger.debug("member actions %s -> %s: %s", ctx.current_user_id, target.user_id, actions)
    return {
        "status": "ok",
        "data": actions,
        "computed_at": datetime.now(UTC).isoformat(),
        "params": {"current_user_id": ctx.current_user_id, "target_user_id": target.user_id},
    }
