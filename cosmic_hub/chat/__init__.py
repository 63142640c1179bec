"""Chat sidebar rules."""

from .permissions import (
    ChannelMemberRole,
    PermissionContext,
    TargetMember,
    can_demote_member,
    can_manage_members,
    can_promote_member,
    can_remove_member,
    member_actions,
)

__all__ = [
    "ChannelMemberRole",
    "PermissionContext",
    "TargetMember",
    "can_remove_member",
    "can_promote_member",
    "can_demote_member",
    "can_manage_members",
    "member_actions",
]
