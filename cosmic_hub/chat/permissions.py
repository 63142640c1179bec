"""
Group chat member permissions.

Channel roles: owner > moderator > member. The profile-level admin role
(users.role == 'admin') acts like a channel owner everywhere and can never
be removed. Owners cannot be removed either.
"""

from dataclasses import dataclass
from enum import StrEnum

PROFILE_ADMIN = "admin"


class ChannelMemberRole(StrEnum):
    OWNER = "owner"
    MODERATOR = "moderator"
    MEMBER = "member"


@dataclass(frozen=True)
class PermissionContext:
    """The acting user."""

    current_user_id: str
    current_member_role: str | None = None  # None when not a channel member
    current_user_profile_role: str | None = None


@dataclass(frozen=True)
class TargetMember:
    """The channel member being acted on."""

    user_id: str
    member_role: str
    user_profile_role: str | None = None


def _is_owner_or_admin(ctx: PermissionContext) -> bool:
    return (
        ctx.current_member_role == ChannelMemberRole.OWNER
        or ctx.current_user_profile_role == PROFILE_ADMIN
    )


def can_remove_member(ctx: PermissionContext, target: TargetMember) -> bool:
    """
    No: self, owner, profile admin.
    Yes: owner/admin removes moderator or member; moderator removes member.
    """
    if target.user_id == ctx.current_user_id:
        return False
    if target.member_role == ChannelMemberRole.OWNER or target.user_profile_role == PROFILE_ADMIN:
        return False
    if _is_owner_or_admin(ctx) and target.member_role in (
        ChannelMemberRole.MODERATOR,
        ChannelMemberRole.MEMBER,
    ):
        return True
    return (
        ctx.current_member_role == ChannelMemberRole.MODERATOR
        and target.member_role == ChannelMemberRole.MEMBER
    )


def can_promote_member(ctx: PermissionContext, target: TargetMember) -> bool:
    """Owner or admin may promote a plain member (not themselves) to moderator."""
    return (
        _is_owner_or_admin(ctx)
        and target.user_id != ctx.current_user_id
        and target.member_role == ChannelMemberRole.MEMBER
    )


def can_demote_member(ctx: PermissionContext, target: TargetMember) -> bool:
    """Owner or admin may demote a moderator (not themselves) to member."""
    return (
        _is_owner_or_admin(ctx)
        and target.user_id != ctx.current_user_id
        and target.member_role == ChannelMemberRole.MODERATOR
    )


def can_manage_members(ctx: PermissionContext) -> bool:
    """Whether member action buttons are shown at all (moderators: remove only)."""
    return _is_owner_or_admin(ctx) or ctx.current_member_role == ChannelMemberRole.MODERATOR


def member_actions(ctx: PermissionContext, target: TargetMember) -> dict[str, bool]:
    return {
        "can_manage": can_manage_members(ctx),
        "can_remove": can_remove_member(ctx, target),
        "can_promote": can_promote_member(ctx, target),
        "can_demote": can_demote_member(ctx, target),
    }
