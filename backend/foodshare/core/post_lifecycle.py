"""
Post lifecycle rules: the transition table, who may request which status, and what each
transition implies (timestamp to set, claimer to clear, notification to emit, counters).

Pure functions over enums; no DB access. post_service applies the returned plan.
Main path: Posted -> Claimed -> Picked Up -> Completed; Expired is set by the sweep only.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from foodshare.core.enums import NotificationType, PostStatus, PostType, parse_enum
from foodshare.core.errors import ConflictError, ForbiddenError, ValidationError


class Role(str, Enum):
    """Caller's relation to a post."""

    OWNER = "owner"
    CLAIMER = "claimer"
    OTHER = "other"


# from -> allowed targets
TRANSITIONS: dict[PostStatus, frozenset[PostStatus]] = {
    PostStatus.POSTED: frozenset({PostStatus.CLAIMED, PostStatus.CANCELLED}),
    PostStatus.CLAIMED: frozenset({PostStatus.PICKED_UP, PostStatus.POSTED, PostStatus.CANCELLED}),
    PostStatus.PICKED_UP: frozenset({PostStatus.COMPLETED, PostStatus.CLAIMED}),
    PostStatus.COMPLETED: frozenset(),
    PostStatus.CANCELLED: frozenset({PostStatus.POSTED}),
    PostStatus.EXPIRED: frozenset({PostStatus.POSTED}),
}

# target -> (roles allowed to request it, message when refused). Expired is set by the sweep only.
ROLE_MATRIX: dict[PostStatus, tuple[frozenset[Role], str]] = {
    PostStatus.POSTED: (frozenset({Role.OWNER}), "Only the post owner can set this status"),
    PostStatus.CANCELLED: (frozenset({Role.OWNER}), "Only the post owner can set this status"),
    PostStatus.PICKED_UP: (frozenset({Role.CLAIMER}), "Only the claimer can mark as picked up"),
    PostStatus.COMPLETED: (frozenset({Role.OWNER}), "Only the post owner can mark as completed"),
    PostStatus.CLAIMED: (frozenset({Role.OWNER, Role.CLAIMER}), "Not authorized to update this post status"),
}

# The claimer may give a claim back (Claimed -> Posted) even though Posted is otherwise owner-only.
SELF_UNCLAIM = (PostStatus.CLAIMED, PostStatus.POSTED)

# Lifecycle timestamps, set the first time the state is entered
TIMESTAMP_FIELDS: dict[PostStatus, str] = {
    PostStatus.CLAIMED: "claimed_at",
    PostStatus.PICKED_UP: "picked_up_at",
    PostStatus.COMPLETED: "completed_at",
}

# Statuses in which the owner may still edit or delete the post
EDITABLE_STATUSES = frozenset({PostStatus.POSTED, PostStatus.EXPIRED})
# Statuses the sweep never force-expires
SWEEP_EXEMPT_STATUSES = frozenset({PostStatus.COMPLETED, PostStatus.EXPIRED, PostStatus.CANCELLED})
# Statuses that still get an "expiring soon" notice
EXPIRY_NOTICE_STATUSES = frozenset({PostStatus.POSTED, PostStatus.CLAIMED})
# Hidden from the default list / map views
LIST_HIDDEN_STATUSES = frozenset({PostStatus.EXPIRED, PostStatus.CANCELLED})
MAP_HIDDEN_STATUSES = LIST_HIDDEN_STATUSES | {PostStatus.COMPLETED}


@dataclass(frozen=True)
class TransitionPlan:
    from_status: PostStatus
    to_status: PostStatus
    timestamp_field: str | None = None
    clear_claimer: bool = False
    notify_type: NotificationType | None = None
    # whose inbox gets notify_type: Role.OWNER or Role.CLAIMER
    notify_role: Role | None = None
    count_donation_received: bool = False


def role_of(user_id: int, owner_id: int, claimer_id: int | None) -> Role:
    if user_id == owner_id:
        return Role.OWNER
    if claimer_id is not None and user_id == claimer_id:
        return Role.CLAIMER
    return Role.OTHER


def is_allowed_transition(current: PostStatus, target: PostStatus) -> bool:
    return target in TRANSITIONS[current]


def _notification_for(target: PostStatus, role: Role) -> tuple[NotificationType | None, Role | None]:
    if target == PostStatus.CLAIMED and role == Role.OWNER:
        return NotificationType.CLAIM_APPROVED, Role.CLAIMER
    if target == PostStatus.POSTED and role == Role.CLAIMER:
        return NotificationType.CLAIM_REJECTED, Role.OWNER
    if target == PostStatus.PICKED_UP:
        return NotificationType.PICKUP_CONFIRMED, Role.OWNER
    if target == PostStatus.COMPLETED:
        return NotificationType.POST_COMPLETED, Role.CLAIMER
    return None, None


def plan_status_update(
    current: PostStatus,
    requested: PostStatus | str | None,
    role: Role,
    *,
    post_type: PostType,
    has_claimer: bool,
) -> TransitionPlan:
    """
    Decide whether `role` may move a post from `current` to `requested`.

    Checks run in a fixed order: valid target, participant, role matrix, transition table.
    Raises ValidationError / ForbiddenError / ConflictError; returns the plan otherwise.
    """
    target = requested if isinstance(requested, PostStatus) else parse_enum(PostStatus, requested)
    if target is None or target not in ROLE_MATRIX:
        raise ValidationError("Please provide a valid status")
    if role == Role.OTHER:
        raise ForbiddenError("Not authorized to update this post status")

    allowed_roles, refusal = ROLE_MATRIX[target]
    if role not in allowed_roles and not (role == Role.CLAIMER and (current, target) == SELF_UNCLAIM):
        raise ForbiddenError(refusal)

    if not is_allowed_transition(current, target):
        raise ConflictError(f"Cannot change status from {current.value} to {target.value}")
    if target == PostStatus.CLAIMED and not has_claimer:
        raise ConflictError("Post has no claimer; it must be claimed first")

    notify_type, notify_role = _notification_for(target, role)
    return TransitionPlan(
        from_status=current,
        to_status=target,
        timestamp_field=TIMESTAMP_FIELDS.get(target),
        clear_claimer=target == PostStatus.POSTED,
        notify_type=notify_type,
        notify_role=notify_role,
        count_donation_received=target == PostStatus.COMPLETED and post_type == PostType.DONATE,
    )


def plan_claim(current: PostStatus, role: Role, *, expiry_date: datetime, now: datetime) -> TransitionPlan:
    """Posted -> Claimed by a non-owner, before the post expires."""
    if role == Role.OWNER:
        raise ForbiddenError("You cannot claim your own post")
    if current != PostStatus.POSTED:
        raise ConflictError(f"Cannot claim post that is in {current.value} status")
    if expiry_date <= now:
        raise ConflictError("This post has expired")
    return TransitionPlan(
        from_status=current,
        to_status=PostStatus.CLAIMED,
        timestamp_field=TIMESTAMP_FIELDS[PostStatus.CLAIMED],
        notify_type=NotificationType.CLAIM_REQUEST,
        notify_role=Role.OWNER,
    )
