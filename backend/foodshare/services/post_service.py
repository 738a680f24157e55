"""
Posts: create, query (filters, radius, pagination), edit/delete, claim and status updates.

Transition rules come from core.post_lifecycle; this module applies a plan to the store:
conditional status write (compare-and-swap on the status that was read), timeline entry,
notification and counters, all in one commit.
"""
import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta

from sqlalchemy.orm import Query, Session, joinedload, selectinload

from foodshare.core.constants import EXPIRING_SOON_HOURS, MAP_POSTS_LIMIT
from foodshare.core.enums import NotificationType, PostStatus, PostType
from foodshare.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from foodshare.core.post_lifecycle import (
    EDITABLE_STATUSES,
    LIST_HIDDEN_STATUSES,
    MAP_HIDDEN_STATUSES,
    Role,
    TransitionPlan,
    plan_claim,
    plan_status_update,
    role_of,
)
from foodshare.core.timeutil import as_utc, isoformat, utcnow
from foodshare.models.post import Post, PostStatusEvent
from foodshare.models.user import User
from foodshare.services.geo import RadiusFilter
from foodshare.services.notification_service import create_notification, post_redirect_url

logger = logging.getLogger(__name__)

# Message per lifecycle notification; {actor} is the caller's name, {title} the post title
_MESSAGES: dict[NotificationType, str] = {
    NotificationType.CLAIM_REQUEST: '{actor} has claimed your post "{title}"',
    NotificationType.CLAIM_APPROVED: 'Your claim on "{title}" has been approved',
    NotificationType.CLAIM_REJECTED: '{actor} has cancelled their claim on "{title}"',
    NotificationType.PICKUP_CONFIRMED: '{actor} has picked up "{title}"',
    NotificationType.POST_COMPLETED: 'Your transaction for "{title}" has been marked complete',
}

MSG_CONCURRENT_UPDATE = "Post status changed concurrently, reload and retry"


@dataclass(frozen=True)
class PostFilters:
    type: PostType | None = None
    status: PostStatus | None = None
    expiring_soon: bool = False
    radius: RadiusFilter | None = None


# --- Serialization ---


def user_summary(user: User | None, with_rating: bool = False) -> dict | None:
    if user is None:
        return None
    out = {"id": user.id, "name": user.name, "profilePicture": user.profile_picture}
    if with_rating:
        out["averageRating"] = user.average_rating
    return out


def post_to_dict(post: Post) -> dict:
    return {
        "id": post.id,
        "type": post.type,
        "title": post.title,
        "description": post.description,
        "quantity": post.quantity,
        "location": {"address": post.address, "coordinates": post.coordinates},
        "expiryDate": isoformat(post.expiry_date),
        "images": list(post.images or []),
        "status": post.status,
        "owner": user_summary(post.owner, with_rating=True),
        "claimedBy": user_summary(post.claimed_by),
        "claimedAt": isoformat(post.claimed_at),
        "pickedUpAt": isoformat(post.picked_up_at),
        "completedAt": isoformat(post.completed_at),
        "statusTimeline": [
            {
                "status": e.status,
                "timestamp": isoformat(e.timestamp),
                "updatedBy": user_summary(e.actor),
            }
            for e in post.timeline
        ],
        "createdAt": isoformat(post.created_at),
        "updatedAt": isoformat(post.updated_at),
    }


def map_post_to_dict(post: Post) -> dict:
    """Reduced projection for map markers."""
    return {
        "id": post.id,
        "title": post.title,
        "type": post.type,
        "status": post.status,
        "location": {"address": post.address, "coordinates": post.coordinates},
        "owner": {"id": post.owner.id, "name": post.owner.name} if post.owner else None,
    }


# --- Helpers ---


def _with_relations(q: Query) -> Query:
    return q.options(
        joinedload(Post.owner),
        joinedload(Post.claimed_by),
        selectinload(Post.timeline).joinedload(PostStatusEvent.actor),
    )


def _require_future_expiry(expiry_date: datetime, now: datetime) -> datetime:
    expiry = as_utc(expiry_date)
    if expiry <= now:
        raise ValidationError("Expiry date must be in the future")
    return expiry


def _split_coordinates(coordinates: list[float] | None) -> tuple[float | None, float | None]:
    """[lng, lat] -> (lng, lat); empty -> (None, None). Shape and ranges are checked by the request schema."""
    if not coordinates:
        return None, None
    return float(coordinates[0]), float(coordinates[1])


def _increment(db: Session, user_id: int, column) -> None:
    db.query(User).filter(User.id == user_id).update({column: column + 1}, synchronize_session=False)


def _load_post(db: Session, post_id: int, for_update: bool = False) -> Post:
    q = db.query(Post).filter(Post.id == post_id)
    if for_update:
        q = q.with_for_update()
    post = q.first()
    if post is None:
        raise NotFoundError("Post not found")
    return post


def get_post(db: Session, post_id: int) -> Post:
    """Post with owner, claimer and timeline actors loaded, or NotFoundError."""
    post = _with_relations(db.query(Post)).filter(Post.id == post_id).first()
    if post is None:
        raise NotFoundError("Post not found")
    return post


def viewer_role(post: Post, viewer: User | None) -> str | None:
    """Caller's relation to the post for clients deciding which actions to offer."""
    if viewer is None:
        return None
    return role_of(viewer.id, post.owner_id, post.claimed_by_id).value


# --- Create ---


def create_post(
    db: Session,
    owner: User,
    *,
    type: PostType,
    title: str,
    description: str,
    quantity: str,
    address: str,
    coordinates: list[float] | None,
    expiry_date: datetime,
    images: list[str] | None = None,
) -> Post:
    """New post in Posted with its first timeline entry; Donate posts count toward the owner's donations."""
    now = utcnow()
    expiry = _require_future_expiry(expiry_date, now)
    lng, lat = _split_coordinates(coordinates)
    post = Post(
        type=type.value,
        title=title,
        description=description,
        quantity=quantity,
        address=address,
        longitude=lng,
        latitude=lat,
        expiry_date=expiry,
        images=list(images or []),
        status=PostStatus.POSTED.value,
        owner_id=owner.id,
    )
    post.record_status(PostStatus.POSTED, now, owner.id)
    db.add(post)
    if type == PostType.DONATE:
        _increment(db, owner.id, User.donations_made)
    db.commit()
    logger.info("User %s created %s post %s", owner.id, type.value, post.id)
    return get_post(db, post.id)


# --- Queries ---


def _filtered_query(db: Session, filters: PostFilters, hidden: frozenset[PostStatus], now: datetime) -> Query:
    q = db.query(Post)
    if filters.type is not None:
        q = q.filter(Post.type == filters.type.value)
    if filters.status is not None:
        q = q.filter(Post.status == filters.status.value)
    else:
        q = q.filter(Post.status.notin_([s.value for s in hidden]))
    if filters.expiring_soon:
        q = q.filter(Post.expiry_date > now, Post.expiry_date < now + timedelta(hours=EXPIRING_SOON_HOURS))
    if filters.radius is not None:
        lo, hi = filters.radius.latitude_band()
        q = q.filter(Post.longitude.isnot(None), Post.latitude.between(lo, hi))
    return q


def list_posts(db: Session, filters: PostFilters, page: int = 1, limit: int = 10) -> dict:
    """Newest first. Radius filtering finishes in Python, so that path paginates in memory."""
    now = utcnow()
    q = _filtered_query(db, filters, LIST_HIDDEN_STATUSES, now).order_by(Post.created_at.desc(), Post.id.desc())
    offset = (page - 1) * limit
    if filters.radius is not None:
        matches = [p for p in _with_relations(q).all() if filters.radius.contains(p.longitude, p.latitude)]
        total = len(matches)
        rows = matches[offset:offset + limit]
    else:
        total = q.count()
        rows = _with_relations(q).offset(offset).limit(limit).all()
    return {
        "data": [post_to_dict(p) for p in rows],
        "pagination": {"total": total, "page": page, "pages": math.ceil(total / limit)},
    }


def list_map_posts(db: Session, filters: PostFilters) -> list[dict]:
    """Active posts with coordinates for the map; Completed is hidden by default too."""
    now = utcnow()
    q = _filtered_query(db, filters, MAP_HIDDEN_STATUSES, now)
    if filters.radius is None:
        q = q.filter(Post.longitude.isnot(None), Post.latitude.isnot(None))
    q = q.options(joinedload(Post.owner)).order_by(Post.created_at.desc(), Post.id.desc())
    if filters.radius is None:
        rows = q.limit(MAP_POSTS_LIMIT).all()
    else:
        # Cap after the distance check; the latitude band can hold many posts outside the radius
        rows = [p for p in q.all() if filters.radius.contains(p.longitude, p.latitude)][:MAP_POSTS_LIMIT]
    return [map_post_to_dict(p) for p in rows]


# --- Edit / delete (owner, pre-claim states only) ---


def _check_editable(post: Post, user: User, action: str) -> None:
    if post.owner_id != user.id:
        raise ForbiddenError(f"Not authorized to {action} this post")
    if post.post_status not in EDITABLE_STATUSES:
        raise ConflictError(f"Cannot {action} post that is in {post.status} status")


def update_post(
    db: Session,
    post_id: int,
    user: User,
    *,
    type: PostType | None = None,
    title: str | None = None,
    description: str | None = None,
    quantity: str | None = None,
    address: str | None = None,
    coordinates: list[float] | None = None,
    expiry_date: datetime | None = None,
    images: list[str] | None = None,
) -> Post:
    """Apply the provided fields. The row is locked for the duration so a concurrent claim waits."""
    post = _load_post(db, post_id, for_update=True)
    _check_editable(post, user, "update")
    if type is not None and type.value != post.type:
        raise ValidationError("Post type cannot be changed")
    if expiry_date is not None:
        post.expiry_date = _require_future_expiry(expiry_date, utcnow())
    if title:
        post.title = title
    if description:
        post.description = description
    if quantity:
        post.quantity = quantity
    if address:
        post.address = address
    if coordinates is not None:
        post.longitude, post.latitude = _split_coordinates(coordinates)
    if images is not None:
        post.images = list(images)
    db.commit()
    logger.info("User %s updated post %s", user.id, post_id)
    return get_post(db, post_id)


def delete_post(db: Session, post_id: int, user: User) -> None:
    post = _load_post(db, post_id, for_update=True)
    _check_editable(post, user, "delete")
    db.delete(post)
    db.commit()
    logger.info("User %s deleted post %s", user.id, post_id)


# --- Lifecycle ---


def _apply_plan(db: Session, post: Post, plan: TransitionPlan, actor: User, now: datetime, claimer_id: int | None = None) -> None:
    """
    Write the new status only if the row still has plan.from_status, then append the timeline entry.
    Zero rows updated means another request moved the post first.
    """
    values: dict = {Post.status: plan.to_status.value}
    if plan.timestamp_field and getattr(post, plan.timestamp_field) is None:
        values[getattr(Post, plan.timestamp_field)] = now
    if claimer_id is not None:
        values[Post.claimed_by_id] = claimer_id
    elif plan.clear_claimer:
        values[Post.claimed_by_id] = None
    updated = (
        db.query(Post)
        .filter(Post.id == post.id, Post.status == plan.from_status.value)
        .update(values, synchronize_session=False)
    )
    if not updated:
        db.rollback()
        raise ConflictError(MSG_CONCURRENT_UPDATE)
    db.expire(post)
    post.record_status(plan.to_status, now, actor.id)


def _notify(db: Session, plan: TransitionPlan, post: Post, actor: User, owner_id: int, claimer_id: int | None) -> None:
    if plan.notify_type is None:
        return
    recipient_id = owner_id if plan.notify_role == Role.OWNER else claimer_id
    if recipient_id is None:
        return
    create_notification(
        db,
        recipient_id=recipient_id,
        type=plan.notify_type,
        message=_MESSAGES[plan.notify_type].format(actor=actor.name, title=post.title),
        sender_id=actor.id,
        post_id=post.id,
        redirect_url=post_redirect_url(post.id),
    )


def claim_post(db: Session, post_id: int, user: User) -> Post:
    """Posted -> Claimed by a non-owner before expiry; the owner gets a claim_request notification."""
    post = _load_post(db, post_id)
    now = utcnow()
    role = role_of(user.id, post.owner_id, post.claimed_by_id)
    plan = plan_claim(post.post_status, role, expiry_date=as_utc(post.expiry_date), now=now)
    owner_id = post.owner_id
    _apply_plan(db, post, plan, user, now, claimer_id=user.id)
    _notify(db, plan, post, user, owner_id, user.id)
    db.commit()
    logger.info("User %s claimed post %s", user.id, post_id)
    return get_post(db, post_id)


def update_post_status(db: Session, post_id: int, user: User, requested: str | None) -> Post:
    """Owner/claimer status change per the lifecycle tables, with its notification and counters."""
    post = _load_post(db, post_id)
    now = utcnow()
    owner_id, claimer_id = post.owner_id, post.claimed_by_id
    plan = plan_status_update(
        post.post_status,
        requested,
        role_of(user.id, owner_id, claimer_id),
        post_type=post.post_type,
        has_claimer=claimer_id is not None,
    )
    _apply_plan(db, post, plan, user, now)
    _notify(db, plan, post, user, owner_id, claimer_id)
    if plan.count_donation_received and claimer_id is not None:
        _increment(db, claimer_id, User.donations_received)
    db.commit()
    logger.info(
        "Post %s: %s -> %s by user %s",
        post_id, plan.from_status.value, plan.to_status.value, user.id,
    )
    return get_post(db, post_id)
