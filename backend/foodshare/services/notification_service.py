"""
Notification outbox: rows are added inside the caller's transaction (lifecycle engine,
rating ledger, sweep) and only read, marked read or deleted by their recipient.
"""
import logging
import math

from sqlalchemy.orm import Session, joinedload

from foodshare.core.enums import NotificationType
from foodshare.core.errors import ForbiddenError, NotFoundError
from foodshare.core.timeutil import isoformat, utcnow
from foodshare.models.notification import Notification
from foodshare.models.user import User

logger = logging.getLogger(__name__)


def post_redirect_url(post_id: int) -> str:
    return f"/posts/{post_id}"


def create_notification(
    db: Session,
    recipient_id: int,
    type: NotificationType,
    message: str,
    sender_id: int | None = None,
    post_id: int | None = None,
    redirect_url: str | None = None,
) -> Notification:
    """Add a notification to the session; the caller commits."""
    row = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        post_id=post_id,
        type=type.value,
        message=message,
        redirect_url=redirect_url,
    )
    db.add(row)
    logger.debug("Queued %s notification for user %s (post %s)", type.value, recipient_id, post_id)
    return row


def notification_to_dict(row: Notification) -> dict:
    return {
        "id": row.id,
        "type": row.type,
        "message": row.message,
        "read": row.read,
        "readAt": isoformat(row.read_at),
        "redirectUrl": row.redirect_url,
        "sender": (
            {"id": row.sender.id, "name": row.sender.name, "profilePicture": row.sender.profile_picture}
            if row.sender
            else None
        ),
        "post": {"id": row.post.id, "title": row.post.title} if row.post else None,
        "createdAt": isoformat(row.created_at),
    }


def unread_count(db: Session, recipient_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.recipient_id == recipient_id, Notification.read_at.is_(None))
        .count()
    )


def list_notifications(
    db: Session,
    user: User,
    page: int = 1,
    limit: int = 10,
    unread_only: bool = False,
) -> dict:
    """Recipient's notifications, newest first, with total/unread counts for badges."""
    q = db.query(Notification).filter(Notification.recipient_id == user.id)
    if unread_only:
        q = q.filter(Notification.read_at.is_(None))
    total = q.count()
    rows = (
        q.options(joinedload(Notification.sender), joinedload(Notification.post))
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "data": [notification_to_dict(r) for r in rows],
        "unread_count": unread_count(db, user.id),
        "pagination": {"total": total, "page": page, "pages": math.ceil(total / limit)},
    }


def _own_notification(db: Session, notification_id: int, user: User, action: str) -> Notification:
    row = db.get(Notification, notification_id)
    if row is None:
        raise NotFoundError("Notification not found")
    if row.recipient_id != user.id:
        raise ForbiddenError(f"Not authorized to {action} this notification")
    return row


def mark_read(db: Session, notification_id: int, user: User) -> Notification:
    row = _own_notification(db, notification_id, user, "access")
    if row.read_at is None:
        row.read_at = utcnow()
        db.commit()
        db.refresh(row)
    return row


def mark_all_read(db: Session, user: User) -> int:
    """Mark every unread notification of the user as read. Returns how many changed."""
    updated = (
        db.query(Notification)
        .filter(Notification.recipient_id == user.id, Notification.read_at.is_(None))
        .update({Notification.read_at: utcnow()}, synchronize_session=False)
    )
    db.commit()
    return updated


def delete_notification(db: Session, notification_id: int, user: User) -> None:
    row = _own_notification(db, notification_id, user, "delete")
    db.delete(row)
    db.commit()
