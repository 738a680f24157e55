"""
Periodic post maintenance: force-expire overdue posts and send one "expiring soon" notice per post.

Both steps are conditioned on current state (status / notice-sent marker), so overlapping or
repeated runs do not double-expire or double-notify.
"""
import logging
from datetime import datetime, timedelta

from sqlalchemy import update
from sqlalchemy.orm import Session

from foodshare.core.constants import EXPIRING_SOON_HOURS
from foodshare.core.enums import NotificationType, PostStatus
from foodshare.core.post_lifecycle import EXPIRY_NOTICE_STATUSES, SWEEP_EXEMPT_STATUSES
from foodshare.models.post import Post, PostStatusEvent
from foodshare.services.notification_service import create_notification, post_redirect_url

logger = logging.getLogger(__name__)


def expire_overdue_posts(db: Session, now: datetime) -> int:
    """
    One UPDATE ... RETURNING moves every overdue, non-final post to Expired; each moved post
    gets an Expired timeline entry with no actor. Returns how many posts were expired.
    """
    stmt = (
        update(Post)
        .where(Post.expiry_date < now, Post.status.notin_([s.value for s in SWEEP_EXEMPT_STATUSES]))
        .values(status=PostStatus.EXPIRED.value)
        .returning(Post.id)
        .execution_options(synchronize_session=False)
    )
    expired_ids = list(db.execute(stmt).scalars().all())
    for post_id in expired_ids:
        db.add(PostStatusEvent(post_id=post_id, status=PostStatus.EXPIRED.value, timestamp=now, actor_id=None))
    db.commit()
    return len(expired_ids)


def notify_expiring_posts(db: Session, now: datetime) -> int:
    """
    Owners of Posted/Claimed posts expiring within the window get one post_expiring_soon notice per post.
    Post.expiry_notice_sent_at is claimed with a conditional update first, so a deleted notice is not
    sent again and overlapping runs cannot both send it.
    """
    window_end = now + timedelta(hours=EXPIRING_SOON_HOURS)
    posts = (
        db.query(Post)
        .filter(
            Post.expiry_date > now,
            Post.expiry_date < window_end,
            Post.status.in_([s.value for s in EXPIRY_NOTICE_STATUSES]),
            Post.expiry_notice_sent_at.is_(None),
        )
        .all()
    )
    created = 0
    for post in posts:
        marked = (
            db.query(Post)
            .filter(Post.id == post.id, Post.expiry_notice_sent_at.is_(None))
            .update({Post.expiry_notice_sent_at: now}, synchronize_session=False)
        )
        if not marked:
            continue
        create_notification(
            db,
            recipient_id=post.owner_id,
            type=NotificationType.POST_EXPIRING_SOON,
            message=f'Your post "{post.title}" is expiring in less than {EXPIRING_SOON_HOURS} hours',
            post_id=post.id,
            redirect_url=post_redirect_url(post.id),
        )
        created += 1
    db.commit()
    return created


def run_sweep(db: Session, now: datetime) -> dict[str, int]:
    expired = expire_overdue_posts(db, now)
    logger.info("Sweep: expired %s overdue posts", expired)
    notified = notify_expiring_posts(db, now)
    logger.info("Sweep: created %s expiring-soon notifications", notified)
    return {"expired": expired, "notified": notified}
