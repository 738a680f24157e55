"""
User profile, activity stats and post/claim history.
"""
import math

from sqlalchemy import or_
from sqlalchemy.orm import Session, joinedload

from foodshare.core.constants import RECENT_ACTIVITY_LIMIT
from foodshare.core.enums import PostStatus, PostType
from foodshare.core.errors import NotFoundError
from foodshare.core.timeutil import isoformat
from foodshare.models.post import Post
from foodshare.models.user import User
from foodshare.services.post_service import user_summary

# history ?type= values
HISTORY_POSTS = "posts"
HISTORY_CLAIMS = "claims"


def profile_to_dict(user: User) -> dict:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "phone": user.phone,
        "bio": user.bio,
        "location": user.location,
        "profilePicture": user.profile_picture,
        "averageRating": user.average_rating,
        "totalRatings": user.total_ratings,
        "donationsMade": user.donations_made,
        "donationsReceived": user.donations_received,
        "createdAt": isoformat(user.created_at),
    }


def get_profile(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found")
    return user


def update_profile(
    db: Session,
    user: User,
    name: str | None = None,
    phone: str | None = None,
    location: str | None = None,
    bio: str | None = None,
    profile_picture: str | None = None,
) -> User:
    """Only non-empty values replace the stored ones."""
    for attr, value in (
        ("name", name),
        ("phone", phone),
        ("location", location),
        ("bio", bio),
        ("profile_picture", profile_picture),
    ):
        if value:
            setattr(user, attr, value)
    db.commit()
    db.refresh(user)
    return user


def _count(db: Session, *criteria) -> int:
    return db.query(Post).filter(*criteria).count()


def _activity_item(post: Post) -> dict:
    return {"id": post.id, "title": post.title, "type": post.type, "status": post.status}


def get_stats(db: Session, user: User) -> dict:
    completed = PostStatus.COMPLETED.value
    recent_posts = (
        db.query(Post)
        .filter(Post.owner_id == user.id)
        .order_by(Post.created_at.desc(), Post.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    recent_claims = (
        db.query(Post)
        .filter(Post.claimed_by_id == user.id)
        .order_by(Post.claimed_at.desc(), Post.id.desc())
        .limit(RECENT_ACTIVITY_LIMIT)
        .all()
    )
    return {
        "donationsMade": _count(db, Post.owner_id == user.id, Post.type == PostType.DONATE.value),
        "donationsReceived": _count(
            db, Post.claimed_by_id == user.id, Post.status == completed, Post.type == PostType.DONATE.value
        ),
        "requestsMade": _count(db, Post.owner_id == user.id, Post.type == PostType.REQUEST.value),
        "requestsFulfilled": _count(
            db, Post.claimed_by_id == user.id, Post.status == completed, Post.type == PostType.REQUEST.value
        ),
        "averageRating": user.average_rating,
        "totalRatings": user.total_ratings,
        "recentPosts": [{**_activity_item(p), "createdAt": isoformat(p.created_at)} for p in recent_posts],
        "recentClaims": [{**_activity_item(p), "claimedAt": isoformat(p.claimed_at)} for p in recent_claims],
    }


def get_history(db: Session, user: User, kind: str | None = None, page: int = 1, limit: int = 10) -> dict:
    """Posts the user owns (kind='posts'), claimed (kind='claims'), or both."""
    if kind == HISTORY_POSTS:
        criteria = Post.owner_id == user.id
    elif kind == HISTORY_CLAIMS:
        criteria = Post.claimed_by_id == user.id
    else:
        criteria = or_(Post.owner_id == user.id, Post.claimed_by_id == user.id)
    q = db.query(Post).filter(criteria)
    total = q.count()
    rows = (
        q.options(joinedload(Post.owner), joinedload(Post.claimed_by))
        .order_by(Post.created_at.desc(), Post.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "data": [
            {
                "id": p.id,
                "type": p.type,
                "title": p.title,
                "quantity": p.quantity,
                "status": p.status,
                "expiryDate": isoformat(p.expiry_date),
                "owner": user_summary(p.owner),
                "claimedBy": user_summary(p.claimed_by),
                "createdAt": isoformat(p.created_at),
            }
            for p in rows
        ],
        "pagination": {"total": total, "page": page, "pages": math.ceil(total / limit)},
    }
