"""
Rating ledger: one rating per (post, giver) on Completed posts, between the two participants.

Every create/update/delete is followed by an explicit recompute of the recipient's
average_rating / total_ratings from the full set of their ratings (last write wins).
"""
import logging
import math

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from foodshare.core.constants import MAX_RATING_SCORE, MIN_RATING_SCORE
from foodshare.core.enums import NotificationType, PostStatus
from foodshare.core.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from foodshare.core.timeutil import isoformat
from foodshare.models.post import Post
from foodshare.models.rating import Rating
from foodshare.models.user import User
from foodshare.services.notification_service import create_notification

logger = logging.getLogger(__name__)

MSG_DUPLICATE_RATING = "You have already rated this post"
RATINGS_REDIRECT_URL = "/profile/ratings"


def rating_to_dict(rating: Rating) -> dict:
    return {
        "id": rating.id,
        "post": {"id": rating.post.id, "title": rating.post.title, "type": rating.post.type} if rating.post else None,
        "giver": _person(rating.giver),
        "recipient": _person(rating.recipient),
        "score": rating.score,
        "comment": rating.comment or "",
        "createdAt": isoformat(rating.created_at),
        "updatedAt": isoformat(rating.updated_at),
    }


def _person(user: User | None) -> dict | None:
    if user is None:
        return None
    return {"id": user.id, "name": user.name, "profilePicture": user.profile_picture}


def _check_score(score: int) -> None:
    if score < MIN_RATING_SCORE or score > MAX_RATING_SCORE:
        raise ValidationError(f"Rating score must be between {MIN_RATING_SCORE} and {MAX_RATING_SCORE}")


def recompute_user_rating(db: Session, user_id: int) -> tuple[float, int]:
    """Recompute from all ratings received: average rounded to one decimal, 0 with no ratings."""
    total, count = (
        db.query(func.coalesce(func.sum(Rating.score), 0), func.count(Rating.id))
        .filter(Rating.recipient_id == user_id)
        .one()
    )
    average = round(total / count, 1) if count else 0.0
    db.query(User).filter(User.id == user_id).update(
        {User.average_rating: average, User.total_ratings: count},
        synchronize_session=False,
    )
    return average, count


def _load_rating(db: Session, rating_id: int) -> Rating:
    rating = (
        db.query(Rating)
        .options(joinedload(Rating.post), joinedload(Rating.giver), joinedload(Rating.recipient))
        .filter(Rating.id == rating_id)
        .first()
    )
    if rating is None:
        raise NotFoundError("Rating not found")
    return rating


def submit_rating(
    db: Session,
    giver: User,
    post_id: int,
    recipient_id: int,
    score: int,
    comment: str | None = None,
) -> Rating:
    _check_score(score)
    post = db.get(Post, post_id)
    if post is None:
        raise NotFoundError("Post not found")
    if post.status != PostStatus.COMPLETED.value:
        raise ConflictError("Can only rate completed posts")
    participants = {post.owner_id, post.claimed_by_id} - {None}
    if giver.id not in participants:
        raise ForbiddenError("Not authorized to rate this post")
    if recipient_id == giver.id:
        raise ForbiddenError("You cannot rate yourself")
    if recipient_id not in participants:
        raise ValidationError("Invalid recipient")
    existing = db.query(Rating.id).filter(Rating.post_id == post_id, Rating.giver_id == giver.id).first()
    if existing:
        raise ConflictError(MSG_DUPLICATE_RATING)

    rating = Rating(post_id=post_id, giver_id=giver.id, recipient_id=recipient_id, score=score, comment=comment or "")
    db.add(rating)
    try:
        db.flush()
    except IntegrityError as e:
        # concurrent duplicate hit the (post_id, giver_id) unique constraint
        db.rollback()
        raise ConflictError(MSG_DUPLICATE_RATING) from e
    recompute_user_rating(db, recipient_id)
    create_notification(
        db,
        recipient_id=recipient_id,
        type=NotificationType.NEW_RATING,
        message=f"{giver.name} has rated you {score} stars",
        sender_id=giver.id,
        post_id=post_id,
        redirect_url=RATINGS_REDIRECT_URL,
    )
    db.commit()
    logger.info("User %s rated user %s %s/5 on post %s", giver.id, recipient_id, score, post_id)
    return _load_rating(db, rating.id)


def update_rating(
    db: Session,
    rating_id: int,
    user: User,
    score: int | None = None,
    comment: str | None = None,
) -> Rating:
    rating = _load_rating(db, rating_id)
    if rating.giver_id != user.id:
        raise ForbiddenError("Not authorized to update this rating")
    if score is not None:
        _check_score(score)
        rating.score = score
    if comment is not None:
        rating.comment = comment
    db.flush()
    recompute_user_rating(db, rating.recipient_id)
    db.commit()
    return _load_rating(db, rating_id)


def delete_rating(db: Session, rating_id: int, user: User) -> None:
    rating = _load_rating(db, rating_id)
    if rating.giver_id != user.id:
        raise ForbiddenError("Not authorized to delete this rating")
    recipient_id = rating.recipient_id
    db.delete(rating)
    db.flush()
    recompute_user_rating(db, recipient_id)
    db.commit()
    logger.info("User %s deleted rating %s", user.id, rating_id)


def list_post_ratings(db: Session, post_id: int) -> list[dict]:
    if db.get(Post, post_id) is None:
        raise NotFoundError("Post not found")
    rows = (
        db.query(Rating)
        .options(joinedload(Rating.post), joinedload(Rating.giver), joinedload(Rating.recipient))
        .filter(Rating.post_id == post_id)
        .order_by(Rating.created_at.desc(), Rating.id.desc())
        .all()
    )
    return [rating_to_dict(r) for r in rows]


def list_user_ratings(db: Session, user_id: int, page: int = 1, limit: int = 10) -> dict:
    """Ratings received by a user, newest first."""
    if db.get(User, user_id) is None:
        raise NotFoundError("User not found")
    q = db.query(Rating).filter(Rating.recipient_id == user_id)
    total = q.count()
    rows = (
        q.options(joinedload(Rating.post), joinedload(Rating.giver), joinedload(Rating.recipient))
        .order_by(Rating.created_at.desc(), Rating.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "data": [rating_to_dict(r) for r in rows],
        "pagination": {"total": total, "page": page, "pages": math.ceil(total / limit)},
    }
