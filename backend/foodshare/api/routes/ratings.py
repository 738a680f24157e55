"""
Ratings API: rate the other participant of a completed post; edit or delete your own rating.
"""
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import Field
from sqlalchemy.orm import Session

from foodshare.api.schemas import CamelModel
from foodshare.core.constants import COMMENT_MAX_LENGTH
from foodshare.core.security import get_current_user
from foodshare.db.session import get_db
from foodshare.models.user import User
from foodshare.services import rating_service

router = APIRouter()


class CreateRatingBody(CamelModel):
    post_id: int
    recipient_id: int
    score: int
    comment: str | None = Field(None, max_length=COMMENT_MAX_LENGTH)


class UpdateRatingBody(CamelModel):
    score: int | None = None
    comment: str | None = Field(None, max_length=COMMENT_MAX_LENGTH)


@router.post("", status_code=201)
def create_rating(
    body: CreateRatingBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Rating also recomputes the recipient's average and notifies them (new_rating)."""
    rating = rating_service.submit_rating(
        db,
        user,
        post_id=body.post_id,
        recipient_id=body.recipient_id,
        score=body.score,
        comment=body.comment,
    )
    return {"success": True, "data": rating_service.rating_to_dict(rating)}


@router.put("/{rating_id}")
def update_rating(
    rating_id: int,
    body: UpdateRatingBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    rating = rating_service.update_rating(db, rating_id, user, score=body.score, comment=body.comment)
    return {"success": True, "data": rating_service.rating_to_dict(rating)}


@router.delete("/{rating_id}")
def delete_rating(
    rating_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    rating_service.delete_rating(db, rating_id, user)
    return {"success": True, "data": {}}
