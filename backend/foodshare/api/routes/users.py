"""
Users API: own stats/history/profile (auth), public profile and ratings received.

/stats, /history and /profile are declared before /{user_id}.
"""
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

from foodshare.api.schemas import CamelModel
from foodshare.core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from foodshare.core.security import get_current_user
from foodshare.db.session import get_db
from foodshare.models.user import User
from foodshare.services import rating_service, user_service

router = APIRouter()


class UpdateProfileBody(CamelModel):
    name: str | None = Field(None, max_length=100)
    phone: str | None = Field(None, max_length=32)
    location: str | None = Field(None, max_length=256)
    bio: str | None = Field(None, max_length=1000)
    profile_picture: str | None = Field(None, max_length=512)


@router.put("/profile")
def update_profile(
    body: UpdateProfileBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    user = user_service.update_profile(
        db,
        user,
        name=body.name,
        phone=body.phone,
        location=body.location,
        bio=body.bio,
        profile_picture=body.profile_picture,
    )
    return {"success": True, "data": user_service.profile_to_dict(user)}


@router.get("/stats")
def get_stats(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    return {"success": True, "data": user_service.get_stats(db, user)}


@router.get("/history")
def get_history(
    type: str | None = Query(None, description="'posts', 'claims', or omit for both"),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    result = user_service.get_history(db, user, kind=type, page=page, limit=limit)
    return {
        "success": True,
        "count": len(result["data"]),
        "pagination": result["pagination"],
        "data": result["data"],
    }


@router.get("/{user_id}")
def get_user_profile(user_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    return {"success": True, "data": user_service.profile_to_dict(user_service.get_profile(db, user_id))}


@router.get("/{user_id}/ratings")
def get_user_ratings(
    user_id: int,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    result = rating_service.list_user_ratings(db, user_id, page=page, limit=limit)
    return {
        "success": True,
        "count": len(result["data"]),
        "pagination": result["pagination"],
        "data": result["data"],
    }
