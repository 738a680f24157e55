"""
Posts API: create, list (filters, radius, pagination), map view, detail, edit/delete,
claim and status updates, plus the ratings left on a post.
"""
import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import Field
from sqlalchemy.orm import Session

from foodshare.api.schemas import CamelModel, LocationBody
from foodshare.core.constants import (
    DEFAULT_PAGE_LIMIT,
    DESCRIPTION_MAX_LENGTH,
    MAX_IMAGES_PER_POST,
    MAX_PAGE_LIMIT,
    QUANTITY_MAX_LENGTH,
    TITLE_MAX_LENGTH,
)
from foodshare.core.enums import PostStatus, PostType, parse_enum
from foodshare.core.errors import ValidationError
from foodshare.core.security import get_current_user, get_optional_user
from foodshare.db.session import get_db
from foodshare.models.user import User
from foodshare.services import post_service, rating_service
from foodshare.services.geo import parse_radius_filter

router = APIRouter()
logger = logging.getLogger(__name__)


class CreatePostBody(CamelModel):
    type: PostType
    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str = Field(..., min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    quantity: str = Field(..., min_length=1, max_length=QUANTITY_MAX_LENGTH)
    location: LocationBody
    expiry_date: datetime
    images: list[str] = Field(default_factory=list, max_length=MAX_IMAGES_PER_POST)


class UpdatePostBody(CamelModel):
    type: PostType | None = None
    title: str | None = Field(None, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(None, max_length=DESCRIPTION_MAX_LENGTH)
    quantity: str | None = Field(None, max_length=QUANTITY_MAX_LENGTH)
    location: LocationBody | None = None
    expiry_date: datetime | None = None
    images: list[str] | None = Field(None, max_length=MAX_IMAGES_PER_POST)


class StatusBody(CamelModel):
    status: str | None = None


def _filters(
    type: str | None = Query(None),
    status: str | None = Query(None),
    expiring_soon: str | None = Query(None, alias="expiringSoon"),
    lat: str | None = Query(None),
    lng: str | None = Query(None),
    radius: str | None = Query(None),
) -> post_service.PostFilters:
    """Unknown type is ignored (show all); unknown status is a validation error."""
    status_filter = None
    if status:
        status_filter = parse_enum(PostStatus, status)
        if status_filter is None:
            raise ValidationError(f"Invalid status filter: {status}")
    return post_service.PostFilters(
        type=parse_enum(PostType, type),
        status=status_filter,
        expiring_soon=(expiring_soon or "").lower() == "true",
        radius=parse_radius_filter(lat, lng, radius),
    )


# --- Create ---


@router.post("", status_code=201)
def create_post(
    body: CreatePostBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    post = post_service.create_post(
        db,
        user,
        type=body.type,
        title=body.title,
        description=body.description,
        quantity=body.quantity,
        address=body.location.address,
        coordinates=body.location.coordinates,
        expiry_date=body.expiry_date,
        images=body.images,
    )
    return {"success": True, "data": post_service.post_to_dict(post)}


# --- List / map ---


@router.get("")
def list_posts(
    filters: post_service.PostFilters = Depends(_filters),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Newest first. Default hides Expired and Cancelled; expiringSoon=true keeps the next 24h only."""
    result = post_service.list_posts(db, filters, page=page, limit=limit)
    return {
        "success": True,
        "count": len(result["data"]),
        "pagination": result["pagination"],
        "data": result["data"],
    }


@router.get("/map")
def list_map_posts(
    filters: post_service.PostFilters = Depends(_filters),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Reduced projection for map markers; also hides Completed by default."""
    data = post_service.list_map_posts(db, filters)
    return {"success": True, "count": len(data), "data": data}


# --- Detail / edit / delete ---


@router.get("/{post_id}")
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    viewer: User | None = Depends(get_optional_user),
) -> dict[str, Any]:
    post = post_service.get_post(db, post_id)
    data = post_service.post_to_dict(post)
    data["viewerRole"] = post_service.viewer_role(post, viewer)
    return {"success": True, "data": data}


@router.put("/{post_id}")
def update_post(
    post_id: int,
    body: UpdatePostBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    post = post_service.update_post(
        db,
        post_id,
        user,
        type=body.type,
        title=body.title,
        description=body.description,
        quantity=body.quantity,
        address=body.location.address if body.location else None,
        coordinates=body.location.coordinates if body.location else None,
        expiry_date=body.expiry_date,
        images=body.images,
    )
    return {"success": True, "data": post_service.post_to_dict(post)}


@router.delete("/{post_id}")
def delete_post(
    post_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    post_service.delete_post(db, post_id, user)
    return {"success": True, "data": {}}


# --- Lifecycle ---


@router.put("/{post_id}/claim")
def claim_post(
    post_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    post = post_service.claim_post(db, post_id, user)
    return {"success": True, "data": post_service.post_to_dict(post)}


@router.put("/{post_id}/status")
def update_post_status(
    post_id: int,
    body: StatusBody,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    post = post_service.update_post_status(db, post_id, user, body.status)
    return {"success": True, "data": post_service.post_to_dict(post)}


# --- Ratings on a post ---


@router.get("/{post_id}/ratings")
def list_post_ratings(post_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    data = rating_service.list_post_ratings(db, post_id)
    return {"success": True, "count": len(data), "data": data}
