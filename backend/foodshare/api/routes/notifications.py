"""
User notifications API: persisted read state, recipient-only access.

Supports: list (paginated, with unread filter and unread count), mark one read, mark all read, delete.
Notifications are created by the post lifecycle, the rating ledger and the sweep, never by clients.
"""
import logging
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from foodshare.core.constants import DEFAULT_PAGE_LIMIT, MAX_PAGE_LIMIT
from foodshare.core.security import get_current_user
from foodshare.db.session import get_db
from foodshare.models.user import User
from foodshare.services import notification_service

router = APIRouter()
logger = logging.getLogger(__name__)


# --- List ---


@router.get("")
def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_LIMIT, ge=1, le=MAX_PAGE_LIMIT),
    unread: bool = Query(False, description="true = only unread"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """List the caller's notifications, newest first, with unreadCount for the badge."""
    result = notification_service.list_notifications(db, user, page=page, limit=limit, unread_only=unread)
    return {
        "success": True,
        "count": len(result["data"]),
        "unreadCount": result["unread_count"],
        "pagination": result["pagination"],
        "data": result["data"],
    }


# --- Mark all read ---


@router.put("/read-all")
def mark_all_read(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    """Mark all of the caller's notifications as read ('Clear all' in UI)."""
    marked = notification_service.mark_all_read(db, user)
    logger.debug("User %s marked %s notifications read", user.id, marked)
    return {"success": True, "message": "All notifications marked as read", "data": {"markedCount": marked}}


# --- Mark one read ---


@router.put("/{notification_id}/read")
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    row = notification_service.mark_read(db, notification_id, user)
    return {"success": True, "data": notification_service.notification_to_dict(row)}


# --- Delete ---


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
) -> dict[str, Any]:
    notification_service.delete_notification(db, notification_id, user)
    return {"success": True, "data": {}}
