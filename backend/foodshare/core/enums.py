"""
Closed value sets shared by models, services and routes.

Values are the strings stored in the DB and sent on the wire.
"""
from enum import Enum


class PostType(str, Enum):
    DONATE = "Donate"
    REQUEST = "Request"


class PostStatus(str, Enum):
    POSTED = "Posted"
    CLAIMED = "Claimed"
    PICKED_UP = "Picked Up"
    COMPLETED = "Completed"
    EXPIRED = "Expired"
    CANCELLED = "Cancelled"


class NotificationType(str, Enum):
    CLAIM_REQUEST = "claim_request"
    CLAIM_APPROVED = "claim_approved"
    CLAIM_REJECTED = "claim_rejected"
    POST_EXPIRING_SOON = "post_expiring_soon"
    POST_EXPIRED = "post_expired"
    PICKUP_CONFIRMED = "pickup_confirmed"
    POST_COMPLETED = "post_completed"
    NEW_RATING = "new_rating"


def parse_enum(enum_cls, value: str | None):
    """Return the member whose value equals `value`, or None."""
    if value is None:
        return None
    try:
        return enum_cls(value)
    except ValueError:
        return None
