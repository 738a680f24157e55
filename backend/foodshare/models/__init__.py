from foodshare.models.notification import Notification
from foodshare.models.post import Post, PostStatusEvent
from foodshare.models.rating import Rating
from foodshare.models.user import User

__all__ = [
    "Notification",
    "Post",
    "PostStatusEvent",
    "Rating",
    "User",
]
