"""User notification: lifecycle and sweep events delivered to one recipient.

type: foodshare.core.enums.NotificationType value.
read_at: NULL = unread; set when the recipient marks it read.
post_id is set to NULL if the post is deleted.
"""
from sqlalchemy import Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from foodshare.db.base import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recipient_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="SET NULL"), nullable=True, index=True)
    type = Column(String(32), nullable=False, index=True)
    message = Column(String(500), nullable=False)
    redirect_url = Column(String(256), nullable=True)
    read_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    sender = relationship("User", foreign_keys=[sender_id])
    post = relationship("Post")

    @property
    def read(self) -> bool:
        return self.read_at is not None
