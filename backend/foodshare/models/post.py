"""Post (Donate / Request listing) and its append-only status timeline.

status values are foodshare.core.enums.PostStatus values ('Posted', 'Picked Up', ...).
longitude/latitude are both set or both NULL (post has no coordinates).
timeline rows are only ever added through Post.record_status; nothing updates or deletes them
except deleting the post itself.
"""
from datetime import datetime

from sqlalchemy import JSON, Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from foodshare.core.enums import PostStatus, PostType
from foodshare.db.base import Base


class Post(Base):
    __tablename__ = "posts"

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(16), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    quantity = Column(String(100), nullable=False)
    address = Column(String(300), nullable=False)
    longitude = Column(Float, nullable=True)
    latitude = Column(Float, nullable=True, index=True)
    expiry_date = Column(DateTime(timezone=True), nullable=False, index=True)
    images = Column(JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list)
    status = Column(String(16), nullable=False, default=PostStatus.POSTED.value, index=True)

    owner_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    claimed_by_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    claimed_at = Column(DateTime(timezone=True), nullable=True)
    picked_up_at = Column(DateTime(timezone=True), nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    # set once the owner has been sent the expiring-soon notice; never cleared
    expiry_notice_sent_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    owner = relationship("User", foreign_keys=[owner_id])
    claimed_by = relationship("User", foreign_keys=[claimed_by_id])
    timeline = relationship(
        "PostStatusEvent",
        order_by="PostStatusEvent.id",
        cascade="all, delete-orphan",
        back_populates="post",
    )

    @property
    def post_status(self) -> PostStatus:
        return PostStatus(self.status)

    @property
    def post_type(self) -> PostType:
        return PostType(self.type)

    @property
    def coordinates(self) -> list[float]:
        """[longitude, latitude], or [] when the post has no coordinates."""
        if self.longitude is None or self.latitude is None:
            return []
        return [self.longitude, self.latitude]

    def record_status(self, status: PostStatus, at: datetime, actor_id: int | None) -> "PostStatusEvent":
        """Append one timeline entry. The only way timeline rows are written."""
        event = PostStatusEvent(status=status.value, timestamp=at, actor_id=actor_id)
        self.timeline.append(event)
        return event


class PostStatusEvent(Base):
    __tablename__ = "post_status_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(String(16), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=True)  # NULL = system (sweep)

    post = relationship("Post", back_populates="timeline")
    actor = relationship("User")
