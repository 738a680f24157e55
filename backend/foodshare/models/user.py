"""Marketplace user. Credentials live with the auth service; this table holds profile and derived stats.

average_rating / total_ratings are recomputed by the rating ledger (rating_service.recompute_user_rating).
donations_made / donations_received are running counters bumped by post_service.
"""
from sqlalchemy import Column, DateTime, Float, Integer, String, Text
from sqlalchemy.sql import func

from foodshare.db.base import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    email = Column(String(256), nullable=False, unique=True, index=True)
    phone = Column(String(32), nullable=True)
    bio = Column(Text, nullable=True)
    location = Column(String(256), nullable=True)
    profile_picture = Column(String(512), nullable=True)

    average_rating = Column(Float, nullable=False, default=0.0, server_default="0")
    total_ratings = Column(Integer, nullable=False, default=0, server_default="0")
    donations_made = Column(Integer, nullable=False, default=0, server_default="0")
    donations_received = Column(Integer, nullable=False, default=0, server_default="0")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
