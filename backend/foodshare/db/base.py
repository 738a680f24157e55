"""Declarative base shared by all models (alembic reads Base.metadata)."""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
