"""SQLAlchemy ORM model for persisted auth store snapshots."""
from __future__ import annotations

from sqlalchemy import Column, String, Text

from socialgram.database import Base
from .base import TimestampMixin


class AuthStateItem(TimestampMixin, Base):
    """One key/value item of the auth store, mirroring device key-value storage."""

    __tablename__ = "auth_state"

    key = Column(String(128), primary_key=True)
    value = Column(Text, nullable=False)


__all__ = ["AuthStateItem"]
