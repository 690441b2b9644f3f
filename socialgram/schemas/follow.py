"""Schemas for follower relationships."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Follow(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    follower_id: str
    following_id: str
    created_at: datetime | None = None


__all__ = ["Follow"]
