"""Pydantic schemas for ephemeral stories."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from .profiles import Profile


class Story(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    image_url: str
    caption: str | None = None
    views_count: int = 0
    created_at: datetime | None = None
    expires_at: datetime
    profiles: Profile | None = None
    is_viewed: bool | None = None


class StoryInsert(BaseModel):
    user_id: str = ""
    image_url: str = ""
    caption: str | None = None
    expires_at: datetime | None = None


class StoryCreateRequest(BaseModel):
    image_url: str = ""
    caption: str | None = None
    expires_at: datetime | None = None


class StoryBucket(BaseModel):
    """Active stories of a single author, newest first."""

    user: Profile
    stories: list[Story]


__all__ = ["Story", "StoryBucket", "StoryCreateRequest", "StoryInsert"]
