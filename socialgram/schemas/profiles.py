"""Schemas mirroring rows of the ``profiles`` table."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Profile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    username: str
    full_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    website: str | None = None
    is_private: bool = False
    followers_count: int = 0
    following_count: int = 0
    posts_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProfileInsert(BaseModel):
    id: str
    username: str
    full_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    website: str | None = None
    is_private: bool | None = None


class ProfileUpdate(BaseModel):
    """Partial update; only fields explicitly set are sent to the backend."""

    username: str | None = None
    full_name: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    website: str | None = None
    is_private: bool | None = None


class ProfileSetupRequest(BaseModel):
    """Payload used when a freshly signed-up user completes their profile."""

    username: str
    full_name: str | None = None
    bio: str | None = None
    website: str | None = None


__all__ = ["Profile", "ProfileInsert", "ProfileSetupRequest", "ProfileUpdate"]
