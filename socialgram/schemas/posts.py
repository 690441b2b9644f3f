"""Schemas for posts, likes and comments."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from .profiles import Profile


class Post(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    caption: str | None = None
    image_url: str
    likes_count: int = 0
    comments_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    profiles: Profile | None = None
    is_liked: bool | None = None


class PostInsert(BaseModel):
    user_id: str = ""
    image_url: str = ""
    caption: str | None = None


class PostUpdate(BaseModel):
    caption: str | None = None


class PostCreateRequest(BaseModel):
    """Body accepted by the HTTP layer; the author is taken from the session."""

    image_url: str = ""
    caption: str | None = None


class Like(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    post_id: str
    created_at: datetime | None = None
    profiles: Profile | None = None


class Comment(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    user_id: str
    post_id: str
    content: str
    likes_count: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None
    profiles: Profile | None = None


class CommentInsert(BaseModel):
    user_id: str = ""
    post_id: str = ""
    content: str = ""


class CommentUpdate(BaseModel):
    content: str | None = None


class CommentCreateRequest(BaseModel):
    content: str = ""


__all__ = [
    "Comment",
    "CommentCreateRequest",
    "CommentInsert",
    "CommentUpdate",
    "Like",
    "Post",
    "PostCreateRequest",
    "PostInsert",
    "PostUpdate",
]
