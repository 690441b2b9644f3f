"""Field and payload validation applied before any backend call is made."""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, TypeVar

from pydantic import BaseModel

from ..schemas import (
    CommentInsert,
    CommentUpdate,
    PostInsert,
    PostUpdate,
    ProfileInsert,
    ProfileUpdate,
    StoryInsert,
)

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 30
BIO_MAX_LENGTH = 150
FULL_NAME_MAX_LENGTH = 100
CAPTION_MAX_LENGTH = 2200
COMMENT_MAX_LENGTH = 500
STORY_CAPTION_MAX_LENGTH = 500
PAGE_LIMIT_MAX = 100
SEARCH_QUERY_MIN_LENGTH = 2
SEARCH_QUERY_MAX_LENGTH = 100

_USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9._]+$")
_EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_WEBSITE_PATTERN = re.compile(r"^https?://.+\..+")
_UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    re.IGNORECASE,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass(slots=True)
class FieldError:
    field: str
    message: str


@dataclass(slots=True)
class ValidationResult:
    is_valid: bool
    errors: list[FieldError] = field(default_factory=list)


def _result(errors: list[FieldError]) -> ValidationResult:
    return ValidationResult(is_valid=not errors, errors=errors)


def coerce_model(model: type[ModelT], payload: ModelT | Mapping[str, Any]) -> ModelT:
    if isinstance(payload, model):
        return payload
    return model.model_validate(dict(payload))


def validate_username(username: str | None) -> ValidationResult:
    errors: list[FieldError] = []
    if not username:
        errors.append(FieldError("username", "Username is required"))
        return _result(errors)

    if len(username) < USERNAME_MIN_LENGTH:
        errors.append(FieldError("username", "Username must be at least 3 characters long"))
    if len(username) > USERNAME_MAX_LENGTH:
        errors.append(FieldError("username", "Username must be no more than 30 characters long"))
    if not _USERNAME_PATTERN.match(username):
        errors.append(
            FieldError("username", "Username can only contain letters, numbers, dots, and underscores")
        )
    if username.startswith(".") or username.endswith("."):
        errors.append(FieldError("username", "Username cannot start or end with a dot"))
    if ".." in username:
        errors.append(FieldError("username", "Username cannot contain consecutive dots"))
    return _result(errors)


def validate_email(email: str | None) -> ValidationResult:
    if not email:
        return _result([FieldError("email", "Email is required")])
    if not _EMAIL_PATTERN.match(email):
        return _result([FieldError("email", "Please enter a valid email address")])
    return _result([])


def validate_bio(bio: str | None) -> ValidationResult:
    if bio and len(bio) > BIO_MAX_LENGTH:
        return _result([FieldError("bio", "Bio must be no more than 150 characters long")])
    return _result([])


def validate_website(website: str | None) -> ValidationResult:
    if website and not _WEBSITE_PATTERN.match(website):
        return _result(
            [
                FieldError(
                    "website",
                    "Please enter a valid website URL (must start with http:// or https://)",
                )
            ]
        )
    return _result([])


def _validate_full_name(full_name: str | None) -> list[FieldError]:
    if full_name and len(full_name) > FULL_NAME_MAX_LENGTH:
        return [FieldError("full_name", "Full name must be no more than 100 characters long")]
    return []


def validate_profile_insert(profile: ProfileInsert | Mapping[str, Any]) -> ValidationResult:
    """Username is always checked; bio and website only when the caller supplied them."""

    payload = coerce_model(ProfileInsert, profile)
    provided = payload.model_fields_set
    errors = list(validate_username(payload.username).errors)
    if "bio" in provided:
        errors.extend(validate_bio(payload.bio).errors)
    if "website" in provided:
        errors.extend(validate_website(payload.website).errors)
    errors.extend(_validate_full_name(payload.full_name))
    return _result(errors)


def validate_profile_update(profile: ProfileUpdate | Mapping[str, Any]) -> ValidationResult:
    payload = coerce_model(ProfileUpdate, profile)
    provided = payload.model_fields_set
    errors: list[FieldError] = []
    if "username" in provided:
        errors.extend(validate_username(payload.username).errors)
    if "bio" in provided:
        errors.extend(validate_bio(payload.bio).errors)
    if "website" in provided:
        errors.extend(validate_website(payload.website).errors)
    errors.extend(_validate_full_name(payload.full_name))
    return _result(errors)


def validate_post_insert(post: PostInsert | Mapping[str, Any]) -> ValidationResult:
    payload = coerce_model(PostInsert, post)
    errors: list[FieldError] = []
    if not payload.image_url:
        errors.append(FieldError("image_url", "Image URL is required"))
    if not payload.user_id:
        errors.append(FieldError("user_id", "User ID is required"))
    if payload.caption and len(payload.caption) > CAPTION_MAX_LENGTH:
        errors.append(FieldError("caption", "Caption must be no more than 2200 characters long"))
    return _result(errors)


def validate_post_update(post: PostUpdate | Mapping[str, Any]) -> ValidationResult:
    payload = coerce_model(PostUpdate, post)
    if payload.caption and len(payload.caption) > CAPTION_MAX_LENGTH:
        return _result([FieldError("caption", "Caption must be no more than 2200 characters long")])
    return _result([])


def _validate_comment_content(content: str | None) -> list[FieldError]:
    if not content:
        return [FieldError("content", "Comment content is required")]
    if len(content) > COMMENT_MAX_LENGTH:
        return [FieldError("content", "Comment must be no more than 500 characters long")]
    return []


def validate_comment_insert(comment: CommentInsert | Mapping[str, Any]) -> ValidationResult:
    payload = coerce_model(CommentInsert, comment)
    errors = _validate_comment_content(payload.content)
    if not payload.user_id:
        errors.append(FieldError("user_id", "User ID is required"))
    if not payload.post_id:
        errors.append(FieldError("post_id", "Post ID is required"))
    return _result(errors)


def validate_comment_update(comment: CommentUpdate | Mapping[str, Any]) -> ValidationResult:
    payload = coerce_model(CommentUpdate, comment)
    if "content" not in payload.model_fields_set:
        return _result([])
    return _result(_validate_comment_content(payload.content))


def validate_story_insert(story: StoryInsert | Mapping[str, Any]) -> ValidationResult:
    payload = coerce_model(StoryInsert, story)
    errors: list[FieldError] = []
    if not payload.image_url:
        errors.append(FieldError("image_url", "Image URL is required"))
    if not payload.user_id:
        errors.append(FieldError("user_id", "User ID is required"))
    if payload.caption and len(payload.caption) > STORY_CAPTION_MAX_LENGTH:
        errors.append(FieldError("caption", "Caption must be no more than 500 characters long"))
    if payload.expires_at is not None:
        expires_at = payload.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        if expires_at <= datetime.now(timezone.utc):
            errors.append(FieldError("expires_at", "Expiry time must be in the future"))
    return _result(errors)


def validate_uuid(value: str | None, field_name: str = "id") -> ValidationResult:
    if not value:
        return _result([FieldError(field_name, f"{field_name} is required")])
    if not _UUID_PATTERN.match(str(value)):
        return _result([FieldError(field_name, f"{field_name} must be a valid UUID")])
    return _result([])


def validate_pagination(limit: int | None = None, offset: int | None = None) -> ValidationResult:
    errors: list[FieldError] = []
    if limit is not None:
        if limit < 1:
            errors.append(FieldError("limit", "Limit must be at least 1"))
        if limit > PAGE_LIMIT_MAX:
            errors.append(FieldError("limit", "Limit cannot exceed 100"))
    if offset is not None and offset < 0:
        errors.append(FieldError("offset", "Offset cannot be negative"))
    return _result(errors)


def validate_search_query(query: str | None) -> ValidationResult:
    if not query:
        return _result([FieldError("query", "Search query is required")])
    errors: list[FieldError] = []
    if len(query) < SEARCH_QUERY_MIN_LENGTH:
        errors.append(FieldError("query", "Search query must be at least 2 characters long"))
    if len(query) > SEARCH_QUERY_MAX_LENGTH:
        errors.append(FieldError("query", "Search query must be no more than 100 characters long"))
    return _result(errors)


def merge_results(*results: ValidationResult) -> ValidationResult:
    """Combine several results, keeping the order of their errors."""

    errors: list[FieldError] = []
    for result in results:
        errors.extend(result.errors)
    return _result(errors)


__all__ = [
    "FieldError",
    "ValidationResult",
    "coerce_model",
    "merge_results",
    "validate_bio",
    "validate_comment_insert",
    "validate_comment_update",
    "validate_email",
    "validate_pagination",
    "validate_post_insert",
    "validate_post_update",
    "validate_profile_insert",
    "validate_profile_update",
    "validate_search_query",
    "validate_story_insert",
    "validate_username",
    "validate_uuid",
    "validate_website",
]
