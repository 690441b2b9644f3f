"""Business logic for ephemeral stories."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Mapping

from ..clients.backend import BackendClient, eq, gt, in_
from ..schemas import ApiResponse, Story, StoryBucket, StoryInsert
from .errors import create_validation_error_response, service_call
from .user_service import FOLLOWS_TABLE, require_user
from .validation import coerce_model, validate_story_insert

STORIES_TABLE = "stories"
STORY_LIFETIME = timedelta(hours=24)

WITH_AUTHOR = "*,profiles(*)"


def _now() -> datetime:
    return datetime.now(timezone.utc)


def create_story(client: BackendClient, story: StoryInsert | Mapping[str, Any]) -> ApiResponse:
    """Publish a story; it expires 24 hours from now unless ``expires_at`` is given."""

    payload = coerce_model(StoryInsert, story)
    validation = validate_story_insert(payload)
    if not validation.is_valid:
        return create_validation_error_response(validation.errors)

    expires_at = payload.expires_at or _now() + STORY_LIFETIME

    def _insert() -> Story:
        body = payload.model_dump(exclude_none=True, mode="json")
        body["expires_at"] = expires_at.isoformat()
        row = client.insert(STORIES_TABLE, body, columns=WITH_AUTHOR)
        return Story.model_validate(row)

    return service_call(_insert, "story_service.create_story", user_id=payload.user_id)


def _group_by_author(stories: list[Story]) -> list[StoryBucket]:
    grouped: dict[str, StoryBucket] = {}
    for story in stories:
        if story.profiles is None:
            continue
        bucket = grouped.get(story.user_id)
        if bucket is None:
            bucket = StoryBucket(user=story.profiles, stories=[])
            grouped[story.user_id] = bucket
        bucket.stories.append(story)

    epoch = datetime.min.replace(tzinfo=timezone.utc)
    return sorted(
        grouped.values(),
        key=lambda item: item.stories[0].created_at or epoch,
        reverse=True,
    )


def get_active_stories(client: BackendClient, *, current_user_id: str | None) -> ApiResponse:
    """Unexpired stories of the viewer and the people they follow, one bucket per author."""

    def _list() -> list[StoryBucket]:
        viewer_id = require_user(current_user_id)
        follows = client.select(FOLLOWS_TABLE, columns="following_id", filters={"follower_id": eq(viewer_id)})
        author_ids = {viewer_id}
        author_ids.update(row["following_id"] for row in follows.data or [])

        result = client.select(
            STORIES_TABLE,
            columns=WITH_AUTHOR,
            filters={"user_id": in_(sorted(author_ids)), "expires_at": gt(_now())},
            order="created_at.desc",
        )
        return _group_by_author([Story.model_validate(row) for row in result.data or []])

    return service_call(
        _list,
        "story_service.get_active_stories",
        default_data=[],
        user_id=current_user_id,
        retry=True,
    )


def get_user_stories(client: BackendClient, user_id: str) -> ApiResponse:
    def _list() -> list[Story]:
        result = client.select(
            STORIES_TABLE,
            columns=WITH_AUTHOR,
            filters={"user_id": eq(user_id), "expires_at": gt(_now())},
            order="created_at.desc",
        )
        return [Story.model_validate(row) for row in result.data or []]

    return service_call(_list, "story_service.get_user_stories", default_data=[], user_id=user_id)


def delete_story(client: BackendClient, story_id: str) -> ApiResponse:
    return service_call(
        lambda: client.delete(STORIES_TABLE, filters={"id": eq(story_id)}),
        "story_service.delete_story",
    )


__all__ = ["create_story", "delete_story", "get_active_stories", "get_user_stories"]
