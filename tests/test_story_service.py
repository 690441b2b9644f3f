"""Tests for story publishing and the grouped story tray."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

from conftest import OTHER_ID, USER_ID, FakeBackend, profile_row, request_json
from socialgram.clients.backend import BackendClient
from socialgram.constants import ErrorType
from socialgram.services import story_service

STORIES = "/rest/v1/stories"
FOLLOWS = "/rest/v1/follows"


def story_row(story_id: str, user_id: str, created_at: str, username: str) -> dict:
    return {
        "id": story_id,
        "user_id": user_id,
        "image_url": f"https://cdn.test/{story_id}.jpg",
        "caption": None,
        "views_count": 0,
        "created_at": created_at,
        "expires_at": "2999-01-01T00:00:00+00:00",
        "profiles": profile_row(user_id, username),
    }


def test_create_story_defaults_to_a_day(backend_client: BackendClient, fake_backend: FakeBackend) -> None:
    fake_backend.add(
        "POST",
        STORIES,
        story_row("s1", USER_ID, "2024-05-01T10:00:00+00:00", "jane_doe"),
        status_code=201,
    )
    before = datetime.now(timezone.utc)

    response = story_service.create_story(
        backend_client,
        {"user_id": USER_ID, "image_url": "https://cdn.test/s1.jpg"},
    )

    assert response.success is True
    body = request_json(fake_backend.last("POST", STORIES))
    expires_at = datetime.fromisoformat(body["expires_at"])
    assert before + timedelta(hours=23, minutes=59) < expires_at <= datetime.now(timezone.utc) + timedelta(hours=24)


def test_create_story_rejects_past_expiry(backend_client: BackendClient, fake_backend: FakeBackend) -> None:
    response = story_service.create_story(
        backend_client,
        {
            "user_id": USER_ID,
            "image_url": "https://cdn.test/s1.jpg",
            "expires_at": datetime.now(timezone.utc) - timedelta(hours=1),
        },
    )

    assert response.error == "Expiry time must be in the future"
    assert response.error_type is ErrorType.VALIDATION
    assert fake_backend.requests == []


def test_active_stories_grouped_by_author(backend_client: BackendClient, fake_backend: FakeBackend) -> None:
    fake_backend.add("GET", FOLLOWS, [{"following_id": OTHER_ID}])
    fake_backend.add(
        "GET",
        STORIES,
        [
            story_row("s3", OTHER_ID, "2024-05-01T12:00:00+00:00", "janet"),
            story_row("s2", USER_ID, "2024-05-01T11:00:00+00:00", "jane_doe"),
            story_row("s1", OTHER_ID, "2024-05-01T09:00:00+00:00", "janet"),
        ],
    )

    response = story_service.get_active_stories(backend_client, current_user_id=USER_ID)

    assert response.success is True
    assert [bucket.user.username for bucket in response.data] == ["janet", "jane_doe"]
    assert [story.id for story in response.data[0].stories] == ["s3", "s1"]
    params = fake_backend.last("GET", STORIES).url.params
    assert params["user_id"] == f"in.({USER_ID},{OTHER_ID})"
    assert params["expires_at"].startswith("gt.")


def test_active_stories_need_a_user(backend_client: BackendClient, fake_backend: FakeBackend) -> None:
    response = story_service.get_active_stories(backend_client, current_user_id=None)

    assert response.success is False
    assert response.data == []
    assert response.error_type is ErrorType.AUTHENTICATION


def test_user_stories_and_delete(backend_client: BackendClient, fake_backend: FakeBackend) -> None:
    fake_backend.add("GET", STORIES, [story_row("s1", OTHER_ID, "2024-05-01T09:00:00+00:00", "janet")])
    fake_backend.add("DELETE", STORIES, None, status_code=204)

    listed = story_service.get_user_stories(backend_client, OTHER_ID)
    deleted = story_service.delete_story(backend_client, "s1")

    assert [story.id for story in listed.data] == ["s1"]
    assert deleted.success is True
    assert fake_backend.last("DELETE", STORIES).url.params["id"] == "eq.s1"
