"""Tests for the payload validators guarding service calls."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from conftest import USER_ID
from socialgram.services.validation import (
    merge_results,
    validate_comment_insert,
    validate_comment_update,
    validate_email,
    validate_pagination,
    validate_post_insert,
    validate_profile_insert,
    validate_profile_update,
    validate_search_query,
    validate_story_insert,
    validate_username,
    validate_uuid,
    validate_website,
)


def _messages(result) -> list[str]:
    return [error.message for error in result.errors]


@pytest.mark.parametrize("username", ["jane", "jane.doe", "jane_doe_99", "abc"])
def test_valid_usernames(username: str) -> None:
    assert validate_username(username).is_valid


def test_username_collects_every_failure() -> None:
    result = validate_username(".a")
    assert not result.is_valid
    assert _messages(result) == [
        "Username must be at least 3 characters long",
        "Username cannot start or end with a dot",
    ]


def test_username_rules() -> None:
    assert _messages(validate_username("")) == ["Username is required"]
    assert _messages(validate_username("x" * 31)) == ["Username must be no more than 30 characters long"]
    assert _messages(validate_username("jane doe")) == [
        "Username can only contain letters, numbers, dots, and underscores"
    ]
    assert _messages(validate_username("jane..doe")) == ["Username cannot contain consecutive dots"]


def test_email_and_website() -> None:
    assert validate_email("jane@example.com").is_valid
    assert _messages(validate_email("")) == ["Email is required"]
    assert _messages(validate_email("jane@")) == ["Please enter a valid email address"]
    assert validate_website(None).is_valid
    assert validate_website("https://jane.dev").is_valid
    assert not validate_website("jane.dev").is_valid


def test_profile_insert_checks_only_supplied_optional_fields() -> None:
    assert validate_profile_insert({"id": USER_ID, "username": "jane"}).is_valid

    result = validate_profile_insert({"id": USER_ID, "username": "jane", "bio": "b" * 151, "website": "nope"})
    assert _messages(result) == [
        "Bio must be no more than 150 characters long",
        "Please enter a valid website URL (must start with http:// or https://)",
    ]


def test_profile_update_skips_missing_username() -> None:
    assert validate_profile_update({"bio": "hello"}).is_valid
    assert _messages(validate_profile_update({"username": "a"})) == ["Username must be at least 3 characters long"]


def test_post_insert_requires_image_and_author() -> None:
    result = validate_post_insert({"caption": "c" * 2201})
    assert _messages(result) == [
        "Image URL is required",
        "User ID is required",
        "Caption must be no more than 2200 characters long",
    ]


def test_comment_rules() -> None:
    result = validate_comment_insert({"content": ""})
    assert _messages(result) == ["Comment content is required", "User ID is required", "Post ID is required"]
    assert _messages(validate_comment_update({"content": "x" * 501})) == [
        "Comment must be no more than 500 characters long"
    ]
    assert validate_comment_update({}).is_valid


def test_story_expiry_must_be_in_future() -> None:
    past = datetime.now(timezone.utc) - timedelta(minutes=1)
    result = validate_story_insert({"user_id": USER_ID, "image_url": "https://cdn/x.jpg", "expires_at": past})
    assert _messages(result) == ["Expiry time must be in the future"]

    future = datetime.now(timezone.utc) + timedelta(hours=1)
    assert validate_story_insert({"user_id": USER_ID, "image_url": "https://cdn/x.jpg", "expires_at": future}).is_valid


def test_uuid_messages_use_field_name() -> None:
    assert validate_uuid(USER_ID).is_valid
    assert _messages(validate_uuid("", "userId")) == ["userId is required"]
    assert _messages(validate_uuid("not-a-uuid", "userId")) == ["userId must be a valid UUID"]


def test_pagination_and_search_bounds() -> None:
    assert validate_pagination(20, 0).is_valid
    assert _messages(validate_pagination(0, -1)) == ["Limit must be at least 1", "Offset cannot be negative"]
    assert _messages(validate_pagination(101)) == ["Limit cannot exceed 100"]
    assert _messages(validate_search_query("")) == ["Search query is required"]
    assert _messages(validate_search_query("a")) == ["Search query must be at least 2 characters long"]
    assert _messages(validate_search_query("q" * 101)) == ["Search query must be no more than 100 characters long"]


def test_merge_results_keeps_order() -> None:
    merged = merge_results(validate_email(""), validate_username(""))
    assert not merged.is_valid
    assert _messages(merged) == ["Email is required", "Username is required"]
