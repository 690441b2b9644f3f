"""Profile management, user search and follower relationships."""
from __future__ import annotations

from typing import Any, Mapping

from ..clients.backend import BackendClient, eq, ilike_any
from ..constants import DEFAULT_PAGE_LIMIT, ErrorType
from ..schemas import ApiResponse, Follow, PaginatedResponse, Profile, ProfileInsert, ProfileUpdate
from .errors import (
    ServiceError,
    create_paginated_validation_error_response,
    create_validation_error_response,
    paginated_service_call,
    service_call,
)
from .validation import (
    coerce_model,
    validate_pagination,
    validate_profile_insert,
    validate_profile_update,
    validate_search_query,
    validate_username,
    validate_uuid,
)

PROFILES_TABLE = "profiles"
FOLLOWS_TABLE = "follows"

NOT_AUTHENTICATED_MESSAGE = "User not authenticated"


def require_user(current_user_id: str | None) -> str:
    if not current_user_id:
        raise ServiceError(ErrorType.AUTHENTICATION, NOT_AUTHENTICATED_MESSAGE)
    return current_user_id


def get_profile(client: BackendClient, user_id: str) -> ApiResponse:
    validation = validate_uuid(user_id, "userId")
    if not validation.is_valid:
        return create_validation_error_response(validation.errors)

    def _fetch() -> Profile:
        result = client.select(PROFILES_TABLE, filters={"id": eq(user_id)}, single=True)
        return Profile.model_validate(result.data)

    return service_call(_fetch, "user_service.get_profile", user_id=user_id, retry=True)


def get_profile_by_username(client: BackendClient, username: str) -> ApiResponse:
    def _fetch() -> Profile:
        result = client.select(PROFILES_TABLE, filters={"username": eq(username)}, single=True)
        return Profile.model_validate(result.data)

    return service_call(_fetch, "user_service.get_profile_by_username", retry=True)


def create_profile(client: BackendClient, profile: ProfileInsert | Mapping[str, Any]) -> ApiResponse:
    payload = coerce_model(ProfileInsert, profile)
    validation = validate_profile_insert(payload)
    if not validation.is_valid:
        return create_validation_error_response(validation.errors)

    def _insert() -> Profile:
        row = client.insert(PROFILES_TABLE, payload.model_dump(exclude_unset=True))
        return Profile.model_validate(row)

    return service_call(_insert, "user_service.create_profile", user_id=payload.id)


def update_profile(
    client: BackendClient,
    user_id: str,
    updates: ProfileUpdate | Mapping[str, Any],
) -> ApiResponse:
    validation = validate_uuid(user_id, "userId")
    if not validation.is_valid:
        return create_validation_error_response(validation.errors)

    payload = coerce_model(ProfileUpdate, updates)
    validation = validate_profile_update(payload)
    if not validation.is_valid:
        return create_validation_error_response(validation.errors)

    def _update() -> Profile:
        row = client.update(PROFILES_TABLE, payload.model_dump(exclude_unset=True), filters={"id": eq(user_id)})
        return Profile.model_validate(row)

    return service_call(_update, "user_service.update_profile", user_id=user_id)


def delete_profile(client: BackendClient, user_id: str) -> ApiResponse:
    return service_call(
        lambda: client.delete(PROFILES_TABLE, filters={"id": eq(user_id)}),
        "user_service.delete_profile",
        user_id=user_id,
    )


def search_users(
    client: BackendClient,
    query: str,
    *,
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> PaginatedResponse:
    """Case-insensitive match on username or full name, ordered by username."""

    for validation in (validate_search_query(query), validate_pagination(limit, offset)):
        if not validation.is_valid:
            return create_paginated_validation_error_response(validation.errors, limit=limit, offset=offset)

    def _search() -> tuple[list[Profile], int | None]:
        result = client.select(
            PROFILES_TABLE,
            or_=ilike_any(("username", "full_name"), query),
            order="username.asc",
            limit=limit,
            offset=offset,
            count=True,
        )
        rows = result.data or []
        return [Profile.model_validate(row) for row in rows], result.count or 0

    return paginated_service_call(_search, "user_service.search_users", limit=limit, offset=offset)


def follow_user(client: BackendClient, following_id: str, *, current_user_id: str | None) -> ApiResponse:
    def _follow() -> Follow:
        follower_id = require_user(current_user_id)
        row = client.insert(FOLLOWS_TABLE, {"follower_id": follower_id, "following_id": following_id})
        return Follow.model_validate(row)

    return service_call(_follow, "user_service.follow_user", user_id=current_user_id)


def unfollow_user(client: BackendClient, following_id: str, *, current_user_id: str | None) -> ApiResponse:
    def _unfollow() -> None:
        follower_id = require_user(current_user_id)
        client.delete(
            FOLLOWS_TABLE,
            filters={"follower_id": eq(follower_id), "following_id": eq(following_id)},
        )

    return service_call(_unfollow, "user_service.unfollow_user", user_id=current_user_id)


def is_following(client: BackendClient, following_id: str, *, current_user_id: str | None) -> ApiResponse:
    """Anonymous viewers follow nobody; that is a successful ``False``."""

    if not current_user_id:
        return ApiResponse(data=False, success=True)

    def _check() -> bool:
        result = client.select(
            FOLLOWS_TABLE,
            columns="id",
            filters={"follower_id": eq(current_user_id), "following_id": eq(following_id)},
            limit=1,
        )
        return bool(result.data)

    return service_call(_check, "user_service.is_following", default_data=False, user_id=current_user_id)


def _follow_profiles(
    client: BackendClient,
    *,
    match_column: str,
    user_id: str,
    embed: str,
    limit: int,
    offset: int,
) -> tuple[list[Profile], int | None]:
    result = client.select(
        FOLLOWS_TABLE,
        columns=embed,
        filters={match_column: eq(user_id)},
        order="created_at.desc",
        limit=limit,
        offset=offset,
        count=True,
    )
    profiles = [Profile.model_validate(row["profiles"]) for row in result.data or [] if row.get("profiles")]
    return profiles, result.count or 0


def get_followers(
    client: BackendClient,
    user_id: str,
    *,
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> PaginatedResponse:
    return paginated_service_call(
        lambda: _follow_profiles(
            client,
            match_column="following_id",
            user_id=user_id,
            embed="follower_id,profiles!follows_follower_id_fkey(*)",
            limit=limit,
            offset=offset,
        ),
        "user_service.get_followers",
        limit=limit,
        offset=offset,
        user_id=user_id,
    )


def get_following(
    client: BackendClient,
    user_id: str,
    *,
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> PaginatedResponse:
    return paginated_service_call(
        lambda: _follow_profiles(
            client,
            match_column="follower_id",
            user_id=user_id,
            embed="following_id,profiles!follows_following_id_fkey(*)",
            limit=limit,
            offset=offset,
        ),
        "user_service.get_following",
        limit=limit,
        offset=offset,
        user_id=user_id,
    )


def is_username_available(client: BackendClient, username: str) -> ApiResponse:
    validation = validate_username(username)
    if not validation.is_valid:
        return create_validation_error_response(validation.errors, False)

    def _check() -> bool:
        result = client.select(PROFILES_TABLE, columns="id", filters={"username": eq(username)}, limit=1)
        return not result.data

    return service_call(_check, "user_service.is_username_available", default_data=False)


__all__ = [
    "FOLLOWS_TABLE",
    "NOT_AUTHENTICATED_MESSAGE",
    "PROFILES_TABLE",
    "create_profile",
    "delete_profile",
    "follow_user",
    "get_followers",
    "get_following",
    "get_profile",
    "get_profile_by_username",
    "is_following",
    "is_username_available",
    "require_user",
    "search_users",
    "unfollow_user",
    "update_profile",
]
