"""Business logic for posts, likes and comments."""
from __future__ import annotations

from typing import Any, Mapping

from ..clients.backend import BackendClient, eq, in_
from ..constants import DEFAULT_PAGE_LIMIT, ErrorType
from ..schemas import (
    ApiResponse,
    Comment,
    CommentInsert,
    CommentUpdate,
    Like,
    PaginatedResponse,
    Post,
    PostInsert,
    PostUpdate,
)
from .errors import (
    ServiceError,
    create_paginated_error_response,
    create_paginated_validation_error_response,
    create_validation_error_response,
    paginated_service_call,
    service_call,
)
from .user_service import FOLLOWS_TABLE, NOT_AUTHENTICATED_MESSAGE, require_user
from .validation import (
    coerce_model,
    validate_comment_insert,
    validate_comment_update,
    validate_pagination,
    validate_post_insert,
    validate_post_update,
)

POSTS_TABLE = "posts"
LIKES_TABLE = "likes"
COMMENTS_TABLE = "comments"

WITH_AUTHOR = "*,profiles(*)"


def get_post(client: BackendClient, post_id: str) -> ApiResponse:
    def _fetch() -> Post:
        result = client.select(POSTS_TABLE, columns=WITH_AUTHOR, filters={"id": eq(post_id)}, single=True)
        return Post.model_validate(result.data)

    return service_call(_fetch, "post_service.get_post", retry=True)


def create_post(client: BackendClient, post: PostInsert | Mapping[str, Any]) -> ApiResponse:
    payload = coerce_model(PostInsert, post)
    validation = validate_post_insert(payload)
    if not validation.is_valid:
        return create_validation_error_response(validation.errors)

    def _insert() -> Post:
        row = client.insert(POSTS_TABLE, payload.model_dump(exclude_none=True), columns=WITH_AUTHOR)
        return Post.model_validate(row)

    return service_call(_insert, "post_service.create_post", user_id=payload.user_id)


def update_post(client: BackendClient, post_id: str, updates: PostUpdate | Mapping[str, Any]) -> ApiResponse:
    payload = coerce_model(PostUpdate, updates)
    validation = validate_post_update(payload)
    if not validation.is_valid:
        return create_validation_error_response(validation.errors)

    def _update() -> Post:
        row = client.update(
            POSTS_TABLE,
            payload.model_dump(exclude_unset=True),
            filters={"id": eq(post_id)},
            columns=WITH_AUTHOR,
        )
        return Post.model_validate(row)

    return service_call(_update, "post_service.update_post")


def delete_post(client: BackendClient, post_id: str) -> ApiResponse:
    return service_call(lambda: client.delete(POSTS_TABLE, filters={"id": eq(post_id)}), "post_service.delete_post")


def _liked_post_ids(client: BackendClient, viewer_id: str, post_ids: list[str]) -> set[str]:
    if not post_ids:
        return set()
    result = client.select(
        LIKES_TABLE,
        columns="post_id",
        filters={"user_id": eq(viewer_id), "post_id": in_(post_ids)},
    )
    return {row["post_id"] for row in result.data or []}


def get_feed_posts(
    client: BackendClient,
    *,
    current_user_id: str | None,
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> PaginatedResponse:
    """Posts by the viewer and everyone they follow, newest first, with ``is_liked`` filled in."""

    if not current_user_id:
        return create_paginated_error_response(
            ServiceError(ErrorType.AUTHENTICATION, NOT_AUTHENTICATED_MESSAGE), limit=limit, offset=offset
        )
    validation = validate_pagination(limit, offset)
    if not validation.is_valid:
        return create_paginated_validation_error_response(validation.errors, limit=limit, offset=offset)

    def _feed() -> tuple[list[Post], int | None]:
        follows = client.select(FOLLOWS_TABLE, columns="following_id", filters={"follower_id": eq(current_user_id)})
        author_ids = [current_user_id]
        author_ids.extend(row["following_id"] for row in follows.data or [] if row["following_id"] != current_user_id)

        result = client.select(
            POSTS_TABLE,
            columns=WITH_AUTHOR,
            filters={"user_id": in_(author_ids)},
            order="created_at.desc",
            limit=limit,
            offset=offset,
            count=True,
        )
        posts = [Post.model_validate(row) for row in result.data or []]
        liked = _liked_post_ids(client, current_user_id, [post.id for post in posts])
        for post in posts:
            post.is_liked = post.id in liked
        return posts, result.count or 0

    return paginated_service_call(
        _feed,
        "post_service.get_feed_posts",
        limit=limit,
        offset=offset,
        user_id=current_user_id,
        retry=True,
    )


def get_user_posts(
    client: BackendClient,
    user_id: str,
    *,
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> PaginatedResponse:
    validation = validate_pagination(limit, offset)
    if not validation.is_valid:
        return create_paginated_validation_error_response(validation.errors, limit=limit, offset=offset)

    def _list() -> tuple[list[Post], int | None]:
        result = client.select(
            POSTS_TABLE,
            columns=WITH_AUTHOR,
            filters={"user_id": eq(user_id)},
            order="created_at.desc",
            limit=limit,
            offset=offset,
            count=True,
        )
        return [Post.model_validate(row) for row in result.data or []], result.count or 0

    return paginated_service_call(
        _list, "post_service.get_user_posts", limit=limit, offset=offset, user_id=user_id, retry=True
    )


def like_post(client: BackendClient, post_id: str, *, current_user_id: str | None) -> ApiResponse:
    def _like() -> Like:
        user_id = require_user(current_user_id)
        row = client.insert(LIKES_TABLE, {"user_id": user_id, "post_id": post_id})
        return Like.model_validate(row)

    return service_call(_like, "post_service.like_post", user_id=current_user_id)


def unlike_post(client: BackendClient, post_id: str, *, current_user_id: str | None) -> ApiResponse:
    def _unlike() -> None:
        user_id = require_user(current_user_id)
        client.delete(LIKES_TABLE, filters={"user_id": eq(user_id), "post_id": eq(post_id)})

    return service_call(_unlike, "post_service.unlike_post", user_id=current_user_id)


def is_post_liked(client: BackendClient, post_id: str, *, current_user_id: str | None) -> ApiResponse:
    if not current_user_id:
        return ApiResponse(data=False, success=True)

    def _check() -> bool:
        result = client.select(
            LIKES_TABLE,
            columns="id",
            filters={"user_id": eq(current_user_id), "post_id": eq(post_id)},
            limit=1,
        )
        return bool(result.data)

    return service_call(_check, "post_service.is_post_liked", default_data=False, user_id=current_user_id)


def get_post_likes(
    client: BackendClient,
    post_id: str,
    *,
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> PaginatedResponse:
    def _list() -> tuple[list[Like], int | None]:
        result = client.select(
            LIKES_TABLE,
            columns=WITH_AUTHOR,
            filters={"post_id": eq(post_id)},
            order="created_at.desc",
            limit=limit,
            offset=offset,
            count=True,
        )
        return [Like.model_validate(row) for row in result.data or []], result.count or 0

    return paginated_service_call(_list, "post_service.get_post_likes", limit=limit, offset=offset)


def add_comment(client: BackendClient, comment: CommentInsert | Mapping[str, Any]) -> ApiResponse:
    payload = coerce_model(CommentInsert, comment)
    validation = validate_comment_insert(payload)
    if not validation.is_valid:
        return create_validation_error_response(validation.errors)

    def _insert() -> Comment:
        row = client.insert(COMMENTS_TABLE, payload.model_dump(), columns=WITH_AUTHOR)
        return Comment.model_validate(row)

    return service_call(_insert, "post_service.add_comment", user_id=payload.user_id)


def update_comment(
    client: BackendClient,
    comment_id: str,
    updates: CommentUpdate | Mapping[str, Any],
) -> ApiResponse:
    payload = coerce_model(CommentUpdate, updates)
    validation = validate_comment_update(payload)
    if not validation.is_valid:
        return create_validation_error_response(validation.errors)

    def _update() -> Comment:
        row = client.update(
            COMMENTS_TABLE,
            payload.model_dump(exclude_unset=True),
            filters={"id": eq(comment_id)},
            columns=WITH_AUTHOR,
        )
        return Comment.model_validate(row)

    return service_call(_update, "post_service.update_comment")


def delete_comment(client: BackendClient, comment_id: str) -> ApiResponse:
    return service_call(
        lambda: client.delete(COMMENTS_TABLE, filters={"id": eq(comment_id)}),
        "post_service.delete_comment",
    )


def get_post_comments(
    client: BackendClient,
    post_id: str,
    *,
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> PaginatedResponse:
    """Comments in conversation order (oldest first)."""

    validation = validate_pagination(limit, offset)
    if not validation.is_valid:
        return create_paginated_validation_error_response(validation.errors, limit=limit, offset=offset)

    def _list() -> tuple[list[Comment], int | None]:
        result = client.select(
            COMMENTS_TABLE,
            columns=WITH_AUTHOR,
            filters={"post_id": eq(post_id)},
            order="created_at.asc",
            limit=limit,
            offset=offset,
            count=True,
        )
        return [Comment.model_validate(row) for row in result.data or []], result.count or 0

    return paginated_service_call(_list, "post_service.get_post_comments", limit=limit, offset=offset, retry=True)


def get_comment(client: BackendClient, comment_id: str) -> ApiResponse:
    def _fetch() -> Comment:
        result = client.select(COMMENTS_TABLE, columns=WITH_AUTHOR, filters={"id": eq(comment_id)}, single=True)
        return Comment.model_validate(result.data)

    return service_call(_fetch, "post_service.get_comment")


__all__ = [
    "add_comment",
    "create_post",
    "delete_comment",
    "delete_post",
    "get_comment",
    "get_feed_posts",
    "get_post",
    "get_post_comments",
    "get_post_likes",
    "get_user_posts",
    "is_post_liked",
    "like_post",
    "unlike_post",
    "update_comment",
    "update_post",
]
