"""Post, like and comment API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from starlette.responses import JSONResponse

from ..clients.backend import BackendClient
from ..constants import DEFAULT_PAGE_LIMIT
from ..schemas import (
    CommentCreateRequest,
    CommentInsert,
    CommentUpdate,
    PostCreateRequest,
    PostInsert,
    PostUpdate,
)
from ..services import post_service
from ..services.auth_store import AuthStore
from .deps import get_auth_store, get_user_client, require_profile, respond

router = APIRouter(prefix="/posts", tags=["posts"])


@router.get("/feed")
def feed_endpoint(
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    offset: int = Query(0),
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(get_auth_store),
) -> JSONResponse:
    """Posts from the accounts the signed-in user follows, newest first."""

    result = post_service.get_feed_posts(
        client,
        current_user_id=store.current_user_id,
        limit=limit,
        offset=offset,
    )
    return respond(result)


@router.get("/user/{user_id}")
def user_posts_endpoint(
    user_id: str,
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    offset: int = Query(0),
    client: BackendClient = Depends(get_user_client),
) -> JSONResponse:
    return respond(post_service.get_user_posts(client, user_id, limit=limit, offset=offset))


@router.post("")
def create_post_endpoint(
    payload: PostCreateRequest,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    post = PostInsert(user_id=store.current_user_id, image_url=payload.image_url, caption=payload.caption)
    return respond(post_service.create_post(client, post), success_status=status.HTTP_201_CREATED)


@router.get("/comments/{comment_id}")
def get_comment_endpoint(comment_id: str, client: BackendClient = Depends(get_user_client)) -> JSONResponse:
    return respond(post_service.get_comment(client, comment_id))


@router.patch("/comments/{comment_id}")
def update_comment_endpoint(
    comment_id: str,
    payload: CommentUpdate,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    return respond(post_service.update_comment(client, comment_id, payload))


@router.delete("/comments/{comment_id}")
def delete_comment_endpoint(
    comment_id: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    return respond(post_service.delete_comment(client, comment_id))


@router.get("/{post_id}")
def get_post_endpoint(post_id: str, client: BackendClient = Depends(get_user_client)) -> JSONResponse:
    return respond(post_service.get_post(client, post_id))


@router.patch("/{post_id}")
def update_post_endpoint(
    post_id: str,
    payload: PostUpdate,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    return respond(post_service.update_post(client, post_id, payload))


@router.delete("/{post_id}")
def delete_post_endpoint(
    post_id: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    return respond(post_service.delete_post(client, post_id))


@router.post("/{post_id}/like")
def like_post_endpoint(
    post_id: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    result = post_service.like_post(client, post_id, current_user_id=store.current_user_id)
    return respond(result, success_status=status.HTTP_201_CREATED)


@router.delete("/{post_id}/like")
def unlike_post_endpoint(
    post_id: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    return respond(post_service.unlike_post(client, post_id, current_user_id=store.current_user_id))


@router.get("/{post_id}/like")
def like_status_endpoint(
    post_id: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(get_auth_store),
) -> JSONResponse:
    return respond(post_service.is_post_liked(client, post_id, current_user_id=store.current_user_id))


@router.get("/{post_id}/likes")
def post_likes_endpoint(
    post_id: str,
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    offset: int = Query(0),
    client: BackendClient = Depends(get_user_client),
) -> JSONResponse:
    return respond(post_service.get_post_likes(client, post_id, limit=limit, offset=offset))


@router.get("/{post_id}/comments")
def post_comments_endpoint(
    post_id: str,
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    offset: int = Query(0),
    client: BackendClient = Depends(get_user_client),
) -> JSONResponse:
    return respond(post_service.get_post_comments(client, post_id, limit=limit, offset=offset))


@router.post("/{post_id}/comments")
def add_comment_endpoint(
    post_id: str,
    payload: CommentCreateRequest,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    comment = CommentInsert(user_id=store.current_user_id, post_id=post_id, content=payload.content)
    return respond(post_service.add_comment(client, comment), success_status=status.HTTP_201_CREATED)


__all__ = ["router"]
