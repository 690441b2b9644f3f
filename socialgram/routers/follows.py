"""Follow management API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from starlette.responses import JSONResponse

from ..clients.backend import BackendClient
from ..constants import DEFAULT_PAGE_LIMIT
from ..services import user_service
from ..services.auth_store import AuthStore
from .deps import get_auth_store, get_user_client, require_profile, respond

router = APIRouter(prefix="/follows", tags=["follows"])


@router.post("/{target_id}")
def follow_user_endpoint(
    target_id: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    result = user_service.follow_user(client, target_id, current_user_id=store.current_user_id)
    return respond(result, success_status=status.HTTP_201_CREATED)


@router.delete("/{target_id}")
def unfollow_user_endpoint(
    target_id: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    return respond(user_service.unfollow_user(client, target_id, current_user_id=store.current_user_id))


@router.get("/{target_id}/status")
def follow_status_endpoint(
    target_id: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(get_auth_store),
) -> JSONResponse:
    return respond(user_service.is_following(client, target_id, current_user_id=store.current_user_id))


@router.get("/{user_id}/followers")
def followers_endpoint(
    user_id: str,
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    offset: int = Query(0),
    client: BackendClient = Depends(get_user_client),
) -> JSONResponse:
    return respond(user_service.get_followers(client, user_id, limit=limit, offset=offset))


@router.get("/{user_id}/following")
def following_endpoint(
    user_id: str,
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    offset: int = Query(0),
    client: BackendClient = Depends(get_user_client),
) -> JSONResponse:
    return respond(user_service.get_following(client, user_id, limit=limit, offset=offset))


__all__ = ["router"]
