"""Profile lookup, search and profile setup routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from starlette.responses import JSONResponse

from ..clients.backend import BackendClient
from ..constants import DEFAULT_PAGE_LIMIT
from ..schemas import ProfileInsert, ProfileSetupRequest, ProfileUpdate
from ..services import user_service
from ..services.auth_store import AuthStore
from .deps import get_user_client, require_authenticated, require_profile, respond

router = APIRouter(prefix="/profiles", tags=["profiles"])


@router.get("/search")
def search_profiles_endpoint(
    q: str = Query(""),
    limit: int = Query(DEFAULT_PAGE_LIMIT),
    offset: int = Query(0),
    client: BackendClient = Depends(get_user_client),
) -> JSONResponse:
    return respond(user_service.search_users(client, q, limit=limit, offset=offset))


@router.get("/username-available")
def username_available_endpoint(
    username: str = Query(""),
    client: BackendClient = Depends(get_user_client),
) -> JSONResponse:
    return respond(user_service.is_username_available(client, username))


@router.get("/by-username/{username}")
def profile_by_username_endpoint(username: str, client: BackendClient = Depends(get_user_client)) -> JSONResponse:
    return respond(user_service.get_profile_by_username(client, username))


@router.post("")
def create_profile_endpoint(
    payload: ProfileSetupRequest,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_authenticated),
) -> JSONResponse:
    """Complete profile setup for the signed-in user."""

    profile = ProfileInsert(id=store.current_user_id, **payload.model_dump(exclude_unset=True))
    result = user_service.create_profile(client, profile)
    if result.success:
        store.set_profile(result.data)
        store.set_first_time_user(False)
    return respond(result, success_status=status.HTTP_201_CREATED)


@router.patch("/me")
def update_my_profile_endpoint(
    payload: ProfileUpdate,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    result = user_service.update_profile(client, store.current_user_id, payload)
    if result.success:
        store.set_profile(result.data)
    return respond(result)


@router.delete("/me")
def delete_my_profile_endpoint(
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    result = user_service.delete_profile(client, store.current_user_id)
    if result.success:
        store.set_profile(None)
    return respond(result)


@router.get("/{user_id}")
def get_profile_endpoint(user_id: str, client: BackendClient = Depends(get_user_client)) -> JSONResponse:
    return respond(user_service.get_profile(client, user_id))


__all__ = ["router"]
