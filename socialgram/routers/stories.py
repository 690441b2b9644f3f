"""Story API routes."""
from __future__ import annotations

from fastapi import APIRouter, Depends, status
from starlette.responses import JSONResponse

from ..clients.backend import BackendClient
from ..schemas import StoryCreateRequest, StoryInsert
from ..services import story_service
from ..services.auth_store import AuthStore
from .deps import get_auth_store, get_user_client, require_profile, respond

router = APIRouter(prefix="/stories", tags=["stories"])


@router.get("")
def active_stories_endpoint(
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(get_auth_store),
) -> JSONResponse:
    """Unexpired stories of the signed-in user and the accounts they follow, grouped by author."""

    return respond(story_service.get_active_stories(client, current_user_id=store.current_user_id))


@router.get("/user/{user_id}")
def user_stories_endpoint(user_id: str, client: BackendClient = Depends(get_user_client)) -> JSONResponse:
    return respond(story_service.get_user_stories(client, user_id))


@router.post("")
def create_story_endpoint(
    payload: StoryCreateRequest,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    story = StoryInsert(user_id=store.current_user_id, **payload.model_dump(exclude_unset=True))
    return respond(story_service.create_story(client, story), success_status=status.HTTP_201_CREATED)


@router.delete("/{story_id}")
def delete_story_endpoint(
    story_id: str,
    client: BackendClient = Depends(get_user_client),
    store: AuthStore = Depends(require_profile),
) -> JSONResponse:
    return respond(story_service.delete_story(client, story_id))


__all__ = ["router"]
