"""Shared FastAPI dependencies: backend client, per-session auth store and guards."""
from __future__ import annotations

import logging
import secrets
from functools import lru_cache

from fastapi import Depends, HTTPException, Request, Response, status
from starlette.responses import JSONResponse

from ..clients.backend import BackendClient, create_backend_client
from ..config import get_settings
from ..constants import ErrorType
from ..schemas import ApiResponse, AuthStateView
from ..services.auth_guard import evaluate_auth_guard
from ..services.auth_service import ensure_fresh_session
from ..services.auth_store import AUTH_STORE_KEY, AuthState, AuthStore, SqlStateStorage, StateStorage
from ..services.errors import ServiceError, sanitize_error

logger = logging.getLogger(__name__)

STATUS_BY_ERROR_TYPE: dict[ErrorType, int] = {
    ErrorType.VALIDATION: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ErrorType.AUTHENTICATION: status.HTTP_401_UNAUTHORIZED,
    ErrorType.AUTHORIZATION: status.HTTP_403_FORBIDDEN,
    ErrorType.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorType.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorType.RATE_LIMIT: status.HTTP_429_TOO_MANY_REQUESTS,
    ErrorType.SERVER_ERROR: status.HTTP_502_BAD_GATEWAY,
    ErrorType.NETWORK_ERROR: status.HTTP_503_SERVICE_UNAVAILABLE,
    ErrorType.UNKNOWN: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@lru_cache(maxsize=1)
def get_backend_client() -> BackendClient:
    """Process-wide client holding the connection pool to the backend."""

    return create_backend_client(get_settings())


def get_state_storage() -> StateStorage:
    return SqlStateStorage()


def new_session_key() -> str:
    return secrets.token_urlsafe(32)


def get_auth_store(request: Request, storage: StateStorage = Depends(get_state_storage)) -> AuthStore:
    """Hydrate the auth store of the calling client, keyed by its session cookie."""

    cookie_name = get_settings().session_cookie_name
    session_key = request.cookies.get(cookie_name) or new_session_key()
    request.state.session_key = session_key
    return AuthStore.hydrate(f"{AUTH_STORE_KEY}:{session_key}", storage)


def set_session_cookie(request: Request, response: Response) -> None:
    response.set_cookie(
        get_settings().session_cookie_name,
        request.state.session_key,
        httponly=True,
        samesite="lax",
        secure=request.url.scheme == "https",
        path="/",
    )


def get_user_client(
    client: BackendClient = Depends(get_backend_client),
    store: AuthStore = Depends(get_auth_store),
) -> BackendClient:
    """Backend client acting as the signed-in user (anon key when signed out)."""

    if not ensure_fresh_session(client, store):
        logger.info("Session refresh failed; continuing with the stored token")
    return client.with_access_token(store.access_token)


def _guard_failure(store: AuthStore, *, require_profile: bool) -> None:
    decision = evaluate_auth_guard(store.state, require_auth=True, require_profile=require_profile)
    if decision.action == "render":
        return
    if decision.fallback == "profile_required":
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={"message": "Profile setup required", "redirect_to": decision.redirect_to},
        )
    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"message": "Authentication required", "redirect_to": decision.redirect_to},
    )


def require_authenticated(store: AuthStore = Depends(get_auth_store)) -> AuthStore:
    _guard_failure(store, require_profile=False)
    return store


def require_profile(store: AuthStore = Depends(get_auth_store)) -> AuthStore:
    _guard_failure(store, require_profile=True)
    return store


def state_view(state: AuthState) -> AuthStateView:
    return AuthStateView(
        user=state.user,
        profile=state.profile,
        is_authenticated=state.is_authenticated,
        is_loading=state.is_loading,
        error=state.error,
        has_completed_onboarding=state.has_completed_onboarding,
        is_first_time_user=state.is_first_time_user,
    )


def respond(result: ApiResponse, *, success_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Translate a service envelope into a JSON response with a matching status code."""

    if result.success:
        return JSONResponse(status_code=success_status, content=result.model_dump(mode="json"))

    error_type = result.error_type or ErrorType.UNKNOWN
    sanitized = sanitize_error(ServiceError(error_type, result.error or ""))
    body = result.model_copy(update={"error": sanitized.message, "error_type": error_type})
    return JSONResponse(status_code=STATUS_BY_ERROR_TYPE[error_type], content=body.model_dump(mode="json"))


def validation_failed(errors: dict[str, str]) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"success": False, "error": next(iter(errors.values())), "errors": errors},
    )


__all__ = [
    "STATUS_BY_ERROR_TYPE",
    "get_auth_store",
    "get_backend_client",
    "get_state_storage",
    "get_user_client",
    "new_session_key",
    "require_authenticated",
    "require_profile",
    "respond",
    "set_session_cookie",
    "state_view",
    "validation_failed",
]
