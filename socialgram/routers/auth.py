"""Authentication API routes driving the per-session auth store."""
from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request, status
from starlette.responses import JSONResponse

from ..clients.backend import BackendClient
from ..constants import LOGIN_ROUTE
from ..schemas import (
    AuthActionResponse,
    AuthResult,
    GuardDecision,
    LoginCredentials,
    ResetPasswordData,
    SignUpCredentials,
    UpdatePasswordData,
)
from ..services import auth_service
from ..services.auth_guard import evaluate_auth_guard
from ..services.auth_store import AuthStore
from ..services.form_validation import (
    FieldRule,
    validate_email,
    validate_field,
    validate_form,
    validate_full_name,
    validate_password,
    validate_password_confirmation,
    validate_username,
)
from .deps import (
    get_auth_store,
    get_backend_client,
    require_authenticated,
    set_session_cookie,
    state_view,
    validation_failed,
)

router = APIRouter(prefix="/auth", tags=["auth"])


def _auth_response(
    request: Request,
    store: AuthStore,
    result: AuthResult,
    *,
    failure_status: int = status.HTTP_400_BAD_REQUEST,
) -> JSONResponse:
    body = AuthActionResponse(result=result, state=state_view(store.state))
    response = JSONResponse(
        status_code=status.HTTP_200_OK if result.success else failure_status,
        content=body.model_dump(mode="json"),
    )
    set_session_cookie(request, response)
    return response


@router.post("/login")
def login_endpoint(
    payload: LoginCredentials,
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    store: AuthStore = Depends(get_auth_store),
) -> JSONResponse:
    form = validate_form(
        payload.model_dump(),
        {
            "email": validate_email,
            "password": lambda value: validate_field(value, FieldRule(required=True)),
        },
    )
    if not form.is_valid:
        return validation_failed(form.errors)

    result = auth_service.login(client, store, payload)
    return _auth_response(request, store, result, failure_status=status.HTTP_401_UNAUTHORIZED)


@router.post("/signup")
def signup_endpoint(
    payload: SignUpCredentials,
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    store: AuthStore = Depends(get_auth_store),
) -> JSONResponse:
    validators = {
        "email": validate_email,
        "password": validate_password,
        "username": lambda value: validate_username(value, required=False),
        "full_name": lambda value: validate_full_name(value, required=False),
    }
    if payload.confirm_password is not None:
        validators["confirm_password"] = lambda value: validate_password_confirmation(payload.password, value)
    form = validate_form(payload.model_dump(), validators)
    if not form.is_valid:
        return validation_failed(form.errors)

    result = auth_service.sign_up(client, store, payload)
    return _auth_response(request, store, result)


@router.post("/logout")
def logout_endpoint(
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    store: AuthStore = Depends(get_auth_store),
) -> JSONResponse:
    result = auth_service.logout(client, store)
    return _auth_response(request, store, result)


@router.post("/reset-password")
def reset_password_endpoint(
    payload: ResetPasswordData,
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    store: AuthStore = Depends(get_auth_store),
) -> JSONResponse:
    form = validate_form(payload.model_dump(), {"email": validate_email})
    if not form.is_valid:
        return validation_failed(form.errors)

    result = auth_service.reset_password(client, store, payload)
    return _auth_response(request, store, result)


@router.post("/update-password")
def update_password_endpoint(
    payload: UpdatePasswordData,
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    store: AuthStore = Depends(require_authenticated),
) -> JSONResponse:
    form = validate_form(payload.model_dump(), {"new_password": validate_password})
    if not form.is_valid:
        return validation_failed(form.errors)

    result = auth_service.update_password(client, store, payload)
    return _auth_response(request, store, result)


@router.post("/refresh")
def refresh_endpoint(
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    store: AuthStore = Depends(get_auth_store),
) -> JSONResponse:
    result = auth_service.refresh_session(client, store)
    return _auth_response(request, store, result, failure_status=status.HTTP_401_UNAUTHORIZED)


@router.get("/session")
def session_endpoint(
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    store: AuthStore = Depends(get_auth_store),
) -> JSONResponse:
    """Restore the persisted session and report the resulting auth state."""

    result = auth_service.initialize_auth(client, store)
    return _auth_response(request, store, result)


@router.post("/profile/refresh")
def refresh_profile_endpoint(
    request: Request,
    client: BackendClient = Depends(get_backend_client),
    store: AuthStore = Depends(require_authenticated),
) -> JSONResponse:
    auth_service.refresh_user(client, store)
    return _auth_response(request, store, AuthResult(success=True))


@router.post("/onboarding/complete")
def complete_onboarding_endpoint(
    request: Request,
    store: AuthStore = Depends(require_authenticated),
) -> JSONResponse:
    store.set_onboarding_complete(True)
    return _auth_response(request, store, AuthResult(success=True))


@router.get("/guard", response_model=GuardDecision)
def guard_endpoint(
    require_auth: bool = Query(True),
    require_profile: bool = Query(False),
    redirect_to: str = Query(LOGIN_ROUTE),
    store: AuthStore = Depends(get_auth_store),
) -> GuardDecision:
    return evaluate_auth_guard(
        store.state,
        require_auth=require_auth,
        require_profile=require_profile,
        redirect_to=redirect_to,
    )


__all__ = ["router"]
