"""Authentication actions backed by the managed auth server.

Each action drives an :class:`~socialgram.services.auth_store.AuthStore`: it
raises the loading flag, talks to the backend and then either logs the user in
or records the failure message on the store.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Mapping

from jose import JWTError, jwt

from ..clients.backend import BackendClient, BackendError, eq
from ..config import Settings, get_settings
from ..constants import RESET_PASSWORD_PATH
from ..schemas import (
    AuthResult,
    AuthSession,
    AuthUser,
    LoginCredentials,
    Profile,
    ResetPasswordData,
    SignUpCredentials,
    UpdatePasswordData,
)
from .auth_store import AuthStore
from .user_service import NOT_AUTHENTICATED_MESSAGE, PROFILES_TABLE

logger = logging.getLogger(__name__)

INITIALIZE_FAILED_MESSAGE = "Failed to initialize authentication"


def _fail(store: AuthStore, message: str) -> AuthResult:
    store.set_error(message)
    store.set_loading(False)
    return AuthResult(success=False, error=message)


def _begin(store: AuthStore) -> None:
    store.set_loading(True)
    store.clear_error()


def parse_session(payload: Mapping[str, Any]) -> AuthSession:
    """Build an :class:`AuthSession`, deriving ``expires_at`` when the server only sent ``expires_in``."""

    session = AuthSession.model_validate(payload)
    if session.expires_at is None and session.expires_in:
        session = session.model_copy(update={"expires_at": int(time.time()) + session.expires_in})
    return session


def session_expires_at(session: AuthSession) -> int | None:
    if session.expires_at is not None:
        return session.expires_at
    try:
        claims = jwt.get_unverified_claims(session.access_token)
    except JWTError:
        return None
    exp = claims.get("exp")
    return int(exp) if isinstance(exp, (int, float)) else None


def session_needs_refresh(
    session: AuthSession,
    *,
    leeway_seconds: int | None = None,
    now: float | None = None,
) -> bool:
    expires_at = session_expires_at(session)
    if expires_at is None:
        return False
    if leeway_seconds is None:
        leeway_seconds = get_settings().session_refresh_leeway_seconds
    current = time.time() if now is None else now
    return expires_at - leeway_seconds <= current


def fetch_user_profile(client: BackendClient, user_id: str) -> Profile | None:
    """Return the user's profile, or ``None`` when it is missing or cannot be read."""

    try:
        result = client.select(PROFILES_TABLE, filters={"id": eq(user_id)}, single=True)
        return Profile.model_validate(result.data)
    except (BackendError, ValueError) as exc:
        logger.error("Error fetching user profile for %s: %s", user_id, exc)
        return None


def _login_with_session(client: BackendClient, store: AuthStore, user: AuthUser, session: AuthSession) -> None:
    profile = fetch_user_profile(client.with_access_token(session.access_token), user.id)
    store.login(user, profile, session)


def initialize_auth(client: BackendClient, store: AuthStore) -> AuthResult:
    """Restore the persisted session, refreshing it first when it is about to expire."""

    _begin(store)
    session = store.state.session
    user = (session.user if session else None) or store.state.user
    if session is None or user is None:
        store.logout()
        return AuthResult(success=True)

    if not session.refresh_token and session_needs_refresh(session, leeway_seconds=0):
        logger.warning("Persisted session for %s expired without a refresh token", user.id)
        store.logout()
        return _fail(store, INITIALIZE_FAILED_MESSAGE)

    try:
        if session_needs_refresh(session) and session.refresh_token:
            session = parse_session(client.refresh_session(session.refresh_token))
            user = session.user or user
        _login_with_session(client, store, user, session)
    except (BackendError, ValueError) as exc:
        logger.error("Auth initialization error: %s", exc)
        # A session that cannot be refreshed is no longer usable.
        store.logout()
        return _fail(store, INITIALIZE_FAILED_MESSAGE)
    return AuthResult(success=True)


def login(client: BackendClient, store: AuthStore, credentials: LoginCredentials) -> AuthResult:
    _begin(store)
    try:
        payload = client.sign_in_with_password(credentials.email, credentials.password)
        session = parse_session(payload)
    except BackendError as exc:
        return _fail(store, exc.message)
    except ValueError as exc:
        logger.error("Unexpected sign in response: %s", exc)
        return _fail(store, "Login failed")

    if session.user is not None:
        _login_with_session(client, store, session.user, session)
    else:
        store.set_loading(False)
    return AuthResult(success=True)


def sign_up(client: BackendClient, store: AuthStore, credentials: SignUpCredentials) -> AuthResult:
    """Register a user; ``needs_verification`` is set when the server withheld a session."""

    _begin(store)
    try:
        payload = client.sign_up(
            credentials.email,
            credentials.password,
            data={"username": credentials.username, "full_name": credentials.full_name},
        )
        user = AuthUser.model_validate(payload["user"]) if payload.get("user") else None
        session = parse_session(payload["session"]) if payload.get("session") else None
    except BackendError as exc:
        return _fail(store, exc.message)
    except ValueError as exc:
        logger.error("Unexpected sign up response: %s", exc)
        return _fail(store, "Sign up failed")

    if user is not None and session is not None:
        _login_with_session(client, store, user, session)
    else:
        if user is not None:
            store.set_user(user)
        store.set_authenticated(False)
        store.set_loading(False)
    return AuthResult(success=True, needs_verification=session is None)


def logout(client: BackendClient, store: AuthStore) -> AuthResult:
    _begin(store)
    token = store.access_token
    if token:
        try:
            client.sign_out(token)
        except BackendError as exc:
            return _fail(store, exc.message)
    store.logout()
    return AuthResult(success=True)


def reset_password(
    client: BackendClient,
    store: AuthStore,
    data: ResetPasswordData,
    *,
    settings: Settings | None = None,
) -> AuthResult:
    settings = settings or get_settings()
    _begin(store)
    try:
        client.reset_password_for_email(
            data.email,
            redirect_to=f"{settings.site_url.rstrip('/')}{RESET_PASSWORD_PATH}",
        )
    except BackendError as exc:
        return _fail(store, exc.message)
    store.set_loading(False)
    return AuthResult(success=True)


def update_password(client: BackendClient, store: AuthStore, data: UpdatePasswordData) -> AuthResult:
    _begin(store)
    token = store.access_token
    if not token:
        return _fail(store, NOT_AUTHENTICATED_MESSAGE)
    try:
        client.update_user(token, {"password": data.new_password})
    except BackendError as exc:
        return _fail(store, exc.message)
    store.set_loading(False)
    return AuthResult(success=True)


def refresh_user(client: BackendClient, store: AuthStore) -> None:
    """Reload the signed-in user's profile into the store."""

    user = store.current_user
    if user is None:
        return
    profile = fetch_user_profile(client.with_access_token(store.access_token), user.id)
    store.set_profile(profile)


def refresh_session(client: BackendClient, store: AuthStore) -> AuthResult:
    session = store.state.session
    if session is None or not session.refresh_token:
        return AuthResult(success=False, error=NOT_AUTHENTICATED_MESSAGE)
    try:
        refreshed = parse_session(client.refresh_session(session.refresh_token))
    except BackendError as exc:
        logger.warning("Session refresh failed: %s", exc.message)
        return _fail(store, exc.message)
    except ValueError as exc:
        logger.error("Unexpected refresh response: %s", exc)
        return _fail(store, "Session refresh failed")

    store.set_session(refreshed)
    if refreshed.user is not None:
        store.set_user(refreshed.user)
    return AuthResult(success=True)


def ensure_fresh_session(client: BackendClient, store: AuthStore) -> bool:
    """Refresh the stored session when it is close to expiry; ``False`` if that failed."""

    session = store.state.session
    if session is None or not session_needs_refresh(session):
        return True
    return refresh_session(client, store).success


def handle_auth_state_change(
    client: BackendClient,
    store: AuthStore,
    event: str,
    session: AuthSession | Mapping[str, Any] | None,
) -> None:
    """Apply an auth event (sign in, token refresh, sign out) pushed by the backend."""

    if session is not None and not isinstance(session, AuthSession):
        session = parse_session(session)
    logger.info("Auth state changed: %s %s", event, session.user.id if session and session.user else None)

    if session is not None and session.user is not None:
        _login_with_session(client, store, session.user, session)
    else:
        store.logout()


__all__ = [
    "INITIALIZE_FAILED_MESSAGE",
    "ensure_fresh_session",
    "fetch_user_profile",
    "handle_auth_state_change",
    "initialize_auth",
    "login",
    "logout",
    "parse_session",
    "refresh_session",
    "refresh_user",
    "reset_password",
    "session_expires_at",
    "session_needs_refresh",
    "sign_up",
    "update_password",
]
