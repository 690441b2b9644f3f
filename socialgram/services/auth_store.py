"""Persisted authentication state for one client session.

The store holds the signed-in user, their profile and the backend session, plus
UI flags. Every change is written to a :class:`StateStorage` as
``{"state": <persisted fields>, "version": 1}``; loading and error flags are
never persisted and are reset on hydration.
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Mapping, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..constants import AUTH_STORE_VERSION
from ..database import create_session
from ..models import AuthStateItem
from ..schemas import AuthSession, AuthUser, Profile
from ..security.data_vault import DataVaultError, decrypt_text, encrypt_text, is_vault_configured

logger = logging.getLogger(__name__)

AUTH_STORE_KEY = "auth-storage"

PERSISTED_FIELDS = (
    "user",
    "profile",
    "session",
    "is_authenticated",
    "has_completed_onboarding",
    "is_first_time_user",
)


class StateStorage(Protocol):
    def get_item(self, key: str) -> str | None:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class MemoryStateStorage:
    """Dictionary-backed storage used when no database is wired in."""

    def __init__(self) -> None:
        self._items: dict[str, str] = {}

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)


class SqlStateStorage:
    """Keeps store snapshots in the ``auth_state`` table, encrypted when the data vault is configured."""

    def __init__(self, session_factory: Callable[[], Session] = create_session) -> None:
        self._session_factory = session_factory

    def get_item(self, key: str) -> str | None:
        with self._session_factory() as session:
            item = session.get(AuthStateItem, key)
            if item is None:
                return None
            return decrypt_text(item.value)

    def set_item(self, key: str, value: str) -> None:
        stored = encrypt_text(value) if is_vault_configured() else value
        with self._session_factory() as session:
            try:
                item = session.get(AuthStateItem, key)
                if item is None:
                    session.add(AuthStateItem(key=key, value=stored))
                else:
                    item.value = stored
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                logger.exception("Failed to persist auth state for %s", key)
                raise

    def remove_item(self, key: str) -> None:
        with self._session_factory() as session:
            item = session.get(AuthStateItem, key)
            if item is None:
                return
            session.delete(item)
            session.commit()


@dataclass
class AuthState:
    user: AuthUser | None = None
    profile: Profile | None = None
    session: AuthSession | None = None
    is_authenticated: bool = False
    is_loading: bool = False
    error: str | None = None
    has_completed_onboarding: bool = False
    is_first_time_user: bool = True

    def to_dict(self) -> dict[str, Any]:
        return {
            "user": self.user.model_dump(mode="json") if self.user else None,
            "profile": self.profile.model_dump(mode="json") if self.profile else None,
            "session": self.session.model_dump(mode="json") if self.session else None,
            "is_authenticated": self.is_authenticated,
            "is_loading": self.is_loading,
            "error": self.error,
            "has_completed_onboarding": self.has_completed_onboarding,
            "is_first_time_user": self.is_first_time_user,
        }

    @classmethod
    def from_persisted(cls, payload: Mapping[str, Any]) -> "AuthState":
        user = payload.get("user")
        profile = payload.get("profile")
        session = payload.get("session")
        return cls(
            user=AuthUser.model_validate(user) if user else None,
            profile=Profile.model_validate(profile) if profile else None,
            session=AuthSession.model_validate(session) if session else None,
            is_authenticated=bool(payload.get("is_authenticated", False)),
            has_completed_onboarding=bool(payload.get("has_completed_onboarding", False)),
            is_first_time_user=bool(payload.get("is_first_time_user", True)),
        )


def migrate_persisted_state(state: Mapping[str, Any], version: int) -> dict[str, Any]:
    """Upgrade a snapshot written by an older store version."""

    migrated = dict(state)
    if version == 0:
        migrated["has_completed_onboarding"] = False
        migrated["is_first_time_user"] = True
    return migrated


class AuthStore:
    def __init__(
        self,
        key: str = AUTH_STORE_KEY,
        storage: StateStorage | None = None,
        *,
        state: AuthState | None = None,
    ) -> None:
        self.key = key
        self.storage: StateStorage = storage if storage is not None else MemoryStateStorage()
        self._state = state or AuthState()

    @classmethod
    def hydrate(cls, key: str = AUTH_STORE_KEY, storage: StateStorage | None = None) -> "AuthStore":
        """Load the persisted snapshot for ``key``, starting fresh when none is usable."""

        store = cls(key, storage)
        try:
            raw = store.storage.get_item(key)
        except DataVaultError as exc:
            logger.warning("Discarding auth state for %s that cannot be decrypted: %s", key, exc)
            return store
        if not raw:
            return store

        try:
            payload = json.loads(raw)
            persisted = payload.get("state") or {}
            version = int(payload.get("version", 0))
            if version != AUTH_STORE_VERSION:
                persisted = migrate_persisted_state(persisted, version)
            restored = AuthState.from_persisted(persisted)
        except (ValueError, TypeError, AttributeError) as exc:
            logger.warning("Discarding unreadable auth state for %s: %s", key, exc)
            return store

        store._state = replace(restored, is_loading=False, error=None)
        return store

    @property
    def state(self) -> AuthState:
        return self._state

    def _partialize(self) -> dict[str, Any]:
        snapshot = self._state.to_dict()
        return {name: snapshot[name] for name in PERSISTED_FIELDS}

    def _persist(self) -> None:
        payload = {"state": self._partialize(), "version": AUTH_STORE_VERSION}
        self.storage.set_item(self.key, json.dumps(payload))

    def _set(self, **changes: Any) -> None:
        self._state = replace(self._state, **changes)
        self._persist()

    # Basic setters

    def set_user(self, user: AuthUser | None) -> None:
        self._set(user=user)

    def set_profile(self, profile: Profile | None) -> None:
        self._set(profile=profile)

    def set_session(self, session: AuthSession | None) -> None:
        self._set(session=session)

    def set_authenticated(self, is_authenticated: bool) -> None:
        self._set(is_authenticated=is_authenticated)

    def set_loading(self, is_loading: bool) -> None:
        self._set(is_loading=is_loading)

    def set_error(self, error: str | None) -> None:
        self._set(error=error)

    def clear_error(self) -> None:
        self._set(error=None)

    def set_onboarding_complete(self, completed: bool) -> None:
        self._set(has_completed_onboarding=completed)

    def set_first_time_user(self, is_first_time: bool) -> None:
        self._set(is_first_time_user=is_first_time)

    # Combined actions

    def login(self, user: AuthUser, profile: Profile | None, session: AuthSession) -> None:
        self._set(
            user=user,
            profile=profile,
            session=session,
            is_authenticated=True,
            is_loading=False,
            error=None,
            is_first_time_user=profile is None,
        )

    def logout(self) -> None:
        """Forget the user; onboarding flags survive so returning users skip it."""

        self._set(
            user=None,
            profile=None,
            session=None,
            is_authenticated=False,
            is_loading=False,
            error=None,
        )

    def update_profile(self, updates: Mapping[str, Any]) -> None:
        current = self._state.profile
        if current is None:
            return
        self._set(profile=current.model_copy(update=dict(updates)))

    def reset(self) -> None:
        self._state = AuthState()
        self._persist()

    def forget(self) -> None:
        """Drop the persisted snapshot entirely and return to the initial state."""

        self._state = AuthState()
        self.storage.remove_item(self.key)

    # Helpers

    def is_user_authenticated(self) -> bool:
        state = self._state
        return state.is_authenticated and state.user is not None and state.session is not None

    @property
    def current_user(self) -> AuthUser | None:
        return self._state.user

    @property
    def current_profile(self) -> Profile | None:
        return self._state.profile

    @property
    def current_user_id(self) -> str | None:
        return self._state.user.id if self._state.user else None

    @property
    def access_token(self) -> str | None:
        return self._state.session.access_token if self._state.session else None


__all__ = [
    "AUTH_STORE_KEY",
    "AuthState",
    "AuthStore",
    "MemoryStateStorage",
    "PERSISTED_FIELDS",
    "SqlStateStorage",
    "StateStorage",
    "migrate_persisted_state",
]
