"""Tests for the persisted per-session auth store."""
from __future__ import annotations

import json

import pytest
from cryptography.fernet import Fernet

from conftest import USER_ID, profile_row, session_payload
from socialgram.schemas import AuthSession, AuthUser, Profile
from socialgram.security import data_vault
from socialgram.services.auth_store import AuthStore, MemoryStateStorage, SqlStateStorage, migrate_persisted_state


@pytest.fixture
def signed_in() -> tuple[AuthUser, Profile, AuthSession]:
    session = AuthSession.model_validate(session_payload())
    return session.user, Profile.model_validate(profile_row()), session


def test_initial_state(store: AuthStore) -> None:
    state = store.state
    assert state.user is None
    assert state.is_authenticated is False
    assert state.is_loading is False
    assert state.has_completed_onboarding is False
    assert state.is_first_time_user is True
    assert store.is_user_authenticated() is False


def test_login_persists_only_durable_fields(store: AuthStore, memory_storage: MemoryStateStorage, signed_in) -> None:
    user, profile, session = signed_in
    store.set_loading(True)
    store.set_error("stale")

    store.login(user, profile, session)

    assert store.is_user_authenticated() is True
    assert store.state.is_first_time_user is False
    assert store.state.error is None
    persisted = json.loads(memory_storage.get_item(store.key))
    assert persisted["version"] == 1
    assert set(persisted["state"]) == {
        "user",
        "profile",
        "session",
        "is_authenticated",
        "has_completed_onboarding",
        "is_first_time_user",
    }
    assert persisted["state"]["session"]["access_token"] == "access-token"


def test_login_without_profile_marks_first_time_user(store: AuthStore, signed_in) -> None:
    user, _, session = signed_in
    store.login(user, None, session)
    assert store.state.is_first_time_user is True
    assert store.current_user_id == USER_ID
    assert store.access_token == "access-token"


def test_logout_keeps_onboarding_flags(store: AuthStore, signed_in) -> None:
    user, profile, session = signed_in
    store.login(user, profile, session)
    store.set_onboarding_complete(True)

    store.logout()

    assert store.state.user is None
    assert store.state.session is None
    assert store.state.is_authenticated is False
    assert store.state.has_completed_onboarding is True


def test_update_profile_merges_fields(store: AuthStore, signed_in) -> None:
    user, profile, session = signed_in
    store.update_profile({"bio": "ignored without profile"})
    assert store.current_profile is None

    store.login(user, profile, session)
    store.update_profile({"bio": "Photographer"})
    assert store.current_profile.bio == "Photographer"
    assert store.current_profile.username == "jane_doe"


def test_hydrate_restores_state_and_resets_transient_flags(memory_storage: MemoryStateStorage, signed_in) -> None:
    user, profile, session = signed_in
    original = AuthStore("auth-storage:abc", memory_storage)
    original.login(user, profile, session)
    original.set_loading(True)
    original.set_error("boom")

    restored = AuthStore.hydrate("auth-storage:abc", memory_storage)

    assert restored.is_user_authenticated() is True
    assert restored.current_profile.username == "jane_doe"
    assert restored.state.is_loading is False
    assert restored.state.error is None


def test_hydrate_discards_unreadable_snapshot(memory_storage: MemoryStateStorage, caplog) -> None:
    memory_storage.set_item("auth-storage:bad", "{not json")

    store = AuthStore.hydrate("auth-storage:bad", memory_storage)

    assert store.state.is_authenticated is False
    assert "Discarding unreadable auth state" in caplog.text


def test_hydrate_migrates_version_zero(memory_storage: MemoryStateStorage) -> None:
    memory_storage.set_item(
        "auth-storage:old",
        json.dumps({"state": {"is_authenticated": False, "has_completed_onboarding": True}, "version": 0}),
    )

    store = AuthStore.hydrate("auth-storage:old", memory_storage)

    assert store.state.has_completed_onboarding is False
    assert store.state.is_first_time_user is True
    assert migrate_persisted_state({"user": None}, 1) == {"user": None}


def test_reset_and_forget(store: AuthStore, memory_storage: MemoryStateStorage, signed_in) -> None:
    user, profile, session = signed_in
    store.login(user, profile, session)

    store.reset()
    assert json.loads(memory_storage.get_item(store.key))["state"]["is_authenticated"] is False

    store.forget()
    assert memory_storage.get_item(store.key) is None


def test_sql_storage_round_trip(sql_storage: SqlStateStorage, signed_in) -> None:
    user, profile, session = signed_in
    store = AuthStore("auth-storage:sql", sql_storage)
    store.login(user, profile, session)

    restored = AuthStore.hydrate("auth-storage:sql", sql_storage)
    assert restored.current_user_id == USER_ID

    sql_storage.remove_item("auth-storage:sql")
    assert sql_storage.get_item("auth-storage:sql") is None


def test_sql_storage_encrypts_when_vault_configured(
    sql_storage: SqlStateStorage, session_factory, monkeypatch, signed_in
) -> None:
    from socialgram.models import AuthStateItem

    monkeypatch.setenv("DATA_VAULT_MASTER_KEY", Fernet.generate_key().decode("utf-8"))
    data_vault.reset_vault()
    try:
        user, profile, session = signed_in
        AuthStore("auth-storage:vault", sql_storage).login(user, profile, session)

        with session_factory() as db:
            raw = db.get(AuthStateItem, "auth-storage:vault").value
        assert data_vault.is_ciphertext(raw)
        assert "access-token" not in raw
        assert AuthStore.hydrate("auth-storage:vault", sql_storage).access_token == "access-token"
    finally:
        data_vault.reset_vault()


def test_hydrate_starts_fresh_after_vault_key_rotation(
    sql_storage: SqlStateStorage, monkeypatch, signed_in, caplog
) -> None:
    monkeypatch.setenv("DATA_VAULT_MASTER_KEY", Fernet.generate_key().decode("utf-8"))
    data_vault.reset_vault()
    try:
        user, profile, session = signed_in
        AuthStore("auth-storage:rotated", sql_storage).login(user, profile, session)

        monkeypatch.setenv("DATA_VAULT_MASTER_KEY", Fernet.generate_key().decode("utf-8"))
        data_vault.reset_vault()
        store = AuthStore.hydrate("auth-storage:rotated", sql_storage)

        assert store.state.is_authenticated is False
        assert store.state.session is None
        assert "cannot be decrypted" in caplog.text

        store.login(user, profile, session)
        assert AuthStore.hydrate("auth-storage:rotated", sql_storage).access_token == "access-token"
    finally:
        data_vault.reset_vault()
