"""Tests for auth guard routing decisions."""
from __future__ import annotations

from dataclasses import replace

from conftest import profile_row
from socialgram.schemas import AuthUser, Profile
from socialgram.services.auth_guard import evaluate_auth_access, evaluate_auth_guard
from socialgram.services.auth_store import AuthState

USER = AuthUser(id="u1")
SIGNED_IN = AuthState(user=USER, is_authenticated=True, profile=Profile.model_validate(profile_row()))


def test_loading_state_waits() -> None:
    decision = evaluate_auth_guard(AuthState(is_loading=True))
    assert decision.action == "loading"
    assert decision.fallback == "auth_loading"
    assert evaluate_auth_access(AuthState(is_loading=True)).reason == "loading"


def test_anonymous_user_redirected_to_login() -> None:
    decision = evaluate_auth_guard(AuthState())
    assert decision.action == "redirect"
    assert decision.redirect_to == "/login"
    assert evaluate_auth_guard(AuthState(), redirect_to="/welcome").redirect_to == "/welcome"
    assert evaluate_auth_access(AuthState()).reason == "not_authenticated"


def test_public_area_sends_signed_in_users_home() -> None:
    decision = evaluate_auth_guard(SIGNED_IN, require_auth=False)
    assert decision.action == "redirect"
    assert decision.redirect_to == "/(tabs)"
    assert evaluate_auth_access(SIGNED_IN, require_auth=False).reason == "already_authenticated"


def test_missing_profile_goes_to_setup() -> None:
    state = replace(SIGNED_IN, profile=None)
    decision = evaluate_auth_guard(state, require_profile=True)
    assert decision.action == "redirect"
    assert decision.redirect_to == "/profile-setup"
    assert decision.fallback == "profile_required"
    assert evaluate_auth_access(state, require_profile=True).reason == "profile_required"


def test_allowed_access_renders() -> None:
    assert evaluate_auth_guard(SIGNED_IN, require_profile=True).action == "render"
    assert evaluate_auth_guard(AuthState(), require_auth=False).action == "render"
    access = evaluate_auth_access(SIGNED_IN)
    assert access.can_access is True
    assert access.reason is None
