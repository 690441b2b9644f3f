"""Access decisions for protected and public areas based on the auth store state."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Literal

from ..constants import HOME_ROUTE, LOGIN_ROUTE, PROFILE_SETUP_ROUTE
from ..schemas import GuardDecision
from .auth_store import AuthState

logger = logging.getLogger(__name__)

AccessReason = Literal["loading", "not_authenticated", "already_authenticated", "profile_required"]


@dataclass(frozen=True, slots=True)
class AccessDecision:
    can_access: bool
    is_loading: bool
    reason: AccessReason | None = None


def evaluate_auth_guard(
    state: AuthState,
    *,
    require_auth: bool = True,
    require_profile: bool = False,
    redirect_to: str = LOGIN_ROUTE,
) -> GuardDecision:
    """Decide whether to render, wait, or send the caller elsewhere.

    Protected areas send anonymous users to ``redirect_to``; public areas send
    signed-in users home; a missing profile sends them to profile setup.
    """

    if state.is_loading:
        return GuardDecision(action="loading", fallback="auth_loading")

    if require_auth and not state.is_authenticated:
        logger.debug("Redirecting to %s: user not authenticated", redirect_to)
        return GuardDecision(action="redirect", redirect_to=redirect_to, fallback="auth_loading")

    if not require_auth and state.is_authenticated:
        logger.debug("Redirecting to home: user already authenticated")
        return GuardDecision(action="redirect", redirect_to=HOME_ROUTE, fallback="auth_loading")

    if require_profile and state.is_authenticated and state.profile is None:
        logger.debug("Redirecting to profile setup: profile incomplete")
        return GuardDecision(action="redirect", redirect_to=PROFILE_SETUP_ROUTE, fallback="profile_required")

    return GuardDecision(action="render")


def evaluate_auth_access(
    state: AuthState,
    *,
    require_auth: bool = True,
    require_profile: bool = False,
) -> AccessDecision:
    if state.is_loading:
        return AccessDecision(can_access=False, is_loading=True, reason="loading")
    if require_auth and not state.is_authenticated:
        return AccessDecision(can_access=False, is_loading=False, reason="not_authenticated")
    if not require_auth and state.is_authenticated:
        return AccessDecision(can_access=False, is_loading=False, reason="already_authenticated")
    if require_profile and state.is_authenticated and state.profile is None:
        return AccessDecision(can_access=False, is_loading=False, reason="profile_required")
    return AccessDecision(can_access=True, is_loading=False)


__all__ = ["AccessDecision", "evaluate_auth_access", "evaluate_auth_guard"]
