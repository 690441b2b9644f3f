"""Pydantic schemas for authentication and session state."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .profiles import Profile


class AuthUser(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str
    email: str | None = None
    phone: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    email_confirmed_at: datetime | None = None
    phone_confirmed_at: datetime | None = None
    last_sign_in_at: datetime | None = None
    app_metadata: dict[str, Any] = Field(default_factory=dict)
    user_metadata: dict[str, Any] = Field(default_factory=dict)


class AuthSession(BaseModel):
    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str | None = None
    token_type: str = "bearer"
    expires_in: int | None = None
    expires_at: int | None = None
    user: AuthUser | None = None


class LoginCredentials(BaseModel):
    email: str = ""
    password: str = ""


class SignUpCredentials(BaseModel):
    email: str = ""
    password: str = ""
    confirm_password: str | None = None
    username: str | None = None
    full_name: str | None = None


class ResetPasswordData(BaseModel):
    email: str = ""


class UpdatePasswordData(BaseModel):
    password: str = ""
    new_password: str = ""


class AuthResult(BaseModel):
    success: bool
    error: str | None = None
    needs_verification: bool | None = None


class AuthStateView(BaseModel):
    """Auth store state as exposed to HTTP callers; tokens stay server side."""

    user: AuthUser | None = None
    profile: Profile | None = None
    is_authenticated: bool = False
    is_loading: bool = False
    error: str | None = None
    has_completed_onboarding: bool = False
    is_first_time_user: bool = True


class AuthActionResponse(BaseModel):
    result: AuthResult
    state: AuthStateView


class GuardDecision(BaseModel):
    action: Literal["loading", "render", "redirect"]
    redirect_to: str | None = None
    fallback: Literal["auth_loading", "profile_required"] | None = None


__all__ = [
    "AuthActionResponse",
    "AuthResult",
    "AuthSession",
    "AuthStateView",
    "AuthUser",
    "GuardDecision",
    "LoginCredentials",
    "ResetPasswordData",
    "SignUpCredentials",
    "UpdatePasswordData",
]
