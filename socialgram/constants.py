"""Project-wide constant values."""
from __future__ import annotations

from enum import Enum

AUTH_STORE_VERSION = 1

DEFAULT_PAGE_LIMIT = 20

LOGIN_ROUTE = "/login"
HOME_ROUTE = "/(tabs)"
PROFILE_SETUP_ROUTE = "/profile-setup"
RESET_PASSWORD_PATH = "/reset-password"


class ErrorType(str, Enum):
    """Normalized categories for failures reported by the managed backend."""

    VALIDATION = "VALIDATION"
    AUTHENTICATION = "AUTHENTICATION"
    AUTHORIZATION = "AUTHORIZATION"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    RATE_LIMIT = "RATE_LIMIT"
    SERVER_ERROR = "SERVER_ERROR"
    NETWORK_ERROR = "NETWORK_ERROR"
    UNKNOWN = "UNKNOWN"


__all__ = [
    "AUTH_STORE_VERSION",
    "DEFAULT_PAGE_LIMIT",
    "ErrorType",
    "HOME_ROUTE",
    "LOGIN_ROUTE",
    "PROFILE_SETUP_ROUTE",
    "RESET_PASSWORD_PATH",
]
