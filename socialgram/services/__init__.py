"""Convenience exports for service layer."""
from . import auth_service, post_service, storage_service, story_service, user_service
from .auth_guard import AccessDecision, evaluate_auth_access, evaluate_auth_guard
from .auth_store import (
    AUTH_STORE_KEY,
    AuthState,
    AuthStore,
    MemoryStateStorage,
    SqlStateStorage,
    StateStorage,
)
from .errors import (
    ErrorType,
    ServiceError,
    get_user_friendly_message,
    is_retryable_error,
    parse_backend_error,
    retry_operation,
    sanitize_error,
)
from .validation import FieldError, ValidationResult

__all__ = [
    "AUTH_STORE_KEY",
    "AccessDecision",
    "AuthState",
    "AuthStore",
    "ErrorType",
    "FieldError",
    "MemoryStateStorage",
    "ServiceError",
    "SqlStateStorage",
    "StateStorage",
    "ValidationResult",
    "auth_service",
    "evaluate_auth_access",
    "evaluate_auth_guard",
    "get_user_friendly_message",
    "is_retryable_error",
    "parse_backend_error",
    "post_service",
    "retry_operation",
    "sanitize_error",
    "storage_service",
    "story_service",
    "user_service",
]
