"""Normalization of backend failures into typed service errors and response envelopes."""
from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Iterable, Mapping, TypeVar

from ..config import get_settings
from ..constants import DEFAULT_PAGE_LIMIT, ErrorType
from ..schemas import ApiResponse, PaginatedResponse, build_pagination
from .validation import FieldError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ServiceError(Exception):
    """A backend or validation failure reduced to a category and a display message."""

    def __init__(
        self,
        type: ErrorType,
        message: str,
        details: Mapping[str, Any] | None = None,
        validation_errors: list[FieldError] | None = None,
    ) -> None:
        super().__init__(message)
        self.type = type
        self.message = message
        self.details = dict(details) if details is not None else None
        self.validation_errors = validation_errors

    def __repr__(self) -> str:
        return f"ServiceError(type={self.type.value!r}, message={self.message!r})"


ERROR_CODE_MAP: dict[str, ErrorType] = {
    "PGRST116": ErrorType.NOT_FOUND,  # no rows for a single-object request
    "PGRST301": ErrorType.AUTHENTICATION,  # JWT expired
    "PGRST302": ErrorType.AUTHENTICATION,  # JWT invalid
    "23505": ErrorType.CONFLICT,  # unique violation
    "23503": ErrorType.CONFLICT,  # foreign key violation
    "42501": ErrorType.AUTHORIZATION,  # insufficient privilege
    "auth/user-not-found": ErrorType.NOT_FOUND,
    "auth/invalid-email": ErrorType.VALIDATION,
    "auth/weak-password": ErrorType.VALIDATION,
    "auth/email-already-in-use": ErrorType.CONFLICT,
    "auth/too-many-requests": ErrorType.RATE_LIMIT,
    # Symbolic ``error_code`` values sent by the auth server
    "invalid_credentials": ErrorType.AUTHENTICATION,
    "email_not_confirmed": ErrorType.AUTHENTICATION,
    "session_not_found": ErrorType.AUTHENTICATION,
    "refresh_token_not_found": ErrorType.AUTHENTICATION,
    "bad_jwt": ErrorType.AUTHENTICATION,
    "user_not_found": ErrorType.NOT_FOUND,
    "user_already_exists": ErrorType.CONFLICT,
    "email_exists": ErrorType.CONFLICT,
    "weak_password": ErrorType.VALIDATION,
    "email_address_invalid": ErrorType.VALIDATION,
    "validation_failed": ErrorType.VALIDATION,
    "over_request_rate_limit": ErrorType.RATE_LIMIT,
    "over_email_send_rate_limit": ErrorType.RATE_LIMIT,
    "network_error": ErrorType.NETWORK_ERROR,
}

STATUS_CODE_MAP: dict[int, ErrorType] = {
    400: ErrorType.VALIDATION,
    401: ErrorType.AUTHENTICATION,
    403: ErrorType.AUTHORIZATION,
    404: ErrorType.NOT_FOUND,
    409: ErrorType.CONFLICT,
    422: ErrorType.VALIDATION,
    429: ErrorType.RATE_LIMIT,
}

NON_RETRYABLE_TYPES = frozenset(
    {
        ErrorType.VALIDATION,
        ErrorType.AUTHENTICATION,
        ErrorType.AUTHORIZATION,
        ErrorType.NOT_FOUND,
        ErrorType.CONFLICT,
    }
)
RETRYABLE_TYPES = frozenset({ErrorType.NETWORK_ERROR, ErrorType.SERVER_ERROR, ErrorType.RATE_LIMIT})


def _extract(error: Any) -> tuple[str | None, str, int | None]:
    if isinstance(error, Mapping):
        code = error.get("code") or error.get("error_code")
        message = error.get("message") or error.get("error_description")
        status = error.get("status")
    else:
        code = getattr(error, "code", None)
        message = getattr(error, "message", None) or str(error)
        status = getattr(error, "status", None)
    if isinstance(code, int):
        status = status or code
        code = None
    if not isinstance(status, int):
        status = None
    return (str(code) if code else None), (message or "An error occurred"), status


def parse_backend_error(error: Any) -> ServiceError:
    """Map any raised backend error (or error payload) onto a :class:`ServiceError`."""

    if error is None:
        return ServiceError(ErrorType.UNKNOWN, "An unknown error occurred")
    if isinstance(error, ServiceError):
        return error

    code, message, status = _extract(error)

    if code == "PGRST116":
        return ServiceError(
            ErrorType.NOT_FOUND,
            "The requested resource was not found",
            details={"original_message": message},
        )
    if code == "23505":
        if "username" in message:
            return ServiceError(ErrorType.CONFLICT, "This username is already taken", details={"field": "username"})
        if "email" in message:
            return ServiceError(ErrorType.CONFLICT, "This email is already registered", details={"field": "email"})
        return ServiceError(ErrorType.CONFLICT, "This value already exists", details={"original_message": message})
    if code == "23503":
        return ServiceError(
            ErrorType.CONFLICT,
            "Cannot perform this action due to related data",
            details={"original_message": message},
        )
    if code == "42501":
        return ServiceError(
            ErrorType.AUTHORIZATION,
            "You do not have permission to perform this action",
            details={"original_message": message},
        )

    error_type = ERROR_CODE_MAP.get(code or "")
    if error_type is None and status is not None:
        error_type = STATUS_CODE_MAP.get(status)
    return ServiceError(error_type or ErrorType.SERVER_ERROR, message, details={"code": code or status})


def create_error_response(error: ServiceError, default_data: Any = None) -> ApiResponse:
    return ApiResponse(data=default_data, error=error.message, success=False, error_type=error.type)


def create_paginated_error_response(
    error: ServiceError,
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> PaginatedResponse:
    return PaginatedResponse(
        data=[],
        error=error.message,
        success=False,
        error_type=error.type,
        pagination=build_pagination(limit=limit, offset=offset, total=0),
    )


def validation_message(errors: Iterable[FieldError]) -> str:
    messages = [item.message for item in errors]
    if len(messages) == 1:
        return messages[0]
    return f"Validation failed: {', '.join(messages)}"


def create_validation_error_response(errors: list[FieldError], default_data: Any = None) -> ApiResponse:
    return ApiResponse(
        data=default_data,
        error=validation_message(errors),
        success=False,
        error_type=ErrorType.VALIDATION,
    )


def create_paginated_validation_error_response(
    errors: list[FieldError],
    limit: int = DEFAULT_PAGE_LIMIT,
    offset: int = 0,
) -> PaginatedResponse:
    # Paginated endpoints surface only the first failing rule.
    error = ServiceError(ErrorType.VALIDATION, errors[0].message, validation_errors=errors)
    return create_paginated_error_response(error, limit=limit, offset=offset)


def handle_operation(operation: Callable[[], T], context: str = "operation") -> T | ServiceError:
    """Run ``operation`` and return its result, or the normalized error it raised."""

    try:
        return operation()
    except Exception as exc:
        logger.debug("Error in %s: %s", context, exc)
        return parse_backend_error(exc)


def retry_operation(
    operation: Callable[[], T],
    max_retries: int = 3,
    delay_seconds: float = 1.0,
) -> T:
    """Call ``operation`` up to ``max_retries`` times, waiting ``delay * attempt`` in between.

    Errors whose type cannot be fixed by trying again are re-raised on the first attempt.
    """

    last_error: Exception | None = None
    for attempt in range(1, max_retries + 1):
        try:
            return operation()
        except Exception as exc:
            last_error = exc
            if parse_backend_error(exc).type in NON_RETRYABLE_TYPES:
                raise
            if attempt < max_retries:
                logger.info("Retrying after attempt %d/%d failed: %s", attempt, max_retries, exc)
                time.sleep(delay_seconds * attempt)

    if last_error is None:
        raise ValueError("max_retries must be at least 1")
    raise last_error


def log_error(
    error: ServiceError,
    context: str,
    user_id: str | None = None,
    additional_data: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Emit a structured record for ``error``; details are only logged outside production."""

    log_data = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "context": context,
        "error": {
            "type": error.type.value,
            "message": error.message,
            "details": error.details,
        },
        "user_id": user_id,
        "additional_data": dict(additional_data) if additional_data else None,
    }
    if get_settings().is_production:
        logger.warning("Service error in %s: %s %s", context, error.type.value, error.message)
    else:
        logger.error("Service error: %s", log_data)
    return log_data


def is_retryable_error(error: ServiceError) -> bool:
    return error.type in RETRYABLE_TYPES


def get_user_friendly_message(error: ServiceError) -> str:
    if error.type in (ErrorType.VALIDATION, ErrorType.CONFLICT):
        return error.message
    if error.type is ErrorType.AUTHENTICATION:
        return "Please sign in to continue"
    if error.type is ErrorType.AUTHORIZATION:
        return "You do not have permission to perform this action"
    if error.type is ErrorType.NOT_FOUND:
        return "The requested item could not be found"
    if error.type is ErrorType.RATE_LIMIT:
        return "Too many requests. Please try again later"
    if error.type is ErrorType.NETWORK_ERROR:
        return "Network error. Please check your connection and try again"
    if error.type is ErrorType.SERVER_ERROR:
        return "A server error occurred. Please try again later"
    return "An unexpected error occurred. Please try again"


def sanitize_error(error: ServiceError, *, production: bool | None = None) -> ServiceError:
    if production is None:
        production = get_settings().is_production
    if production:
        return ServiceError(error.type, get_user_friendly_message(error))
    return error


def _with_retry(operation: Callable[[], T], retry: bool) -> Callable[[], T]:
    if not retry:
        return operation
    settings = get_settings()
    return lambda: retry_operation(
        operation,
        max_retries=settings.retry_max_attempts,
        delay_seconds=settings.retry_delay_seconds,
    )


def service_call(
    operation: Callable[[], Any],
    context: str,
    *,
    default_data: Any = None,
    user_id: str | None = None,
    retry: bool = False,
) -> ApiResponse:
    """Run a façade operation and wrap its outcome in an :class:`ApiResponse`."""

    result = handle_operation(_with_retry(operation, retry), context)
    if isinstance(result, ServiceError):
        log_error(result, context, user_id=user_id)
        return create_error_response(result, default_data)
    return ApiResponse(data=result, success=True)


def paginated_service_call(
    operation: Callable[[], tuple[list[Any], int | None]],
    context: str,
    *,
    limit: int,
    offset: int,
    user_id: str | None = None,
    retry: bool = False,
) -> PaginatedResponse:
    """Like :func:`service_call` for operations returning ``(items, exact_total)``."""

    result = handle_operation(_with_retry(operation, retry), context)
    if isinstance(result, ServiceError):
        log_error(result, context, user_id=user_id)
        return create_paginated_error_response(result, limit=limit, offset=offset)

    items, total = result
    return PaginatedResponse(
        data=items,
        success=True,
        pagination=build_pagination(limit=limit, offset=offset, total=total if total is not None else len(items)),
    )


__all__ = [
    "ERROR_CODE_MAP",
    "ErrorType",
    "STATUS_CODE_MAP",
    "ServiceError",
    "create_error_response",
    "create_paginated_error_response",
    "create_paginated_validation_error_response",
    "create_validation_error_response",
    "get_user_friendly_message",
    "handle_operation",
    "is_retryable_error",
    "log_error",
    "paginated_service_call",
    "parse_backend_error",
    "retry_operation",
    "sanitize_error",
    "service_call",
    "validation_message",
]
