"""Tests for backend error normalization and the response envelopes."""
from __future__ import annotations

import logging

import pytest

from socialgram.clients.backend import BackendError
from socialgram.constants import ErrorType
from socialgram.services import errors
from socialgram.services.errors import (
    ServiceError,
    create_paginated_validation_error_response,
    create_validation_error_response,
    get_user_friendly_message,
    is_retryable_error,
    log_error,
    paginated_service_call,
    parse_backend_error,
    retry_operation,
    sanitize_error,
    service_call,
)
from socialgram.services.validation import FieldError


def test_none_is_unknown() -> None:
    error = parse_backend_error(None)
    assert error.type is ErrorType.UNKNOWN
    assert error.message == "An unknown error occurred"


def test_service_error_passes_through() -> None:
    original = ServiceError(ErrorType.VALIDATION, "bad")
    assert parse_backend_error(original) is original


def test_missing_row_maps_to_not_found() -> None:
    error = parse_backend_error(BackendError("no rows", code="PGRST116", status=406))
    assert error.type is ErrorType.NOT_FOUND
    assert error.message == "The requested resource was not found"
    assert error.details == {"original_message": "no rows"}


@pytest.mark.parametrize(
    ("message", "expected", "field"),
    [
        ('duplicate key value violates unique constraint "profiles_username_key"', "This username is already taken", "username"),
        ("duplicate key value on email", "This email is already registered", "email"),
    ],
)
def test_unique_violation_names_the_field(message: str, expected: str, field: str) -> None:
    error = parse_backend_error({"code": "23505", "message": message})
    assert error.type is ErrorType.CONFLICT
    assert error.message == expected
    assert error.details == {"field": field}


def test_other_unique_violation() -> None:
    error = parse_backend_error({"code": "23505", "message": "duplicate key on likes"})
    assert error.message == "This value already exists"


def test_unique_violation_field_match_is_case_sensitive() -> None:
    error = parse_backend_error({"code": "23505", "message": "duplicate key on USERNAME"})
    assert error.message == "This value already exists"


def test_foreign_key_and_permission_codes() -> None:
    assert parse_backend_error({"code": "23503", "message": "fk"}).message == (
        "Cannot perform this action due to related data"
    )
    denied = parse_backend_error({"code": "42501", "message": "rls"})
    assert denied.type is ErrorType.AUTHORIZATION
    assert denied.message == "You do not have permission to perform this action"


def test_auth_codes_and_status_fallback() -> None:
    assert parse_backend_error(BackendError("Invalid login", code="invalid_credentials")).type is (
        ErrorType.AUTHENTICATION
    )
    assert parse_backend_error(BackendError("slow down", status=429)).type is ErrorType.RATE_LIMIT
    unknown = parse_backend_error(BackendError("boom", code="XX000", status=500))
    assert unknown.type is ErrorType.SERVER_ERROR
    assert unknown.message == "boom"
    assert unknown.details == {"code": "XX000"}


def test_network_error_code() -> None:
    error = parse_backend_error(BackendError("Network request failed", code="network_error"))
    assert error.type is ErrorType.NETWORK_ERROR
    assert is_retryable_error(error)


def test_validation_error_response_joins_messages() -> None:
    single = create_validation_error_response([FieldError("username", "Username is required")])
    assert single.error == "Username is required"
    assert single.error_type is ErrorType.VALIDATION
    assert single.success is False

    several = create_validation_error_response(
        [FieldError("image_url", "Image URL is required"), FieldError("user_id", "User ID is required")]
    )
    assert several.error == "Validation failed: Image URL is required, User ID is required"


def test_paginated_validation_error_uses_first_message() -> None:
    response = create_paginated_validation_error_response(
        [FieldError("limit", "Limit must be at least 1"), FieldError("offset", "Offset cannot be negative")],
        limit=0,
        offset=-1,
    )
    assert response.error == "Limit must be at least 1"
    assert response.data == []
    assert response.pagination.page == 1
    assert response.pagination.has_more is False


def test_retry_operation_retries_transient_errors(monkeypatch) -> None:
    sleeps: list[float] = []
    monkeypatch.setattr(errors.time, "sleep", sleeps.append)
    attempts = {"count": 0}

    def _flaky() -> str:
        attempts["count"] += 1
        if attempts["count"] < 3:
            raise BackendError("unavailable", status=503)
        return "ok"

    assert retry_operation(_flaky, max_retries=3, delay_seconds=0.5) == "ok"
    assert attempts["count"] == 3
    assert sleeps == [0.5, 1.0]


def test_retry_operation_stops_on_non_retryable(monkeypatch) -> None:
    monkeypatch.setattr(errors.time, "sleep", lambda _: None)
    attempts = {"count": 0}

    def _missing() -> None:
        attempts["count"] += 1
        raise BackendError("no rows", code="PGRST116")

    with pytest.raises(BackendError):
        retry_operation(_missing, max_retries=3)
    assert attempts["count"] == 1


def test_retry_operation_raises_last_error(monkeypatch) -> None:
    monkeypatch.setattr(errors.time, "sleep", lambda _: None)

    def _down() -> None:
        raise BackendError("down", status=500)

    with pytest.raises(BackendError, match="down"):
        retry_operation(_down, max_retries=2)


def test_service_call_wraps_success_and_failure() -> None:
    ok = service_call(lambda: {"id": 1}, "tests.ok")
    assert ok.success is True
    assert ok.data == {"id": 1}
    assert ok.error is None

    def _fail() -> None:
        raise BackendError("denied", code="42501")

    failed = service_call(_fail, "tests.fail", default_data=False)
    assert failed.success is False
    assert failed.data is False
    assert failed.error_type is ErrorType.AUTHORIZATION


def test_failed_service_call_logs_one_error_record(caplog) -> None:
    def _missing() -> None:
        raise BackendError("no rows", code="PGRST116", status=406)

    with caplog.at_level(logging.ERROR, logger="socialgram.services.errors"):
        service_call(_missing, "tests.missing")

    errors_logged = [record for record in caplog.records if record.levelno >= logging.ERROR]
    assert len(errors_logged) == 1
    assert "tests.missing" in errors_logged[0].getMessage()


def test_paginated_service_call_builds_pagination() -> None:
    response = paginated_service_call(lambda: (["a", "b"], 45), "tests.page", limit=20, offset=20)
    assert response.success is True
    assert response.data == ["a", "b"]
    assert response.pagination.page == 2
    assert response.pagination.total == 45
    assert response.pagination.has_more is True


def test_log_error_includes_details_outside_production(caplog) -> None:
    error = ServiceError(ErrorType.SERVER_ERROR, "boom", details={"code": "XX000"})

    with caplog.at_level(logging.ERROR, logger="socialgram.services.errors"):
        record = log_error(error, "tests.context", user_id="u1")

    assert record["context"] == "tests.context"
    assert record["error"]["type"] == "SERVER_ERROR"
    assert record["user_id"] == "u1"
    assert "XX000" in caplog.text


def test_sanitize_error_in_production() -> None:
    error = ServiceError(ErrorType.SERVER_ERROR, 'relation "secret_table" does not exist')
    sanitized = sanitize_error(error, production=True)
    assert sanitized.message == "A server error occurred. Please try again later"
    assert sanitize_error(error, production=False) is error


def test_friendly_message_keeps_validation_text() -> None:
    error = ServiceError(ErrorType.VALIDATION, "Username is required")
    assert get_user_friendly_message(error) == "Username is required"
