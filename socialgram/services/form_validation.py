"""Form-level checks for sign up, login and profile setup payloads.

These rules return a single message per field, suitable for showing next to an
input, whereas :mod:`socialgram.services.validation` guards the service calls
themselves.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Pattern

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
USERNAME_PATTERN = re.compile(r"^[a-zA-Z0-9_]+$")
PASSWORD_PATTERN = re.compile(r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d).{8,}$")
URL_PATTERN = re.compile(
    r"^https?://([a-zA-Z0-9-]+\.)+[a-zA-Z]{2,}(:[0-9]+)?(/.*)?$|^https?://localhost(:[0-9]+)?(/.*)?$"
)
PHONE_PATTERN = re.compile(r"^\+?[\d\s\-()]+$")

REQUIRED_MESSAGE = "This field is required"
EMAIL_MESSAGE = "Please enter a valid email address"
PASSWORD_MESSAGE = "Password must contain uppercase, lowercase, and number"
PASSWORD_LENGTH_MESSAGE = "Password must be at least 8 characters"
PASSWORD_MATCH_MESSAGE = "Passwords do not match"
USERNAME_MESSAGE = "Username can only contain letters, numbers, and underscores"
USERNAME_LENGTH_MESSAGE = "Username must be at least 3 characters"
URL_MESSAGE = "Please enter a valid URL (including http:// or https://)"
PHONE_MESSAGE = "Please enter a valid phone number"
INVALID_MESSAGE = "Invalid value"


@dataclass(slots=True)
class FormFieldResult:
    is_valid: bool
    error: str | None = None


@dataclass(slots=True)
class FieldRule:
    required: bool = False
    min_length: int | None = None
    max_length: int | None = None
    pattern: Pattern[str] | None = None
    custom: Callable[[str], FormFieldResult] | None = None


@dataclass(slots=True)
class FormValidationResult:
    is_valid: bool
    errors: dict[str, str] = field(default_factory=dict)


_VALID = FormFieldResult(is_valid=True)


def _invalid(message: str) -> FormFieldResult:
    return FormFieldResult(is_valid=False, error=message)


def validate_field(value: str | None, rules: FieldRule) -> FormFieldResult:
    """Apply ``rules`` in order: required, length bounds, pattern, then the custom check."""

    blank = not value or not value.strip()
    if rules.required and blank:
        return _invalid(REQUIRED_MESSAGE)
    if blank:
        return _VALID

    if rules.min_length and len(value) < rules.min_length:
        return _invalid(f"Must be at least {rules.min_length} characters")
    if rules.max_length and len(value) > rules.max_length:
        return _invalid(f"Must be {rules.max_length} characters or less")
    if rules.pattern is not None and not rules.pattern.match(value):
        return _invalid(INVALID_MESSAGE)
    if rules.custom is not None:
        return rules.custom(value)
    return _VALID


def _check_email(value: str) -> FormFieldResult:
    if not EMAIL_PATTERN.match(value) or ".." in value:
        return _invalid(EMAIL_MESSAGE)
    return _VALID


def validate_email(email: str | None, required: bool = True) -> FormFieldResult:
    return validate_field(email, FieldRule(required=required, custom=_check_email))


def _check_password(value: str) -> FormFieldResult:
    if len(value) < 8:
        return _invalid(PASSWORD_LENGTH_MESSAGE)
    if not PASSWORD_PATTERN.match(value):
        return _invalid(PASSWORD_MESSAGE)
    return _VALID


def validate_password(password: str | None, required: bool = True) -> FormFieldResult:
    return validate_field(password, FieldRule(required=required, custom=_check_password))


def validate_password_confirmation(
    password: str | None,
    confirm_password: str | None,
    required: bool = True,
) -> FormFieldResult:
    result = validate_field(confirm_password, FieldRule(required=required))
    if not result.is_valid:
        return result
    if confirm_password and password != confirm_password:
        return _invalid(PASSWORD_MATCH_MESSAGE)
    return _VALID


def _check_username(value: str) -> FormFieldResult:
    if not USERNAME_PATTERN.match(value):
        return _invalid(USERNAME_MESSAGE)
    if len(value) < 3:
        return _invalid(USERNAME_LENGTH_MESSAGE)
    return _VALID


def validate_username(username: str | None, required: bool = True) -> FormFieldResult:
    return validate_field(username, FieldRule(required=required, min_length=3, max_length=30, custom=_check_username))


def _check_full_name(value: str) -> FormFieldResult:
    if len(value.strip()) < 2:
        return _invalid("Full name must be at least 2 characters")
    return _VALID


def validate_full_name(full_name: str | None, required: bool = True) -> FormFieldResult:
    return validate_field(full_name, FieldRule(required=required, min_length=2, max_length=100, custom=_check_full_name))


def _check_url(value: str) -> FormFieldResult:
    return _VALID if URL_PATTERN.match(value) else _invalid(URL_MESSAGE)


def validate_url(url: str | None, required: bool = False) -> FormFieldResult:
    return validate_field(url, FieldRule(required=required, custom=_check_url))


def validate_bio(bio: str | None, required: bool = False) -> FormFieldResult:
    return validate_field(bio, FieldRule(required=required, max_length=150))


def _check_phone(value: str) -> FormFieldResult:
    return _VALID if PHONE_PATTERN.match(value) else _invalid(PHONE_MESSAGE)


def validate_phone(phone: str | None, required: bool = False) -> FormFieldResult:
    return validate_field(phone, FieldRule(required=required, custom=_check_phone))


def validate_form(
    data: Mapping[str, Any],
    validators: Mapping[str, Callable[[Any], FormFieldResult]],
) -> FormValidationResult:
    """Run every validator against its field and collect the failing messages by field name."""

    errors: dict[str, str] = {}
    for name, validator in validators.items():
        result = validator(data.get(name))
        if not result.is_valid:
            errors[name] = result.error or INVALID_MESSAGE
    return FormValidationResult(is_valid=not errors, errors=errors)


__all__ = [
    "FieldRule",
    "FormFieldResult",
    "FormValidationResult",
    "validate_bio",
    "validate_email",
    "validate_field",
    "validate_form",
    "validate_full_name",
    "validate_password",
    "validate_password_confirmation",
    "validate_phone",
    "validate_url",
    "validate_username",
]
