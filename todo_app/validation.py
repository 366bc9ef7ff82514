"""
Field validators for user and task payloads.

Each validator takes the raw JSON value, returns the normalised value and
raises :class:`~todo_app.errors.ValidationError` naming the offending field
otherwise.  The stores call them on every save, not only on creation.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from email_validator import EmailNotValidError, validate_email as _check_email

from .errors import ValidationError

MIN_PASSWORD_LENGTH = 7
MAX_AGE = 150
FORBIDDEN_PASSWORD_WORD = "password"

USER_UPDATE_FIELDS = frozenset({"name", "email", "age", "password"})
TASK_UPDATE_FIELDS = frozenset({"description", "completed"})


def require_json_object(data: Any) -> dict[str, Any]:
    """Ensure a request body decoded to a JSON object."""
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return data


def check_update_fields(data: dict[str, Any], allowed: Iterable[str]) -> None:
    """Reject payloads carrying keys outside *allowed*."""
    allowed = set(allowed)
    if not all(key in allowed for key in data):
        raise ValidationError("Invalid updates!")


def _non_blank_string(field: str, value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"'{field}' is required")
    return value.strip()


def validate_name(value: Any) -> str:
    return _non_blank_string("name", value)


def validate_email(value: Any) -> str:
    """Trim, lower-case and syntax-check an email address."""
    email = _non_blank_string("email", value).lower()
    try:
        _check_email(email, check_deliverability=False)
    except EmailNotValidError as exc:
        raise ValidationError("Email is invalid") from exc
    return email


def validate_age(value: Any) -> int:
    # bool is an int subclass; JSON true/false is not an age
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError("Age must be an integer")
    if value < 0:
        raise ValidationError("Age must be a positive number")
    if value > MAX_AGE:
        raise ValidationError(f"Age must be at most {MAX_AGE}")
    return value


def validate_password(value: Any) -> str:
    password = _non_blank_string("password", value)
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
        )
    if FORBIDDEN_PASSWORD_WORD in password.lower():
        raise ValidationError('Password cannot contain the word "password"')
    return password


def validate_description(value: Any) -> str:
    return _non_blank_string("description", value)


def validate_completed(value: Any) -> bool:
    if not isinstance(value, bool):
        raise ValidationError("'completed' must be a boolean")
    return value
