"""
Input validation utilities.

Form-level checks shared by the domain services: emails, names, tags,
passwords and legacy access codes. Every failure raises ValidationError,
which the routers turn into a 400.
"""

from __future__ import annotations

import re

from legacy_diary.config import (
    ACCESS_CODE_GROUP_LENGTH,
    ACCESS_CODE_GROUPS,
    ENTRY_MAX_TAGS,
    PASSWORD_MAX_BYTES,
    PASSWORD_MIN_LENGTH,
)

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}$")
MAX_EMAIL_LENGTH = 254

MAX_NAME_LENGTH = 120
MAX_TAG_LENGTH = 40

ACCESS_CODE_PATTERN = re.compile(
    rf"^[A-Z0-9]{{{ACCESS_CODE_GROUP_LENGTH}}}"
    rf"(-[A-Z0-9]{{{ACCESS_CODE_GROUP_LENGTH}}}){{{ACCESS_CODE_GROUPS - 1}}}$"
)


class ValidationError(ValueError):
    """Raised when input validation fails."""

    pass


def validate_email(email: str | None, field: str = "email") -> str:
    """
    Validate and normalize an email address (stripped, lower-cased).

    Raises:
        ValidationError: If the address is missing or malformed
    """
    if email is None or not email.strip():
        raise ValidationError(f"{field} is required")

    email = email.strip().lower()

    if len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError(f"{field} exceeds maximum length of {MAX_EMAIL_LENGTH}")

    if not EMAIL_PATTERN.match(email):
        raise ValidationError(f"Invalid {field} format")

    return email


def validate_required_text(value: str | None, field: str, max_length: int) -> str:
    """
    Strip a required text field and enforce a maximum length.

    Raises:
        ValidationError: If empty after stripping or too long
    """
    if value is None or not value.strip():
        raise ValidationError(f"{field} is required")

    value = value.strip()
    if len(value) > max_length:
        raise ValidationError(f"{field} exceeds maximum length of {max_length}")

    return value


def validate_name(name: str | None, field: str = "name") -> str:
    return validate_required_text(name, field, MAX_NAME_LENGTH)


def normalize_tags(tags: list[str] | None) -> list[str]:
    """
    Strip, lower-case and de-duplicate tags, keeping first-seen order.

    Empty tags are dropped.

    Raises:
        ValidationError: If a tag is too long or there are too many tags
    """
    if not tags:
        return []

    normalized: list[str] = []
    seen: set[str] = set()
    for raw in tags:
        tag = raw.strip().lower()
        if not tag or tag in seen:
            continue
        if len(tag) > MAX_TAG_LENGTH:
            raise ValidationError(f"Tag exceeds maximum length of {MAX_TAG_LENGTH}")
        seen.add(tag)
        normalized.append(tag)

    if len(normalized) > ENTRY_MAX_TAGS:
        raise ValidationError(f"At most {ENTRY_MAX_TAGS} tags are allowed")

    return normalized


def validate_password(password: str | None, field: str = "password") -> str:
    """
    Raises:
        ValidationError: If shorter than PASSWORD_MIN_LENGTH characters or
            longer than PASSWORD_MAX_BYTES bytes of UTF-8 (the bcrypt input limit)
    """
    if password is None or len(password) < PASSWORD_MIN_LENGTH:
        raise ValidationError(f"{field} must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(password.encode("utf-8")) > PASSWORD_MAX_BYTES:
        raise ValidationError(f"{field} must be at most {PASSWORD_MAX_BYTES} bytes")
    return password


def normalize_access_code(code: str | None) -> str | None:
    """
    Canonical form of a legacy access code, or None if it cannot be one.

    Accepts lower case and surrounding whitespace ("abcd-efgh-jkmn ").
    """
    if not code:
        return None

    code = code.strip().upper()
    if not ACCESS_CODE_PATTERN.match(code):
        return None

    return code
