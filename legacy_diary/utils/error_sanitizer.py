"""
Error message sanitization utility.

Keeps internal details (paths, SQL errors, tokens, module names) out of
error messages returned to clients.
"""

from __future__ import annotations

import re

from legacy_diary.observability.logging import get_logger

logger = get_logger(__name__)

# Patterns that might leak sensitive information
SENSITIVE_PATTERNS = [
    # File paths
    r"/[^\s]+\.py",
    r"[A-Za-z]:\\[^\s]+",
    # Stack trace indicators
    r"Traceback \(most recent call last\)",
    r"File \".*\"",
    r"line \d+",
    # Database errors
    r"sqlite3?\.",
    r"UNIQUE constraint",
    r"FOREIGN KEY constraint",
    r"CHECK constraint",
    r"no such table",
    r"no such column",
    # Session tokens, access codes and other secrets
    r"[A-Za-z0-9_-]{24,}",
    r"Bearer [A-Za-z0-9._-]+",
    r"pbkdf2_sha256\$",
    # Internal module names
    r"legacy_diary\.[a-z_.]+",
]

GENERIC_MESSAGES = {
    400: "Invalid request. Please check your input and try again.",
    401: "Authentication required.",
    403: "Access denied.",
    404: "Resource not found.",
    409: "Request conflicts with the current state.",
    422: "Invalid data format.",
    429: "Too many requests. Please try again later.",
    500: "An internal error occurred. Please try again later.",
    503: "Service temporarily unavailable.",
}

_CLIENT_MESSAGE_STATUSES = frozenset({400, 403, 409})


def sanitize_error_message(
    message: str,
    status_code: int = 500,
    allow_field_names: bool = True,
) -> str:
    """
    Sanitize an error message to prevent information leakage.

    Short, plain validation messages pass through for 400/403/409; everything
    else collapses to the generic message for the status code.
    """
    if not message:
        return GENERIC_MESSAGES.get(status_code, "An error occurred.")

    for pattern in SENSITIVE_PATTERNS:
        if re.search(pattern, message, re.IGNORECASE):
            logger.warning("Sanitized sensitive error pattern: %s", pattern)
            return GENERIC_MESSAGES.get(status_code, "An error occurred.")

    if (
        status_code in _CLIENT_MESSAGE_STATUSES
        and allow_field_names
        and len(message) < 120
        and not any(c in message for c in ["{", "}", "[", "]", "\n"])
    ):
        return message

    return GENERIC_MESSAGES.get(status_code, "An error occurred.")


def get_safe_error_detail(
    error: Exception,
    status_code: int = 500,
    context: str | None = None,
) -> str:
    """
    Get a safe error detail string for HTTP responses.

    Args:
        error: The exception that occurred
        status_code: HTTP status code
        context: Message to use instead of the error text for 5xx responses

    Returns:
        Safe error message for client
    """
    logger.error("Error (status=%d): %s - %s", status_code, type(error).__name__, str(error))

    if context and status_code >= 500:
        return context

    return sanitize_error_message(str(error), status_code)
