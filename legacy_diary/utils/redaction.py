"""
Redaction helpers used before anything user-identifying reaches the logs.

- redact(): stable hash for correlation without exposure
- mask_email(): keep the domain and first letter for support debugging
- mask_access_code(): keep only the last group of a legacy access code
"""

from __future__ import annotations

from hashlib import sha256


def redact(value: str | None) -> str:
    """
    Return a stable hash representation of a sensitive string.
    """
    if not value:
        return "hash:missing"
    digest = sha256(value.encode("utf-8")).hexdigest()[:12]
    return f"hash:{digest}"


def mask_email(email: str | None) -> str:
    """
    "jane.doe@example.com" -> "j***@example.com"
    """
    if not email or "@" not in email:
        return redact(email)
    local, _, domain = email.partition("@")
    return f"{local[:1]}***@{domain}"


def mask_access_code(code: str | None) -> str:
    """
    "ABCD-EFGH-JKLM" -> "****-****-JKLM"
    """
    if not code:
        return "code:missing"
    groups = code.split("-")
    return "-".join(["****"] * (len(groups) - 1) + groups[-1:])
