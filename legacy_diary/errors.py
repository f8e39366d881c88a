"""Domain exceptions shared by the services and translated by the API routers.

Bad input is a plain ValueError (or utils.validators.ValidationError) and maps
to 400. The classes below carry the remaining HTTP meanings.
"""

from __future__ import annotations


class AuthenticationError(Exception):
    """Bad credentials, unknown or expired session token, deactivated account (401)."""


class TierLimitError(Exception):
    """The user's subscription tier does not allow the requested action (403)."""

    def __init__(self, message: str, tier: str, limit: int | None = None):
        super().__init__(message)
        self.tier = tier
        self.limit = limit


class NotFoundError(LookupError):
    """Record missing or owned by someone else (404)."""


class StateConflictError(ValueError):
    """Operation not allowed in the record's current state (409)."""
