"""
User authentication for the Legacy Diary API.

Clients send the opaque session token issued at login:

    Authorization: Bearer <token>

get_current_user resolves it through AccountService.authenticate, which keeps
a TTLCache of token -> user id in front of the sessions table.
"""

from __future__ import annotations

from fastapi import Depends, HTTPException, Request, status

from legacy_diary.accounts import AccountService, User
from legacy_diary.errors import AuthenticationError
from legacy_diary.observability.logging import get_logger

logger = get_logger(__name__)


def _extract_bearer_token(authorization: str | None) -> str:
    """Extract token from Authorization header."""
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid authorization header format. Expected: Bearer <token>",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return parts[1]


async def get_current_user(request: Request) -> User:
    """
    FastAPI dependency to get the current authenticated user.

    Usage:
        @router.get("/endpoint")
        async def endpoint(user: User = Depends(get_current_user)):
            ...
    """
    token = _extract_bearer_token(request.headers.get("Authorization"))
    try:
        user = AccountService.authenticate(token)
    except AuthenticationError as e:
        logger.info("Rejected session token: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired session",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    request.state.session_token = token
    return user


async def get_session_token(request: Request, user: User = Depends(get_current_user)) -> str:
    """The bearer token of the authenticated request (for logout and password changes)."""
    return request.state.session_token
