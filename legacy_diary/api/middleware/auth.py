"""Admin API key authentication"""

from __future__ import annotations

import os
import secrets

from fastapi import Header, HTTPException, status

from legacy_diary.observability.logging import get_logger

logger = get_logger(__name__)

ADMIN_API_KEY_ENV = "LEGACY_DIARY_ADMIN_API_KEY"


class APIKeyAuth:
    """
    Bearer API key for admin endpoints, read from LEGACY_DIARY_ADMIN_API_KEY.

    The key is read on every check so rotating it does not need a restart.
    Without a key, admin endpoints are open outside production only.
    """

    def __init__(self, env_var: str = ADMIN_API_KEY_ENV):
        self.env_var = env_var
        self._warned = False

    @property
    def api_key(self) -> str | None:
        return os.getenv(self.env_var) or None

    def verify_api_key(self, authorization: str | None = Header(None)) -> bool:
        """
        Verify API key from Authorization header.

        Expected format: "Bearer {api_key}"
        """
        from legacy_diary.config import is_production

        api_key = self.api_key
        if not api_key:
            if is_production():
                raise HTTPException(
                    status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                    detail="Admin API is not configured",
                )
            if not self._warned:
                logger.warning("%s not set - admin endpoints are unprotected!", self.env_var)
                self._warned = True
            return True

        if not authorization:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Missing authorization header",
                headers={"WWW-Authenticate": "Bearer"},
            )

        try:
            scheme, token = authorization.split()
            if scheme.lower() != "bearer":
                raise ValueError("Invalid authentication scheme")
        except ValueError as e:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Invalid authorization header format. Expected: Bearer {api_key}",
                headers={"WWW-Authenticate": "Bearer"},
            ) from e

        if not secrets.compare_digest(token, api_key):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Invalid API key",
            )

        return True


auth = APIKeyAuth()


def require_admin_auth(authorization: str | None = Header(None)) -> bool:
    """
    Dependency for endpoints that require admin authentication.

    Usage:
        @router.post("/api/admin/endpoint")
        async def admin_endpoint(authenticated: bool = Depends(require_admin_auth)):
            ...
    """
    return auth.verify_api_key(authorization)
