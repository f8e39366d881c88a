"""
Registration, login and logout.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from legacy_diary.accounts import AccountService, LoginResult, TierId, User
from legacy_diary.api.middleware.user_auth import get_session_token
from legacy_diary.errors import AuthenticationError
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/auth", tags=["auth"])
logger = get_logger(__name__)


class UserResponse(BaseModel):
    """Public view of a user; never includes the password hash."""

    id: str
    name: str
    email: str
    bio: str | None
    profile_picture: str | None
    social_links: dict[str, str]
    subscription_tier: str
    subscription_start: datetime | None
    subscription_end: datetime | None
    is_active: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            bio=user.bio,
            profile_picture=user.profile_picture,
            social_links=user.social_links.model_dump(exclude_none=True),
            subscription_tier=TierId(user.subscription_tier).value,
            subscription_start=user.subscription_start,
            subscription_end=user.subscription_end,
            is_active=user.is_active,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class SessionResponse(BaseModel):
    token: str
    expires_at: datetime
    user: UserResponse

    @classmethod
    def from_login(cls, result: LoginResult) -> SessionResponse:
        return cls(
            token=result.session.token,
            expires_at=result.session.expires_at,
            user=UserResponse.from_user(result.user),
        )


class RegisterRequest(BaseModel):
    name: str
    email: str
    password: str
    subscription_tier: str = TierId.FREE.value


class LoginRequest(BaseModel):
    email: str
    password: str


@router.post("/register", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest) -> SessionResponse:
    """Create an account and sign it in."""
    try:
        AccountService.register(
            request.name, request.email, request.password, request.subscription_tier
        )
        result = AccountService.login(request.email, request.password)
        return SessionResponse.from_login(result)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to register account: %s", e)
        raise HTTPException(status_code=500, detail="Failed to register account") from None


@router.post("/login", response_model=SessionResponse)
async def login(request: LoginRequest) -> SessionResponse:
    try:
        return SessionResponse.from_login(AccountService.login(request.email, request.password))

    except AuthenticationError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        ) from None
    except Exception as e:
        logger.error("Failed to log in: %s", e)
        raise HTTPException(status_code=500, detail="Failed to log in") from None


@router.post("/logout")
async def logout(token: str = Depends(get_session_token)) -> dict[str, bool]:
    AccountService.logout(token)
    return {"success": True}
