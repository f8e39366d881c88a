"""
Profile endpoints for the signed-in user: details, email, password,
subscription plan, deactivation and deletion.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from legacy_diary.accounts import AccountService, ProfileUpdate, User
from legacy_diary.api.middleware.user_auth import get_current_user, get_session_token
from legacy_diary.api.routes.auth import UserResponse
from legacy_diary.errors import AuthenticationError
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/profile", tags=["profile"])
logger = get_logger(__name__)


class UpdateEmailRequest(BaseModel):
    new_email: str
    password: str


class UpdatePasswordRequest(BaseModel):
    current_password: str
    new_password: str


class UpdateSubscriptionRequest(BaseModel):
    tier_id: str


def _wrong_password(e: AuthenticationError) -> HTTPException:
    return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e))


@router.get("", response_model=UserResponse)
async def get_profile(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.from_user(user)


@router.put("", response_model=UserResponse)
async def update_profile(
    updates: ProfileUpdate,
    user: User = Depends(get_current_user),
) -> UserResponse:
    try:
        updated = AccountService.update_profile(user.id, updates)
        if updated is None:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse.from_user(updated)

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to update profile: %s", e)
        raise HTTPException(status_code=500, detail="Failed to update profile") from None


@router.put("/email", response_model=UserResponse)
async def update_email(
    request: UpdateEmailRequest,
    user: User = Depends(get_current_user),
) -> UserResponse:
    try:
        updated = AccountService.update_email(user.id, request.new_email, request.password)
        if updated is None:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse.from_user(updated)

    except HTTPException:
        raise
    except AuthenticationError as e:
        raise _wrong_password(e) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to update email: %s", e)
        raise HTTPException(status_code=500, detail="Failed to update email") from None


@router.put("/password")
async def update_password(
    request: UpdatePasswordRequest,
    user: User = Depends(get_current_user),
    token: str = Depends(get_session_token),
) -> dict[str, bool]:
    """Change the password; every other session is signed out."""
    try:
        if not AccountService.update_password(
            user.id, request.current_password, request.new_password, keep_token=token
        ):
            raise HTTPException(status_code=404, detail="User not found")
        return {"success": True}

    except HTTPException:
        raise
    except AuthenticationError as e:
        raise _wrong_password(e) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to update password: %s", e)
        raise HTTPException(status_code=500, detail="Failed to update password") from None


@router.put("/subscription", response_model=UserResponse)
async def update_subscription(
    request: UpdateSubscriptionRequest,
    user: User = Depends(get_current_user),
) -> UserResponse:
    try:
        updated = AccountService.update_subscription(user.id, request.tier_id)
        if updated is None:
            raise HTTPException(status_code=404, detail="User not found")
        return UserResponse.from_user(updated)

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to update subscription: %s", e)
        raise HTTPException(status_code=500, detail="Failed to update subscription") from None


@router.post("/deactivate")
async def deactivate_account(user: User = Depends(get_current_user)) -> dict[str, bool]:
    """Deactivate the account. All sessions end; legacy access codes keep working."""
    if not AccountService.deactivate_account(user.id):
        raise HTTPException(status_code=404, detail="User not found")
    return {"success": True}


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_account(user: User = Depends(get_current_user)) -> None:
    """Delete the account and everything it owns."""
    if not AccountService.delete_account(user.id):
        raise HTTPException(status_code=404, detail="User not found")
