"""
Dead man's switch endpoints for the signed-in user.

    GET    /api/switch            current configuration (404 if none)
    PUT    /api/switch            configure or reconfigure; becomes active
    POST   /api/switch/check-in   push the next due date forward
    POST   /api/switch/pause
    POST   /api/switch/resume
    DELETE /api/switch

A triggered switch can no longer be changed (409) but can be deleted.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from legacy_diary.accounts import User
from legacy_diary.api.middleware.user_auth import get_current_user
from legacy_diary.errors import NotFoundError, StateConflictError
from legacy_diary.legacy import switch as dead_mans_switch
from legacy_diary.legacy.models import DeadMansSwitch, SwitchConfig
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/switch", tags=["switch"])
logger = get_logger(__name__)


def _translate(e: Exception, action: str) -> HTTPException:
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=sanitize_error_message(str(e), 404))
    if isinstance(e, StateConflictError):
        return HTTPException(status_code=409, detail=sanitize_error_message(str(e), 409))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400))
    logger.error("Failed to %s: %s", action, e)
    return HTTPException(status_code=500, detail=f"Failed to {action}")


@router.get("", response_model=DeadMansSwitch)
async def get_switch(user: User = Depends(get_current_user)) -> DeadMansSwitch:
    switch = dead_mans_switch.get_switch(user.id)
    if switch is None:
        raise HTTPException(status_code=404, detail="No dead man's switch configured")
    return switch


@router.put("", response_model=DeadMansSwitch)
async def configure_switch(
    config: SwitchConfig,
    user: User = Depends(get_current_user),
) -> DeadMansSwitch:
    try:
        return dead_mans_switch.configure(user.id, config)
    except Exception as e:
        raise _translate(e, "configure switch") from None


@router.post("/check-in", response_model=DeadMansSwitch)
async def check_in(user: User = Depends(get_current_user)) -> DeadMansSwitch:
    try:
        return dead_mans_switch.check_in(user.id)
    except Exception as e:
        raise _translate(e, "check in") from None


@router.post("/pause", response_model=DeadMansSwitch)
async def pause_switch(user: User = Depends(get_current_user)) -> DeadMansSwitch:
    try:
        return dead_mans_switch.pause(user.id)
    except Exception as e:
        raise _translate(e, "pause switch") from None


@router.post("/resume", response_model=DeadMansSwitch)
async def resume_switch(user: User = Depends(get_current_user)) -> DeadMansSwitch:
    try:
        return dead_mans_switch.resume(user.id)
    except Exception as e:
        raise _translate(e, "resume switch") from None


@router.delete("", status_code=status.HTTP_204_NO_CONTENT)
async def delete_switch(user: User = Depends(get_current_user)) -> None:
    if not dead_mans_switch.remove(user.id):
        raise HTTPException(status_code=404, detail="No dead man's switch configured")
