"""
Legacy access endpoints.

Owner side (signed in):
    GET    /api/legacy-access/codes
    POST   /api/legacy-access/codes
    DELETE /api/legacy-access/codes/{code_id}

Heir side (no account, keyed by access code; codes travel in request bodies
so they stay out of URLs and access logs):
    POST /api/legacy/verify
    POST /api/legacy/register
    POST /api/legacy/view
    POST /api/legacy/export
    POST /api/legacy/wills/{will_id}/download
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel

from legacy_diary.accounts import User
from legacy_diary.api.middleware.user_auth import get_current_user
from legacy_diary.api.routes.wills import will_download_response
from legacy_diary.errors import NotFoundError, StateConflictError
from legacy_diary.legacy import access
from legacy_diary.legacy.models import LegacyAccessCode, LegacyBundle, VerifyStatus
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.error_sanitizer import sanitize_error_message
from legacy_diary.wills import render_will_text

owner_router = APIRouter(prefix="/api/legacy-access", tags=["legacy"])
router = APIRouter(prefix="/api/legacy", tags=["legacy"])
logger = get_logger(__name__)


class IssueCodeRequest(BaseModel):
    contact_id: str | None = None


class AccessCodeRequest(BaseModel):
    code: str


class VerifyResponse(BaseModel):
    status: VerifyStatus
    owner_name: str | None = None


class RegisterHeirRequest(BaseModel):
    code: str
    name: str
    email: str
    relationship: str | None = None


class RegisterHeirResponse(BaseModel):
    name: str
    email: str
    relationship: str | None
    registered_at: datetime


# ============================================================================
# Owner endpoints
# ============================================================================


@owner_router.get("/codes", response_model=list[LegacyAccessCode])
async def list_codes(user: User = Depends(get_current_user)) -> list[LegacyAccessCode]:
    return access.list_access_codes(user.id)


@owner_router.post("/codes", response_model=LegacyAccessCode, status_code=status.HTTP_201_CREATED)
async def issue_code(
    request: IssueCodeRequest,
    user: User = Depends(get_current_user),
) -> LegacyAccessCode:
    try:
        return access.issue_access_code(user.id, request.contact_id)

    except NotFoundError:
        raise HTTPException(status_code=404, detail="Contact not found") from None
    except Exception as e:
        logger.error("Failed to issue access code: %s", e)
        raise HTTPException(status_code=500, detail="Failed to issue access code") from None


@owner_router.delete("/codes/{code_id}", status_code=status.HTTP_204_NO_CONTENT)
async def revoke_code(code_id: str, user: User = Depends(get_current_user)) -> None:
    if not access.revoke_access_code(code_id, user.id):
        raise HTTPException(status_code=404, detail="Access code not found")


# ============================================================================
# Heir endpoints
# ============================================================================


def _granted_bundle(code: str) -> LegacyBundle:
    """Bundle for a granted code, else 404 (invalid code) or 403 (no heir yet)."""
    result = access.verify(code)
    if result.status == VerifyStatus.INVALID:
        raise HTTPException(status_code=404, detail="Invalid or expired access code")
    if result.status == VerifyStatus.NEEDS_REGISTRATION:
        raise HTTPException(status_code=403, detail="Heir registration required")

    bundle = access.load_legacy(code)
    if bundle is None:
        raise HTTPException(status_code=404, detail="Invalid or expired access code")
    return bundle


@router.post("/verify", response_model=VerifyResponse)
async def verify_code(request: AccessCodeRequest) -> VerifyResponse:
    result = access.verify(request.code)
    return VerifyResponse(status=result.status, owner_name=result.owner_name)


@router.post(
    "/register", response_model=RegisterHeirResponse, status_code=status.HTTP_201_CREATED
)
async def register_heir(request: RegisterHeirRequest) -> RegisterHeirResponse:
    try:
        registration = access.register_heir(
            request.code, request.name, request.email, request.relationship
        )
        return RegisterHeirResponse(
            name=registration.name,
            email=registration.email,
            relationship=registration.relationship,
            registered_at=registration.registered_at,
        )

    except NotFoundError:
        raise HTTPException(status_code=404, detail="Invalid or expired access code") from None
    except StateConflictError as e:
        raise HTTPException(status_code=409, detail=sanitize_error_message(str(e), 409)) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to register heir: %s", e)
        raise HTTPException(status_code=500, detail="Failed to register heir") from None


@router.post("/view", response_model=LegacyBundle)
async def view_legacy(request: AccessCodeRequest) -> LegacyBundle:
    return _granted_bundle(request.code)


@router.post("/export")
async def export_legacy(request: AccessCodeRequest) -> dict[str, Any]:
    return access.export_legacy(_granted_bundle(request.code))


@router.post("/wills/{will_id}/download", response_class=PlainTextResponse)
async def download_legacy_will(will_id: str, request: AccessCodeRequest) -> PlainTextResponse:
    bundle = _granted_bundle(request.code)
    will = access.find_will(bundle, will_id)
    if will is None:
        raise HTTPException(status_code=404, detail="Will not found")

    text = render_will_text(will.title, will.content, will.created_at, will.updated_at)
    return will_download_response(will.title, text)
