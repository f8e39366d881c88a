"""
Will endpoints: CRUD, attachment metadata and plain-text download.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.responses import PlainTextResponse

from legacy_diary.accounts import User
from legacy_diary.api.middleware.user_auth import get_current_user
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.error_sanitizer import sanitize_error_message
from legacy_diary.wills import Will, WillAttachmentCreate, WillCreate, WillService, WillUpdate
from legacy_diary.wills.service import download_filename

router = APIRouter(prefix="/api/wills", tags=["wills"])
logger = get_logger(__name__)


def will_download_response(filename_title: str, text: str) -> PlainTextResponse:
    return PlainTextResponse(
        text,
        headers={
            "Content-Disposition": f'attachment; filename="{download_filename(filename_title)}"'
        },
    )


@router.get("", response_model=list[Will])
async def list_wills(
    user: User = Depends(get_current_user),
    q: str | None = Query(None, description="Search title and content"),
) -> list[Will]:
    return WillService.list_wills(user.id, query=q)


@router.post("", response_model=Will, status_code=status.HTTP_201_CREATED)
async def create_will(request: WillCreate, user: User = Depends(get_current_user)) -> Will:
    try:
        return WillService.create_will(user.id, request)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to create will: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create will") from None


@router.get("/{will_id}", response_model=Will)
async def get_will(will_id: str, user: User = Depends(get_current_user)) -> Will:
    will = WillService.get_will(will_id, user.id)
    if will is None:
        raise HTTPException(status_code=404, detail="Will not found")
    return will


@router.put("/{will_id}", response_model=Will)
async def update_will(
    will_id: str,
    updates: WillUpdate,
    user: User = Depends(get_current_user),
) -> Will:
    try:
        will = WillService.update_will(will_id, user.id, updates)
        if will is None:
            raise HTTPException(status_code=404, detail="Will not found")
        return will

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to update will %s: %s", will_id, e)
        raise HTTPException(status_code=500, detail="Failed to update will") from None


@router.delete("/{will_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_will(will_id: str, user: User = Depends(get_current_user)) -> None:
    if not WillService.delete_will(will_id, user.id):
        raise HTTPException(status_code=404, detail="Will not found")


@router.post("/{will_id}/attachments", response_model=Will, status_code=status.HTTP_201_CREATED)
async def add_attachment(
    will_id: str,
    request: WillAttachmentCreate,
    user: User = Depends(get_current_user),
) -> Will:
    """Attach file metadata (the file itself lives in external storage)."""
    try:
        will = WillService.add_attachment(will_id, user.id, request)
        if will is None:
            raise HTTPException(status_code=404, detail="Will not found")
        return will

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to add attachment to will %s: %s", will_id, e)
        raise HTTPException(status_code=500, detail="Failed to add attachment") from None


@router.delete("/{will_id}/attachments/{attachment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_attachment(
    will_id: str,
    attachment_id: str,
    user: User = Depends(get_current_user),
) -> None:
    if not WillService.remove_attachment(will_id, user.id, attachment_id):
        raise HTTPException(status_code=404, detail="Attachment not found")


@router.get("/{will_id}/download", response_class=PlainTextResponse)
async def download_will(will_id: str, user: User = Depends(get_current_user)) -> PlainTextResponse:
    will = WillService.get_will(will_id, user.id)
    if will is None:
        raise HTTPException(status_code=404, detail="Will not found")
    return will_download_response(will.title, WillService.render(will))
