"""
Diary entry endpoints.

CRUD for the signed-in user's entries, with substring search over title and
content and filtering by tag.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel

from legacy_diary.accounts import User
from legacy_diary.api.middleware.user_auth import get_current_user
from legacy_diary.config import API_LIST_LIMIT_DEFAULT, API_LIST_LIMIT_MAX
from legacy_diary.errors import TierLimitError
from legacy_diary.journal import DiaryEntry, DiaryEntryCreate, DiaryEntryUpdate, JournalService
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/entries", tags=["entries"])
logger = get_logger(__name__)


class EntryListResponse(BaseModel):
    entries: list[DiaryEntry]
    total: int


@router.get("", response_model=EntryListResponse)
async def list_entries(
    user: User = Depends(get_current_user),
    q: str | None = Query(None, description="Search title and content"),
    tag: str | None = Query(None),
    limit: int = Query(API_LIST_LIMIT_DEFAULT, ge=1, le=API_LIST_LIMIT_MAX),
    offset: int = Query(0, ge=0),
) -> EntryListResponse:
    """List entries newest first. `total` counts every match, not just this page."""
    try:
        entries, total = JournalService.list_entries(
            user.id, query=q, tag=tag, limit=limit, offset=offset
        )
        return EntryListResponse(entries=entries, total=total)

    except Exception as e:
        logger.error("Failed to list entries: %s", e)
        raise HTTPException(status_code=500, detail="Failed to list entries") from None


@router.post("", response_model=DiaryEntry, status_code=status.HTTP_201_CREATED)
async def create_entry(
    request: DiaryEntryCreate,
    user: User = Depends(get_current_user),
) -> DiaryEntry:
    try:
        return JournalService.create_entry(user, request)

    except TierLimitError as e:
        raise HTTPException(status_code=403, detail=sanitize_error_message(str(e), 403)) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to create entry: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create entry") from None


@router.get("/{entry_id}", response_model=DiaryEntry)
async def get_entry(entry_id: str, user: User = Depends(get_current_user)) -> DiaryEntry:
    entry = JournalService.get_entry(entry_id, user.id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Entry not found")
    return entry


@router.put("/{entry_id}", response_model=DiaryEntry)
async def update_entry(
    entry_id: str,
    updates: DiaryEntryUpdate,
    user: User = Depends(get_current_user),
) -> DiaryEntry:
    try:
        entry = JournalService.update_entry(entry_id, user.id, updates)
        if entry is None:
            raise HTTPException(status_code=404, detail="Entry not found")
        return entry

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to update entry %s: %s", entry_id, e)
        raise HTTPException(status_code=500, detail="Failed to update entry") from None


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_entry(entry_id: str, user: User = Depends(get_current_user)) -> None:
    if not JournalService.delete_entry(entry_id, user.id):
        raise HTTPException(status_code=404, detail="Entry not found")
