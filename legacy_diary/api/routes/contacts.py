"""
Trusted contact endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from legacy_diary.accounts import User
from legacy_diary.api.middleware.user_auth import get_current_user
from legacy_diary.contacts import (
    ContactService,
    TrustedContact,
    TrustedContactCreate,
    TrustedContactUpdate,
)
from legacy_diary.errors import TierLimitError
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/contacts", tags=["contacts"])
logger = get_logger(__name__)


@router.get("", response_model=list[TrustedContact])
async def list_contacts(user: User = Depends(get_current_user)) -> list[TrustedContact]:
    return ContactService.list_contacts(user.id)


@router.post("", response_model=TrustedContact, status_code=status.HTTP_201_CREATED)
async def add_contact(
    request: TrustedContactCreate,
    user: User = Depends(get_current_user),
) -> TrustedContact:
    try:
        return ContactService.add_contact(user, request)

    except TierLimitError as e:
        raise HTTPException(status_code=403, detail=sanitize_error_message(str(e), 403)) from None
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to add contact: %s", e)
        raise HTTPException(status_code=500, detail="Failed to add contact") from None


@router.get("/{contact_id}", response_model=TrustedContact)
async def get_contact(contact_id: str, user: User = Depends(get_current_user)) -> TrustedContact:
    contact = ContactService.get_contact(contact_id, user.id)
    if contact is None:
        raise HTTPException(status_code=404, detail="Contact not found")
    return contact


@router.put("/{contact_id}", response_model=TrustedContact)
async def update_contact(
    contact_id: str,
    updates: TrustedContactUpdate,
    user: User = Depends(get_current_user),
) -> TrustedContact:
    try:
        contact = ContactService.update_contact(contact_id, user.id, updates)
        if contact is None:
            raise HTTPException(status_code=404, detail="Contact not found")
        return contact

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to update contact %s: %s", contact_id, e)
        raise HTTPException(status_code=500, detail="Failed to update contact") from None


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_contact(contact_id: str, user: User = Depends(get_current_user)) -> None:
    """Remove the contact; it is also dropped from the dead man's switch."""
    if not ContactService.remove_contact(contact_id, user.id):
        raise HTTPException(status_code=404, detail="Contact not found")
