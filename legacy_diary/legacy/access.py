"""
Heir-facing legacy access.

An access code (XXXX-XXXX-XXXX) is issued per trusted contact, either by the
owner or automatically when the dead man's switch triggers. Redeeming it is a
two-step flow:

    verify(code)        -> invalid | needs_registration | granted
    register_heir(...)  -> one registration per code, verified on creation
    load_legacy(code)   -> owner profile, entries, active wills, final message

Codes are never written to logs in full; see utils.redaction.mask_access_code.
"""

from __future__ import annotations

import secrets
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from legacy_diary.accounts.repository import UserRepository
from legacy_diary.config import ACCESS_CODE_GROUP_LENGTH, ACCESS_CODE_GROUPS
from legacy_diary.contacts.repository import TrustedContactRepository
from legacy_diary.errors import NotFoundError, StateConflictError
from legacy_diary.journal.repository import DiaryEntryRepository
from legacy_diary.legacy.models import (
    HeirRegistration,
    LegacyAccessCode,
    LegacyBundle,
    LegacyEntry,
    LegacyOwner,
    LegacyWill,
    SwitchStatus,
    VerifyStatus,
)
from legacy_diary.legacy.repository import (
    DeadMansSwitchRepository,
    HeirRegistrationRepository,
    LegacyAccessRepository,
)
from legacy_diary.observability.logging import get_logger
from legacy_diary.observability.telemetry import counter, log_event
from legacy_diary.utils.clock import to_iso, utc_now
from legacy_diary.utils.redaction import mask_access_code, mask_email
from legacy_diary.utils.validators import (
    normalize_access_code,
    validate_email,
    validate_name,
)
from legacy_diary.wills.repository import WillRepository

logger = get_logger(__name__)

# No 0/O or 1/I so codes survive being read aloud or handwritten
ACCESS_CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
_MAX_CODE_ATTEMPTS = 5


@dataclass
class VerifyResult:
    status: VerifyStatus
    owner_name: str | None = None


def generate_access_code() -> str:
    groups = [
        "".join(secrets.choice(ACCESS_CODE_ALPHABET) for _ in range(ACCESS_CODE_GROUP_LENGTH))
        for _ in range(ACCESS_CODE_GROUPS)
    ]
    return "-".join(groups)


def issue_access_code(user_id: str, contact_id: str | None = None) -> LegacyAccessCode:
    """
    Create a new active code for one of the user's contacts.

    Raises:
        NotFoundError: contact_id does not belong to the user
        RuntimeError: No unique code after several attempts
    """
    if contact_id is not None:
        contact = TrustedContactRepository.get_by_id(contact_id)
        if contact is None or contact.user_id != user_id:
            raise NotFoundError("Trusted contact not found")

    for _ in range(_MAX_CODE_ATTEMPTS):
        code = LegacyAccessCode(
            id=str(uuid.uuid4()),
            access_code=generate_access_code(),
            user_id=user_id,
            contact_id=contact_id,
            created_at=utc_now(),
        )
        try:
            LegacyAccessRepository.create(code)
        except sqlite3.IntegrityError:
            counter("legacy.code_collisions")
            continue

        counter("legacy.codes_issued")
        return code

    raise RuntimeError("Could not generate a unique access code")


def list_access_codes(user_id: str) -> list[LegacyAccessCode]:
    return LegacyAccessRepository.list_by_user(user_id)


def revoke_access_code(code_id: str, user_id: str) -> bool:
    """Deactivate one of the user's codes. False if missing, foreign or already inactive."""
    code = LegacyAccessRepository.get_by_id(code_id)
    if code is None or code.user_id != user_id:
        return False

    revoked = LegacyAccessRepository.deactivate(code_id)
    if revoked:
        log_event("legacy.code_revoked", user_id=user_id, code=mask_access_code(code.access_code))
    return revoked


def _active_code(code: str | None) -> LegacyAccessCode | None:
    normalized = normalize_access_code(code)
    if normalized is None:
        return None

    access = LegacyAccessRepository.get_by_code(normalized)
    if access is None or not access.is_active:
        return None

    return access


def verify(code: str | None) -> VerifyResult:
    """
    Check a code without revealing anything beyond the owner's name.
    """
    access = _active_code(code)
    if access is None:
        counter("legacy.verify_invalid")
        return VerifyResult(status=VerifyStatus.INVALID)

    owner = UserRepository.get_by_id(access.user_id)
    owner_name = owner.name if owner else None

    registration = HeirRegistrationRepository.get_by_code(access.access_code)
    if registration is None or not registration.is_verified:
        return VerifyResult(status=VerifyStatus.NEEDS_REGISTRATION, owner_name=owner_name)

    return VerifyResult(status=VerifyStatus.GRANTED, owner_name=owner_name)


def register_heir(
    code: str | None,
    name: str | None,
    email: str | None,
    relationship: str | None = None,
) -> HeirRegistration:
    """
    Raises:
        NotFoundError: Unknown or inactive code
        ValidationError: Missing name or email
        StateConflictError: Code already has a registered heir
    """
    access = _active_code(code)
    if access is None:
        raise NotFoundError("Invalid or expired access code")

    registration = HeirRegistration(
        id=str(uuid.uuid4()),
        access_code=access.access_code,
        name=validate_name(name),
        email=validate_email(email),
        relationship=(relationship or "").strip() or None,
        is_verified=True,
        registered_at=utc_now(),
    )

    if HeirRegistrationRepository.get_by_code(access.access_code) is not None:
        raise StateConflictError("An heir is already registered for this access code")

    try:
        HeirRegistrationRepository.create(registration)
    except sqlite3.IntegrityError:
        raise StateConflictError("An heir is already registered for this access code") from None

    log_event(
        "legacy.heir_registered",
        user_id=access.user_id,
        code=mask_access_code(access.access_code),
        email=mask_email(registration.email),
    )
    return registration


def load_legacy(code: str | None) -> LegacyBundle | None:
    """
    Everything the heir may see, or None unless verify(code) is granted.
    """
    if verify(code).status != VerifyStatus.GRANTED:
        return None

    access = _active_code(code)
    owner = UserRepository.get_by_id(access.user_id)
    if owner is None:
        return None

    entries = DiaryEntryRepository.list_by_user(owner.id)
    wills = WillRepository.list_by_user(owner.id, active_only=True)

    switch = DeadMansSwitchRepository.get_by_user(owner.id)
    message = None
    if switch is not None and switch.status == SwitchStatus.TRIGGERED.value:
        message = switch.custom_message

    photos: list[str] = []
    for entry in entries:
        photos.extend(url for url in entry.images if url not in photos)

    log_event("legacy.accessed", user_id=owner.id, code=mask_access_code(access.access_code))

    return LegacyBundle(
        user=LegacyOwner(name=owner.name, bio=owner.bio, profile_picture=owner.profile_picture),
        entries=[
            LegacyEntry(
                id=e.id,
                title=e.title,
                content=e.content,
                tags=e.tags,
                images=e.images,
                created_at=e.created_at,
            )
            for e in entries
        ],
        wills=[
            LegacyWill(
                id=w.id,
                title=w.title,
                content=w.content,
                created_at=w.created_at,
                updated_at=w.updated_at,
            )
            for w in wills
        ],
        photos=photos,
        message=message,
    )


def export_legacy(bundle: LegacyBundle, now: datetime | None = None) -> dict[str, Any]:
    """JSON-ready export of a legacy bundle."""
    return {
        "user": bundle.user.model_dump(),
        "message": bundle.message,
        "entries": [
            {
                "title": e.title,
                "content": e.content,
                "date": to_iso(e.created_at),
                "tags": e.tags,
            }
            for e in bundle.entries
        ],
        "wills": [
            {"title": w.title, "content": w.content, "created": to_iso(w.created_at)}
            for w in bundle.wills
        ],
        "exportedAt": to_iso(now or utc_now()),
    }


def find_will(bundle: LegacyBundle, will_id: str) -> LegacyWill | None:
    return next((w for w in bundle.wills if w.id == will_id), None)
