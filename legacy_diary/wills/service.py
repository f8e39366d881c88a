"""Will service - ownership checks, attachment validation and plain-text rendering."""

from __future__ import annotations

import re
import uuid
from datetime import datetime

from legacy_diary.config import (
    ENTRY_CONTENT_MAX_LENGTH,
    ENTRY_TITLE_MAX_LENGTH,
    WILL_ATTACHMENT_MAX_BYTES,
    WILL_ATTACHMENT_TYPES,
)
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.clock import ensure_utc, utc_now
from legacy_diary.utils.validators import ValidationError, validate_required_text
from legacy_diary.wills.models import (
    Will,
    WillAttachment,
    WillAttachmentCreate,
    WillCreate,
    WillUpdate,
)
from legacy_diary.wills.repository import WillRepository

logger = get_logger(__name__)

MAX_ATTACHMENT_NAME_LENGTH = 255
MAX_URL_LENGTH = 2048

_UNSAFE_FILENAME_CHARS = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def is_allowed_attachment_type(mime_type: str) -> bool:
    """PDF, Word (doc/docx) or any image/* type."""
    mime_type = mime_type.strip().lower()
    return mime_type in WILL_ATTACHMENT_TYPES or mime_type.startswith("image/")


def validate_attachment(data: WillAttachmentCreate) -> WillAttachment:
    """
    Raises:
        ValidationError: Missing name/url, disallowed type or file over 10MB
    """
    name = validate_required_text(data.name, "attachment name", MAX_ATTACHMENT_NAME_LENGTH)
    url = validate_required_text(data.url, "attachment url", MAX_URL_LENGTH)

    if not is_allowed_attachment_type(data.type or ""):
        raise ValidationError("Only PDF, Word documents, and images are allowed")
    if data.size < 0:
        raise ValidationError("Attachment size cannot be negative")
    if data.size > WILL_ATTACHMENT_MAX_BYTES:
        raise ValidationError("Attachments must be under 10MB")

    return WillAttachment(
        id=str(uuid.uuid4()),
        name=name,
        url=url,
        type=data.type.strip().lower(),
        size=data.size,
    )


def _format_date(value: datetime) -> str:
    return ensure_utc(value).strftime("%B %d, %Y").replace(" 0", " ")


def render_will_text(
    title: str,
    content: str,
    created_at: datetime,
    updated_at: datetime,
    accessed_at: datetime | None = None,
) -> str:
    """Plain-text download of a will, as handed to heirs."""
    accessed_at = accessed_at or utc_now()
    return (
        "LAST WILL AND TESTAMENT\n"
        f"{title}\n"
        "\n"
        f"Created: {_format_date(created_at)}\n"
        f"Last Updated: {_format_date(updated_at)}\n"
        "\n"
        f"{content}\n"
        "\n"
        "---\n"
        "This document was accessed through Digital Legacy Diary\n"
        f"Access Date: {_format_date(accessed_at)}\n"
    )


def download_filename(title: str, suffix: str = ".txt") -> str:
    """Every character outside [A-Za-z0-9] becomes an underscore."""
    return _UNSAFE_FILENAME_CHARS.sub("_", title) + suffix


class WillService:
    """Service layer for wills, scoped to the owner."""

    @staticmethod
    def create_will(user_id: str, data: WillCreate) -> Will:
        title = validate_required_text(data.title, "title", ENTRY_TITLE_MAX_LENGTH)
        content = validate_required_text(data.content, "content", ENTRY_CONTENT_MAX_LENGTH)
        attachments = [validate_attachment(a) for a in data.attachments]

        now = utc_now()
        will = Will(
            id=str(uuid.uuid4()),
            user_id=user_id,
            title=title,
            content=content,
            attachments=attachments,
            is_active=data.is_active,
            created_at=now,
            updated_at=now,
        )
        return WillRepository.create(will)

    @staticmethod
    def get_will(will_id: str, user_id: str) -> Will | None:
        """Get a will if owned by user. Returns None if not found or not owned."""
        will = WillRepository.get_by_id(will_id)
        if not will or will.user_id != user_id:
            return None
        return will

    @staticmethod
    def list_wills(user_id: str, query: str | None = None) -> list[Will]:
        return WillRepository.list_by_user(user_id, query=(query or "").strip() or None)

    @staticmethod
    def update_will(will_id: str, user_id: str, updates: WillUpdate) -> Will | None:
        if WillService.get_will(will_id, user_id) is None:
            return None

        fields: dict[str, object] = {}
        if updates.title is not None:
            fields["title"] = validate_required_text(updates.title, "title", ENTRY_TITLE_MAX_LENGTH)
        if updates.content is not None:
            fields["content"] = validate_required_text(
                updates.content, "content", ENTRY_CONTENT_MAX_LENGTH
            )
        if updates.is_active is not None:
            fields["is_active"] = 1 if updates.is_active else 0

        return WillRepository.update(will_id, fields)

    @staticmethod
    def delete_will(will_id: str, user_id: str) -> bool:
        if WillService.get_will(will_id, user_id) is None:
            return False
        return WillRepository.delete(will_id)

    @staticmethod
    def add_attachment(will_id: str, user_id: str, data: WillAttachmentCreate) -> Will | None:
        if WillService.get_will(will_id, user_id) is None:
            return None
        WillRepository.add_attachment(will_id, validate_attachment(data))
        return WillRepository.get_by_id(will_id)

    @staticmethod
    def remove_attachment(will_id: str, user_id: str, attachment_id: str) -> bool:
        if WillService.get_will(will_id, user_id) is None:
            return False
        return WillRepository.remove_attachment(will_id, attachment_id)

    @staticmethod
    def render(will: Will, accessed_at: datetime | None = None) -> str:
        return render_will_text(
            will.title, will.content, will.created_at, will.updated_at, accessed_at
        )
