"""Journal service - facade between API routes and the entry repository.

Centralizes ownership checks, input normalization and the monthly entry
allowance of the user's subscription tier.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime

from legacy_diary.accounts.models import User
from legacy_diary.accounts.subscriptions import ensure_can_add_entry
from legacy_diary.config import ENTRY_CONTENT_MAX_LENGTH, ENTRY_TITLE_MAX_LENGTH
from legacy_diary.journal.models import DiaryEntry, DiaryEntryCreate, DiaryEntryUpdate
from legacy_diary.journal.repository import DiaryEntryRepository
from legacy_diary.observability.logging import get_logger
from legacy_diary.observability.telemetry import counter
from legacy_diary.utils.clock import ensure_utc, utc_now
from legacy_diary.utils.validators import ValidationError, normalize_tags, validate_required_text

logger = get_logger(__name__)


def start_of_month(now: datetime) -> datetime:
    now = ensure_utc(now)
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def _clean_images(images: list[str]) -> list[str]:
    return [url.strip() for url in images if url and url.strip()]


class JournalService:
    """Service layer for diary entries.

    Methods that take entry_id + user_id return None (False for delete) when
    the entry is missing or belongs to someone else.
    """

    @staticmethod
    def create_entry(user: User, data: DiaryEntryCreate, now: datetime | None = None) -> DiaryEntry:
        """
        Raises:
            ValidationError: Missing title/content or bad tags
            TierLimitError: Monthly entry allowance used up
        """
        now = now or utc_now()
        title = validate_required_text(data.title, "title", ENTRY_TITLE_MAX_LENGTH)
        content = validate_required_text(data.content, "content", ENTRY_CONTENT_MAX_LENGTH)
        tags = normalize_tags(data.tags)

        created_at = ensure_utc(data.created_at) if data.created_at else now
        if created_at > now:
            raise ValidationError("created_at cannot be in the future")

        this_month = DiaryEntryRepository.count_recorded_since(user.id, start_of_month(now))
        ensure_can_add_entry(user.subscription_tier, this_month)

        entry = DiaryEntry(
            id=str(uuid.uuid4()),
            user_id=user.id,
            title=title,
            content=content,
            tags=tags,
            images=_clean_images(data.images),
            created_at=created_at,
            updated_at=now,
        )
        DiaryEntryRepository.create(entry, recorded_at=now)
        counter("journal.entries_created")
        return entry

    @staticmethod
    def get_entry(entry_id: str, user_id: str) -> DiaryEntry | None:
        """Get an entry if owned by user. Returns None if not found or not owned."""
        entry = DiaryEntryRepository.get_by_id(entry_id)
        if not entry or entry.user_id != user_id:
            return None
        return entry

    @staticmethod
    def list_entries(
        user_id: str,
        query: str | None = None,
        tag: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> tuple[list[DiaryEntry], int]:
        """
        Returns:
            (entries newest first, total matching count)
        """
        query = query.strip() if query else None
        entries = DiaryEntryRepository.list_by_user(
            user_id, query=query, tag=tag, limit=limit, offset=offset
        )
        total = DiaryEntryRepository.count_by_user(user_id, query=query, tag=tag)
        return entries, total

    @staticmethod
    def all_entries(user_id: str) -> list[DiaryEntry]:
        """Every entry of the user, newest first."""
        return DiaryEntryRepository.list_by_user(user_id)

    @staticmethod
    def update_entry(entry_id: str, user_id: str, updates: DiaryEntryUpdate) -> DiaryEntry | None:
        """
        Raises:
            ValidationError: Empty title/content or bad tags
        """
        if JournalService.get_entry(entry_id, user_id) is None:
            return None

        fields: dict[str, object] = {}
        if updates.title is not None:
            fields["title"] = validate_required_text(updates.title, "title", ENTRY_TITLE_MAX_LENGTH)
        if updates.content is not None:
            fields["content"] = validate_required_text(
                updates.content, "content", ENTRY_CONTENT_MAX_LENGTH
            )
        if updates.tags is not None:
            fields["tags"] = json.dumps(normalize_tags(updates.tags))
        if updates.images is not None:
            fields["images"] = json.dumps(_clean_images(updates.images))

        return DiaryEntryRepository.update(entry_id, fields)

    @staticmethod
    def delete_entry(entry_id: str, user_id: str) -> bool:
        if JournalService.get_entry(entry_id, user_id) is None:
            return False
        return DiaryEntryRepository.delete(entry_id)
