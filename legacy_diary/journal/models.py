"""
Diary entry domain models.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from legacy_diary.utils.clock import parse_dt, to_iso, utc_now


class DiaryEntry(BaseModel):
    """One journal entry. Tags are stored normalized (lower-case, unique)."""

    model_config = ConfigDict(frozen=False)

    id: str
    user_id: str
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list, description="Image URLs")
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        """Convert to dict for database storage."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "content": self.content,
            "tags": json.dumps(self.tags),
            "images": json.dumps(self.images),
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> DiaryEntry:
        """Create DiaryEntry from database row."""
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            content=row["content"],
            tags=json.loads(row["tags"]) if row.get("tags") else [],
            images=json.loads(row["images"]) if row.get("images") else [],
            created_at=parse_dt(row.get("created_at")) or utc_now(),
            updated_at=parse_dt(row.get("updated_at")) or utc_now(),
        )


class DiaryEntryCreate(BaseModel):
    """Input for a new entry. created_at may be back-dated for imported memories."""

    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    created_at: datetime | None = None


class DiaryEntryUpdate(BaseModel):
    """Partial update; None leaves a field unchanged."""

    title: str | None = None
    content: str | None = None
    tags: list[str] | None = None
    images: list[str] | None = None
