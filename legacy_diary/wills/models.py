"""
Will domain models.

Attachments are metadata only (name, url, MIME type, size); file bytes live
wherever the url points.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from legacy_diary.utils.clock import parse_dt, to_iso, utc_now


class WillAttachment(BaseModel):
    id: str
    name: str
    url: str
    type: str
    size: int = Field(..., ge=0, description="Bytes")

    def to_db_dict(self, will_id: str) -> dict[str, Any]:
        return {
            "id": self.id,
            "will_id": will_id,
            "name": self.name,
            "url": self.url,
            "type": self.type,
            "size": self.size,
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> WillAttachment:
        return cls(
            id=row["id"],
            name=row["name"],
            url=row["url"],
            type=row["type"],
            size=row["size"],
        )


class Will(BaseModel):
    id: str
    user_id: str
    title: str
    content: str
    attachments: list[WillAttachment] = Field(default_factory=list)
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        """Columns of the wills row; attachments are stored separately."""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "content": self.content,
            "is_active": 1 if self.is_active else 0,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_db_row(
        cls, row: dict[str, Any], attachments: list[WillAttachment] | None = None
    ) -> Will:
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            content=row["content"],
            attachments=attachments or [],
            is_active=bool(row.get("is_active", 1)),
            created_at=parse_dt(row.get("created_at")) or utc_now(),
            updated_at=parse_dt(row.get("updated_at")) or utc_now(),
        )


class WillAttachmentCreate(BaseModel):
    name: str
    url: str
    type: str
    size: int


class WillCreate(BaseModel):
    title: str
    content: str
    is_active: bool = True
    attachments: list[WillAttachmentCreate] = Field(default_factory=list)


class WillUpdate(BaseModel):
    """Partial update; None leaves a field unchanged."""

    title: str | None = None
    content: str | None = None
    is_active: bool | None = None
