"""
Wisdom assistant chat models.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from legacy_diary.utils.clock import parse_dt, to_iso, utc_now


class ResponseRule(str, Enum):
    """Which responder rule produced a bot reply."""

    WELCOME = "welcome"
    REPEAT = "repeat"
    GREETING = "greeting"
    QUESTION = "question"
    EMOTION = "emotion"
    MEMORY = "memory"
    DEFAULT = "default"


class ChatReply(BaseModel):
    text: str
    rule: ResponseRule
    context_entry_ids: list[str] = Field(default_factory=list)
    referenced_entry_id: str | None = None


class ChatMessage(BaseModel):
    id: str
    session_id: str
    sender: str = Field(..., pattern="^(user|bot)$")
    text: str
    rule: str | None = None
    created_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "sender": self.sender,
            "text": self.text,
            "rule": self.rule,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> ChatMessage:
        return cls(
            id=row["id"],
            session_id=row["session_id"],
            sender=row["sender"],
            text=row["text"],
            rule=row.get("rule"),
            created_at=parse_dt(row.get("created_at")) or utc_now(),
        )


class ChatSession(BaseModel):
    id: str
    user_id: str
    title: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    messages: list[ChatMessage] = Field(default_factory=list)

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_db_row(
        cls, row: dict[str, Any], messages: list[ChatMessage] | None = None
    ) -> ChatSession:
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            title=row["title"],
            created_at=parse_dt(row.get("created_at")) or utc_now(),
            updated_at=parse_dt(row.get("updated_at")) or utc_now(),
            messages=messages or [],
        )
