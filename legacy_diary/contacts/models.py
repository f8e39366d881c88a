"""
Trusted contact domain models.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from legacy_diary.utils.clock import parse_dt, to_iso, utc_now


class TrustedContact(BaseModel):
    """A person who may receive the owner's legacy."""

    id: str
    user_id: str
    name: str
    email: str
    relationship: str
    picture: str | None = None
    created_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "email": self.email,
            "relationship": self.relationship,
            "picture": self.picture,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> TrustedContact:
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            email=row["email"],
            relationship=row["relationship"],
            picture=row.get("picture"),
            created_at=parse_dt(row.get("created_at")) or utc_now(),
        )


class TrustedContactCreate(BaseModel):
    name: str
    email: str
    relationship: str
    picture: str | None = None


class TrustedContactUpdate(BaseModel):
    """Partial update; None leaves a field unchanged."""

    name: str | None = None
    email: str | None = None
    relationship: str | None = None
    picture: str | None = None
