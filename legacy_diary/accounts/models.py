"""
Account domain models.

A User row owns every other record in the database; deleting it cascades.
"""

from __future__ import annotations

import json
from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from legacy_diary.accounts.subscriptions import TierId
from legacy_diary.utils.clock import parse_dt, to_iso, utc_now

SOCIAL_NETWORKS = ("twitter", "linkedin", "facebook", "instagram")


class SocialLinks(BaseModel):
    model_config = ConfigDict(extra="ignore")

    twitter: str | None = None
    linkedin: str | None = None
    facebook: str | None = None
    instagram: str | None = None


class User(BaseModel):
    """A registered diarist."""

    model_config = ConfigDict(use_enum_values=True)

    id: str
    name: str
    email: str
    password_hash: str = Field(..., repr=False)
    bio: str | None = None
    profile_picture: str | None = None
    social_links: SocialLinks = Field(default_factory=SocialLinks)
    subscription_tier: TierId = TierId.FREE
    subscription_start: datetime | None = None
    subscription_end: datetime | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        """Convert to dict for database storage."""
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "password_hash": self.password_hash,
            "bio": self.bio,
            "profile_picture": self.profile_picture,
            "social_links": self.social_links.model_dump_json(exclude_none=True),
            "subscription_tier": self.subscription_tier,
            "subscription_start": to_iso(self.subscription_start),
            "subscription_end": to_iso(self.subscription_end),
            "is_active": 1 if self.is_active else 0,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> User:
        """Create User from database row."""
        links = json.loads(row["social_links"]) if row.get("social_links") else {}
        return cls(
            id=row["id"],
            name=row["name"],
            email=row["email"],
            password_hash=row["password_hash"],
            bio=row.get("bio"),
            profile_picture=row.get("profile_picture"),
            social_links=SocialLinks(**links),
            subscription_tier=row.get("subscription_tier") or TierId.FREE,
            subscription_start=parse_dt(row.get("subscription_start")),
            subscription_end=parse_dt(row.get("subscription_end")),
            is_active=bool(row.get("is_active", 1)),
            created_at=parse_dt(row.get("created_at")) or utc_now(),
            updated_at=parse_dt(row.get("updated_at")) or utc_now(),
        )


class Session(BaseModel):
    """Opaque bearer token issued at login."""

    token: str = Field(..., repr=False)
    user_id: str
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime | None = None) -> bool:
        return (now or utc_now()) >= self.expires_at

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> Session:
        return cls(
            token=row["token"],
            user_id=row["user_id"],
            created_at=parse_dt(row["created_at"]),
            expires_at=parse_dt(row["expires_at"]),
        )


class ProfileUpdate(BaseModel):
    """Partial profile update; None leaves a field unchanged."""

    name: str | None = None
    bio: str | None = None
    profile_picture: str | None = None
    social_links: SocialLinks | None = None
