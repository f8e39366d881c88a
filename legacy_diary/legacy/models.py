"""
Dead man's switch and legacy access domain models.
"""

from __future__ import annotations

import json
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from legacy_diary.utils.clock import parse_dt, to_iso, utc_now


class SwitchStatus(str, Enum):
    ACTIVE = "active"
    PAUSED = "paused"
    TRIGGERED = "triggered"


class SwitchAction(str, Enum):
    """Outcome of evaluating one switch at a point in time."""

    NONE = "none"
    NOTIFY = "notify"
    TRIGGER = "trigger"


class DeadMansSwitch(BaseModel):
    """
    Check-in schedule for one user. At most one per user.

    When check-ins stop, reminders are logged and eventually access codes are
    issued to the contacts in trusted_contact_ids.
    """

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True)

    id: str
    user_id: str
    status: SwitchStatus = SwitchStatus.ACTIVE
    check_in_interval_days: int
    last_check_in: datetime
    next_check_in_due: datetime
    notifications_sent: int = 0
    last_notified_at: datetime | None = None
    trusted_contact_ids: list[str] = Field(default_factory=list)
    custom_message: str | None = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "status": SwitchStatus(self.status).value,
            "check_in_interval_days": self.check_in_interval_days,
            "last_check_in": to_iso(self.last_check_in),
            "next_check_in_due": to_iso(self.next_check_in_due),
            "notifications_sent": self.notifications_sent,
            "last_notified_at": to_iso(self.last_notified_at),
            "trusted_contact_ids": json.dumps(self.trusted_contact_ids),
            "custom_message": self.custom_message,
            "created_at": to_iso(self.created_at),
            "updated_at": to_iso(self.updated_at),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> DeadMansSwitch:
        return cls(
            id=row["id"],
            user_id=row["user_id"],
            status=SwitchStatus(row["status"]),
            check_in_interval_days=row["check_in_interval_days"],
            last_check_in=parse_dt(row["last_check_in"]),
            next_check_in_due=parse_dt(row["next_check_in_due"]),
            notifications_sent=row.get("notifications_sent") or 0,
            last_notified_at=parse_dt(row.get("last_notified_at")),
            trusted_contact_ids=json.loads(row["trusted_contact_ids"])
            if row.get("trusted_contact_ids")
            else [],
            custom_message=row.get("custom_message"),
            created_at=parse_dt(row.get("created_at")) or utc_now(),
            updated_at=parse_dt(row.get("updated_at")) or utc_now(),
        )


class SwitchConfig(BaseModel):
    """Input for configuring (or reconfiguring) the switch."""

    check_in_interval_days: int
    trusted_contact_ids: list[str] = Field(default_factory=list)
    custom_message: str | None = None


class LegacyAccessCode(BaseModel):
    """Code handed to a trusted contact so they can open the owner's legacy."""

    id: str
    access_code: str
    user_id: str
    contact_id: str | None = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "access_code": self.access_code,
            "user_id": self.user_id,
            "contact_id": self.contact_id,
            "is_active": 1 if self.is_active else 0,
            "created_at": to_iso(self.created_at),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> LegacyAccessCode:
        return cls(
            id=row["id"],
            access_code=row["access_code"],
            user_id=row["user_id"],
            contact_id=row.get("contact_id"),
            is_active=bool(row.get("is_active", 1)),
            created_at=parse_dt(row.get("created_at")) or utc_now(),
        )


class HeirRegistration(BaseModel):
    id: str
    access_code: str
    name: str
    email: str
    relationship: str | None = None
    is_verified: bool = True
    registered_at: datetime = Field(default_factory=utc_now)

    def to_db_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "access_code": self.access_code,
            "name": self.name,
            "email": self.email,
            "relationship": self.relationship,
            "is_verified": 1 if self.is_verified else 0,
            "registered_at": to_iso(self.registered_at),
        }

    @classmethod
    def from_db_row(cls, row: dict[str, Any]) -> HeirRegistration:
        return cls(
            id=row["id"],
            access_code=row["access_code"],
            name=row["name"],
            email=row["email"],
            relationship=row.get("relationship"),
            is_verified=bool(row.get("is_verified", 1)),
            registered_at=parse_dt(row.get("registered_at")) or utc_now(),
        )


class VerifyStatus(str, Enum):
    INVALID = "invalid"
    NEEDS_REGISTRATION = "needs_registration"
    GRANTED = "granted"


class LegacyOwner(BaseModel):
    name: str
    bio: str | None = None
    profile_picture: str | None = None


class LegacyEntry(BaseModel):
    id: str
    title: str
    content: str
    tags: list[str] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    created_at: datetime


class LegacyWill(BaseModel):
    id: str
    title: str
    content: str
    created_at: datetime
    updated_at: datetime


class LegacyBundle(BaseModel):
    """Everything an heir can see once access is granted."""

    user: LegacyOwner
    entries: list[LegacyEntry] = Field(default_factory=list)
    wills: list[LegacyWill] = Field(default_factory=list)
    photos: list[str] = Field(default_factory=list)
    message: str | None = None
