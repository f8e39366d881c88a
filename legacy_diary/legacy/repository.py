"""
Repositories for dead_mans_switches, legacy_access and heir_registrations.
"""

from __future__ import annotations

import json
from datetime import datetime

from legacy_diary.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from legacy_diary.legacy.models import (
    DeadMansSwitch,
    HeirRegistration,
    LegacyAccessCode,
    SwitchStatus,
)
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.clock import to_iso, utc_now
from legacy_diary.utils.redaction import mask_access_code

logger = get_logger(__name__)


class DeadMansSwitchRepository:
    """One switch row per user (user_id is UNIQUE)."""

    @staticmethod
    def get_by_user(user_id: str) -> DeadMansSwitch | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM dead_mans_switches WHERE user_id = ?", (user_id,)
            ).fetchone()

        if not row:
            return None

        return DeadMansSwitch.from_db_row(dict(row))

    @staticmethod
    @retry_on_db_lock()
    def save(switch: DeadMansSwitch) -> DeadMansSwitch:
        """
        Insert or replace the user's switch.

        Side Effects:
            - Upserts the row keyed on user_id
        """
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO dead_mans_switches (
                    id, user_id, status, check_in_interval_days, last_check_in,
                    next_check_in_due, notifications_sent, last_notified_at,
                    trusted_contact_ids, custom_message, created_at, updated_at
                ) VALUES (
                    :id, :user_id, :status, :check_in_interval_days, :last_check_in,
                    :next_check_in_due, :notifications_sent, :last_notified_at,
                    :trusted_contact_ids, :custom_message, :created_at, :updated_at
                )
                ON CONFLICT(user_id) DO UPDATE SET
                    status = excluded.status,
                    check_in_interval_days = excluded.check_in_interval_days,
                    last_check_in = excluded.last_check_in,
                    next_check_in_due = excluded.next_check_in_due,
                    notifications_sent = excluded.notifications_sent,
                    last_notified_at = excluded.last_notified_at,
                    trusted_contact_ids = excluded.trusted_contact_ids,
                    custom_message = excluded.custom_message,
                    updated_at = excluded.updated_at
                """,
                switch.to_db_dict(),
            )

        logger.info("Saved switch for user %s (status=%s)", switch.user_id, switch.status)
        return switch

    @staticmethod
    @retry_on_db_lock()
    def delete(user_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute("DELETE FROM dead_mans_switches WHERE user_id = ?", (user_id,))
            return cursor.rowcount > 0

    @staticmethod
    def list_due(now: datetime) -> list[DeadMansSwitch]:
        """Active switches whose next check-in is at or before `now`."""
        with get_db_connection() as conn:
            rows = conn.execute(
                """
                SELECT * FROM dead_mans_switches
                WHERE status = ? AND next_check_in_due <= ?
                ORDER BY next_check_in_due
                """,
                (SwitchStatus.ACTIVE.value, to_iso(now)),
            ).fetchall()

        return [DeadMansSwitch.from_db_row(dict(row)) for row in rows]

    @staticmethod
    @retry_on_db_lock()
    def remove_contact(user_id: str, contact_id: str) -> bool:
        """
        Drop a contact id from the user's switch list.

        Returns:
            True if the list changed
        """
        with db_transaction() as conn:
            row = conn.execute(
                "SELECT trusted_contact_ids FROM dead_mans_switches WHERE user_id = ?",
                (user_id,),
            ).fetchone()
            if not row:
                return False

            contact_ids = json.loads(row["trusted_contact_ids"] or "[]")
            if contact_id not in contact_ids:
                return False

            contact_ids = [cid for cid in contact_ids if cid != contact_id]
            conn.execute(
                """
                UPDATE dead_mans_switches
                SET trusted_contact_ids = ?, updated_at = ?
                WHERE user_id = ?
                """,
                (json.dumps(contact_ids), to_iso(utc_now()), user_id),
            )

        logger.info("Removed contact %s from switch of user %s", contact_id, user_id)
        return True


class LegacyAccessRepository:
    @staticmethod
    @retry_on_db_lock()
    def create(code: LegacyAccessCode) -> LegacyAccessCode:
        """
        Raises:
            sqlite3.IntegrityError: If the code already exists
        """
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO legacy_access (
                    id, access_code, user_id, contact_id, is_active, created_at
                ) VALUES (
                    :id, :access_code, :user_id, :contact_id, :is_active, :created_at
                )
                """,
                code.to_db_dict(),
            )

        logger.info(
            "Issued legacy access code %s for user %s",
            mask_access_code(code.access_code),
            code.user_id,
        )
        return code

    @staticmethod
    def get_by_code(access_code: str) -> LegacyAccessCode | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM legacy_access WHERE access_code = ?", (access_code,)
            ).fetchone()

        if not row:
            return None

        return LegacyAccessCode.from_db_row(dict(row))

    @staticmethod
    def get_by_id(code_id: str) -> LegacyAccessCode | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM legacy_access WHERE id = ?", (code_id,)).fetchone()

        if not row:
            return None

        return LegacyAccessCode.from_db_row(dict(row))

    @staticmethod
    def list_by_user(user_id: str) -> list[LegacyAccessCode]:
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM legacy_access WHERE user_id = ? ORDER BY created_at, rowid",
                (user_id,),
            ).fetchall()

        return [LegacyAccessCode.from_db_row(dict(row)) for row in rows]

    @staticmethod
    @retry_on_db_lock()
    def deactivate(code_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute(
                "UPDATE legacy_access SET is_active = 0 WHERE id = ? AND is_active = 1",
                (code_id,),
            )
            return cursor.rowcount > 0


class HeirRegistrationRepository:
    @staticmethod
    def get_by_code(access_code: str) -> HeirRegistration | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM heir_registrations WHERE access_code = ?", (access_code,)
            ).fetchone()

        if not row:
            return None

        return HeirRegistration.from_db_row(dict(row))

    @staticmethod
    @retry_on_db_lock()
    def create(registration: HeirRegistration) -> HeirRegistration:
        """
        Raises:
            sqlite3.IntegrityError: If the code already has a registration
        """
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO heir_registrations (
                    id, access_code, name, email, relationship, is_verified, registered_at
                ) VALUES (
                    :id, :access_code, :name, :email, :relationship, :is_verified, :registered_at
                )
                """,
                registration.to_db_dict(),
            )
        return registration
