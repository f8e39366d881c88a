"""
Will repository - CRUD for the wills and will_attachments tables.
"""

from __future__ import annotations

import sqlite3
from typing import Any

from legacy_diary.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from legacy_diary.journal.repository import like_pattern
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.clock import to_iso, utc_now
from legacy_diary.wills.models import Will, WillAttachment

logger = get_logger(__name__)


def _attachments_for(
    conn: sqlite3.Connection, will_ids: list[str]
) -> dict[str, list[WillAttachment]]:
    if not will_ids:
        return {}

    placeholders = ",".join("?" * len(will_ids))
    rows = conn.execute(
        f"SELECT * FROM will_attachments WHERE will_id IN ({placeholders}) ORDER BY rowid",
        will_ids,
    ).fetchall()

    grouped: dict[str, list[WillAttachment]] = {will_id: [] for will_id in will_ids}
    for row in rows:
        grouped[row["will_id"]].append(WillAttachment.from_db_row(dict(row)))
    return grouped


class WillRepository:
    """Repository for Will CRUD operations. Lists are newest first."""

    @staticmethod
    @retry_on_db_lock()
    def create(will: Will) -> Will:
        """
        Insert the will and its attachments in one transaction.
        """
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO wills (id, user_id, title, content, is_active, created_at, updated_at)
                VALUES (:id, :user_id, :title, :content, :is_active, :created_at, :updated_at)
                """,
                will.to_db_dict(),
            )
            conn.executemany(
                """
                INSERT INTO will_attachments (id, will_id, name, url, type, size)
                VALUES (:id, :will_id, :name, :url, :type, :size)
                """,
                [a.to_db_dict(will.id) for a in will.attachments],
            )

        logger.info(
            "Created will %s for user %s with %d attachments",
            will.id,
            will.user_id,
            len(will.attachments),
        )
        return will

    @staticmethod
    def get_by_id(will_id: str) -> Will | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM wills WHERE id = ?", (will_id,)).fetchone()
            if not row:
                return None
            attachments = _attachments_for(conn, [will_id])

        return Will.from_db_row(dict(row), attachments[will_id])

    @staticmethod
    def list_by_user(
        user_id: str,
        query: str | None = None,
        active_only: bool = False,
    ) -> list[Will]:
        """
        Args:
            user_id: Owner
            query: Case-insensitive substring of title or content
            active_only: Skip wills marked inactive
        """
        clauses = ["user_id = ?"]
        params: list[Any] = [user_id]
        if query:
            pattern = like_pattern(query)
            clauses.append("(lower(title) LIKE ? ESCAPE '\\' OR lower(content) LIKE ? ESCAPE '\\')")
            params.extend([pattern, pattern])
        if active_only:
            clauses.append("is_active = 1")

        with get_db_connection() as conn:
            rows = conn.execute(
                f"SELECT * FROM wills WHERE {' AND '.join(clauses)} ORDER BY created_at DESC, id",
                params,
            ).fetchall()
            attachments = _attachments_for(conn, [row["id"] for row in rows])

        return [Will.from_db_row(dict(row), attachments[row["id"]]) for row in rows]

    @staticmethod
    @retry_on_db_lock()
    def update(will_id: str, fields: dict[str, Any]) -> Will | None:
        if not fields:
            return WillRepository.get_by_id(will_id)

        update_data = dict(fields)
        update_data["updated_at"] = to_iso(utc_now())
        update_data["id"] = will_id
        set_clause = ", ".join(f"{k} = :{k}" for k in update_data if k != "id")

        with db_transaction() as conn:
            cursor = conn.execute(f"UPDATE wills SET {set_clause} WHERE id = :id", update_data)
            if cursor.rowcount == 0:
                return None

        logger.info("Updated will %s fields: %s", will_id, sorted(fields))
        return WillRepository.get_by_id(will_id)

    @staticmethod
    @retry_on_db_lock()
    def add_attachment(will_id: str, attachment: WillAttachment) -> WillAttachment:
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO will_attachments (id, will_id, name, url, type, size)
                VALUES (:id, :will_id, :name, :url, :type, :size)
                """,
                attachment.to_db_dict(will_id),
            )
            conn.execute(
                "UPDATE wills SET updated_at = ? WHERE id = ?", (to_iso(utc_now()), will_id)
            )

        logger.info("Added attachment %s to will %s", attachment.id, will_id)
        return attachment

    @staticmethod
    @retry_on_db_lock()
    def remove_attachment(will_id: str, attachment_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM will_attachments WHERE id = ? AND will_id = ?",
                (attachment_id, will_id),
            )
            removed = cursor.rowcount > 0
            if removed:
                conn.execute(
                    "UPDATE wills SET updated_at = ? WHERE id = ?", (to_iso(utc_now()), will_id)
                )

        return removed

    @staticmethod
    @retry_on_db_lock()
    def delete(will_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute("DELETE FROM wills WHERE id = ?", (will_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Deleted will %s", will_id)

        return deleted
