"""
Diary entry repository - CRUD operations for the diary_entries table.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from legacy_diary.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from legacy_diary.journal.models import DiaryEntry
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.clock import to_iso, utc_now

logger = get_logger(__name__)


def like_pattern(query: str) -> str:
    """Substring LIKE pattern with %, _ and the escape char escaped (use ESCAPE '\\')."""
    escaped = query.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped.lower()}%"


def _filters(user_id: str, query: str | None, tag: str | None) -> tuple[str, list[Any]]:
    clauses = ["user_id = ?"]
    params: list[Any] = [user_id]

    if query:
        pattern = like_pattern(query)
        clauses.append(
            "(lower(title) LIKE ? ESCAPE '\\' OR lower(content) LIKE ? ESCAPE '\\')"
        )
        params.extend([pattern, pattern])

    if tag:
        clauses.append(
            "EXISTS (SELECT 1 FROM json_each(diary_entries.tags) WHERE json_each.value = ?)"
        )
        params.append(tag.strip().lower())

    return " AND ".join(clauses), params


class DiaryEntryRepository:
    """
    Repository for DiaryEntry CRUD operations.

    Lists are newest first (created_at DESC).
    """

    @staticmethod
    @retry_on_db_lock()
    def create(entry: DiaryEntry, recorded_at: datetime | None = None) -> DiaryEntry:
        """
        Insert an entry. recorded_at is the server-side insert time, kept apart
        from the user-editable created_at; the monthly allowance counts it.
        """
        row = entry.to_db_dict()
        row["recorded_at"] = to_iso(recorded_at or utc_now())
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO diary_entries (
                    id, user_id, title, content, tags, images,
                    created_at, updated_at, recorded_at
                ) VALUES (
                    :id, :user_id, :title, :content, :tags, :images,
                    :created_at, :updated_at, :recorded_at
                )
                """,
                row,
            )

        logger.info("Created diary entry %s for user %s", entry.id, entry.user_id)
        return entry

    @staticmethod
    def get_by_id(entry_id: str) -> DiaryEntry | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM diary_entries WHERE id = ?", (entry_id,)).fetchone()

        if not row:
            return None

        return DiaryEntry.from_db_row(dict(row))

    @staticmethod
    def list_by_user(
        user_id: str,
        query: str | None = None,
        tag: str | None = None,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[DiaryEntry]:
        """
        List a user's entries, newest first.

        Args:
            user_id: Owner
            query: Case-insensitive substring of title or content
            tag: Only entries carrying this tag
            limit: Maximum rows (None = all)
            offset: Rows to skip
        """
        where, params = _filters(user_id, query, tag)
        sql = f"SELECT * FROM diary_entries WHERE {where} ORDER BY created_at DESC, id"
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, offset])

        with get_db_connection() as conn:
            rows = conn.execute(sql, params).fetchall()

        return [DiaryEntry.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def count_by_user(user_id: str, query: str | None = None, tag: str | None = None) -> int:
        where, params = _filters(user_id, query, tag)
        with get_db_connection() as conn:
            row = conn.execute(
                f"SELECT COUNT(*) FROM diary_entries WHERE {where}", params
            ).fetchone()
        return row[0]

    @staticmethod
    def count_recorded_since(user_id: str, since: datetime) -> int:
        """Entries inserted on or after `since`, whatever date the user gave them."""
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM diary_entries WHERE user_id = ? AND recorded_at >= ?",
                (user_id, to_iso(since)),
            ).fetchone()
        return row[0]

    @staticmethod
    @retry_on_db_lock()
    def update(entry_id: str, fields: dict[str, Any]) -> DiaryEntry | None:
        """
        Update serialized columns and bump updated_at.

        Returns:
            Updated DiaryEntry, or None if not found
        """
        if not fields:
            return DiaryEntryRepository.get_by_id(entry_id)

        update_data = dict(fields)
        update_data["updated_at"] = to_iso(utc_now())
        update_data["id"] = entry_id

        set_clause = ", ".join(f"{k} = :{k}" for k in update_data if k != "id")

        with db_transaction() as conn:
            cursor = conn.execute(
                f"UPDATE diary_entries SET {set_clause} WHERE id = :id",
                update_data,
            )
            if cursor.rowcount == 0:
                return None

        logger.info("Updated diary entry %s fields: %s", entry_id, sorted(fields))
        return DiaryEntryRepository.get_by_id(entry_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(entry_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute("DELETE FROM diary_entries WHERE id = ?", (entry_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Deleted diary entry %s", entry_id)

        return deleted
