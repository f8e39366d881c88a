"""
Trusted contact repository - CRUD for the trusted_contacts table.
"""

from __future__ import annotations

from typing import Any

from legacy_diary.contacts.models import TrustedContact
from legacy_diary.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from legacy_diary.observability.logging import get_logger

logger = get_logger(__name__)


class TrustedContactRepository:
    """Repository for TrustedContact CRUD operations. Lists are in creation order."""

    @staticmethod
    @retry_on_db_lock()
    def create(contact: TrustedContact) -> TrustedContact:
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO trusted_contacts (
                    id, user_id, name, email, relationship, picture, created_at
                ) VALUES (
                    :id, :user_id, :name, :email, :relationship, :picture, :created_at
                )
                """,
                contact.to_db_dict(),
            )

        logger.info("Created trusted contact %s for user %s", contact.id, contact.user_id)
        return contact

    @staticmethod
    def get_by_id(contact_id: str) -> TrustedContact | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM trusted_contacts WHERE id = ?", (contact_id,)
            ).fetchone()

        if not row:
            return None

        return TrustedContact.from_db_row(dict(row))

    @staticmethod
    def list_by_user(user_id: str) -> list[TrustedContact]:
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM trusted_contacts WHERE user_id = ? ORDER BY created_at, rowid",
                (user_id,),
            ).fetchall()

        return [TrustedContact.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def count_by_user(user_id: str) -> int:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT COUNT(*) FROM trusted_contacts WHERE user_id = ?", (user_id,)
            ).fetchone()
        return row[0]

    @staticmethod
    @retry_on_db_lock()
    def update(contact_id: str, fields: dict[str, Any]) -> TrustedContact | None:
        if not fields:
            return TrustedContactRepository.get_by_id(contact_id)

        update_data = dict(fields)
        update_data["id"] = contact_id
        set_clause = ", ".join(f"{k} = :{k}" for k in update_data if k != "id")

        with db_transaction() as conn:
            cursor = conn.execute(
                f"UPDATE trusted_contacts SET {set_clause} WHERE id = :id",
                update_data,
            )
            if cursor.rowcount == 0:
                return None

        logger.info("Updated trusted contact %s fields: %s", contact_id, sorted(fields))
        return TrustedContactRepository.get_by_id(contact_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(contact_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute("DELETE FROM trusted_contacts WHERE id = ?", (contact_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Deleted trusted contact %s", contact_id)

        return deleted
