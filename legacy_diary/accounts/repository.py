"""
User and session repositories - CRUD for the users and sessions tables.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from legacy_diary.accounts.models import Session, User
from legacy_diary.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.clock import to_iso, utc_now

logger = get_logger(__name__)

_UPDATABLE_USER_FIELDS = frozenset(
    {
        "name",
        "email",
        "password_hash",
        "bio",
        "profile_picture",
        "social_links",
        "subscription_tier",
        "subscription_start",
        "subscription_end",
        "is_active",
    }
)


class UserRepository:
    """
    Repository for User CRUD operations.

    Emails are stored lower-cased; callers normalize before lookups.
    """

    @staticmethod
    @retry_on_db_lock()
    def create(user: User) -> User:
        """
        Insert a new user.

        Raises:
            sqlite3.IntegrityError: If the email is already registered
        """
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO users (
                    id, name, email, password_hash, bio, profile_picture,
                    social_links, subscription_tier, subscription_start,
                    subscription_end, is_active, created_at, updated_at
                ) VALUES (
                    :id, :name, :email, :password_hash, :bio, :profile_picture,
                    :social_links, :subscription_tier, :subscription_start,
                    :subscription_end, :is_active, :created_at, :updated_at
                )
                """,
                user.to_db_dict(),
            )

        logger.info("Created user %s", user.id)
        return user

    @staticmethod
    def get_by_id(user_id: str) -> User | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE id = ?", (user_id,)).fetchone()

        if not row:
            return None

        return User.from_db_row(dict(row))

    @staticmethod
    def get_by_email(email: str) -> User | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM users WHERE email = ?", (email,)).fetchone()

        if not row:
            return None

        return User.from_db_row(dict(row))

    @staticmethod
    def email_taken(email: str, exclude_user_id: str | None = None) -> bool:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT 1 FROM users WHERE email = ? AND id != ?",
                (email, exclude_user_id or ""),
            ).fetchone()
        return row is not None

    @staticmethod
    @retry_on_db_lock()
    def update_fields(user_id: str, fields: dict[str, Any]) -> User | None:
        """
        Update the given columns and bump updated_at.

        Args:
            user_id: User to update
            fields: Column -> already-serialized value

        Returns:
            Updated User, or None if not found
        """
        unknown = set(fields) - _UPDATABLE_USER_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {sorted(unknown)}")

        if not fields:
            return UserRepository.get_by_id(user_id)

        update_data = dict(fields)
        update_data["updated_at"] = to_iso(utc_now())
        update_data["id"] = user_id

        set_clause = ", ".join(f"{k} = :{k}" for k in update_data if k != "id")

        with db_transaction() as conn:
            cursor = conn.execute(f"UPDATE users SET {set_clause} WHERE id = :id", update_data)
            if cursor.rowcount == 0:
                return None

        logger.info("Updated user %s fields: %s", user_id, sorted(fields))
        return UserRepository.get_by_id(user_id)

    @staticmethod
    @retry_on_db_lock()
    def delete(user_id: str) -> bool:
        """
        Delete a user and, through ON DELETE CASCADE, everything they own.
        """
        with db_transaction() as conn:
            cursor = conn.execute("DELETE FROM users WHERE id = ?", (user_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Deleted user %s", user_id)

        return deleted


class SessionRepository:
    """Repository for login sessions."""

    @staticmethod
    @retry_on_db_lock()
    def create(session: Session) -> Session:
        with db_transaction() as conn:
            conn.execute(
                "INSERT INTO sessions (token, user_id, created_at, expires_at) VALUES (?, ?, ?, ?)",
                (
                    session.token,
                    session.user_id,
                    to_iso(session.created_at),
                    to_iso(session.expires_at),
                ),
            )
        return session

    @staticmethod
    def get(token: str) -> Session | None:
        with get_db_connection() as conn:
            row = conn.execute("SELECT * FROM sessions WHERE token = ?", (token,)).fetchone()

        if not row:
            return None

        return Session.from_db_row(dict(row))

    @staticmethod
    @retry_on_db_lock()
    def delete(token: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute("DELETE FROM sessions WHERE token = ?", (token,))
            return cursor.rowcount > 0

    @staticmethod
    @retry_on_db_lock()
    def delete_for_user(user_id: str, keep_token: str | None = None) -> int:
        """Delete a user's sessions, optionally keeping the one in use."""
        with db_transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM sessions WHERE user_id = ? AND token != ?",
                (user_id, keep_token or ""),
            )
            return cursor.rowcount

    @staticmethod
    @retry_on_db_lock()
    def purge_expired(now: datetime | None = None) -> int:
        """
        Remove expired sessions.

        Returns:
            Number of sessions removed
        """
        cutoff = to_iso(now or utc_now())
        with db_transaction() as conn:
            cursor = conn.execute("DELETE FROM sessions WHERE expires_at <= ?", (cutoff,))
            removed = cursor.rowcount

        if removed:
            logger.info("Purged %d expired sessions", removed)

        return removed
