"""
Database schema initialization for Digital Legacy Diary.

Contains the SQL schema and its validation, kept apart from database.py so the
pool code stays small.
"""

from __future__ import annotations

import sqlite3
from pathlib import Path

from legacy_diary.observability.logging import get_logger

logger = get_logger(__name__)


def init_database(db_path: Path) -> None:
    """
    Initialize database with schema (idempotent)

    Safe to run multiple times - uses CREATE TABLE IF NOT EXISTS.

    Args:
        db_path: Path to the database file

    Side Effects:
    - Creates tables in legacy_diary.db if they don't exist
    - Creates indexes for the per-user list queries
    - Creates the parent directory if needed
    """
    db_path.parent.mkdir(parents=True, exist_ok=True)

    conn = sqlite3.connect(db_path)

    conn.executescript("""
        CREATE TABLE IF NOT EXISTS users (
            id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            email TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            bio TEXT,
            profile_picture TEXT,
            social_links TEXT NOT NULL DEFAULT '{}',
            subscription_tier TEXT NOT NULL DEFAULT 'free',
            subscription_start TEXT,
            subscription_end TEXT,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS sessions (
            token TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            created_at TEXT NOT NULL,
            expires_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS diary_entries (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            tags TEXT NOT NULL DEFAULT '[]',
            images TEXT NOT NULL DEFAULT '[]',
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            recorded_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_diary_entries_user_created
        ON diary_entries(user_id, created_at);

        CREATE INDEX IF NOT EXISTS idx_diary_entries_user_recorded
        ON diary_entries(user_id, recorded_at);

        CREATE TABLE IF NOT EXISTS trusted_contacts (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            relationship TEXT NOT NULL,
            picture TEXT,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_trusted_contacts_user
        ON trusted_contacts(user_id);

        CREATE TABLE IF NOT EXISTS wills (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            content TEXT NOT NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_wills_user ON wills(user_id);

        CREATE TABLE IF NOT EXISTS will_attachments (
            id TEXT PRIMARY KEY,
            will_id TEXT NOT NULL REFERENCES wills(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            url TEXT NOT NULL,
            type TEXT NOT NULL,
            size INTEGER NOT NULL
        );

        CREATE TABLE IF NOT EXISTS dead_mans_switches (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL UNIQUE REFERENCES users(id) ON DELETE CASCADE,
            status TEXT NOT NULL,
            check_in_interval_days INTEGER NOT NULL,
            last_check_in TEXT NOT NULL,
            next_check_in_due TEXT NOT NULL,
            notifications_sent INTEGER NOT NULL DEFAULT 0,
            last_notified_at TEXT,
            trusted_contact_ids TEXT NOT NULL DEFAULT '[]',
            custom_message TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_dead_mans_switches_status
        ON dead_mans_switches(status, next_check_in_due);

        CREATE TABLE IF NOT EXISTS legacy_access (
            id TEXT PRIMARY KEY,
            access_code TEXT NOT NULL UNIQUE,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            contact_id TEXT REFERENCES trusted_contacts(id) ON DELETE SET NULL,
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS heir_registrations (
            id TEXT PRIMARY KEY,
            access_code TEXT NOT NULL UNIQUE
                REFERENCES legacy_access(access_code) ON DELETE CASCADE,
            name TEXT NOT NULL,
            email TEXT NOT NULL,
            relationship TEXT,
            is_verified INTEGER NOT NULL DEFAULT 1,
            registered_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS chat_sessions (
            id TEXT PRIMARY KEY,
            user_id TEXT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS chat_messages (
            id TEXT PRIMARY KEY,
            session_id TEXT NOT NULL REFERENCES chat_sessions(id) ON DELETE CASCADE,
            sender TEXT NOT NULL CHECK (sender IN ('user', 'bot')),
            text TEXT NOT NULL,
            rule TEXT,
            created_at TEXT NOT NULL
        );

        CREATE INDEX IF NOT EXISTS idx_chat_messages_session
        ON chat_messages(session_id, created_at);

        CREATE TABLE IF NOT EXISTS life_stories (
            user_id TEXT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            generated_at TEXT NOT NULL,
            payload TEXT NOT NULL
        );
    """)

    conn.commit()
    conn.close()

    logger.info("Database initialized: %s", db_path)


REQUIRED_TABLES: dict[str, list[str]] = {
    "users": ["id", "email", "password_hash", "subscription_tier", "is_active"],
    "sessions": ["token", "user_id", "expires_at"],
    "diary_entries": ["id", "user_id", "title", "content", "tags", "created_at", "recorded_at"],
    "trusted_contacts": ["id", "user_id", "name", "email", "relationship"],
    "wills": ["id", "user_id", "title", "content", "is_active"],
    "will_attachments": ["id", "will_id", "name", "url", "type", "size"],
    "dead_mans_switches": [
        "id",
        "user_id",
        "status",
        "check_in_interval_days",
        "next_check_in_due",
        "notifications_sent",
        "last_notified_at",
    ],
    "legacy_access": ["id", "access_code", "user_id", "contact_id", "is_active"],
    "heir_registrations": ["id", "access_code", "name", "email", "is_verified"],
    "chat_sessions": ["id", "user_id", "title"],
    "chat_messages": ["id", "session_id", "sender", "text", "rule"],
    "life_stories": ["user_id", "generated_at", "payload"],
}


def validate_schema(conn: sqlite3.Connection) -> bool:
    """
    Validate database has expected schema

    Args:
        conn: Active database connection

    Returns:
        True if valid

    Raises:
        ValueError: If tables or columns are missing
    """
    cursor = conn.cursor()

    cursor.execute("SELECT name FROM sqlite_master WHERE type='table'")
    existing_tables = {row[0] for row in cursor.fetchall()}

    missing_tables = set(REQUIRED_TABLES) - existing_tables
    if missing_tables:
        raise ValueError(f"Database missing tables: {sorted(missing_tables)}")

    for table, required_cols in REQUIRED_TABLES.items():
        # Identifiers cannot be parameterized; names come from REQUIRED_TABLES
        if not table.replace("_", "").isalnum():
            raise ValueError(f"Invalid table name: {table}")

        cursor.execute(f"PRAGMA table_info({table})")
        existing_cols = {row[1] for row in cursor.fetchall()}

        missing_cols = set(required_cols) - existing_cols
        if missing_cols:
            raise ValueError(f"Table '{table}' missing columns: {sorted(missing_cols)}")

    return True
