"""Centralized configuration for the Digital Legacy Diary backend.

Re-exports everything from legacy_diary.infrastructure.settings, then adds
typed constants for database, rate-limiting, API, session and dead man's
switch settings. Environment variable overrides use safe defaults so the app
starts without extra env configuration.
"""

from __future__ import annotations

import os

from legacy_diary.infrastructure.settings import *  # noqa: F401, F403

# --- App ---
APP_VERSION: str = "1.0.0"

# --- Database ---
DB_POOL_SIZE: int = int(os.getenv("LEGACY_DIARY_DB_POOL_SIZE", "5"))
DB_POOL_TIMEOUT: float = float(os.getenv("LEGACY_DIARY_DB_POOL_TIMEOUT", "5.0"))
DB_CONNECT_TIMEOUT: float = float(os.getenv("LEGACY_DIARY_DB_CONNECT_TIMEOUT", "30.0"))
DB_TEMP_CONN_MAX: int = int(os.getenv("LEGACY_DIARY_DB_TEMP_CONN_MAX", "10"))
DB_RETRY_MAX: int = int(os.getenv("LEGACY_DIARY_DB_RETRY_MAX", "5"))
DB_RETRY_BASE_DELAY: float = float(os.getenv("LEGACY_DIARY_DB_RETRY_BASE_DELAY", "0.1"))
DB_RETRY_MAX_DELAY: float = float(os.getenv("LEGACY_DIARY_DB_RETRY_MAX_DELAY", "2.0"))
DB_RETRY_JITTER: float = float(os.getenv("LEGACY_DIARY_DB_RETRY_JITTER", "0.1"))
DB_WAL_CHECKPOINT_SECONDS: int = int(os.getenv("LEGACY_DIARY_WAL_CHECKPOINT_SECONDS", "300"))

# --- Rate Limiting ---
RATE_LIMIT_RPM: int = int(os.getenv("LEGACY_DIARY_RATE_LIMIT_RPM", "60"))
RATE_LIMIT_RPH: int = int(os.getenv("LEGACY_DIARY_RATE_LIMIT_RPH", "1000"))
RATE_LIMIT_LEGACY_RPM: int = int(os.getenv("LEGACY_DIARY_RATE_LIMIT_LEGACY_RPM", "10"))
RATE_LIMIT_MAX_IPS: int = 10000

# --- API ---
API_LIST_LIMIT_DEFAULT: int = 50
API_LIST_LIMIT_MAX: int = 500

# --- Sessions ---
SESSION_TTL_DAYS: int = int(os.getenv("LEGACY_DIARY_SESSION_TTL_DAYS", "30"))
SESSION_CACHE_MAX_SIZE: int = 1000
SESSION_CACHE_TTL_SECONDS: int = 600
PASSWORD_MIN_LENGTH: int = 8
PASSWORD_MAX_BYTES: int = 72
PASSWORD_BCRYPT_ROUNDS: int = int(os.getenv("LEGACY_DIARY_PASSWORD_BCRYPT_ROUNDS", "12"))

# --- Journal ---
ENTRY_TITLE_MAX_LENGTH: int = 200
ENTRY_CONTENT_MAX_LENGTH: int = 100_000
ENTRY_MAX_TAGS: int = 30
DASHBOARD_RECENT_ENTRIES: int = 3
DASHBOARD_MAX_TAGS: int = 8

# --- Wills ---
WILL_ATTACHMENT_MAX_BYTES: int = 10 * 1024 * 1024
WILL_ATTACHMENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    }
)

# --- Dead man's switch ---
SWITCH_MIN_INTERVAL_DAYS: int = 7
SWITCH_MAX_INTERVAL_DAYS: int = 365
SWITCH_DEFAULT_INTERVAL_DAYS: int = 30
SWITCH_MAX_NOTIFICATIONS: int = 3
SWITCH_GRACE_DAYS: int = 3

# --- Legacy access ---
ACCESS_CODE_GROUPS: int = 3
ACCESS_CODE_GROUP_LENGTH: int = 4
