"""SQLite access for the diary store

Users, sessions, diary entries, trusted contacts, wills, the dead man's
switch, legacy access codes, heir registrations, chat history and generated
life stories all live in one file, legacy_diary/data/legacy_diary.db
(override with LEGACY_DIARY_DB_PATH).

Two processes write to it: the API and the `legacy-diary-sweep` cron job. WAL
journaling lets the sweep issue access codes while the API keeps serving
reads; writers that still collide go through retry_on_db_lock. Foreign keys
are on for every connection so deleting a user cascades to everything the
user owns.
"""

from __future__ import annotations

import atexit
import os
import random
import sqlite3
import time
from collections.abc import Callable, Generator
from contextlib import contextmanager
from functools import lru_cache, wraps
from pathlib import Path
from queue import Empty, Full, Queue
from threading import Lock
from typing import Any, TypeVar

from legacy_diary.config import (
    DB_CONNECT_TIMEOUT,
    DB_POOL_SIZE,
    DB_POOL_TIMEOUT,
    DB_RETRY_BASE_DELAY,
    DB_RETRY_JITTER,
    DB_RETRY_MAX,
    DB_RETRY_MAX_DELAY,
    DB_TEMP_CONN_MAX,
)
from legacy_diary.observability.logging import get_logger
from legacy_diary.observability.telemetry import counter, log_event

F = TypeVar("F", bound=Callable[..., Any])

DB_PATH = Path(__file__).parent.parent / "data" / "legacy_diary.db"

logger = get_logger(__name__)


def retry_on_db_lock(
    max_retries: int = DB_RETRY_MAX,
    base_delay: float = DB_RETRY_BASE_DELAY,
    max_delay: float = DB_RETRY_MAX_DELAY,
) -> Callable[[F], F]:
    """
    Retry a repository write when another writer holds the lock

    Every repository method that opens a db_transaction wears this, e.g.

        @staticmethod
        @retry_on_db_lock()
        def save(switch: DeadMansSwitch) -> DeadMansSwitch:
            with db_transaction() as conn:
                conn.execute("INSERT INTO dead_mans_switches ...")

    Other OperationalErrors (missing table, bad SQL) are raised at once.

    Side Effects:
        - Retries wrapped function up to max_retries times on lock errors
        - Sleeps between retries (exponential backoff with jitter)
        - Logs a warning per retry and an error when retries are exhausted
    """

    def decorator(func: F) -> F:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            last_error = None

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except sqlite3.OperationalError as e:
                    last_error = e

                    if "locked" not in str(e).lower() and "busy" not in str(e).lower():
                        raise

                    if attempt >= max_retries:
                        logger.error(
                            "Database lock retry exhausted after %d attempts: %s",
                            max_retries,
                            e,
                        )
                        raise

                    delay = min(base_delay * (2**attempt), max_delay)
                    sleep_time = delay + random.uniform(0, delay * DB_RETRY_JITTER)

                    logger.warning(
                        "Database locked (attempt %d/%d), retrying in %.2fs: %s",
                        attempt + 1,
                        max_retries,
                        sleep_time,
                        e,
                    )
                    counter("database.lock_retries")
                    time.sleep(sleep_time)

            raise last_error  # type: ignore[misc]

        return wrapper  # type: ignore[return-value]

    return decorator


class DatabaseConnectionPool:
    """
    Fixed-size pool shared by the FastAPI worker threads

    Each connection runs a quick integrity check, then WAL journaling, NORMAL
    sync, foreign keys (cascading deletes of a user's records depend on it)
    and sqlite3.Row rows so repositories can build models from dict(row).
    When the pool is empty a bounded number of temporary connections are
    opened instead of blocking the request.
    """

    def __init__(self, db_path, pool_size=DB_POOL_SIZE):
        self.db_path = db_path
        self.pool_size = pool_size
        self.pool = Queue(maxsize=pool_size)
        self.lock = Lock()
        self.closed = False
        self.temp_conn_count = 0
        self.temp_conn_max = DB_TEMP_CONN_MAX
        self._initialize_pool()

        atexit.register(self.close_all)

    def _create_connection(self):
        """
        Create a configured SQLite connection

        Raises:
            RuntimeError: If the quick integrity check fails
        """
        conn = sqlite3.connect(
            str(self.db_path),
            timeout=DB_CONNECT_TIMEOUT,
            check_same_thread=False,
        )

        try:
            result = conn.execute("PRAGMA quick_check(1)").fetchone()
            if result[0] != "ok":
                conn.close()
                logger.critical("Database corruption detected: %s", result[0])
                counter("database.corruption_detected")
                raise RuntimeError(f"Database corruption detected: {result[0]}")
        except sqlite3.DatabaseError as e:
            conn.close()
            logger.critical("Database corruption or error during integrity check: %s", e)
            counter("database.corruption_detected")
            raise RuntimeError(f"Database corruption detected: {e}") from e

        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA synchronous=NORMAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row

        return conn

    def _initialize_pool(self):
        for _ in range(self.pool_size):
            try:
                self.pool.put(self._create_connection())
            except Exception as e:
                logger.warning("Failed to create pooled connection: %s", e)

    def get_connection(self) -> sqlite3.Connection:
        """
        Get connection from pool (or a temporary one if the pool is exhausted)

        Raises:
            RuntimeError: If pool closed or temporary connection limit exceeded
        """
        if self.closed:
            raise RuntimeError("Connection pool has been closed")

        try:
            return self.pool.get(block=True, timeout=DB_POOL_TIMEOUT)
        except Empty:
            with self.lock:
                if self.temp_conn_count >= self.temp_conn_max:
                    logger.critical(
                        "Temporary connection limit reached: %d/%d (pool_size=%d)",
                        self.temp_conn_count,
                        self.temp_conn_max,
                        self.pool_size,
                    )
                    raise RuntimeError(
                        "Diary database busy: all pooled and temporary connections in use "
                        f"(pool_size={self.pool_size}, temp_conn_max={self.temp_conn_max})"
                    ) from None

                self.temp_conn_count += 1
                temp_count = self.temp_conn_count

            logger.error(
                "All %d pooled connections busy; opening temporary connection %d/%d",
                self.pool_size,
                temp_count,
                self.temp_conn_max,
            )
            log_event(
                "database.pool_exhausted",
                pool_size=self.pool_size,
                temp_conn_count=temp_count,
            )

            conn = self._create_connection()
            conn._is_temporary = True
            return conn

    def return_connection(self, conn: sqlite3.Connection) -> None:
        """Return a pooled connection, or close it if temporary or the pool is closed."""
        is_temp = getattr(conn, "_is_temporary", False)

        if self.closed or is_temp:
            conn.close()
            if is_temp:
                with self.lock:
                    self.temp_conn_count -= 1
                logger.debug("Closed temporary connection (remaining: %d)", self.temp_conn_count)
            return

        try:
            self.pool.put_nowait(conn)
        except Full:
            logger.warning("Failed to return connection to pool (pool full), closing")
            conn.close()

    def close_all(self) -> None:
        """Close all pooled connections."""
        self.closed = True
        while not self.pool.empty():
            try:
                self.pool.get_nowait().close()
            except Empty:
                break


@lru_cache(maxsize=1)
def get_pool() -> DatabaseConnectionPool:
    """
    Get or create the global connection pool (singleton via lru_cache).

    Tests that switch LEGACY_DIARY_DB_PATH call reset_pool() afterwards.
    """
    return DatabaseConnectionPool(get_db_path(), pool_size=DB_POOL_SIZE)


def reset_pool() -> None:
    """Close the current pool and forget it so the next call reopens at get_db_path()."""
    if get_pool.cache_info().currsize:
        get_pool().close_all()
    get_pool.cache_clear()


def get_db_path() -> Path:
    """Database path: LEGACY_DIARY_DB_PATH if set, otherwise the packaged data dir."""
    if env_path := os.getenv("LEGACY_DIARY_DB_PATH"):
        return Path(env_path)

    return DB_PATH


@contextmanager
def get_db_connection() -> Generator[sqlite3.Connection, None, None]:
    """
    Borrow a pooled connection for reads

        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM diary_entries WHERE id = ?", (entry_id,)
            ).fetchone()

    Raises:
        FileNotFoundError: If database doesn't exist
    """
    db_path = get_db_path()

    if not db_path.exists():
        raise FileNotFoundError(
            f"Diary database not found: {db_path}\n"
            "Start the API or run legacy-diary-sweep to create it"
        )

    pool = get_pool()
    conn = pool.get_connection()
    try:
        yield conn
    finally:
        pool.return_connection(conn)


@contextmanager
def db_transaction() -> Generator[sqlite3.Connection, None, None]:
    """
    Borrow a pooled connection for one unit of work

    Commits on success, rolls back on error. A multi-row change such as
    removing a contact from the switch list reads and writes inside one
    transaction.

    Side Effects:
        - Commits or rolls back on the pooled connection
    """
    with get_db_connection() as conn:
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise


def validate_schema() -> bool:
    """
    Check the tables and columns the repositories rely on (run at API startup)

    Raises:
        ValueError: If tables or columns are missing
    """
    from legacy_diary.infrastructure.database_schema import validate_schema as _validate_schema

    with get_db_connection() as conn:
        return _validate_schema(conn)


def get_pool_stats() -> dict[str, Any]:
    """Pool usage, reported by /health/db and /api/admin/stats."""
    pool = get_pool()
    available = pool.pool.qsize()
    in_use = pool.pool_size - available
    usage_percent = (in_use / pool.pool_size) * 100 if pool.pool_size > 0 else 0

    return {
        "pool_size": pool.pool_size,
        "available": available,
        "in_use": in_use,
        "usage_percent": round(usage_percent, 1),
        "closed": pool.closed,
    }


def checkpoint_wal() -> dict[str, Any]:
    """
    Fold the WAL into legacy_diary.db and truncate it

    Called every LEGACY_DIARY_WAL_CHECKPOINT_SECONDS by the API's background
    thread; long-lived API processes otherwise let the -wal file grow.

    Side Effects:
        - Writes WAL frames to legacy_diary.db and truncates legacy_diary.db-wal
        - Blocks other writers briefly
    """
    db_path = get_db_path()
    wal_path = db_path.with_name(db_path.name + "-wal")
    wal_size_before = wal_path.stat().st_size if wal_path.exists() else 0

    with get_db_connection() as conn:
        result = conn.execute("PRAGMA wal_checkpoint(TRUNCATE)").fetchone()
        busy, log_pages, checkpointed_pages = result if result else (0, 0, 0)

    wal_size_after = wal_path.stat().st_size if wal_path.exists() else 0

    stats = {
        "wal_size_before_bytes": wal_size_before,
        "wal_size_after_bytes": wal_size_after,
        "bytes_freed": wal_size_before - wal_size_after,
        "checkpointed_pages": checkpointed_pages,
        "log_pages": log_pages,
        "busy": bool(busy),
    }

    logger.info(
        "WAL checkpoint completed: freed %d bytes (%d pages)",
        stats["bytes_freed"],
        checkpointed_pages,
    )
    return stats


def init_database() -> None:
    """
    Create the diary schema at get_db_path() if needed (idempotent)

    Run at API import and at the start of every sweep, so a fresh deployment
    or a test database works without a separate migration step.

    Side Effects:
        - Creates the data directory and tables/indexes if missing
    """
    from legacy_diary.infrastructure.database_schema import init_database as _init_database

    _init_database(get_db_path())
