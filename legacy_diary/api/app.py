"""FastAPI server for the Digital Legacy Diary"""

from __future__ import annotations

import os
import sqlite3
import threading
import time
from typing import Any

from dotenv import load_dotenv
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

# Load environment variables from .env file before config is read
load_dotenv()

from legacy_diary.api.middleware.auth import ADMIN_API_KEY_ENV  # noqa: E402
from legacy_diary.api.middleware.rate_limit import RateLimitMiddleware  # noqa: E402
from legacy_diary.api.middleware.security_headers import SecurityHeadersMiddleware  # noqa: E402
from legacy_diary.api.routes.admin import router as admin_router  # noqa: E402
from legacy_diary.api.routes.auth import router as auth_router  # noqa: E402
from legacy_diary.api.routes.chat import router as chat_router  # noqa: E402
from legacy_diary.api.routes.contacts import router as contacts_router  # noqa: E402
from legacy_diary.api.routes.dashboard import router as dashboard_router  # noqa: E402
from legacy_diary.api.routes.entries import router as entries_router  # noqa: E402
from legacy_diary.api.routes.health import router as health_router  # noqa: E402
from legacy_diary.api.routes.legacy import owner_router as legacy_owner_router  # noqa: E402
from legacy_diary.api.routes.legacy import router as legacy_router  # noqa: E402
from legacy_diary.api.routes.life_story import router as life_story_router  # noqa: E402
from legacy_diary.api.routes.profile import router as profile_router  # noqa: E402
from legacy_diary.api.routes.prompts import router as prompts_router  # noqa: E402
from legacy_diary.api.routes.subscriptions import router as subscriptions_router  # noqa: E402
from legacy_diary.api.routes.switch import router as switch_router  # noqa: E402
from legacy_diary.api.routes.wills import router as wills_router  # noqa: E402
from legacy_diary.config import (  # noqa: E402
    API_HOST,
    API_PORT,
    APP_VERSION,
    DB_WAL_CHECKPOINT_SECONDS,
    FRONTEND_ORIGIN,
    LOG_LEVEL,
    RATE_LIMIT_LEGACY_RPM,
    RATE_LIMIT_RPH,
    RATE_LIMIT_RPM,
    is_development,
    is_production,
)
from legacy_diary.infrastructure.database import init_database  # noqa: E402
from legacy_diary.observability.logging import get_logger  # noqa: E402
from legacy_diary.observability.telemetry import counter, log_event  # noqa: E402
from legacy_diary.utils.redaction import redact  # noqa: E402

logger = get_logger(__name__)

app = FastAPI(title="Legacy Diary API", version=APP_VERSION)


# Custom validation error handler to prevent information leakage
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Return only the names of the invalid fields, never the validation rules.

    Side Effects:
        - Logs the full validation errors (URL redacted)
        - Increments api.validation_errors
    """
    logger.warning("Validation error on %s: %s", redact(str(request.url)), exc.errors())
    counter("api.validation_errors")

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "detail": "Invalid request format. Please check your request and try again.",
            "error_count": len(exc.errors()),
            "invalid_fields": [str(err["loc"][-1]) for err in exc.errors()],
        },
    )


ALLOWED_ORIGINS = [FRONTEND_ORIGIN]

if is_development():
    ALLOWED_ORIGINS.extend(
        [
            "http://localhost:3000",
            "http://localhost:5173",
            "http://127.0.0.1:3000",
            "http://127.0.0.1:5173",
        ]
    )

app.add_middleware(
    CORSMiddleware,
    allow_origins=ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
)

app.add_middleware(
    RateLimitMiddleware,
    requests_per_minute=RATE_LIMIT_RPM,
    requests_per_hour=RATE_LIMIT_RPH,
    legacy_access_per_minute=RATE_LIMIT_LEGACY_RPM,
)

app.add_middleware(SecurityHeadersMiddleware)

# Initialize database schema (idempotent - safe to run on every startup)
try:
    logger.info("Initializing database schema...")
    init_database()
    logger.info("Database initialization complete")
except sqlite3.OperationalError as e:
    logger.critical("Database schema error: %s", e)
    logger.critical("Database may be corrupted or locked by another process")
    raise RuntimeError(f"Database initialization failed: {e}") from e

# Refuse to start in production with unprotected admin endpoints
if is_production() and not os.getenv(ADMIN_API_KEY_ENV):
    logger.critical("%s is not set in production", ADMIN_API_KEY_ENV)
    raise RuntimeError(
        f"Security misconfiguration: {ADMIN_API_KEY_ENV} not set in production. "
        "Refusing to start with unprotected admin endpoints."
    )
if not os.getenv(ADMIN_API_KEY_ENV):
    logger.warning(
        "%s not set - admin endpoints are unprotected (development only)", ADMIN_API_KEY_ENV
    )

app.include_router(health_router)
app.include_router(auth_router)
app.include_router(profile_router)
app.include_router(subscriptions_router)
app.include_router(entries_router)
app.include_router(prompts_router)
app.include_router(dashboard_router)
app.include_router(contacts_router)
app.include_router(wills_router)
app.include_router(switch_router)
app.include_router(legacy_owner_router)
app.include_router(legacy_router)
app.include_router(life_story_router)
app.include_router(chat_router)
app.include_router(admin_router)

log_event("api.startup", service="legacy-diary", version=APP_VERSION)


# ============================================================================
# WAL CHECKPOINT BACKGROUND TASK
# ============================================================================
def _wal_checkpoint_loop(interval_seconds: int) -> None:
    """Checkpoint the WAL file every interval_seconds until process exit."""
    from legacy_diary.infrastructure.database import checkpoint_wal

    time.sleep(interval_seconds)

    while True:
        try:
            stats = checkpoint_wal()
            if stats["bytes_freed"] > 1024 * 1024:
                logger.info("WAL checkpoint freed %d MB", stats["bytes_freed"] // (1024 * 1024))
        except Exception as e:
            logger.error("WAL checkpoint failed: %s", e)

        time.sleep(interval_seconds)


if DB_WAL_CHECKPOINT_SECONDS > 0:
    _checkpoint_thread = threading.Thread(
        target=_wal_checkpoint_loop, args=(DB_WAL_CHECKPOINT_SECONDS,), daemon=True
    )
    _checkpoint_thread.start()
    logger.info("WAL checkpoint background task started (%ds interval)", DB_WAL_CHECKPOINT_SECONDS)


# ============================================================================
# STARTUP VALIDATION
# ============================================================================
@app.on_event("startup")
async def validate_database_schema() -> None:
    """Fail fast if required tables or columns are missing."""
    from legacy_diary.infrastructure.database import validate_schema

    try:
        validate_schema()
        logger.info("Database schema validation passed")
    except ValueError as e:
        logger.critical("Database schema invalid: %s", e)
        raise RuntimeError(f"Database schema validation failed: {e}") from e


@app.get("/")
def root() -> dict[str, Any]:
    return {
        "service": "Legacy Diary API",
        "version": APP_VERSION,
        "status": "running",
        "endpoints": {
            "auth": "/api/auth",
            "entries": "/api/entries",
            "contacts": "/api/contacts",
            "wills": "/api/wills",
            "switch": "/api/switch",
            "legacy": "/api/legacy",
            "life_story": "/api/life-story",
            "chat": "/api/chat",
        },
    }


def main() -> None:
    """Run the API with uvicorn (console script `legacy-diary-api`)."""
    import uvicorn

    uvicorn.run(
        "legacy_diary.api.app:app",
        host=API_HOST,
        port=API_PORT,
        log_level=LOG_LEVEL.lower(),
        reload=is_development() and os.getenv("LEGACY_DIARY_RELOAD", "") == "1",
    )


if __name__ == "__main__":
    main()
