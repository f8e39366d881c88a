"""Health check endpoints.

- /health - Service status and version
- /health/db - Database connection pool health
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter

from legacy_diary.config import APP_VERSION

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check() -> dict[str, Any]:
    return {
        "status": "healthy",
        "service": "Legacy Diary API",
        "version": APP_VERSION,
        "timestamp": datetime.now(UTC).isoformat(),
    }


@router.get("/health/db")
async def database_health() -> dict[str, Any]:
    """
    Database health check endpoint.

    Returns connection pool health metrics for monitoring.
    Alerts if pool usage exceeds 80%.
    """
    from legacy_diary.infrastructure.database import get_pool_stats

    stats = get_pool_stats()
    usage_percent = stats["usage_percent"]

    return {
        "status": "degraded" if usage_percent > 80 else "healthy",
        "pool": stats,
        "warning": "Pool usage high" if usage_percent > 80 else None,
    }
