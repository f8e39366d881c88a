"""Admin endpoints, protected by the admin API key."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query

from legacy_diary.api.middleware.auth import require_admin_auth
from legacy_diary.infrastructure.database import get_pool_stats
from legacy_diary.legacy import switch as dead_mans_switch
from legacy_diary.observability.logging import get_logger
from legacy_diary.observability.telemetry import snapshot_counters
from legacy_diary.utils.clock import ensure_utc

router = APIRouter(prefix="/api/admin", tags=["admin"], dependencies=[Depends(require_admin_auth)])
logger = get_logger(__name__)


@router.post("/switch-sweep")
async def run_switch_sweep(
    now: datetime | None = Query(None, description="Evaluate at this time instead of now"),
) -> dict[str, Any]:
    """Run one dead man's switch sweep (normally triggered by cron)."""
    try:
        report = dead_mans_switch.sweep(ensure_utc(now) if now else None)
        return asdict(report)
    except Exception as e:
        logger.error("Switch sweep failed: %s", e)
        raise HTTPException(status_code=500, detail="Switch sweep failed") from None


@router.get("/stats")
async def stats() -> dict[str, Any]:
    """In-process counters and pool usage. Contains no PII."""
    return {"counters": snapshot_counters(), "database": get_pool_stats()}
