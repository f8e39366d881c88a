"""
Dashboard endpoints: headline stats and the memory constellation graph.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from legacy_diary.accounts import User
from legacy_diary.api.middleware.user_auth import get_current_user
from legacy_diary.contacts import ContactService
from legacy_diary.journal import JournalService
from legacy_diary.journal.dashboard import (
    ConstellationGraph,
    DashboardStats,
    build_constellation,
    build_dashboard_stats,
)

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("", response_model=DashboardStats)
async def get_dashboard(user: User = Depends(get_current_user)) -> DashboardStats:
    entries = JournalService.all_entries(user.id)
    return build_dashboard_stats(entries, ContactService.count_contacts(user.id))


@router.get("/constellation", response_model=ConstellationGraph)
async def get_constellation(user: User = Depends(get_current_user)) -> ConstellationGraph:
    return build_constellation(JournalService.all_entries(user.id))
