"""Subscription plan catalogue."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from legacy_diary.accounts.subscriptions import (
    SUBSCRIPTION_TIERS,
    SubscriptionTier,
    get_subscription_tier,
    is_known_tier,
)

router = APIRouter(prefix="/api/subscriptions", tags=["subscriptions"])


@router.get("", response_model=list[SubscriptionTier])
async def list_tiers() -> list[SubscriptionTier]:
    return list(SUBSCRIPTION_TIERS)


@router.get("/{tier_id}", response_model=SubscriptionTier)
async def get_tier(tier_id: str) -> SubscriptionTier:
    if not is_known_tier(tier_id):
        raise HTTPException(status_code=404, detail="Subscription tier not found")
    return get_subscription_tier(tier_id)
