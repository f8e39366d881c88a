"""
Subscription tiers and the limits they impose.

Three tiers exist: free, premium and gold. Unknown tier ids resolve to free so
a stale value in the users table never locks anyone out. Limits of None mean
unlimited.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from legacy_diary.errors import TierLimitError


class TierId(str, Enum):
    FREE = "free"
    PREMIUM = "premium"
    GOLD = "gold"


class SubscriptionTier(BaseModel):
    """One purchasable plan."""

    model_config = ConfigDict(frozen=True)

    id: TierId
    name: str
    price: float = Field(..., ge=0, description="Monthly price in USD")
    features: tuple[str, ...]
    storage_limit_mb: int | None = Field(default=None, description="None = unlimited")
    contacts_limit: int | None = Field(default=None, description="None = unlimited")
    monthly_entry_limit: int | None = Field(default=None, description="None = unlimited")
    has_ads: bool
    ai_features: bool
    priority: int


SUBSCRIPTION_TIERS: tuple[SubscriptionTier, ...] = (
    SubscriptionTier(
        id=TierId.FREE,
        name="Free",
        price=0,
        features=(
            "Basic journaling features",
            "Up to 5 diary entries per month",
            "Limited storage (100MB)",
            "Basic writing prompts",
            "Up to 3 trusted contacts",
        ),
        storage_limit_mb=100,
        contacts_limit=3,
        monthly_entry_limit=5,
        has_ads=True,
        ai_features=False,
        priority=1,
    ),
    SubscriptionTier(
        id=TierId.PREMIUM,
        name="Premium",
        price=9.99,
        features=(
            "Unlimited diary entries",
            "Enhanced storage (5GB)",
            "Advanced writing prompts",
            "Up to 10 trusted contacts",
            "Ad-free experience",
            "Priority support",
        ),
        storage_limit_mb=5000,
        contacts_limit=10,
        monthly_entry_limit=None,
        has_ads=False,
        ai_features=False,
        priority=2,
    ),
    SubscriptionTier(
        id=TierId.GOLD,
        name="Gold",
        price=19.99,
        features=(
            "Everything in Premium",
            "Unlimited storage",
            "Unlimited trusted contacts",
            "AI-powered writing assistance",
            "Advanced memory preservation",
            "Legacy planning tools",
            "Premium support",
        ),
        storage_limit_mb=None,
        contacts_limit=None,
        monthly_entry_limit=None,
        has_ads=False,
        ai_features=True,
        priority=3,
    ),
)

_TIERS_BY_ID = {tier.id.value: tier for tier in SUBSCRIPTION_TIERS}


def get_subscription_tier(tier_id: str | None) -> SubscriptionTier:
    """Tier for an id; unknown or missing ids fall back to free."""
    if isinstance(tier_id, TierId):
        tier_id = tier_id.value
    return _TIERS_BY_ID.get(tier_id or "", SUBSCRIPTION_TIERS[0])


def is_known_tier(tier_id: str | None) -> bool:
    return (tier_id or "") in _TIERS_BY_ID


def ensure_can_add_contact(tier_id: str, current_count: int) -> None:
    """
    Raises:
        TierLimitError: If the tier's contact limit is already reached
    """
    tier = get_subscription_tier(tier_id)
    if tier.contacts_limit is not None and current_count >= tier.contacts_limit:
        raise TierLimitError(
            f"The {tier.name} plan allows up to {tier.contacts_limit} trusted contacts",
            tier=tier.id.value,
            limit=tier.contacts_limit,
        )


def ensure_can_add_entry(tier_id: str, entries_this_month: int) -> None:
    """
    Raises:
        TierLimitError: If the tier's monthly entry allowance is used up
    """
    tier = get_subscription_tier(tier_id)
    if tier.monthly_entry_limit is not None and entries_this_month >= tier.monthly_entry_limit:
        raise TierLimitError(
            f"The {tier.name} plan allows up to {tier.monthly_entry_limit} diary entries per month",
            tier=tier.id.value,
            limit=tier.monthly_entry_limit,
        )
