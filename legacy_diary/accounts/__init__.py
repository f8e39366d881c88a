"""
Accounts module - users, login sessions, profiles and subscription tiers.
"""

from legacy_diary.accounts.models import ProfileUpdate, Session, SocialLinks, User
from legacy_diary.accounts.service import AccountService, LoginResult
from legacy_diary.accounts.subscriptions import (
    SUBSCRIPTION_TIERS,
    SubscriptionTier,
    TierId,
    get_subscription_tier,
)

__all__ = [
    "SUBSCRIPTION_TIERS",
    "AccountService",
    "LoginResult",
    "ProfileUpdate",
    "Session",
    "SocialLinks",
    "SubscriptionTier",
    "TierId",
    "User",
    "get_subscription_tier",
]
