"""Account service - registration, login sessions, profile and subscription changes.

Session tokens are opaque random strings stored in the sessions table. Lookups
go through a TTLCache so authenticated requests do not hit SQLite every time;
every operation that invalidates a token also evicts it from the cache.
"""

from __future__ import annotations

import secrets
import sqlite3
import uuid
from dataclasses import dataclass
from datetime import timedelta

from cachetools import TTLCache

from legacy_diary.accounts.models import ProfileUpdate, Session, User
from legacy_diary.accounts.passwords import hash_password, verify_password
from legacy_diary.accounts.repository import SessionRepository, UserRepository
from legacy_diary.accounts.subscriptions import TierId, is_known_tier
from legacy_diary.config import SESSION_CACHE_MAX_SIZE, SESSION_CACHE_TTL_SECONDS, SESSION_TTL_DAYS
from legacy_diary.errors import AuthenticationError
from legacy_diary.observability.logging import get_logger
from legacy_diary.observability.telemetry import counter, log_event
from legacy_diary.utils.clock import to_iso, utc_now
from legacy_diary.utils.redaction import mask_email
from legacy_diary.utils.validators import (
    ValidationError,
    validate_email,
    validate_name,
    validate_password,
)

logger = get_logger(__name__)

MAX_BIO_LENGTH = 2000

_session_cache: TTLCache[str, str] = TTLCache(
    maxsize=SESSION_CACHE_MAX_SIZE, ttl=SESSION_CACHE_TTL_SECONDS
)


@dataclass
class LoginResult:
    user: User
    session: Session


class AccountService:
    """Service layer for users and their sessions."""

    @staticmethod
    def register(
        name: str,
        email: str,
        password: str,
        subscription_tier: str = TierId.FREE.value,
    ) -> User:
        """
        Create an account.

        Raises:
            ValidationError: Bad name/email/password, unknown tier or email already registered
        """
        name = validate_name(name)
        email = validate_email(email)
        validate_password(password)
        if not is_known_tier(subscription_tier):
            raise ValidationError(f"Unknown subscription tier: {subscription_tier}")

        if UserRepository.get_by_email(email):
            raise ValidationError("An account with this email already exists")

        now = utc_now()
        user = User(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            password_hash=hash_password(password),
            subscription_tier=subscription_tier,
            subscription_start=now,
            created_at=now,
            updated_at=now,
        )

        try:
            UserRepository.create(user)
        except sqlite3.IntegrityError:
            raise ValidationError("An account with this email already exists") from None

        counter("accounts.registered")
        log_event(
            "accounts.registered",
            user_id=user.id,
            email=mask_email(email),
            tier=subscription_tier,
        )
        return user

    @staticmethod
    def login(email: str, password: str) -> LoginResult:
        """
        Verify credentials and issue a session token.

        Raises:
            AuthenticationError: Unknown email, wrong password or deactivated account
        """
        try:
            email = validate_email(email)
        except ValidationError:
            raise AuthenticationError("Invalid email or password") from None

        user = UserRepository.get_by_email(email)
        if user is None or not verify_password(password, user.password_hash):
            counter("accounts.login_failed")
            raise AuthenticationError("Invalid email or password")

        if not user.is_active:
            counter("accounts.login_failed")
            raise AuthenticationError("This account has been deactivated")

        now = utc_now()
        session = Session(
            token=secrets.token_urlsafe(32),
            user_id=user.id,
            created_at=now,
            expires_at=now + timedelta(days=SESSION_TTL_DAYS),
        )
        SessionRepository.create(session)
        _session_cache[session.token] = user.id

        counter("accounts.login")
        logger.info("User %s logged in", user.id)
        return LoginResult(user=user, session=session)

    @staticmethod
    def logout(token: str) -> bool:
        _session_cache.pop(token, None)
        return SessionRepository.delete(token)

    @staticmethod
    def authenticate(token: str) -> User:
        """
        Resolve a bearer token to an active user.

        Raises:
            AuthenticationError: Unknown or expired token, or inactive user
        """
        user_id = _session_cache.get(token)

        if user_id is None:
            session = SessionRepository.get(token)
            if session is None:
                raise AuthenticationError("Invalid or expired session")
            if session.is_expired():
                SessionRepository.delete(token)
                raise AuthenticationError("Invalid or expired session")
            user_id = session.user_id

        user = UserRepository.get_by_id(user_id)
        if user is None or not user.is_active:
            _session_cache.pop(token, None)
            raise AuthenticationError("Invalid or expired session")

        _session_cache[token] = user.id
        return user

    @staticmethod
    def get_profile(user_id: str) -> User | None:
        return UserRepository.get_by_id(user_id)

    @staticmethod
    def update_profile(user_id: str, updates: ProfileUpdate) -> User | None:
        """Apply a partial profile update. Returns None if the user is gone."""
        fields: dict[str, object] = {}
        if updates.name is not None:
            fields["name"] = validate_name(updates.name)
        if updates.bio is not None:
            bio = updates.bio.strip()
            if len(bio) > MAX_BIO_LENGTH:
                raise ValidationError(f"bio exceeds maximum length of {MAX_BIO_LENGTH}")
            fields["bio"] = bio or None
        if updates.profile_picture is not None:
            fields["profile_picture"] = updates.profile_picture.strip() or None
        if updates.social_links is not None:
            fields["social_links"] = updates.social_links.model_dump_json(exclude_none=True)

        return UserRepository.update_fields(user_id, fields)

    @staticmethod
    def update_email(user_id: str, new_email: str, password: str) -> User | None:
        """
        Raises:
            AuthenticationError: Wrong password
            ValidationError: Malformed or already registered email
        """
        user = UserRepository.get_by_id(user_id)
        if user is None:
            return None
        if not verify_password(password, user.password_hash):
            raise AuthenticationError("Password is incorrect")

        new_email = validate_email(new_email)
        if UserRepository.email_taken(new_email, exclude_user_id=user_id):
            raise ValidationError("An account with this email already exists")

        log_event("accounts.email_changed", user_id=user_id, email=mask_email(new_email))
        return UserRepository.update_fields(user_id, {"email": new_email})

    @staticmethod
    def update_password(
        user_id: str,
        current_password: str,
        new_password: str,
        keep_token: str | None = None,
    ) -> bool:
        """
        Change the password and sign out every other session.

        Raises:
            AuthenticationError: Current password is wrong
            ValidationError: New password too short
        """
        user = UserRepository.get_by_id(user_id)
        if user is None:
            return False
        if not verify_password(current_password, user.password_hash):
            raise AuthenticationError("Current password is incorrect")

        validate_password(new_password, field="new password")
        UserRepository.update_fields(user_id, {"password_hash": hash_password(new_password)})

        SessionRepository.delete_for_user(user_id, keep_token=keep_token)
        _evict_user_sessions(user_id, keep_token=keep_token)
        log_event("accounts.password_changed", user_id=user_id)
        return True

    @staticmethod
    def update_subscription(user_id: str, tier_id: str) -> User | None:
        """
        Switch plans. No payment is taken; the change is immediate.

        Raises:
            ValidationError: Unknown tier id
        """
        if not is_known_tier(tier_id):
            raise ValidationError(f"Unknown subscription tier: {tier_id}")

        user = UserRepository.update_fields(
            user_id,
            {
                "subscription_tier": tier_id,
                "subscription_start": to_iso(utc_now()),
                "subscription_end": None,
            },
        )
        if user:
            log_event("accounts.subscription_changed", user_id=user_id, tier=tier_id)
        return user

    @staticmethod
    def deactivate_account(user_id: str) -> bool:
        """Mark the account inactive and drop all of its sessions."""
        user = UserRepository.update_fields(user_id, {"is_active": 0})
        if user is None:
            return False

        SessionRepository.delete_for_user(user_id)
        _evict_user_sessions(user_id)
        log_event("accounts.deactivated", user_id=user_id)
        return True

    @staticmethod
    def delete_account(user_id: str) -> bool:
        """Delete the account and every record it owns."""
        _evict_user_sessions(user_id)
        deleted = UserRepository.delete(user_id)
        if deleted:
            log_event("accounts.deleted", user_id=user_id)
        return deleted


def _evict_user_sessions(user_id: str, keep_token: str | None = None) -> None:
    for token, cached_user_id in list(_session_cache.items()):
        if cached_user_id == user_id and token != keep_token:
            _session_cache.pop(token, None)


def clear_session_cache() -> None:
    """Clear the session cache. Useful for testing."""
    _session_cache.clear()
