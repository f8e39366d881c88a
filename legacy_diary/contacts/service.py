"""Trusted contact service - ownership checks, validation and tier limits."""

from __future__ import annotations

import uuid

from legacy_diary.accounts.models import User
from legacy_diary.accounts.subscriptions import ensure_can_add_contact
from legacy_diary.contacts.models import TrustedContact, TrustedContactCreate, TrustedContactUpdate
from legacy_diary.contacts.repository import TrustedContactRepository
from legacy_diary.legacy.repository import DeadMansSwitchRepository
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.clock import utc_now
from legacy_diary.utils.validators import validate_email, validate_name, validate_required_text

logger = get_logger(__name__)

MAX_RELATIONSHIP_LENGTH = 60


class ContactService:
    """Service layer for trusted contacts, scoped to the owner."""

    @staticmethod
    def add_contact(user: User, data: TrustedContactCreate) -> TrustedContact:
        """
        Raises:
            ValidationError: Missing name/email/relationship or malformed email
            TierLimitError: Contact limit of the user's tier reached
        """
        name = validate_name(data.name)
        email = validate_email(data.email)
        relationship = validate_required_text(
            data.relationship, "relationship", MAX_RELATIONSHIP_LENGTH
        )

        current = TrustedContactRepository.count_by_user(user.id)
        ensure_can_add_contact(user.subscription_tier, current)

        contact = TrustedContact(
            id=str(uuid.uuid4()),
            user_id=user.id,
            name=name,
            email=email,
            relationship=relationship,
            picture=(data.picture or "").strip() or None,
            created_at=utc_now(),
        )
        return TrustedContactRepository.create(contact)

    @staticmethod
    def get_contact(contact_id: str, user_id: str) -> TrustedContact | None:
        """Get a contact if owned by user. Returns None if not found or not owned."""
        contact = TrustedContactRepository.get_by_id(contact_id)
        if not contact or contact.user_id != user_id:
            return None
        return contact

    @staticmethod
    def list_contacts(user_id: str) -> list[TrustedContact]:
        return TrustedContactRepository.list_by_user(user_id)

    @staticmethod
    def count_contacts(user_id: str) -> int:
        return TrustedContactRepository.count_by_user(user_id)

    @staticmethod
    def update_contact(
        contact_id: str, user_id: str, updates: TrustedContactUpdate
    ) -> TrustedContact | None:
        if ContactService.get_contact(contact_id, user_id) is None:
            return None

        fields: dict[str, object] = {}
        if updates.name is not None:
            fields["name"] = validate_name(updates.name)
        if updates.email is not None:
            fields["email"] = validate_email(updates.email)
        if updates.relationship is not None:
            fields["relationship"] = validate_required_text(
                updates.relationship, "relationship", MAX_RELATIONSHIP_LENGTH
            )
        if updates.picture is not None:
            fields["picture"] = updates.picture.strip() or None

        return TrustedContactRepository.update(contact_id, fields)

    @staticmethod
    def remove_contact(contact_id: str, user_id: str) -> bool:
        """Delete the contact and drop it from the owner's dead man's switch."""
        if ContactService.get_contact(contact_id, user_id) is None:
            return False

        DeadMansSwitchRepository.remove_contact(user_id, contact_id)
        return TrustedContactRepository.delete(contact_id)
