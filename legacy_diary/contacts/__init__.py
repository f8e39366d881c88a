"""
Contacts module - trusted contacts who may receive a user's legacy.
"""

from legacy_diary.contacts.models import TrustedContact, TrustedContactCreate, TrustedContactUpdate
from legacy_diary.contacts.service import ContactService

__all__ = ["ContactService", "TrustedContact", "TrustedContactCreate", "TrustedContactUpdate"]
