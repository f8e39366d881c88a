"""
Journal module - diary entries, writing prompts, dashboard and constellation.
"""

from legacy_diary.journal.models import DiaryEntry, DiaryEntryCreate, DiaryEntryUpdate
from legacy_diary.journal.repository import DiaryEntryRepository
from legacy_diary.journal.service import JournalService

__all__ = [
    "DiaryEntry",
    "DiaryEntryCreate",
    "DiaryEntryRepository",
    "DiaryEntryUpdate",
    "JournalService",
]
