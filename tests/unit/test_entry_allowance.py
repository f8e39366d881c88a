"""Unit tests for the monthly entry allowance

The allowance counts entries by when the server stored them, not by the
created_at the user supplies.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from legacy_diary.errors import TierLimitError
from legacy_diary.journal import DiaryEntryCreate, DiaryEntryRepository, JournalService
from legacy_diary.journal.service import start_of_month

JUNE = datetime(2024, 6, 15, 10, 0, tzinfo=UTC)


def write(user, now, created_at=None, title="Entry"):
    return JournalService.create_entry(
        user, DiaryEntryCreate(title=title, content="text", created_at=created_at), now=now
    )


def test_back_dated_entries_count_in_the_month_they_were_written(user):
    for _ in range(5):
        write(user, JUNE, created_at=datetime(2023, 1, 1, tzinfo=UTC))

    with pytest.raises(TierLimitError):
        write(user, JUNE + timedelta(minutes=1), created_at=datetime(2023, 1, 2, tzinfo=UTC))


def test_allowance_resets_next_month(user):
    for _ in range(5):
        write(user, JUNE)

    entry = write(user, datetime(2024, 7, 1, 0, 5, tzinfo=UTC))

    assert entry.title == "Entry"


def test_created_at_kept_as_given(user):
    old = datetime(2019, 5, 4, 8, 30, tzinfo=UTC)

    entry = write(user, JUNE, created_at=old)

    assert DiaryEntryRepository.get_by_id(entry.id).created_at == old
    assert DiaryEntryRepository.count_recorded_since(user.id, start_of_month(JUNE)) == 1
    assert DiaryEntryRepository.count_recorded_since(user.id, JUNE + timedelta(days=30)) == 0


def test_premium_tier_is_not_limited(make_user):
    premium = make_user(tier="premium")

    for i in range(8):
        write(premium, JUNE, created_at=datetime(2023, 1, 1, tzinfo=UTC), title=f"Entry {i}")

    assert DiaryEntryRepository.count_recorded_since(premium.id, start_of_month(JUNE)) == 8
