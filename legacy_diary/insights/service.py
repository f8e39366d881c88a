"""Life story service - regenerate from the user's entries and keep the latest."""

from __future__ import annotations

from datetime import datetime

from legacy_diary.insights.life_story import generate_life_story
from legacy_diary.insights.models import LifeStory
from legacy_diary.insights.repository import LifeStoryRepository
from legacy_diary.journal.repository import DiaryEntryRepository
from legacy_diary.observability.logging import get_logger
from legacy_diary.observability.telemetry import time_block

logger = get_logger(__name__)


class LifeStoryService:
    @staticmethod
    def regenerate(user_id: str, now: datetime | None = None) -> LifeStory:
        """Weave a fresh story from all of the user's entries and store it."""
        entries = DiaryEntryRepository.list_by_user(user_id)
        with time_block("insights.life_story"):
            story = generate_life_story(entries, now=now)

        LifeStoryRepository.save(user_id, story)
        logger.info(
            "Generated life story for user %s: %d entries, %d themes",
            user_id,
            story.entry_count,
            len(story.themes),
        )
        return story

    @staticmethod
    def latest(user_id: str) -> LifeStory | None:
        return LifeStoryRepository.get(user_id)
