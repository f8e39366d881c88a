"""
Life story repository - the latest generated story per user, stored as JSON.
"""

from __future__ import annotations

from legacy_diary.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from legacy_diary.insights.models import LifeStory
from legacy_diary.utils.clock import to_iso


class LifeStoryRepository:
    @staticmethod
    @retry_on_db_lock()
    def save(user_id: str, story: LifeStory) -> LifeStory:
        """Replace the user's stored story."""
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO life_stories (user_id, generated_at, payload)
                VALUES (?, ?, ?)
                ON CONFLICT(user_id) DO UPDATE SET
                    generated_at = excluded.generated_at,
                    payload = excluded.payload
                """,
                (user_id, to_iso(story.last_generated), story.model_dump_json()),
            )
        return story

    @staticmethod
    def get(user_id: str) -> LifeStory | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT payload FROM life_stories WHERE user_id = ?", (user_id,)
            ).fetchone()

        if not row:
            return None

        return LifeStory.model_validate_json(row["payload"])
