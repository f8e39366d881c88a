"""
Chat repository - chat_sessions and chat_messages tables.
"""

from __future__ import annotations

from legacy_diary.chat.models import ChatMessage, ChatSession
from legacy_diary.infrastructure.database import db_transaction, get_db_connection, retry_on_db_lock
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.clock import to_iso

logger = get_logger(__name__)


class ChatRepository:
    """Sessions are listed most recently active first; messages oldest first."""

    @staticmethod
    @retry_on_db_lock()
    def create_session(session: ChatSession) -> ChatSession:
        """Insert the session together with any seed messages."""
        with db_transaction() as conn:
            conn.execute(
                """
                INSERT INTO chat_sessions (id, user_id, title, created_at, updated_at)
                VALUES (:id, :user_id, :title, :created_at, :updated_at)
                """,
                session.to_db_dict(),
            )
            conn.executemany(
                """
                INSERT INTO chat_messages (id, session_id, sender, text, rule, created_at)
                VALUES (:id, :session_id, :sender, :text, :rule, :created_at)
                """,
                [message.to_db_dict() for message in session.messages],
            )

        logger.info("Created chat session %s for user %s", session.id, session.user_id)
        return session

    @staticmethod
    def get_session(session_id: str, with_messages: bool = True) -> ChatSession | None:
        with get_db_connection() as conn:
            row = conn.execute(
                "SELECT * FROM chat_sessions WHERE id = ?", (session_id,)
            ).fetchone()
            if not row:
                return None

            messages: list[ChatMessage] = []
            if with_messages:
                rows = conn.execute(
                    """
                    SELECT * FROM chat_messages WHERE session_id = ?
                    ORDER BY created_at, rowid
                    """,
                    (session_id,),
                ).fetchall()
                messages = [ChatMessage.from_db_row(dict(r)) for r in rows]

        return ChatSession.from_db_row(dict(row), messages)

    @staticmethod
    def list_sessions(user_id: str) -> list[ChatSession]:
        with get_db_connection() as conn:
            rows = conn.execute(
                "SELECT * FROM chat_sessions WHERE user_id = ? ORDER BY updated_at DESC, id",
                (user_id,),
            ).fetchall()

        return [ChatSession.from_db_row(dict(row)) for row in rows]

    @staticmethod
    def last_user_message(session_id: str) -> ChatMessage | None:
        with get_db_connection() as conn:
            row = conn.execute(
                """
                SELECT * FROM chat_messages
                WHERE session_id = ? AND sender = 'user'
                ORDER BY created_at DESC, rowid DESC
                LIMIT 1
                """,
                (session_id,),
            ).fetchone()

        if not row:
            return None

        return ChatMessage.from_db_row(dict(row))

    @staticmethod
    @retry_on_db_lock()
    def add_messages(session_id: str, messages: list[ChatMessage]) -> list[ChatMessage]:
        """Append messages and bump the session's updated_at to the last one."""
        if not messages:
            return messages

        with db_transaction() as conn:
            conn.executemany(
                """
                INSERT INTO chat_messages (id, session_id, sender, text, rule, created_at)
                VALUES (:id, :session_id, :sender, :text, :rule, :created_at)
                """,
                [message.to_db_dict() for message in messages],
            )
            conn.execute(
                "UPDATE chat_sessions SET updated_at = ? WHERE id = ?",
                (to_iso(messages[-1].created_at), session_id),
            )
        return messages

    @staticmethod
    @retry_on_db_lock()
    def delete_session(session_id: str) -> bool:
        with db_transaction() as conn:
            cursor = conn.execute("DELETE FROM chat_sessions WHERE id = ?", (session_id,))
            deleted = cursor.rowcount > 0

        if deleted:
            logger.info("Deleted chat session %s", session_id)

        return deleted
