"""Chat service - persisted conversations with the wisdom assistant."""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime

from legacy_diary.chat.models import ChatMessage, ChatReply, ChatSession, ResponseRule
from legacy_diary.chat.repository import ChatRepository
from legacy_diary.chat.responder import WELCOME_MESSAGE, generate_response
from legacy_diary.journal.repository import DiaryEntryRepository
from legacy_diary.observability.logging import get_logger
from legacy_diary.observability.telemetry import counter
from legacy_diary.utils.clock import utc_now
from legacy_diary.utils.validators import validate_required_text

logger = get_logger(__name__)

DEFAULT_SESSION_TITLE = "Reflection"
MAX_SESSION_TITLE_LENGTH = 120
MAX_MESSAGE_LENGTH = 4000


@dataclass
class ChatExchange:
    user_message: ChatMessage
    bot_message: ChatMessage
    reply: ChatReply


class ChatService:
    """Chat sessions scoped to their owner.

    Lookups by session id return None (False for delete) for sessions that
    are missing or belong to another user.
    """

    @staticmethod
    def create_session(
        user_id: str, title: str | None = None, now: datetime | None = None
    ) -> ChatSession:
        now = now or utc_now()
        title = (title or "").strip() or DEFAULT_SESSION_TITLE
        title = validate_required_text(title, "title", MAX_SESSION_TITLE_LENGTH)

        session_id = str(uuid.uuid4())
        welcome = ChatMessage(
            id=str(uuid.uuid4()),
            session_id=session_id,
            sender="bot",
            text=WELCOME_MESSAGE,
            rule=ResponseRule.WELCOME.value,
            created_at=now,
        )
        session = ChatSession(
            id=session_id,
            user_id=user_id,
            title=title,
            created_at=now,
            updated_at=now,
            messages=[welcome],
        )
        return ChatRepository.create_session(session)

    @staticmethod
    def get_session(session_id: str, user_id: str) -> ChatSession | None:
        session = ChatRepository.get_session(session_id)
        if not session or session.user_id != user_id:
            return None
        return session

    @staticmethod
    def list_sessions(user_id: str) -> list[ChatSession]:
        return ChatRepository.list_sessions(user_id)

    @staticmethod
    def delete_session(session_id: str, user_id: str) -> bool:
        if ChatService.get_session(session_id, user_id) is None:
            return False
        return ChatRepository.delete_session(session_id)

    @staticmethod
    def post_message(
        session_id: str, user_id: str, text: str, now: datetime | None = None
    ) -> ChatExchange | None:
        """
        Store the user's message and the assistant's reply.

        Returns:
            ChatExchange, or None if the session is missing or not owned

        Raises:
            ValidationError: Empty or over-long message
        """
        text = validate_required_text(text, "message", MAX_MESSAGE_LENGTH)
        session = ChatRepository.get_session(session_id, with_messages=False)
        if not session or session.user_id != user_id:
            return None

        previous = ChatRepository.last_user_message(session_id)
        entries = DiaryEntryRepository.list_by_user(user_id)
        reply = generate_response(text, entries, previous.text if previous else None)

        now = now or utc_now()
        user_message = ChatMessage(
            id=str(uuid.uuid4()),
            session_id=session_id,
            sender="user",
            text=text,
            created_at=now,
        )
        bot_message = ChatMessage(
            id=str(uuid.uuid4()),
            session_id=session_id,
            sender="bot",
            text=reply.text,
            rule=reply.rule.value,
            created_at=now,
        )
        ChatRepository.add_messages(session_id, [user_message, bot_message])

        counter(f"chat.replies.{reply.rule.value}")
        logger.debug("Chat session %s replied with rule %s", session_id, reply.rule.value)
        return ChatExchange(user_message=user_message, bot_message=bot_message, reply=reply)
