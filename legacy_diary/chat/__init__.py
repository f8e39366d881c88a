"""
Chat module - the rule-based wisdom assistant and its stored conversations.
"""

from legacy_diary.chat.models import ChatMessage, ChatReply, ChatSession, ResponseRule
from legacy_diary.chat.responder import (
    WELCOME_MESSAGE,
    analyze_context,
    generate_response,
    is_emotional,
    is_greeting,
)

__all__ = [
    "WELCOME_MESSAGE",
    "ChatMessage",
    "ChatReply",
    "ChatSession",
    "ResponseRule",
    "analyze_context",
    "generate_response",
    "is_emotional",
    "is_greeting",
]
