"""
Wisdom assistant responder.

Picks a reply to one user message from the user's diary entries. Rules are
tried in order and the first match wins:

    repeat    same text as the previous user message
    greeting  hello / hi there / good morning ...
    question  contains "?" and why / how / what
    emotion   feel, sad, happy, angry, worried, excited
    memory    an entry whose content or tags contain the whole message
    default   one of six reflective prompts

No randomness: the default prompt is picked by a hash of the message, and the
memory rule quotes the most recent matching entry. Never raises.
"""

from __future__ import annotations

import hashlib
import re
from collections.abc import Sequence

from legacy_diary.chat.models import ChatReply, ResponseRule
from legacy_diary.journal.models import DiaryEntry

WELCOME_MESSAGE = (
    "Hello! I'm your Wisdom Assistant. I can help you explore your memories and "
    "reflect on your experiences. What would you like to discuss?"
)

REPEAT_RESPONSE = (
    "I notice you've mentioned this before. Let's explore this from a different angle. "
    "What specific aspects would you like to discuss?"
)
GREETING_RESPONSE = (
    "Hello! It's good to hear from you. What's on your mind today? "
    "We could look back at a memory or reflect on something new."
)
QUESTION_RESPONSES: dict[str, str] = {
    "why": (
        "That's a thoughtful question. Based on your journal entries, "
        "let's explore the underlying reasons together."
    ),
    "how": (
        "Good question. Let's break this down and examine your experiences "
        "related to this topic."
    ),
    "what": "Let's reflect on your past experiences and insights about this.",
}
EMOTION_RESPONSE = (
    "I can sense this holds emotional significance for you. "
    "Would you like to explore these feelings further?"
)
MEMORY_RESPONSE = (
    'I found a relevant memory from your journal about "{title}". '
    "Would you like to reflect on this experience?"
)
DEFAULT_RESPONSES: tuple[str, ...] = (
    "That's an interesting perspective. How does this relate to your recent experiences?",
    "I notice this topic isn't in your journal yet. "
    "Would you like to create a new entry about it?",
    "This could be a meaningful area for reflection. What aspects resonate most with you?",
    "Let's explore this together. How does this connect to your personal journey?",
    "What memories or feelings does this bring up for you?",
    "How has your perspective on this changed over time?",
)

GREETING_PHRASES: tuple[str, ...] = (
    "hello",
    "hey there",
    "hi there",
    "good morning",
    "good afternoon",
    "good evening",
    "greetings",
    "howdy",
)
_GREETING_WORDS = re.compile(r"\b(hi|hey)\b")

EMOTIONAL_WORDS: tuple[str, ...] = ("feel", "sad", "happy", "angry", "worried", "excited")

STOPWORDS = frozenset(
    {
        "the", "and", "for", "are", "but", "not", "you", "all", "any", "can",
        "had", "her", "was", "one", "our", "out", "has", "his", "how", "its",
        "may", "new", "now", "old", "see", "two", "who", "did", "get", "him",
        "let", "say", "she", "too", "use", "what", "when", "where", "which",
        "why", "with", "this", "that", "from", "have", "they", "will", "would",
        "there", "their", "about", "been", "were", "your", "just", "into",
        "some", "than", "then", "them", "these", "those", "also", "very",
    }
)  # fmt: skip
MIN_KEYWORD_LENGTH = 3

_WORD = re.compile(r"[a-z0-9']+")
_WHITESPACE = re.compile(r"\s+")


def _normalize(text: str) -> str:
    return _WHITESPACE.sub(" ", (text or "").strip().lower())


def is_greeting(text: str) -> bool:
    lowered = (text or "").lower()
    if any(phrase in lowered for phrase in GREETING_PHRASES):
        return True
    return _GREETING_WORDS.search(lowered) is not None


def is_emotional(text: str) -> bool:
    lowered = (text or "").lower()
    return any(word in lowered for word in EMOTIONAL_WORDS)


def keywords(message: str) -> list[str]:
    """Meaningful words of a message, in order, without duplicates."""
    found: list[str] = []
    for word in _WORD.findall((message or "").lower()):
        word = word.strip("'")
        if len(word) < MIN_KEYWORD_LENGTH or word in STOPWORDS or word in found:
            continue
        found.append(word)
    return found


def _mentions(entry: DiaryEntry, needle: str) -> bool:
    return needle in entry.content.lower() or any(needle in tag.lower() for tag in entry.tags)


def analyze_context(message: str, entries: Sequence[DiaryEntry]) -> list[DiaryEntry]:
    """Entries whose content or tags contain any keyword of the message."""
    words = keywords(message)
    if not words:
        return []
    return [entry for entry in entries if any(_mentions(entry, word) for word in words)]


def _question_response(lowered: str) -> str | None:
    if "?" not in lowered:
        return None
    for word, response in QUESTION_RESPONSES.items():
        if word in lowered:
            return response
    return None


def _default_response(normalized: str) -> str:
    digest = hashlib.sha256(normalized.encode("utf-8")).digest()
    return DEFAULT_RESPONSES[int.from_bytes(digest[:4], "big") % len(DEFAULT_RESPONSES)]


def generate_response(
    message: str,
    entries: Sequence[DiaryEntry],
    previous_message: str | None = None,
) -> ChatReply:
    """
    Pick the assistant's reply to `message`.

    Args:
        message: The user's message
        entries: The user's diary entries (any order)
        previous_message: The user's previous message in this conversation

    Returns:
        ChatReply with the reply text, the rule that matched and the ids of
        entries related to the message
    """
    normalized = _normalize(message)
    context_ids = [entry.id for entry in analyze_context(message, entries)]

    def reply(text: str, rule: ResponseRule, referenced: str | None = None) -> ChatReply:
        return ChatReply(
            text=text,
            rule=rule,
            context_entry_ids=context_ids,
            referenced_entry_id=referenced,
        )

    if previous_message is not None and normalized and normalized == _normalize(previous_message):
        return reply(REPEAT_RESPONSE, ResponseRule.REPEAT)

    if is_greeting(normalized):
        return reply(GREETING_RESPONSE, ResponseRule.GREETING)

    question = _question_response(normalized)
    if question is not None:
        return reply(question, ResponseRule.QUESTION)

    if is_emotional(normalized):
        return reply(EMOTION_RESPONSE, ResponseRule.EMOTION)

    if normalized:
        matches = [entry for entry in entries if _mentions(entry, normalized)]
        if matches:
            newest = max(matches, key=lambda entry: (entry.created_at, entry.id))
            return reply(
                MEMORY_RESPONSE.format(title=newest.title), ResponseRule.MEMORY, newest.id
            )

    return reply(_default_response(normalized), ResponseRule.DEFAULT)
