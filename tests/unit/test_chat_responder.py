"""Unit tests for the wisdom assistant responder"""

from __future__ import annotations

import pytest

from legacy_diary.chat.models import ResponseRule
from legacy_diary.chat.responder import (
    DEFAULT_RESPONSES,
    EMOTION_RESPONSE,
    QUESTION_RESPONSES,
    REPEAT_RESPONSE,
    analyze_context,
    generate_response,
    is_emotional,
    is_greeting,
    keywords,
)


@pytest.fixture
def entries(make_entry):
    return [
        make_entry("old", "We went to the beach with grandpa.", ["summer"], title="Beach"),
        make_entry("new", "Another beach day, sunny and calm.", ["summer"], title="Shore", day=5),
        make_entry("work", "Started the new job today.", ["career"], title="First day", day=3),
    ]


@pytest.mark.parametrize(
    "text",
    [
        "hello",
        "HELLO there",
        "Well, Hey There!",
        "good Morning friend",
        "Good evening",
        "greetings from Rome",
        "Howdy",
        "hi",
        "Hi, how are you",
        "oh hey",
        "sHellObration",
    ],
)
def test_greeting_detected(text):
    assert is_greeting(text)


@pytest.mark.parametrize("text", ["this is a test", "history", "they went", "chip"])
def test_not_a_greeting(text):
    assert not is_greeting(text)


def test_greeting_substring_case_insensitive():
    for phrase in ["hello", "hi there", "good afternoon", "greetings"]:
        assert is_greeting(f"xx{phrase.upper()}yy")


def test_is_emotional():
    assert is_emotional("I FEEL lost")
    assert is_emotional("so excited!")
    assert not is_emotional("the weather")


def test_keywords_skip_stopwords_and_short_words():
    assert keywords("What did we do at the beach with Grandpa?") == ["beach", "grandpa"]


def test_analyze_context_matches_content_and_tags(entries):
    ids = [e.id for e in analyze_context("summer memories", entries)]
    assert ids == ["old", "new"]


def test_repeat_rule_first(entries):
    reply = generate_response("  Hello  ", entries, previous_message="hello")

    assert reply.rule == ResponseRule.REPEAT
    assert reply.text == REPEAT_RESPONSE


def test_greeting_rule(entries):
    reply = generate_response("Good morning!", entries, previous_message="something else")
    assert reply.rule == ResponseRule.GREETING


@pytest.mark.parametrize(
    ("message", "word"),
    [
        ("Why do I miss the beach?", "why"),
        ("How should I start?", "how"),
        ("What mattered most?", "what"),
    ],
)
def test_question_rule(entries, message, word):
    reply = generate_response(message, entries)

    assert reply.rule == ResponseRule.QUESTION
    assert reply.text == QUESTION_RESPONSES[word]


def test_question_without_keyword_falls_through(entries):
    reply = generate_response("Beach?", entries)
    assert reply.rule != ResponseRule.QUESTION


def test_emotion_rule(entries):
    reply = generate_response("I feel nostalgic", entries)

    assert reply.rule == ResponseRule.EMOTION
    assert reply.text == EMOTION_RESPONSE


def test_memory_rule_quotes_most_recent_match(entries):
    reply = generate_response("beach", entries)

    assert reply.rule == ResponseRule.MEMORY
    assert reply.referenced_entry_id == "new"
    assert '"Shore"' in reply.text
    assert reply.context_entry_ids == ["old", "new"]


def test_memory_rule_matches_tags(entries):
    reply = generate_response("career", entries)

    assert reply.rule == ResponseRule.MEMORY
    assert reply.referenced_entry_id == "work"


def test_default_rule_is_stable(entries):
    first = generate_response("quantum chromodynamics", entries)
    second = generate_response("Quantum   Chromodynamics", entries)

    assert first.rule == ResponseRule.DEFAULT
    assert first.text in DEFAULT_RESPONSES
    assert first.text == second.text


def test_never_raises_on_empty_input():
    reply = generate_response("", [])

    assert reply.rule == ResponseRule.DEFAULT
    assert reply.context_entry_ids == []
