"""
Life story weaver.

Single pass over a user's diary entries that derives:

- themes: tags shared by at least two entries
- timeline: one event per entry, oldest first, with detected emotions
- relationships: family, friend and partner words mentioned in the text
- values: keyword families (Family, Growth, Adventure, Gratitude)

plus a short narrative. Everything here is a pure function of the entries:
ids are UUIDv5 over content keys, so the same entries always produce the same
story. No input raises; an empty list yields an empty story.
"""

from __future__ import annotations

import re
import uuid
from collections.abc import Sequence
from datetime import datetime

from legacy_diary.insights.models import (
    LifeEvent,
    LifeStory,
    LifeTheme,
    PersonalValue,
    Relationship,
    Timespan,
)
from legacy_diary.journal.models import DiaryEntry
from legacy_diary.utils.clock import ensure_utc, utc_now

_ID_NAMESPACE = uuid.UUID("6f1d3a52-0c4e-4b7e-9a39-2f6c1e8d4b10")

EVENT_DESCRIPTION_LENGTH = 200
MIN_ENTRIES_FOR_THEME = 2
MAX_VALUE_EXAMPLES = 3
MAX_EXAMPLE_LENGTH = 200

EMOTION_LEXICON: dict[str, tuple[str, ...]] = {
    "joy": (
        "happy",
        "happiness",
        "joy",
        "joyful",
        "delighted",
        "excited",
        "fun",
        "laugh",
        "laughed",
        "laughing",
    ),
    "sadness": (
        "sad",
        "sadness",
        "cry",
        "cried",
        "tears",
        "lonely",
        "grief",
        "heartbroken",
        "miss",
        "missed",
    ),
    "anger": ("angry", "anger", "furious", "mad", "frustrated", "annoyed"),
    "fear": ("afraid", "scared", "fear", "worried", "anxious", "nervous"),
    "love": ("love", "loved", "loving", "adore", "adored"),
    "gratitude": ("grateful", "thankful", "gratitude", "appreciate", "appreciated", "blessed"),
    "pride": ("proud", "pride", "accomplished"),
    "hope": ("hope", "hoped", "hopeful", "dream", "dreams"),
}

# name -> (type, words)
RELATIONSHIP_GROUPS: dict[str, tuple[str, tuple[str, ...]]] = {
    "Mom": ("family", ("mom", "mother", "mum", "mommy")),
    "Dad": ("family", ("dad", "father", "daddy")),
    "Sister": ("family", ("sister", "sisters")),
    "Brother": ("family", ("brother", "brothers")),
    "Friend": ("friend", ("friend", "friends")),
    "Grandmother": ("family", ("grandmother", "grandma", "granny")),
    "Grandfather": ("family", ("grandfather", "grandpa")),
    "Partner": ("partner", ("wife", "husband", "partner", "spouse")),
}

VALUE_KEYWORDS: dict[str, tuple[str, ...]] = {
    "Family": ("family", "love", "together"),
    "Growth": ("learn", "grow", "improve"),
    "Adventure": ("explore", "travel", "discover"),
    "Gratitude": ("grateful", "thankful", "appreciate"),
}

_SENTENCE_SPLIT = re.compile(r"(?<=[.!?])\s+")


def _word_pattern(words: Sequence[str]) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(re.escape(w) for w in words) + r")\b", re.IGNORECASE)


_EMOTION_PATTERNS = {name: _word_pattern(words) for name, words in EMOTION_LEXICON.items()}
_RELATIONSHIP_PATTERNS = {
    name: _word_pattern(words) for name, (_, words) in RELATIONSHIP_GROUPS.items()
}


def _stable_id(*parts: str) -> str:
    return str(uuid.uuid5(_ID_NAMESPACE, "|".join(parts)))


def _date(entry: DiaryEntry) -> datetime:
    return ensure_utc(entry.created_at)


def _chronological(entries: Sequence[DiaryEntry]) -> list[DiaryEntry]:
    return sorted(entries, key=lambda e: (_date(e), e.id))


def _ratio(part: int, whole: int) -> float:
    if whole <= 0:
        return 0.0
    return min(1.0, part / whole)


def _plural(count: int, singular: str, plural: str | None = None) -> str:
    return f"{count} {singular if count == 1 else (plural or singular + 's')}"


def _join_names(names: Sequence[str]) -> str:
    if len(names) <= 1:
        return "".join(names)
    return ", ".join(names[:-1]) + " and " + names[-1]


def detect_emotions(text: str) -> list[str]:
    """Emotion names whose lexicon words appear in the text, in lexicon order."""
    return [name for name, pattern in _EMOTION_PATTERNS.items() if pattern.search(text or "")]


def score_importance(entry: DiaryEntry, emotions: Sequence[str]) -> float:
    """
    Heuristic weight in [0, 1]: longer, more tagged and more emotional
    entries count for more.
    """
    score = 0.2
    score += min(len(entry.content) / 2000, 0.3)
    score += min(0.1 * len(entry.tags), 0.2)
    score += min(0.15 * len(emotions), 0.3)
    return round(max(0.0, min(1.0, score)), 3)


def extract_themes(entries: Sequence[DiaryEntry]) -> list[LifeTheme]:
    """One theme per tag carried by at least two entries."""
    total = len(entries)
    ordered = _chronological(entries)

    tag_entries: dict[str, list[DiaryEntry]] = {}
    for entry in ordered:
        for tag in dict.fromkeys(entry.tags):
            tag_entries.setdefault(tag, []).append(entry)

    themes: list[LifeTheme] = []
    for tag, related in tag_entries.items():
        if len(related) < MIN_ENTRIES_FOR_THEME:
            continue
        related_ids = [e.id for e in related]
        dates = [_date(e) for e in related]
        themes.append(
            LifeTheme(
                id=_stable_id("theme", tag, *related_ids),
                name=tag[:1].upper() + tag[1:],
                description=f"Entries related to {tag}",
                relevance=_ratio(len(related), total),
                related_entries=related_ids,
                timespan=Timespan(start=min(dates), end=max(dates)),
            )
        )

    themes.sort(key=lambda t: (-t.relevance, t.name))
    return themes


def extract_life_events(entries: Sequence[DiaryEntry]) -> list[LifeEvent]:
    """One event per entry, oldest first."""
    events: list[LifeEvent] = []
    for entry in _chronological(entries):
        content = entry.content or ""
        description = content[:EVENT_DESCRIPTION_LENGTH]
        if len(content) > EVENT_DESCRIPTION_LENGTH:
            description += "..."

        emotions = detect_emotions(f"{entry.title} {content}")
        events.append(
            LifeEvent(
                id=_stable_id("event", entry.id),
                title=entry.title,
                description=description,
                date=_date(entry),
                importance=score_importance(entry, emotions),
                related_entries=[entry.id],
                tags=list(entry.tags),
                emotions=emotions,
            )
        )
    return events


def extract_relationships(entries: Sequence[DiaryEntry]) -> list[Relationship]:
    """Relationship words matched as whole words, case-insensitively."""
    total = len(entries)
    ordered = _chronological(entries)

    relationships: list[Relationship] = []
    for name, (rel_type, _) in RELATIONSHIP_GROUPS.items():
        pattern = _RELATIONSHIP_PATTERNS[name]
        related = [e for e in ordered if pattern.search(e.content or "")]
        if not related:
            continue

        related_ids = [e.id for e in related]
        relationships.append(
            Relationship(
                id=_stable_id("relationship", name, *related_ids),
                name=name,
                type=rel_type,
                significance=_ratio(len(related), total),
                first_mentioned=_date(related[0]),
                last_mentioned=_date(related[-1]),
                related_entries=related_ids,
                description=f"{name} is mentioned in {_plural(len(related), 'entry', 'entries')}",
            )
        )

    relationships.sort(key=lambda r: -r.significance)
    return relationships


def _example_sentences(entries: Sequence[DiaryEntry], keywords: Sequence[str]) -> list[str]:
    examples: list[str] = []
    for entry in entries:
        for sentence in _SENTENCE_SPLIT.split(entry.content or ""):
            sentence = sentence.strip()
            if not sentence or sentence in examples:
                continue
            if any(k in sentence.lower() for k in keywords):
                if len(sentence) > MAX_EXAMPLE_LENGTH:
                    sentence = sentence[:MAX_EXAMPLE_LENGTH] + "..."
                examples.append(sentence)
            if len(examples) >= MAX_VALUE_EXAMPLES:
                return examples
    return examples


def extract_values(entries: Sequence[DiaryEntry]) -> list[PersonalValue]:
    """Keyword families matched as case-insensitive substrings of the content."""
    total = len(entries)
    ordered = _chronological(entries)

    values: list[PersonalValue] = []
    for name, keywords in VALUE_KEYWORDS.items():
        related = [e for e in ordered if any(k in (e.content or "").lower() for k in keywords)]
        if not related:
            continue

        related_ids = [e.id for e in related]
        values.append(
            PersonalValue(
                id=_stable_id("value", name, *related_ids),
                name=name,
                description=f"Values related to {name.lower()}",
                examples=_example_sentences(related, keywords),
                related_entries=related_ids,
                confidence=_ratio(len(related), total),
            )
        )

    values.sort(key=lambda v: -v.confidence)
    return values


def build_narrative(
    entry_count: int,
    themes: Sequence[LifeTheme],
    events: Sequence[LifeEvent],
    relationships: Sequence[Relationship],
    values: Sequence[PersonalValue],
) -> str:
    opening = f"Based on your {_plural(entry_count, 'journal entry', 'journal entries')}, "

    if entry_count == 0:
        return opening + (
            "there is not enough material yet to weave your life story. "
            "Start writing to discover the themes and people that shape it."
        )

    parts: list[str] = []
    if themes:
        parts.append(
            opening
            + f"your life story reveals {_plural(len(themes), 'major theme')}, including "
            + _join_names([t.name for t in themes])
            + "."
        )
    else:
        parts.append(
            opening + "your life story is still taking shape; no theme recurs across entries yet."
        )

    sentence = f"You've documented {_plural(len(events), 'significant life event')}"
    if relationships:
        sentence += f" and mentioned {_plural(len(relationships), 'important relationship')}"
    parts.append(sentence + ".")

    if values:
        names = _join_names([v.name for v in values])
        parts.append(f"Your writing reflects strong values of {names}.")

    return " ".join(parts)


def generate_life_story(entries: Sequence[DiaryEntry], now: datetime | None = None) -> LifeStory:
    """Run every extractor and assemble the story."""
    entries = list(entries or [])

    themes = extract_themes(entries)
    timeline = extract_life_events(entries)
    relationships = extract_relationships(entries)
    values = extract_values(entries)

    return LifeStory(
        last_generated=ensure_utc(now) if now else utc_now(),
        entry_count=len(entries),
        narrative=build_narrative(len(entries), themes, timeline, relationships, values),
        themes=themes,
        timeline=timeline,
        relationships=relationships,
        values=values,
    )
