"""Writing prompts offered on the new-entry screen."""

from __future__ import annotations

import random
from enum import Enum

from pydantic import BaseModel, ConfigDict


class PromptCategory(str, Enum):
    MEMORY = "memory"
    REFLECTION = "reflection"
    ADVICE = "advice"
    LEGACY = "legacy"
    GENERAL = "general"


class WritingPrompt(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: int
    text: str
    category: PromptCategory


def _prompts(category: PromptCategory, start_id: int, texts: list[str]) -> list[WritingPrompt]:
    return [
        WritingPrompt(id=start_id + i, text=text, category=category) for i, text in enumerate(texts)
    ]


WRITING_PROMPTS: tuple[WritingPrompt, ...] = tuple(
    _prompts(
        PromptCategory.MEMORY,
        1,
        [
            "What is your earliest childhood memory?",
            "Describe a moment that changed the course of your life.",
            "What was your most memorable birthday?",
            "Describe your first love or significant relationship.",
            "What family tradition holds the most meaning for you?",
        ],
    )
    + _prompts(
        PromptCategory.REFLECTION,
        6,
        [
            "What life achievement are you most proud of?",
            "What do you wish you had done differently in life?",
            "How has your worldview changed over time?",
            "What personal struggles have shaped who you are today?",
            "What has been your biggest life lesson so far?",
        ],
    )
    + _prompts(
        PromptCategory.ADVICE,
        11,
        [
            "What advice would you give to your younger self?",
            "What wisdom would you like to pass on to future generations?",
            "What financial advice would you share with your loved ones?",
            "What relationship advice has proven most valuable in your life?",
            "What life principles have guided your decisions?",
        ],
    )
    + _prompts(
        PromptCategory.LEGACY,
        16,
        [
            "How would you like to be remembered?",
            "What values do you hope your family carries forward?",
            "What are your wishes for your loved ones' futures?",
            "What personal possessions hold special meaning that you'd like explained?",
            "What unfinished business or unrealized dreams would you like addressed?",
        ],
    )
    + _prompts(
        PromptCategory.GENERAL,
        21,
        [
            "What happened today that you want to remember?",
            "What are you grateful for right now?",
            "What recent conversation had a significant impact on you?",
            "Describe a place that holds special meaning for you.",
            "Who has had the biggest influence on your life and why?",
        ],
    )
)


def get_prompts_by_category(category: PromptCategory | str) -> list[WritingPrompt]:
    """
    Raises:
        ValueError: Unknown category
    """
    category = PromptCategory(category)
    return [p for p in WRITING_PROMPTS if p.category == category.value]


def get_random_prompt(
    category: PromptCategory | str | None = None,
    rng: random.Random | None = None,
) -> WritingPrompt:
    """Pick a prompt, optionally from one category. Pass rng for repeatable picks."""
    pool = get_prompts_by_category(category) if category else list(WRITING_PROMPTS)
    return (rng or random).choice(pool)
