"""
Insights module - the life story weaver and its stored results.
"""

from legacy_diary.insights.life_story import (
    build_narrative,
    extract_life_events,
    extract_relationships,
    extract_themes,
    extract_values,
    generate_life_story,
)
from legacy_diary.insights.models import (
    LifeEvent,
    LifeStory,
    LifeTheme,
    PersonalValue,
    Relationship,
)

__all__ = [
    "LifeEvent",
    "LifeStory",
    "LifeTheme",
    "PersonalValue",
    "Relationship",
    "build_narrative",
    "extract_life_events",
    "extract_relationships",
    "extract_themes",
    "extract_values",
    "generate_life_story",
]
