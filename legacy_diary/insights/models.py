"""
Life story models produced by insights.life_story.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class Timespan(BaseModel):
    start: datetime | None = None
    end: datetime | None = None


class LifeTheme(BaseModel):
    id: str
    name: str
    description: str
    relevance: float = Field(..., ge=0, le=1)
    related_entries: list[str]
    timespan: Timespan


class LifeEvent(BaseModel):
    id: str
    title: str
    description: str
    date: datetime
    importance: float = Field(..., ge=0, le=1)
    related_entries: list[str]
    tags: list[str] = Field(default_factory=list)
    emotions: list[str] = Field(default_factory=list)


class Relationship(BaseModel):
    id: str
    name: str
    type: str
    significance: float = Field(..., ge=0, le=1)
    first_mentioned: datetime
    last_mentioned: datetime
    related_entries: list[str]
    description: str


class PersonalValue(BaseModel):
    id: str
    name: str
    description: str
    examples: list[str] = Field(default_factory=list)
    related_entries: list[str]
    confidence: float = Field(..., ge=0, le=1)


class LifeStory(BaseModel):
    last_generated: datetime
    entry_count: int = 0
    narrative: str
    themes: list[LifeTheme] = Field(default_factory=list)
    timeline: list[LifeEvent] = Field(default_factory=list)
    relationships: list[Relationship] = Field(default_factory=list)
    values: list[PersonalValue] = Field(default_factory=list)
