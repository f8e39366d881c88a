"""Dashboard summary and memory-constellation graph built from a user's entries.

Both take entries newest first, the order JournalService.all_entries returns.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

from legacy_diary.config import DASHBOARD_MAX_TAGS, DASHBOARD_RECENT_ENTRIES
from legacy_diary.journal.models import DiaryEntry
from legacy_diary.utils.clock import ensure_utc, utc_now

ENTRY_NODE_COLOR = "#3b82f6"
TAG_NODE_COLOR = "#8b5cf6"
ENTRY_NODE_SIZE = 5
TAG_NODE_SIZE = 3


class DashboardStats(BaseModel):
    total_entries: int
    entries_this_month: int
    recent_entries: list[DiaryEntry]
    tags: list[str]
    contact_count: int


class GraphNode(BaseModel):
    id: str
    name: str
    val: int
    type: Literal["entry", "tag"]
    color: str


class GraphLink(BaseModel):
    source: str
    target: str
    value: int = 1


class ConstellationGraph(BaseModel):
    nodes: list[GraphNode] = Field(default_factory=list)
    links: list[GraphLink] = Field(default_factory=list)


def build_dashboard_stats(
    entries: Sequence[DiaryEntry],
    contact_count: int,
    now: datetime | None = None,
) -> DashboardStats:
    now = ensure_utc(now or utc_now())

    this_month = sum(
        1
        for e in entries
        if ensure_utc(e.created_at).year == now.year and ensure_utc(e.created_at).month == now.month
    )

    unique_tags: list[str] = []
    for entry in entries:
        for tag in entry.tags:
            if tag not in unique_tags:
                unique_tags.append(tag)

    return DashboardStats(
        total_entries=len(entries),
        entries_this_month=this_month,
        recent_entries=list(entries[:DASHBOARD_RECENT_ENTRIES]),
        tags=unique_tags[:DASHBOARD_MAX_TAGS],
        contact_count=contact_count,
    )


def build_constellation(entries: Sequence[DiaryEntry]) -> ConstellationGraph:
    """
    One node per entry, one `tag-<tag>` node per distinct tag, and a link from
    each tag node to every entry carrying that tag.
    """
    graph = ConstellationGraph()
    tag_map: dict[str, list[str]] = {}

    for entry in entries:
        graph.nodes.append(
            GraphNode(
                id=entry.id,
                name=entry.title,
                val=ENTRY_NODE_SIZE,
                type="entry",
                color=ENTRY_NODE_COLOR,
            )
        )
        for tag in entry.tags:
            tag_map.setdefault(tag, []).append(entry.id)

    for tag, entry_ids in tag_map.items():
        tag_id = f"tag-{tag}"
        graph.nodes.append(
            GraphNode(
                id=tag_id,
                name=f"#{tag}",
                val=TAG_NODE_SIZE,
                type="tag",
                color=TAG_NODE_COLOR,
            )
        )
        graph.links.extend(GraphLink(source=tag_id, target=entry_id) for entry_id in entry_ids)

    return graph
