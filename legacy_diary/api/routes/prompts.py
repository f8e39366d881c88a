"""Writing prompts. Public: no account needed to browse them."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query

from legacy_diary.journal.prompts import (
    WRITING_PROMPTS,
    PromptCategory,
    WritingPrompt,
    get_prompts_by_category,
    get_random_prompt,
)

router = APIRouter(prefix="/api/prompts", tags=["prompts"])


def _category(value: str | None) -> PromptCategory | None:
    if value is None:
        return None
    try:
        return PromptCategory(value.strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Unknown prompt category: {value}") from None


@router.get("", response_model=list[WritingPrompt])
async def list_prompts(category: str | None = Query(None)) -> list[WritingPrompt]:
    selected = _category(category)
    if selected is None:
        return list(WRITING_PROMPTS)
    return get_prompts_by_category(selected)


@router.get("/random", response_model=WritingPrompt)
async def random_prompt(category: str | None = Query(None)) -> WritingPrompt:
    return get_random_prompt(_category(category))
