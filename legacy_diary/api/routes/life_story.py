"""Life story endpoints: read the stored story or weave a new one."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from legacy_diary.accounts import User
from legacy_diary.api.middleware.user_auth import get_current_user
from legacy_diary.insights import LifeStory
from legacy_diary.insights.service import LifeStoryService
from legacy_diary.observability.logging import get_logger

router = APIRouter(prefix="/api/life-story", tags=["insights"])
logger = get_logger(__name__)


@router.get("", response_model=LifeStory)
async def get_life_story(user: User = Depends(get_current_user)) -> LifeStory:
    story = LifeStoryService.latest(user.id)
    if story is None:
        raise HTTPException(status_code=404, detail="No life story generated yet")
    return story


@router.post("", response_model=LifeStory)
async def generate_life_story(user: User = Depends(get_current_user)) -> LifeStory:
    """Regenerate from every entry and replace the stored story."""
    try:
        return LifeStoryService.regenerate(user.id)
    except Exception as e:
        logger.error("Failed to generate life story: %s", e)
        raise HTTPException(status_code=500, detail="Failed to generate life story") from None
