"""
Wisdom assistant chat endpoints.

Sessions are stored; each posted message gets a rule-based reply drawn from
the user's own diary entries.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from legacy_diary.accounts import User
from legacy_diary.api.middleware.user_auth import get_current_user
from legacy_diary.chat import ChatMessage, ChatReply, ChatSession, generate_response
from legacy_diary.chat.service import ChatService
from legacy_diary.journal import JournalService
from legacy_diary.observability.logging import get_logger
from legacy_diary.utils.error_sanitizer import sanitize_error_message

router = APIRouter(prefix="/api/chat", tags=["chat"])
logger = get_logger(__name__)


class CreateSessionRequest(BaseModel):
    title: str | None = None


class SessionSummary(BaseModel):
    id: str
    title: str
    created_at: datetime
    updated_at: datetime


class PostMessageRequest(BaseModel):
    text: str


class ExchangeResponse(BaseModel):
    user_message: ChatMessage
    bot_message: ChatMessage
    rule: str
    context_entry_ids: list[str]
    referenced_entry_id: str | None


class RespondRequest(BaseModel):
    message: str
    previous_message: str | None = None


@router.get("/sessions", response_model=list[SessionSummary])
async def list_sessions(user: User = Depends(get_current_user)) -> list[SessionSummary]:
    return [
        SessionSummary(id=s.id, title=s.title, created_at=s.created_at, updated_at=s.updated_at)
        for s in ChatService.list_sessions(user.id)
    ]


@router.post("/sessions", response_model=ChatSession, status_code=status.HTTP_201_CREATED)
async def create_session(
    request: CreateSessionRequest,
    user: User = Depends(get_current_user),
) -> ChatSession:
    """Start a conversation; it opens with the assistant's welcome message."""
    try:
        return ChatService.create_session(user.id, request.title)

    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to create chat session: %s", e)
        raise HTTPException(status_code=500, detail="Failed to create chat session") from None


@router.get("/sessions/{session_id}", response_model=ChatSession)
async def get_session(session_id: str, user: User = Depends(get_current_user)) -> ChatSession:
    session = ChatService.get_session(session_id, user.id)
    if session is None:
        raise HTTPException(status_code=404, detail="Chat session not found")
    return session


@router.delete("/sessions/{session_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_session(session_id: str, user: User = Depends(get_current_user)) -> None:
    if not ChatService.delete_session(session_id, user.id):
        raise HTTPException(status_code=404, detail="Chat session not found")


@router.post("/sessions/{session_id}/messages", response_model=ExchangeResponse)
async def post_message(
    session_id: str,
    request: PostMessageRequest,
    user: User = Depends(get_current_user),
) -> ExchangeResponse:
    try:
        exchange = ChatService.post_message(session_id, user.id, request.text)
        if exchange is None:
            raise HTTPException(status_code=404, detail="Chat session not found")
        return ExchangeResponse(
            user_message=exchange.user_message,
            bot_message=exchange.bot_message,
            rule=exchange.reply.rule.value,
            context_entry_ids=exchange.reply.context_entry_ids,
            referenced_entry_id=exchange.reply.referenced_entry_id,
        )

    except HTTPException:
        raise
    except ValueError as e:
        raise HTTPException(status_code=400, detail=sanitize_error_message(str(e), 400)) from None
    except Exception as e:
        logger.error("Failed to post chat message: %s", e)
        raise HTTPException(status_code=500, detail="Failed to post message") from None


@router.post("/respond", response_model=ChatReply)
async def respond(request: RespondRequest, user: User = Depends(get_current_user)) -> ChatReply:
    """One-off reply without storing anything."""
    return generate_response(
        request.message, JournalService.all_entries(user.id), request.previous_message
    )
