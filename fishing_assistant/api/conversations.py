"""REST API for fishing assistant conversations and their messages."""

import logging
from datetime import datetime
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlmodel import Session

from fishing_assistant.core.database import get_session
from fishing_assistant.models.conversation import Conversation, Message
from fishing_assistant.services.store import ConversationNotFoundError, ConversationStore

router = APIRouter()
logger = logging.getLogger(__name__)


class ConversationCreate(BaseModel):
    userId: str | None = None


class UserPreferences(BaseModel):
    location: str | None = None
    species: list[str] = []
    methods: list[str] = []


class ConversationUpdate(BaseModel):
    status: str | None = None
    summary: str | None = None
    user_preferences: UserPreferences | None = None
    last_message_at: datetime | None = None


class MessageCreate(BaseModel):
    conversationId: int
    role: str  # "user" | "assistant"
    content: str


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def conversation_to_dict(conv: Conversation) -> dict[str, Any]:
    return {
        "id": conv.id,
        "user_id": conv.user_id,
        "status": conv.status,
        "summary": conv.summary,
        "user_preferences": conv.user_preferences,
        "created_at": _iso(conv.created_at),
        "updated_at": _iso(conv.updated_at),
        "last_message_at": _iso(conv.last_message_at),
    }


def message_to_dict(msg: Message) -> dict[str, Any]:
    return {
        "id": msg.id,
        "conversation_id": msg.conversation_id,
        "role": msg.role,
        "content": msg.content,
        "openai_response_id": msg.openai_response_id,
        "token_count": msg.token_count,
        "created_at": _iso(msg.created_at),
    }


@router.post("/conversations")
async def create_conversation(body: ConversationCreate | None = None, session: Session = Depends(get_session)):
    user_id = body.userId if body else None
    conv = ConversationStore(session).create_conversation(user_id)
    logger.info(f"Created conversation {conv.id}")
    return conversation_to_dict(conv)


@router.get("/conversations")
async def list_conversations(userId: str | None = None, session: Session = Depends(get_session)):
    if not userId:
        raise HTTPException(status_code=400, detail="Missing userId")
    return [conversation_to_dict(c) for c in ConversationStore(session).list_conversations(userId)]


@router.patch("/conversations")
async def update_conversation(
    body: ConversationUpdate, id: int | None = None, session: Session = Depends(get_session)
):
    if id is None:
        raise HTTPException(status_code=400, detail="Missing id")
    fields = body.model_dump(exclude_unset=True)
    try:
        conv = ConversationStore(session).update_conversation(id, fields)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return conversation_to_dict(conv)


@router.get("/messages")
async def list_messages(conversationId: int | None = None, session: Session = Depends(get_session)):
    if conversationId is None:
        raise HTTPException(status_code=400, detail="Conversation ID is required")
    messages = ConversationStore(session).get_messages(conversationId)
    logger.debug(f"Found {len(messages)} messages for conversation {conversationId}")
    return [message_to_dict(m) for m in messages]


@router.post("/messages")
async def create_message(body: MessageCreate, session: Session = Depends(get_session)):
    if body.role not in ("user", "assistant"):
        raise HTTPException(status_code=400, detail="Role must be 'user' or 'assistant'")
    try:
        msg = ConversationStore(session).create_message(body.conversationId, body.role, body.content)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return message_to_dict(msg)
