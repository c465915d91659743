"""Assistant settings - admin read/update and the public subset used by the chat widget."""

import logging
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlmodel import Session

from fishing_assistant.core.database import get_session
from fishing_assistant.models.assistant import AssistantSettings
from fishing_assistant.services.store import ConversationStore

router = APIRouter()
logger = logging.getLogger(__name__)


class SettingsUpdate(BaseModel):
    instructions: str | None = None
    context: str | None = None
    language: str | None = None
    personality: str | None = None
    avoid_topics: str | None = None
    initial_question: str | None = None
    openai_vector_store_id: str | None = None


def settings_to_dict(row: AssistantSettings) -> dict[str, Any]:
    return {
        "id": row.id,
        "instructions": row.instructions,
        "context": row.context,
        "language": row.language,
        "personality": row.personality,
        "avoid_topics": row.avoid_topics,
        "initial_question": row.initial_question,
        "openai_vector_store_id": row.openai_vector_store_id,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


@router.get("/settings")
async def get_public_settings(session: Session = Depends(get_session)):
    row = ConversationStore(session).get_settings()
    return {
        "id": row.id,
        "initial_question": row.initial_question,
        "language": row.language,
        "personality": row.personality,
    }


@router.get("/admin/settings")
async def get_settings(session: Session = Depends(get_session)):
    return settings_to_dict(ConversationStore(session).get_settings())


@router.put("/admin/settings")
async def update_settings(body: SettingsUpdate, session: Session = Depends(get_session)):
    row = ConversationStore(session).update_settings(body.model_dump(exclude_unset=True))
    logger.info("Updated fishing assistant settings")
    return settings_to_dict(row)
