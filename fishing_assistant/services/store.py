"""Persistence for conversations, messages, assistant settings and knowledge documents.

Every method is a single commit against the given session. Database errors
are not caught here; they reach the caller unchanged.
"""

import logging
from typing import Any

from sqlmodel import Session, select

from fishing_assistant.core.config import settings as app_settings
from fishing_assistant.models.assistant import AssistantSettings, KnowledgeDocument
from fishing_assistant.models.conversation import Conversation, Message, utcnow

logger = logging.getLogger(__name__)

# The assistant settings live under one well-known row.
SETTINGS_ROW_ID = 1

CONVERSATION_FIELDS = {"user_id", "status", "summary", "user_preferences", "last_message_at"}
SETTINGS_FIELDS = {
    "instructions",
    "context",
    "language",
    "personality",
    "avoid_topics",
    "initial_question",
    "openai_vector_store_id",
}


class ConversationNotFoundError(LookupError):
    pass


class DocumentNotFoundError(LookupError):
    pass


class ConversationStore:
    def __init__(self, session: Session):
        self.session = session

    # --- Conversations ---

    def create_conversation(self, user_id: str | None = None) -> Conversation:
        conv = Conversation(user_id=user_id, status="active")
        self.session.add(conv)
        self.session.commit()
        self.session.refresh(conv)
        logger.debug(f"Created conversation {conv.id}")
        return conv

    def get_conversation(self, conversation_id: int) -> Conversation:
        conv = self.session.get(Conversation, conversation_id)
        if not conv:
            raise ConversationNotFoundError(f"Conversation {conversation_id} not found")
        return conv

    def list_conversations(self, user_id: str) -> list[Conversation]:
        return list(self.session.exec(
            select(Conversation)
            .where(Conversation.user_id == user_id)
            .order_by(Conversation.created_at.desc(), Conversation.id.desc())  # type: ignore
        ).all())

    def update_conversation(self, conversation_id: int, fields: dict[str, Any]) -> Conversation:
        conv = self.get_conversation(conversation_id)
        for key, value in fields.items():
            if key in CONVERSATION_FIELDS:
                setattr(conv, key, value)
        conv.updated_at = utcnow()
        self.session.add(conv)
        self.session.commit()
        self.session.refresh(conv)
        return conv

    # --- Messages ---

    def create_message(
        self,
        conversation_id: int,
        role: str,
        content: str,
        response_id: str | None = None,
        token_count: int | None = None,
    ) -> Message:
        # Messages always belong to an existing conversation
        self.get_conversation(conversation_id)
        msg = Message(
            conversation_id=conversation_id,
            role=role,
            content=content,
            openai_response_id=response_id,
            token_count=token_count,
        )
        self.session.add(msg)
        self.session.commit()
        self.session.refresh(msg)
        return msg

    def get_messages(self, conversation_id: int) -> list[Message]:
        return list(self.session.exec(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at, Message.id)  # type: ignore
        ).all())

    # --- Settings ---

    def get_settings(self) -> AssistantSettings:
        """Return the stored settings, or an unsaved default row when none exist yet."""
        row = self.session.get(AssistantSettings, SETTINGS_ROW_ID)
        if row:
            return row
        return AssistantSettings(openai_vector_store_id=app_settings.vector_store_id)

    def update_settings(self, fields: dict[str, Any]) -> AssistantSettings:
        row = self.session.get(AssistantSettings, SETTINGS_ROW_ID)
        if not row:
            row = AssistantSettings(
                id=SETTINGS_ROW_ID,
                openai_vector_store_id=app_settings.vector_store_id,
            )
        for key, value in fields.items():
            if key in SETTINGS_FIELDS:
                setattr(row, key, value)
        if not row.openai_vector_store_id:
            row.openai_vector_store_id = app_settings.vector_store_id
        row.updated_at = utcnow()
        self.session.add(row)
        self.session.commit()
        self.session.refresh(row)
        return row

    # --- Knowledge documents ---

    def list_documents(self) -> list[KnowledgeDocument]:
        return list(self.session.exec(
            select(KnowledgeDocument)
            .order_by(KnowledgeDocument.created_at.desc(), KnowledgeDocument.id.desc())  # type: ignore
        ).all())

    def get_document(self, document_id: int) -> KnowledgeDocument:
        doc = self.session.get(KnowledgeDocument, document_id)
        if not doc:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return doc

    def create_document(self, **fields: Any) -> KnowledgeDocument:
        doc = KnowledgeDocument(**fields)
        self.session.add(doc)
        self.session.commit()
        self.session.refresh(doc)
        return doc

    def update_document_metadata(
        self, document_id: int, title: str | None = None, description: str | None = None
    ) -> KnowledgeDocument:
        doc = self.get_document(document_id)
        if title is not None:
            doc.title = title
        if description is not None:
            doc.description = description
        doc.updated_at = utcnow()
        self.session.add(doc)
        self.session.commit()
        self.session.refresh(doc)
        return doc

    def delete_document(self, document_id: int) -> None:
        doc = self.get_document(document_id)
        self.session.delete(doc)
        self.session.commit()
