"""Admin-managed assistant settings and knowledge document metadata."""

from datetime import datetime
from typing import Optional

from sqlmodel import Field, SQLModel

from fishing_assistant.models.conversation import utcnow


class AssistantSettings(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    instructions: Optional[str] = None
    context: Optional[str] = None
    language: Optional[str] = None
    personality: Optional[str] = None
    avoid_topics: Optional[str] = None
    initial_question: Optional[str] = None
    openai_vector_store_id: str
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class KnowledgeDocument(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = None
    file_name: Optional[str] = None
    file_size: Optional[int] = None
    file_type: Optional[str] = None
    # Opaque ids into the provider's file storage and retrieval index
    file_id: str
    vector_store_id: str
    processing_status: str = Field(default="completed")  # "completed" | "error"
    uploaded_by_user_id: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)
