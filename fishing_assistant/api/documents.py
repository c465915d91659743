"""Admin API for the assistant's knowledge documents."""

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel
from sqlmodel import Session

from fishing_assistant.core.database import get_session
from fishing_assistant.models.assistant import KnowledgeDocument
from fishing_assistant.services import knowledge
from fishing_assistant.services.llm import get_llm_gateway
from fishing_assistant.services.llm.base import BaseLLMGateway
from fishing_assistant.services.store import ConversationStore, DocumentNotFoundError

router = APIRouter()
logger = logging.getLogger(__name__)


class DocumentMetadata(BaseModel):
    title: str | None = None
    description: str | None = None


def document_to_dict(doc: KnowledgeDocument) -> dict[str, Any]:
    return {
        "id": doc.id,
        "title": doc.title,
        "description": doc.description,
        "file_name": doc.file_name,
        "file_size": doc.file_size,
        "file_type": doc.file_type,
        "file_id": doc.file_id,
        "vector_store_id": doc.vector_store_id,
        "processing_status": doc.processing_status,
        "uploaded_by_user_id": doc.uploaded_by_user_id,
        "created_at": doc.created_at.isoformat(),
        "updated_at": doc.updated_at.isoformat(),
    }


@router.get("")
async def list_documents(session: Session = Depends(get_session)):
    return [document_to_dict(d) for d in ConversationStore(session).list_documents()]


@router.post("")
async def upload_document(
    file: UploadFile | None = File(None),
    title: str = Form(""),
    description: str | None = Form(None),
    uploadedByUserId: str | None = Form(None),
    session: Session = Depends(get_session),
    gateway: BaseLLMGateway = Depends(get_llm_gateway),
):
    if file is None or not title:
        raise HTTPException(status_code=400, detail="Missing required fields")

    content = await file.read()
    try:
        doc = await knowledge.upload_document(
            ConversationStore(session),
            gateway,
            filename=file.filename or "document",
            content=content,
            content_type=file.content_type,
            title=title,
            description=description,
            uploaded_by_user_id=uploadedByUserId,
        )
    except Exception as e:
        raise HTTPException(status_code=502, detail=f"Upload failed: {e}")
    return document_to_dict(doc)


@router.put("")
async def update_document(body: DocumentMetadata, id: int | None = None, session: Session = Depends(get_session)):
    if id is None:
        raise HTTPException(status_code=400, detail="Missing document ID")
    try:
        doc = ConversationStore(session).update_document_metadata(id, body.title, body.description)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return document_to_dict(doc)


@router.delete("/{document_id}")
async def delete_document(
    document_id: int,
    fileId: str | None = None,
    session: Session = Depends(get_session),
    gateway: BaseLLMGateway = Depends(get_llm_gateway),
):
    if not fileId:
        raise HTTPException(status_code=400, detail="Missing fileId parameter")
    try:
        await knowledge.delete_document(ConversationStore(session), gateway, document_id, fileId)
    except DocumentNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"success": True}
