"""Knowledge documents - reference files indexed in the provider's vector store.

Only metadata is stored locally; file content lives in the vector store.
"""

import logging

from fishing_assistant.core.config import settings
from fishing_assistant.models.assistant import KnowledgeDocument
from fishing_assistant.services.llm.base import BaseLLMGateway
from fishing_assistant.services.store import ConversationStore

logger = logging.getLogger(__name__)


async def upload_document(
    store: ConversationStore,
    gateway: BaseLLMGateway,
    filename: str,
    content: bytes,
    content_type: str | None,
    title: str,
    description: str | None = None,
    uploaded_by_user_id: str | None = None,
) -> KnowledgeDocument:
    """Index a file in the vector store and record it.

    A failed upload is still recorded, with ``processing_status="error"``, so
    admins can see it. The provider error is then re-raised.
    """
    vector_store_id = store.get_settings().openai_vector_store_id or settings.vector_store_id
    record = {
        "title": title,
        "description": description,
        "file_name": filename,
        "file_size": len(content),
        "file_type": content_type,
        "vector_store_id": vector_store_id,
        "uploaded_by_user_id": uploaded_by_user_id,
    }
    try:
        uploaded = await gateway.upload_vector_store_file(vector_store_id, filename, content, content_type)
    except Exception:
        logger.exception(f"Failed to upload knowledge document {filename}")
        store.create_document(**record, file_id="error", processing_status="error")
        raise

    doc = store.create_document(**record, file_id=uploaded.id, processing_status="completed")
    logger.info(f"Indexed knowledge document {doc.id} ({filename}) as {uploaded.id}")
    return doc


async def delete_document(
    store: ConversationStore, gateway: BaseLLMGateway, document_id: int, file_id: str
) -> None:
    """Remove the file from the vector store first, then the local record."""
    doc = store.get_document(document_id)
    await gateway.delete_vector_store_file(doc.vector_store_id or settings.vector_store_id, file_id)
    store.delete_document(document_id)
    logger.info(f"Deleted knowledge document {document_id} (file {file_id})")
