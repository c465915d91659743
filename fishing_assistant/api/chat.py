"""Chat endpoints - streamed and non-streamed assistant replies."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from fishing_assistant.api.conversations import conversation_to_dict, message_to_dict
from fishing_assistant.core.locks import TurnInProgressError
from fishing_assistant.services.llm import get_llm_gateway
from fishing_assistant.services.llm.base import BaseLLMGateway, ResponseNotCompletedError
from fishing_assistant.services.relay import ChatRelay, RelayError
from fishing_assistant.services.store import ConversationNotFoundError

router = APIRouter()
logger = logging.getLogger(__name__)


class ChatRequest(BaseModel):
    conversationId: int | None = None
    userMessage: str = ""


@router.post("/chat")
async def chat(body: ChatRequest, gateway: BaseLLMGateway = Depends(get_llm_gateway)):
    """Stream the reply as NDJSON lines of ``{"content": str, "done": bool}``."""
    if not body.userMessage.strip():
        raise HTTPException(status_code=400, detail="Missing userMessage")

    relay = ChatRelay(gateway)
    try:
        conversation_id = await relay.open_turn(body.conversationId, body.userMessage)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TurnInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except RelayError as e:
        logger.error(f"Chat stream failed before the first chunk: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return StreamingResponse(
        relay.body(),
        media_type="application/x-ndjson",
        headers={
            "Cache-Control": "no-cache, no-transform",
            "X-Conversation-Id": str(conversation_id),
        },
    )


@router.post("/reply")
async def reply(body: ChatRequest, gateway: BaseLLMGateway = Depends(get_llm_gateway)):
    """Generate the whole reply before answering."""
    if not body.userMessage.strip():
        raise HTTPException(status_code=400, detail="Missing userMessage")

    relay = ChatRelay(gateway)
    try:
        conv, msg = await relay.reply(body.conversationId, body.userMessage)
    except ConversationNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except TurnInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except (RelayError, ResponseNotCompletedError) as e:
        logger.error(f"Reply failed for conversation {relay.conversation_id}: {e}")
        raise HTTPException(status_code=502, detail=str(e))

    return {"conversation": conversation_to_dict(conv), "message": message_to_dict(msg)}
