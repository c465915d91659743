"""Chat turn relay - streams the assistant's reply from the LLM gateway to the HTTP client.

A turn moves through ``idle -> conversation-resolved -> streaming`` and ends in
``completed`` or ``errored``. Each text delta from the provider is forwarded as
one NDJSON line ``{"content": <delta>, "done": false}`` the moment it arrives.
The full reply is persisted before the final ``{"content": "", "done": true}``
line is sent. A failed turn stores no assistant message.
"""

import asyncio
import json
import logging
from enum import Enum
from typing import Any, AsyncIterator

from sqlmodel import Session

from fishing_assistant.core.config import settings
from fishing_assistant.core.database import engine
from fishing_assistant.core.locks import ConversationLocks, conversation_locks
from fishing_assistant.models.conversation import Conversation, Message, utcnow
from fishing_assistant.services.llm.base import BaseLLMGateway
from fishing_assistant.services.prompts import (
    build_conversation_progress,
    build_input,
    build_system_prompt,
)
from fishing_assistant.services.store import ConversationStore

logger = logging.getLogger(__name__)


class RelayState(str, Enum):
    IDLE = "idle"
    RESOLVED = "conversation-resolved"
    STREAMING = "streaming"
    COMPLETED = "completed"
    ERRORED = "errored"


class RelayError(Exception):
    pass


class UpstreamStreamError(RelayError):
    pass


class TurnPersistenceError(RelayError):
    pass


def encode_line(content: str, done: bool, error: str | None = None) -> str:
    payload: dict[str, Any] = {"content": content, "done": done}
    if error is not None:
        payload["error"] = error
    return json.dumps(payload) + "\n"


def _event_error_message(event: Any) -> str:
    if getattr(event, "type", None) == "error":
        return getattr(event, "message", None) or "Upstream stream error"
    error = getattr(getattr(event, "response", None), "error", None)
    return getattr(error, "message", None) or "Response failed"


def _output_tokens(response: Any) -> int | None:
    usage = getattr(response, "usage", None)
    return getattr(usage, "output_tokens", None)


class ChatRelay:
    """One relay instance handles exactly one chat turn."""

    def __init__(self, gateway: BaseLLMGateway, locks: ConversationLocks | None = None):
        self.gateway = gateway
        self.locks = locks or conversation_locks
        self.state = RelayState.IDLE
        self.conversation_id: int | None = None
        self.response_id: str | None = None
        self.token_count: int | None = None
        self.full_text = ""
        self._events: AsyncIterator[Any] | None = None
        self._lines: AsyncIterator[str] | None = None
        self._first_line: str | None = None
        self._holds_turn = False

    # --- Turn setup ---

    def _prepare_turn(self, conversation_id: int | None, user_message: str, stream: bool) -> dict[str, Any]:
        """Resolve the conversation, claim its turn, store the user message and build request params."""
        with Session(engine) as session:
            store = ConversationStore(session)
            if conversation_id is None:
                conv = store.create_conversation()
            else:
                conv = store.get_conversation(conversation_id)
            self.conversation_id = conv.id
            self.state = RelayState.RESOLVED

            self.locks.acquire(conv.id)
            self._holds_turn = True
            try:
                user_msg = store.create_message(conv.id, "user", user_message)
                history = [m for m in store.get_messages(conv.id) if m.id != user_msg.id]
                assistant_settings = store.get_settings()
                documents = store.list_documents()
            except Exception:
                self._release_turn()
                raise

            system_prompt = build_system_prompt(assistant_settings, documents, conv.user_preferences)
            progress = build_conversation_progress(history)
            vector_store_id = assistant_settings.openai_vector_store_id or settings.vector_store_id

        logger.debug(
            f"Prepared turn for conversation {self.conversation_id}: "
            f"{len(history)} prior messages, {len(documents)} documents"
        )
        params: dict[str, Any] = {
            "model": settings.openai_model,
            "input": build_input(system_prompt, progress, history, user_message),
            "temperature": settings.openai_temperature,
            "tools": [{"type": "file_search", "vector_store_ids": [vector_store_id]}],
            "tool_choice": "auto",
        }
        if not stream:
            params["include"] = ["file_search_call.results"]
        return params

    async def open_turn(self, conversation_id: int | None, user_message: str) -> int:
        """Start a streamed turn and wait for its first line.

        Errors raised here happen before anything was sent, so the caller can
        still answer with an error status. Returns the conversation id.
        """
        params = self._prepare_turn(conversation_id, user_message, stream=True)
        self.state = RelayState.STREAMING
        logger.info(f"Streaming reply for conversation {self.conversation_id}")
        self._events = self.gateway.create_streaming_response(params)
        self._lines = self._relay_events(self._events)
        try:
            self._first_line = await self._lines.__anext__()
        except BaseException:
            await self._close()
            raise
        return self.conversation_id  # type: ignore[return-value]

    # --- Streaming ---

    async def _relay_events(self, events: AsyncIterator[Any]) -> AsyncIterator[str]:
        # open_turn always starts this generator, so the turn is released even if the body never runs
        try:
            try:
                async for event in events:
                    if event.type == "response.output_text.delta":
                        delta = event.delta or ""
                        self.full_text += delta
                        yield encode_line(delta, False)
                    elif event.type == "response.created":
                        self.response_id = getattr(event.response, "id", None)
                    elif event.type == "response.completed":
                        self.response_id = getattr(event.response, "id", None) or self.response_id
                        self.token_count = _output_tokens(event.response)
                        break
                    elif event.type in ("error", "response.failed"):
                        raise UpstreamStreamError(_event_error_message(event))
            except RelayError:
                self.state = RelayState.ERRORED
                raise
            except Exception as e:
                self.state = RelayState.ERRORED
                raise UpstreamStreamError(str(e)) from e

            # Reached on response.completed or when the stream simply ends
            await self._complete()
            yield encode_line("", True)
        finally:
            self._release_turn()

    async def _complete(self) -> None:
        self.state = RelayState.COMPLETED
        if not self.full_text:
            logger.info(f"Stream for conversation {self.conversation_id} finished with no text")
            return
        try:
            self._save_reply(self.full_text, self.response_id, self.token_count)
        except Exception as e:
            self.state = RelayState.ERRORED
            logger.exception(f"Failed to save reply for conversation {self.conversation_id}")
            raise TurnPersistenceError(str(e)) from e
        logger.info(
            f"Saved streamed reply for conversation {self.conversation_id} "
            f"({len(self.full_text)} chars)"
        )

    def _save_reply(self, content: str, response_id: str | None, token_count: int | None) -> Message:
        with Session(engine) as session:
            store = ConversationStore(session)
            msg = store.create_message(
                self.conversation_id, "assistant", content, response_id, token_count  # type: ignore[arg-type]
            )
            store.update_conversation(self.conversation_id, {"last_message_at": utcnow()})  # type: ignore[arg-type]
            # The second commit expired msg; reload it so it stays readable once detached
            session.refresh(msg)
            return msg

    async def body(self) -> AsyncIterator[str]:
        """Response body for a turn started with :meth:`open_turn`."""
        try:
            if self._first_line is not None:
                yield self._first_line
            async for line in self._lines:  # type: ignore[union-attr]
                yield line
        except RelayError as e:
            # The status line is already sent; report the failure in-band
            logger.error(f"Stream for conversation {self.conversation_id} failed: {e}")
            yield encode_line("", True, error=str(e))
        finally:
            if self.state == RelayState.STREAMING:
                logger.info(f"Client left conversation {self.conversation_id} mid-stream")
            await self._close()

    def _release_turn(self) -> None:
        """Give up the conversation's turn, at most once per relay."""
        if self._holds_turn:
            self._holds_turn = False
            self.locks.release(self.conversation_id)  # type: ignore[arg-type]

    async def _close(self) -> None:
        self._release_turn()
        # Shielded so a cancelled request still tears down the upstream stream
        await asyncio.shield(self._close_streams())

    async def _close_streams(self) -> None:
        if self._lines is not None:
            await self._lines.aclose()  # type: ignore[attr-defined]
        if self._events is not None:
            await self._events.aclose()  # type: ignore[attr-defined]

    # --- Non-streaming ---

    async def reply(self, conversation_id: int | None, user_message: str) -> tuple[Conversation, Message]:
        """Run a whole turn without streaming, polling the provider until it finishes."""
        params = self._prepare_turn(conversation_id, user_message, stream=False)
        try:
            response = await self.gateway.create_response_and_poll(params)
            if response.status != "completed":
                self.state = RelayState.ERRORED
                raise UpstreamStreamError(f"Response finished with status {response.status}")
            self.response_id = response.id
            self.full_text = response.output_text
            msg = self._save_reply(response.output_text, response.id, _output_tokens(response))
            self.state = RelayState.COMPLETED
            with Session(engine) as session:
                conv = ConversationStore(session).get_conversation(self.conversation_id)  # type: ignore[arg-type]
            return conv, msg
        except Exception:
            self.state = RelayState.ERRORED
            raise
        finally:
            self._release_turn()
