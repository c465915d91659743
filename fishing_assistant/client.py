"""Chat client for the fishing assistant API.

``ChatState`` holds what a chat window shows: the message list, whether a
reply is streaming in, and the current error banner. ``ChatSession`` drives it
over HTTP with httpx.

A reply moves from *thinking* (empty placeholder, streaming) to *streaming*
(partial text) to *settled* (streaming cleared). If the turn fails, the
placeholder is dropped and the error is shown.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Callable

import httpx

from fishing_assistant.services.prompts import DEFAULT_GREETING

logger = logging.getLogger(__name__)

API_PREFIX = "/api/fishing-assistant"


@dataclass
class ChatMessage:
    role: str  # "user" | "assistant"
    content: str
    streaming: bool = False


class ChatTurnError(Exception):
    pass


@dataclass
class ChatState:
    messages: list[ChatMessage] = field(default_factory=list)
    error: str | None = None
    is_loading: bool = False

    @property
    def last(self) -> ChatMessage | None:
        return self.messages[-1] if self.messages else None

    def greet(self, text: str) -> None:
        self.messages = [ChatMessage(role="assistant", content=text)]

    def begin_turn(self, text: str) -> None:
        self.messages.append(ChatMessage(role="user", content=text))
        self.messages.append(ChatMessage(role="assistant", content="", streaming=True))
        self.is_loading = True
        self.error = None

    def apply_line(self, line: str) -> str:
        """Apply one NDJSON line to the streaming placeholder. Returns the text it added."""
        if not line.strip():
            return ""
        chunk = json.loads(line)
        if chunk.get("error"):
            raise ChatTurnError(chunk["error"])
        message = self.last
        if message is None or not message.streaming:
            return ""
        if chunk.get("done"):
            message.streaming = False
            self.is_loading = False
            return ""
        delta = chunk.get("content", "")
        message.content += delta
        return delta

    def fail(self, error: str) -> None:
        self.error = error
        self.is_loading = False
        last = self.last
        if last is not None and last.role == "assistant" and last.streaming:
            self.messages.pop()


class ChatSession:
    def __init__(self, http: httpx.Client):
        self.http = http
        self.state = ChatState()
        self.conversation_id: int | None = None

    def open(self) -> ChatState:
        """Show the configured greeting. Falls back to the default greeting if settings are unavailable."""
        greeting = DEFAULT_GREETING
        try:
            resp = self.http.get(f"{API_PREFIX}/settings")
            if resp.is_success:
                greeting = resp.json().get("initial_question") or DEFAULT_GREETING
        except httpx.HTTPError as e:
            logger.error(f"Error fetching initial message: {e}")
        self.state.greet(greeting)
        return self.state

    def _start_conversation(self) -> int:
        resp = self.http.post(f"{API_PREFIX}/conversations", json={})
        if not resp.is_success:
            raise ChatTurnError("Could not start conversation. Please try again later.")
        self.conversation_id = resp.json()["id"]
        return self.conversation_id

    def send(self, text: str, on_delta: Callable[[str], None] | None = None) -> ChatState:
        text = text.strip()
        if not text or self.state.is_loading:
            return self.state

        self.state.begin_turn(text)
        try:
            conversation_id = self.conversation_id or self._start_conversation()
            with self.http.stream(
                "POST",
                f"{API_PREFIX}/chat",
                json={"conversationId": conversation_id, "userMessage": text},
            ) as resp:
                if not resp.is_success:
                    resp.read()
                    raise ChatTurnError(resp.json().get("detail") or "Failed to get response")
                for line in resp.iter_lines():
                    delta = self.state.apply_line(line)
                    if delta and on_delta:
                        on_delta(delta)
            if self.state.last is not None and self.state.last.streaming:
                raise ChatTurnError("Response ended before it was complete")
        except (ChatTurnError, httpx.HTTPError, json.JSONDecodeError) as e:
            logger.error(f"Chat error: {e}")
            self.state.fail(str(e) or "Something went wrong. Please try again.")
        finally:
            self.state.is_loading = False
        return self.state
