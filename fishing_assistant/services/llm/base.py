"""Abstract LLM gateway interface. The relay and knowledge services depend only on this."""

from abc import ABC, abstractmethod
from typing import Any, AsyncIterator

# Statuses after which a background response will not change any more
TERMINAL_STATUSES = ("completed", "failed", "incomplete")


class ResponseNotCompletedError(RuntimeError):
    pass


class BaseLLMGateway(ABC):
    @abstractmethod
    async def create_response(self, params: dict[str, Any]) -> Any:
        """Create a response and return it once the provider answers."""
        ...

    @abstractmethod
    async def get_response(self, response_id: str) -> Any:
        ...

    @abstractmethod
    async def create_response_and_poll(self, params: dict[str, Any]) -> Any:
        """Create a response, then poll until it reaches a terminal status."""
        ...

    @abstractmethod
    def create_streaming_response(self, params: dict[str, Any]) -> AsyncIterator[Any]:
        """Stream provider events (each has a ``type``). Exhaustion means the stream ended."""
        ...

    @abstractmethod
    async def upload_vector_store_file(
        self, vector_store_id: str, filename: str, content: bytes, content_type: str | None = None
    ) -> Any:
        ...

    @abstractmethod
    async def delete_vector_store_file(self, vector_store_id: str, file_id: str) -> Any:
        """Remove a file from a vector store. Removing a missing file is not an error."""
        ...
