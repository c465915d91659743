"""OpenAI Responses API gateway with file search over a vector store."""

import asyncio
import logging
from typing import Any, AsyncIterator

from openai import AsyncOpenAI, NotFoundError

from fishing_assistant.core.config import settings
from fishing_assistant.services.llm.base import (
    TERMINAL_STATUSES,
    BaseLLMGateway,
    ResponseNotCompletedError,
)

logger = logging.getLogger(__name__)

RESPONSE_INCLUDE = ["file_search_call.results", "message.input_image.image_url"]


class OpenAIGateway(BaseLLMGateway):
    def __init__(
        self,
        client: AsyncOpenAI | None = None,
        poll_interval: float | None = None,
        poll_attempts: int | None = None,
    ):
        self.client = client or AsyncOpenAI(
            api_key=settings.openai_api_key,
            organization=settings.openai_organization,
            project=settings.openai_project,
        )
        self.poll_interval = settings.response_poll_interval if poll_interval is None else poll_interval
        self.poll_attempts = settings.response_poll_attempts if poll_attempts is None else poll_attempts

    # --- Responses ---

    async def create_response(self, params: dict[str, Any]) -> Any:
        logger.info(f"Creating response with model {params.get('model')}")
        return await self.client.responses.create(**params)

    async def get_response(self, response_id: str) -> Any:
        return await self.client.responses.retrieve(response_id, include=RESPONSE_INCLUDE)

    async def create_response_and_poll(self, params: dict[str, Any]) -> Any:
        response = await self.create_response(params)
        for _ in range(self.poll_attempts):
            if response.status in TERMINAL_STATUSES:
                return response
            await asyncio.sleep(self.poll_interval)
            response = await self.get_response(response.id)
        raise ResponseNotCompletedError(
            f"Response {response.id} not completed after {self.poll_attempts} attempts"
        )

    async def delete_response(self, response_id: str) -> Any:
        try:
            return await self.client.responses.delete(response_id)
        except NotFoundError:
            logger.debug(f"Response {response_id} already deleted")
            return None

    async def create_streaming_response(self, params: dict[str, Any]) -> AsyncIterator[Any]:
        logger.info(f"Creating streaming response with model {params.get('model')}")
        stream = await self.client.responses.create(**params, stream=True)
        # Leaving the block (completion, error or cancellation) closes the upstream connection
        async with stream:
            async for event in stream:
                logger.debug(f"Stream event: {event.type}")
                yield event
        logger.debug("OpenAI stream ended")

    async def list_input_items(self, response_id: str) -> list[Any]:
        page = await self.client.responses.input_items.list(response_id, include=RESPONSE_INCLUDE)
        return list(page.data)

    # --- Files ---

    async def create_file(
        self, filename: str, content: bytes, content_type: str | None = None, purpose: str = "assistants"
    ) -> Any:
        logger.info(f"Uploading file {filename} ({len(content)} bytes) with purpose {purpose}")
        file = (filename, content, content_type) if content_type else (filename, content)
        return await self.client.files.create(file=file, purpose=purpose)

    async def delete_file(self, file_id: str) -> Any:
        return await self.client.files.delete(file_id)

    # --- Vector stores ---

    async def create_vector_store(self, name: str) -> Any:
        return await self.client.vector_stores.create(name=name)

    async def get_vector_store(self, vector_store_id: str) -> Any:
        return await self.client.vector_stores.retrieve(vector_store_id)

    async def delete_vector_store(self, vector_store_id: str) -> Any:
        return await self.client.vector_stores.delete(vector_store_id)

    async def create_vector_store_file(self, vector_store_id: str, file_id: str) -> Any:
        return await self.client.vector_stores.files.create_and_poll(
            file_id=file_id, vector_store_id=vector_store_id
        )

    async def upload_vector_store_file(
        self, vector_store_id: str, filename: str, content: bytes, content_type: str | None = None
    ) -> Any:
        file = await self.create_file(filename, content, content_type)
        return await self.create_vector_store_file(vector_store_id, file.id)

    async def delete_vector_store_file(self, vector_store_id: str, file_id: str) -> Any:
        try:
            return await self.client.vector_stores.files.delete(file_id, vector_store_id=vector_store_id)
        except NotFoundError:
            logger.debug(f"File {file_id} not in vector store {vector_store_id}, nothing to delete")
            return None

    async def switch_vector_store_file(
        self, file_id: str, old_vector_store_id: str, new_vector_store_id: str
    ) -> Any:
        await self.delete_vector_store_file(old_vector_store_id, file_id)
        return await self.create_vector_store_file(new_vector_store_id, file_id)
