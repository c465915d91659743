"""Tests for the OpenAI gateway, with the AsyncOpenAI client mocked out."""

import asyncio
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import httpx
import openai
import pytest

from fishing_assistant.services.llm.base import ResponseNotCompletedError
from fishing_assistant.services.llm.openai_gateway import OpenAIGateway


def _not_found():
    request = httpx.Request("DELETE", "https://api.openai.com/v1/vector_stores/vs_1/files/file-1")
    return openai.NotFoundError(
        "No such file", response=httpx.Response(404, request=request), body=None
    )


def _gateway(attempts=120):
    client = MagicMock()
    return OpenAIGateway(client=client, poll_interval=0, poll_attempts=attempts), client


class FakeStream:
    def __init__(self, events):
        self.events = events
        self.closed = False

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.closed = True

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            yield event


def test_create_and_poll_returns_completed_immediately():
    gateway, client = _gateway()
    client.responses.create = AsyncMock(return_value=SimpleNamespace(id="resp_1", status="completed"))
    client.responses.retrieve = AsyncMock()

    response = asyncio.run(gateway.create_response_and_poll({"model": "gpt-4.1"}))

    assert response.id == "resp_1"
    client.responses.retrieve.assert_not_called()


def test_create_and_poll_polls_until_terminal_status():
    gateway, client = _gateway()
    client.responses.create = AsyncMock(return_value=SimpleNamespace(id="resp_1", status="queued"))
    client.responses.retrieve = AsyncMock(side_effect=[
        SimpleNamespace(id="resp_1", status="in_progress"),
        SimpleNamespace(id="resp_1", status="incomplete"),
    ])

    response = asyncio.run(gateway.create_response_and_poll({"model": "gpt-4.1"}))

    assert response.status == "incomplete"
    assert client.responses.retrieve.await_count == 2
    client.responses.retrieve.assert_awaited_with("resp_1", include=[
        "file_search_call.results", "message.input_image.image_url",
    ])


def test_create_and_poll_gives_up_after_budget():
    gateway, client = _gateway(attempts=3)
    client.responses.create = AsyncMock(return_value=SimpleNamespace(id="resp_1", status="queued"))
    client.responses.retrieve = AsyncMock(return_value=SimpleNamespace(id="resp_1", status="in_progress"))

    with pytest.raises(ResponseNotCompletedError):
        asyncio.run(gateway.create_response_and_poll({"model": "gpt-4.1"}))
    assert client.responses.retrieve.await_count == 3


def test_delete_vector_store_file_is_idempotent():
    gateway, client = _gateway()
    client.vector_stores.files.delete = AsyncMock(side_effect=[SimpleNamespace(deleted=True), _not_found()])

    asyncio.run(gateway.delete_vector_store_file("vs_1", "file-1"))
    assert asyncio.run(gateway.delete_vector_store_file("vs_1", "file-1")) is None
    client.vector_stores.files.delete.assert_awaited_with("file-1", vector_store_id="vs_1")


def test_delete_vector_store_file_propagates_other_errors():
    gateway, client = _gateway()
    client.vector_stores.files.delete = AsyncMock(side_effect=RuntimeError("network down"))

    with pytest.raises(RuntimeError):
        asyncio.run(gateway.delete_vector_store_file("vs_1", "file-1"))


def test_delete_response_tolerates_not_found():
    gateway, client = _gateway()
    client.responses.delete = AsyncMock(side_effect=_not_found())

    assert asyncio.run(gateway.delete_response("resp_gone")) is None


def test_upload_vector_store_file_creates_then_attaches():
    gateway, client = _gateway()
    client.files.create = AsyncMock(return_value=SimpleNamespace(id="file-9"))
    client.vector_stores.files.create_and_poll = AsyncMock(
        return_value=SimpleNamespace(id="file-9", status="completed")
    )

    result = asyncio.run(gateway.upload_vector_store_file("vs_1", "venues.pdf", b"%PDF", "application/pdf"))

    assert result.id == "file-9"
    client.files.create.assert_awaited_once_with(
        file=("venues.pdf", b"%PDF", "application/pdf"), purpose="assistants"
    )
    client.vector_stores.files.create_and_poll.assert_awaited_once_with(
        file_id="file-9", vector_store_id="vs_1"
    )


def test_switch_vector_store_file():
    gateway, client = _gateway()
    client.vector_stores.files.delete = AsyncMock(side_effect=_not_found())
    client.vector_stores.files.create_and_poll = AsyncMock(return_value=SimpleNamespace(id="file-1"))

    asyncio.run(gateway.switch_vector_store_file("file-1", "vs_old", "vs_new"))

    client.vector_stores.files.create_and_poll.assert_awaited_once_with(
        file_id="file-1", vector_store_id="vs_new"
    )


def test_streaming_response_yields_events_and_closes_stream():
    gateway, client = _gateway()
    events = [
        SimpleNamespace(type="response.created"),
        SimpleNamespace(type="response.output_text.delta", delta="Hi"),
        SimpleNamespace(type="response.completed"),
    ]
    stream = FakeStream(events)
    client.responses.create = AsyncMock(return_value=stream)

    async def collect():
        return [e async for e in gateway.create_streaming_response({"model": "gpt-4.1"})]

    received = asyncio.run(collect())

    assert [e.type for e in received] == [e.type for e in events]
    assert stream.closed
    client.responses.create.assert_awaited_once_with(model="gpt-4.1", stream=True)


def test_abandoned_stream_is_closed():
    gateway, client = _gateway()
    stream = FakeStream([SimpleNamespace(type="response.output_text.delta", delta=str(i)) for i in range(5)])
    client.responses.create = AsyncMock(return_value=stream)

    async def take_one():
        events = gateway.create_streaming_response({"model": "gpt-4.1"})
        first = await events.__anext__()
        await events.aclose()
        return first

    assert asyncio.run(take_one()).delta == "0"
    assert stream.closed


def test_list_input_items_returns_page_data():
    gateway, client = _gateway()
    items = [SimpleNamespace(role="system"), SimpleNamespace(role="user")]
    client.responses.input_items.list = AsyncMock(return_value=SimpleNamespace(data=items))

    assert asyncio.run(gateway.list_input_items("resp_1")) == items
    client.responses.input_items.list.assert_awaited_once_with("resp_1", include=[
        "file_search_call.results", "message.input_image.image_url",
    ])


def test_delete_file():
    gateway, client = _gateway()
    client.files.delete = AsyncMock(return_value=SimpleNamespace(id="file-3", deleted=True))

    assert asyncio.run(gateway.delete_file("file-3")).deleted
    client.files.delete.assert_awaited_once_with("file-3")


def test_vector_store_lifecycle():
    gateway, client = _gateway()
    client.vector_stores.create = AsyncMock(return_value=SimpleNamespace(id="vs_9", name="Venues"))
    client.vector_stores.retrieve = AsyncMock(return_value=SimpleNamespace(id="vs_9", name="Venues"))
    client.vector_stores.delete = AsyncMock(return_value=SimpleNamespace(id="vs_9", deleted=True))

    created = asyncio.run(gateway.create_vector_store("Venues"))
    fetched = asyncio.run(gateway.get_vector_store(created.id))
    deleted = asyncio.run(gateway.delete_vector_store(created.id))

    assert fetched.name == "Venues"
    assert deleted.deleted
    client.vector_stores.create.assert_awaited_once_with(name="Venues")
    client.vector_stores.retrieve.assert_awaited_once_with("vs_9")
    client.vector_stores.delete.assert_awaited_once_with("vs_9")
