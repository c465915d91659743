"""Shared test fixtures for backend tests."""

from types import SimpleNamespace
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from fishing_assistant.core.database import get_session
from fishing_assistant.core.locks import conversation_locks
from fishing_assistant.services.llm import get_llm_gateway
from fishing_assistant.services.llm.base import BaseLLMGateway

# In-memory SQLite with StaticPool so all connections (including threads) share one DB
test_engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


def get_test_session():
    with Session(test_engine) as session:
        yield session


# --- Provider stream events ---

def created_event(response_id="resp_123"):
    return SimpleNamespace(type="response.created", response=SimpleNamespace(id=response_id))


def delta_event(text):
    return SimpleNamespace(type="response.output_text.delta", delta=text)


def completed_event(response_id="resp_123", output_tokens=7):
    return SimpleNamespace(
        type="response.completed",
        response=SimpleNamespace(id=response_id, usage=SimpleNamespace(output_tokens=output_tokens)),
    )


def error_event(message="upstream exploded"):
    return SimpleNamespace(type="error", message=message, code="server_error")


class FakeGateway(BaseLLMGateway):
    """Scripted gateway. ``events`` may contain exceptions, which are raised in place."""

    def __init__(self):
        self.events = [
            created_event(),
            delta_event("Hello"),
            delta_event(" from"),
            delta_event(" the bank"),
            completed_event(),
        ]
        self.stream_calls: list[dict] = []
        self.streams_closed = 0
        self.poll_calls: list[dict] = []
        self.poll_response = SimpleNamespace(
            id="resp_poll", status="completed", output_text="Try maggots.",
            usage=SimpleNamespace(output_tokens=3),
        )
        self.upload_error: Exception | None = None
        self.uploads: list[tuple] = []
        self.deleted_files: list[tuple] = []

    async def create_response(self, params):
        return self.poll_response

    async def get_response(self, response_id):
        return self.poll_response

    async def create_response_and_poll(self, params):
        self.poll_calls.append(params)
        return self.poll_response

    async def create_streaming_response(self, params):
        self.stream_calls.append(params)
        try:
            for event in self.events:
                if isinstance(event, Exception):
                    raise event
                yield event
        finally:
            self.streams_closed += 1

    async def upload_vector_store_file(self, vector_store_id, filename, content, content_type=None):
        if self.upload_error:
            raise self.upload_error
        self.uploads.append((vector_store_id, filename, content, content_type))
        return SimpleNamespace(id=f"file-{len(self.uploads)}", status="completed")

    async def delete_vector_store_file(self, vector_store_id, file_id):
        self.deleted_files.append((vector_store_id, file_id))


@pytest.fixture(autouse=True)
def setup_test_db():
    """Create all tables before each test, drop after."""
    import fishing_assistant.models  # noqa: F401 - register models
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(autouse=True)
def reset_turn_locks():
    yield
    conversation_locks._active.clear()


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def client(fake_gateway):
    """FastAPI TestClient with the database and LLM gateway patched."""
    with (
        patch("fishing_assistant.core.database.engine", test_engine),
        patch("fishing_assistant.services.relay.engine", test_engine),
    ):
        from fishing_assistant.main import app

        app.dependency_overrides[get_session] = get_test_session
        app.dependency_overrides[get_llm_gateway] = lambda: fake_gateway

        with TestClient(app) as c:
            yield c

        app.dependency_overrides.clear()
