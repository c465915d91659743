"""Tests for the admin and public settings endpoints."""

from sqlmodel import Session, select

from tests.conftest import test_engine
from fishing_assistant.core.config import settings as app_settings
from fishing_assistant.models.assistant import AssistantSettings

ADMIN_URL = "/api/fishing-assistant/admin/settings"


def test_admin_settings_default_when_unconfigured(client):
    response = client.get(ADMIN_URL)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] is None
    assert data["openai_vector_store_id"] == app_settings.vector_store_id
    assert data["initial_question"] is None


def test_update_then_read_settings(client):
    response = client.put(ADMIN_URL, json={"initial_question": "Hi there!", "language": "en-GB"})
    assert response.status_code == 200
    assert response.json()["initial_question"] == "Hi there!"

    data = client.get(ADMIN_URL).json()
    assert data["initial_question"] == "Hi there!"
    assert data["language"] == "en-GB"


def test_repeated_updates_keep_one_row(client):
    client.put(ADMIN_URL, json={"instructions": "Recommend Rippa bait."})
    client.put(ADMIN_URL, json={"personality": "calm"})
    data = client.put(ADMIN_URL, json={"avoid_topics": "Politics"}).json()

    assert data["instructions"] == "Recommend Rippa bait."
    assert data["personality"] == "calm"
    assert data["avoid_topics"] == "Politics"
    with Session(test_engine) as session:
        assert len(session.exec(select(AssistantSettings)).all()) == 1


def test_public_settings_subset(client):
    client.put(ADMIN_URL, json={
        "initial_question": "Hi there!",
        "personality": "cheerful",
        "instructions": "secret admin instructions",
    })
    data = client.get("/api/fishing-assistant/settings").json()
    assert set(data) == {"id", "initial_question", "language", "personality"}
    assert data["initial_question"] == "Hi there!"
    assert data["personality"] == "cheerful"
