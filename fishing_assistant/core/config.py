from pathlib import Path

from pydantic_settings import BaseSettings

GLOBAL_VECTOR_STORE_ID = "vs_68278c0e6dac819181a76e9350a95eac"


class Settings(BaseSettings):
    app_name: str = "Rippa Tackle Fishing Assistant"
    debug: bool = False

    # Paths
    db_path: Path = Path(__file__).resolve().parent.parent.parent / "fishing_assistant.db"

    # OpenAI
    openai_api_key: str = ""
    openai_organization: str | None = None
    openai_project: str | None = None
    openai_model: str = "gpt-4.1"
    openai_temperature: float = 0.5
    vector_store_id: str = GLOBAL_VECTOR_STORE_ID

    # Background responses: poll once a second, give up after ~2 minutes
    response_poll_interval: float = 1.0
    response_poll_attempts: int = 120

    # Server
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    model_config = {
        "env_file": str(Path(__file__).resolve().parent.parent.parent / ".env"),
        "env_prefix": "FISHING_ASSISTANT_",
    }


settings = Settings()
