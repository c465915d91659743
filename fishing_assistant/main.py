import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from fishing_assistant.core.config import settings
from fishing_assistant.core.database import init_db
from fishing_assistant.api import chat, conversations, documents
from fishing_assistant.api import settings as assistant_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure logging based on debug setting
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s" if settings.debug
        else "%(levelname)-8s %(name)s: %(message)s",
    )

    init_db()

    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Conversation-Id"],
)

app.include_router(conversations.router, prefix="/api/fishing-assistant", tags=["conversations"])
app.include_router(chat.router, prefix="/api/fishing-assistant", tags=["chat"])
app.include_router(assistant_settings.router, prefix="/api/fishing-assistant", tags=["settings"])
app.include_router(documents.router, prefix="/api/fishing-assistant/admin/documents", tags=["documents"])


@app.get("/api/health")
async def health():
    return {"status": "ok", "app": settings.app_name}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
