import logging

from sqlalchemy import event
from sqlmodel import SQLModel, create_engine, Session

from fishing_assistant.core.config import settings

logger = logging.getLogger(__name__)

engine = create_engine(
    f"sqlite:///{settings.db_path}",
    echo=settings.debug,
    # The streaming relay opens sessions from request tasks as well as the threadpool
    connect_args={"check_same_thread": False},
)


@event.listens_for(engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite leaves FK enforcement off per connection; messages must point at a real conversation
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def init_db() -> None:
    """Create the conversation, message, settings and document tables."""
    import fishing_assistant.models  # noqa: F401 - register tables on SQLModel.metadata
    settings.db_path.parent.mkdir(parents=True, exist_ok=True)
    SQLModel.metadata.create_all(engine)
    logger.info(f"Database ready at {settings.db_path}")


def get_session():
    """Request-scoped session for the conversation and admin routers."""
    with Session(engine) as session:
        yield session
