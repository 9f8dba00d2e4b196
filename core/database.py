from typing import Generator
import logging

from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine, Session

from core.config import settings
from core.storage import MemoryStorage, SqlStorage, Storage

logger = logging.getLogger(__name__)


# ============================================================
# ✅ Create SQLModel engine
# ============================================================
def build_engine(database_url: str):
    """Postgres gets pool_pre_ping; in-memory SQLite shares one connection."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=False, **kwargs)
    return create_engine(database_url, echo=False, pool_pre_ping=True)


engine = build_engine(settings.DATABASE_URL)
logger.info("✅ Using database: %s", engine.url.render_as_string(hide_password=True))

# Process-wide store for STORAGE_BACKEND=memory
memory_storage = MemoryStorage()


# ============================================================
# ✅ Create tables (called at startup)
# ============================================================
def create_db_and_tables(bind=None) -> None:
    """
    Create all database tables based on SQLModel models.
    This runs automatically at app startup.
    """
    import models.models  # noqa: F401  (registers the tables on SQLModel.metadata)

    try:
        SQLModel.metadata.create_all(bind or engine)
        logger.info("✅ All database tables created successfully.")
    except Exception as e:
        logger.error(f"❌ Failed to create tables: {e}")
        raise


# ============================================================
# ✅ Dependency: storage for the current request
# ============================================================
def get_storage() -> Generator[Storage, None, None]:
    """
    Yields the configured storage adapter.
    SQL sessions close automatically after the request completes.
    """
    if settings.USE_MEMORY_STORAGE:
        yield memory_storage
        return
    with Session(engine) as session:
        yield SqlStorage(session)
