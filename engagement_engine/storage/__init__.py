import logging

from engagement_engine.storage.gateway import StorageGateway
from engagement_engine.storage.memory_gateway import InMemoryStorageGateway
from engagement_engine.storage.sql_gateway import SqlStorageGateway

logger = logging.getLogger(__name__)


def build_gateway(settings) -> StorageGateway:
    """Pick the storage adapter once, from configuration."""
    backend = (settings.STORAGE_BACKEND or "sql").lower()

    if backend == "memory":
        logger.info("🗄️  Storage backend: in-memory")
        return InMemoryStorageGateway()

    if backend == "sql":
        from engagement_engine.core.database import init_db, make_engine, make_session_factory

        engine = make_engine(settings.DATABASE_URL)
        init_db(engine)
        logger.info("🗄️  Storage backend: SQL")
        return SqlStorageGateway(make_session_factory(engine))

    raise ValueError(f"Unknown STORAGE_BACKEND '{settings.STORAGE_BACKEND}'")


__all__ = [
    "StorageGateway",
    "InMemoryStorageGateway",
    "SqlStorageGateway",
    "build_gateway",
]
