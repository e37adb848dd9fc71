"""Store adapters and the process-wide store used by the API."""
import logging
from functools import lru_cache

from rewardhub.config import Settings, get_settings
from rewardhub.store.base import RecordNotFound, StoreAdapter, StoreError
from rewardhub.store.push_ids import generate_push_id

logger = logging.getLogger(__name__)

__all__ = [
    "RecordNotFound",
    "StoreAdapter",
    "StoreError",
    "build_store",
    "generate_push_id",
    "get_store",
]


def build_store(settings: Settings) -> StoreAdapter:
    """Create the store adapter selected by ``settings.store_backend``."""
    backend = settings.store_backend.lower()
    if backend == "redis":
        from rewardhub.store.redis_store import RedisStore

        return RedisStore.from_url(settings.redis_url, settings.redis_namespace)
    if backend == "sql":
        from rewardhub.database import create_db_engine
        from rewardhub.store.sql_store import SqlStore

        engine = create_db_engine(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
        return SqlStore(engine)
    raise ValueError(f"Unknown store backend: {settings.store_backend!r}")


@lru_cache()
def get_store() -> StoreAdapter:
    """Get the shared store instance (FastAPI dependency)."""
    store = build_store(get_settings())
    logger.info(f"Store backend initialized: {store.product}")
    return store
