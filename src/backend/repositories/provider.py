"""
Repository provider for dependency injection.

Usage:
    from repositories.provider import get_keyed_store

    # In FastAPI dependencies:
    async def some_endpoint(store: KeyedStore = Depends(get_keyed_store)):
        topic = await store.get(Topic, topic_id)
"""

from core.config import settings
from db.store_session import get_backend
from repositories.keyed_store import KeyedStore


async def get_keyed_store() -> KeyedStore:
    """Get a keyed store over the process-wide backend."""
    backend = await get_backend()
    return KeyedStore(backend, timeout_seconds=settings.STORE_TIMEOUT_SECONDS)
