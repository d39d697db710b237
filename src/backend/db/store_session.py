"""
Key-value backend session management.

Provides the process-wide backend, choosing Azure Table Storage when it is
configured and the in-memory backend otherwise.
"""

from typing import Optional

import structlog

from core.config import settings
from db.backend import KeyValueBackend
from db.memory_backend import InMemoryBackend

logger = structlog.get_logger(__name__)

# Global backend instance (lazy-initialized)
_backend: Optional[KeyValueBackend] = None


async def get_backend() -> KeyValueBackend:
    """
    Get or create the key-value backend.

    Supports two modes:
    1. Azure Table Storage (connection string or managed identity)
    2. In-memory (local development, nothing configured)

    The backend is a singleton and reused across requests.
    """
    global _backend

    if _backend is None:
        if settings.azure_tables_enabled:
            from db.table_backend import AzureTableBackend

            table_backend = AzureTableBackend(
                table_prefix=settings.STORE_TABLE_PREFIX,
                table_endpoint=settings.AZURE_STORAGE_TABLE_ENDPOINT,
                connection_string=settings.AZURE_STORAGE_CONNECTION_STRING,
            )
            await table_backend.initialize()
            _backend = table_backend
            logger.info("store_backend_initialized", backend="azure_tables")
        else:
            _backend = InMemoryBackend()
            logger.warning("store_backend_initialized", backend="in_memory", durable=False)

    return _backend


async def close_backend() -> None:
    """
    Close the backend.

    Should be called during application shutdown.
    """
    global _backend

    if _backend is not None:
        await _backend.close()
        _backend = None
        logger.info("store_backend_closed")
