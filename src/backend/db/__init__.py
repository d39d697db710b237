"""Key-value backend module."""

from db.backend import KeyValueBackend
from db.memory_backend import InMemoryBackend
from db.store_session import close_backend, get_backend

__all__ = ["KeyValueBackend", "InMemoryBackend", "get_backend", "close_backend"]
