"""Repository modules for key-value store access."""

from repositories.keyed_store import KeyedStore, ReconcileReport

__all__ = [
    "KeyedStore",
    "ReconcileReport",
]
