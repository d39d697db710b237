"""
In-memory key-value backend.

Used for local development and tests, and as the fallback when Azure Table
Storage is not configured. Expiry is tracked per key against an injectable
clock and checked lazily on read.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog

from db.backend import split_key

logger = structlog.get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class InMemoryBackend:
    """Dictionary-backed implementation of KeyValueBackend."""

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._records: dict[str, tuple[str, Optional[datetime]]] = {}  # key -> (value, expires_at)
        self._sets: dict[str, set[str]] = {}

    def _live(self, key: str) -> Optional[str]:
        entry = self._records.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self._clock() >= expires_at:
            del self._records[key]
            return None
        return value

    async def get(self, key: str) -> Optional[str]:
        return self._live(key)

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        expires_at = None
        if ttl_seconds is not None:
            expires_at = self._clock() + timedelta(seconds=ttl_seconds)
        self._records[key] = (value, expires_at)

    async def delete(self, key: str) -> bool:
        existed = self._live(key) is not None
        self._records.pop(key, None)
        return existed

    async def add_member(self, set_name: str, member: str) -> None:
        self._sets.setdefault(set_name, set()).add(member)

    async def remove_member(self, set_name: str, member: str) -> None:
        members = self._sets.get(set_name)
        if members is not None:
            members.discard(member)

    async def members(self, set_name: str) -> set[str]:
        return set(self._sets.get(set_name, set()))

    async def scan(self, prefix: str) -> list[str]:
        keys = [key for key in list(self._records) if split_key(key)[0] == prefix]
        return [key for key in keys if self._live(key) is not None]

    async def close(self) -> None:
        logger.info("memory_backend_closed", records=len(self._records))
