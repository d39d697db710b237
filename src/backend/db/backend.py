"""
Key-value backend contract.

A backend offers string records with optional TTL plus named membership
sets. It makes no multi-key atomicity promise: callers that write a record
and a set member issue two independent calls.
"""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable


@runtime_checkable
class KeyValueBackend(Protocol):
    """Operations the keyed store needs from a backend."""

    async def get(self, key: str) -> Optional[str]: ...
    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None: ...
    async def delete(self, key: str) -> bool: ...
    async def add_member(self, set_name: str, member: str) -> None: ...
    async def remove_member(self, set_name: str, member: str) -> None: ...
    async def members(self, set_name: str) -> set[str]: ...
    async def scan(self, prefix: str) -> list[str]: ...
    async def close(self) -> None: ...


def split_key(key: str) -> tuple[str, str]:
    """Split ``{prefix}:{id}`` into its prefix and id."""
    prefix, sep, rest = key.partition(":")
    if not sep or not prefix or not rest:
        raise ValueError(f"key must look like 'prefix:id', got {key!r}")
    return prefix, rest
