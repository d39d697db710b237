"""
Generic content-addressed persistence over a key-value backend.

Every document is written twice: the primary record at ``{prefix}:{id}``
and its list item in the ``{prefix}s`` membership set. The backend has no
multi-key transactions, so the two writes are issued concurrently and are
not atomic:

- a failed secondary write is logged, never raised; the caller still sees
  success once the primary write succeeds
- ``list_items`` can therefore miss members whose record exists, or return members
  whose record has since been deleted

``reconcile`` repairs a collection's membership set from its primary records.
"""

import asyncio
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import Optional, TypeVar

import structlog

from core.exceptions import CorruptData, NotFound, StoreError, StoreTimeout, StoreUnavailable
from db.backend import KeyValueBackend
from models.base import Entity, StoredDocument

logger = structlog.get_logger(__name__)

T = TypeVar("T")
DocumentT = TypeVar("DocumentT", bound=StoredDocument)

DEFAULT_TIMEOUT_SECONDS = 5.0


def record_key(key_prefix: str, entity_id: str) -> str:
    return f"{key_prefix}:{entity_id}"


def membership_set(key_prefix: str) -> str:
    return f"{key_prefix}s"


@dataclass
class ReconcileReport:
    """Outcome of a membership repair pass."""

    key_prefix: str
    records: int = 0
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    corrupt: list[str] = field(default_factory=list)

    @property
    def drifted(self) -> bool:
        return bool(self.added or self.removed)


class KeyedStore:
    """Put/get/delete/list for any stored document."""

    def __init__(self, backend: KeyValueBackend, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS):
        self.backend = backend
        self.timeout_seconds = timeout_seconds

    async def _call(self, operation: str, target: str, call: Awaitable[T]) -> T:
        """Run one backend call under the timeout, mapping failures onto store errors."""
        try:
            return await asyncio.wait_for(call, timeout=self.timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.error("store_timeout", operation=operation, target=target, timeout=self.timeout_seconds)
            raise StoreTimeout(f"{operation} {target} timed out after {self.timeout_seconds}s") from e
        except StoreError:
            raise
        except (ConnectionError, OSError) as e:
            logger.error("store_unavailable", operation=operation, target=target, error=str(e))
            raise StoreUnavailable(f"{operation} {target} failed: {e}") from e

    # ========================================================================
    # Write Operations
    # ========================================================================

    async def put(self, entity: Entity) -> str:
        """
        Write the primary record and add the list item to the membership set.

        Returns the entity id. Raises only when the primary write fails.
        """
        entity_id = entity.entity_id()
        key = record_key(entity.key_prefix, entity_id)
        primary = self._call("set", key, self.backend.set(key, entity.to_json(), entity.expires_in()))

        list_item = entity.list_item()
        if list_item is None:
            await primary
            return entity_id

        set_name = membership_set(entity.key_prefix)
        secondary = self._call("add_member", set_name, self.backend.add_member(set_name, list_item))

        primary_result, secondary_result = await asyncio.gather(primary, secondary, return_exceptions=True)
        self._report_secondary("add_member", set_name, list_item, secondary_result)
        if isinstance(primary_result, BaseException):
            raise primary_result

        return entity_id

    async def delete(self, entity: Entity) -> bool:
        """
        Remove the primary record and its list item.

        Returns True if the primary record existed.
        """
        key = record_key(entity.key_prefix, entity.entity_id())
        primary = self._call("delete", key, self.backend.delete(key))

        list_item = entity.list_item()
        if list_item is None:
            return await primary

        set_name = membership_set(entity.key_prefix)
        secondary = self._call("remove_member", set_name, self.backend.remove_member(set_name, list_item))

        primary_result, secondary_result = await asyncio.gather(primary, secondary, return_exceptions=True)
        self._report_secondary("remove_member", set_name, list_item, secondary_result)
        if isinstance(primary_result, BaseException):
            raise primary_result

        return primary_result

    def _report_secondary(self, operation: str, set_name: str, member: str, outcome: object) -> None:
        if isinstance(outcome, Exception):
            logger.error(
                "secondary_index_write_failed",
                operation=operation,
                set_name=set_name,
                member=member,
                error=str(outcome),
            )
        elif isinstance(outcome, BaseException):
            raise outcome

    # ========================================================================
    # Read Operations
    # ========================================================================

    async def get(self, entity_type: type[DocumentT], entity_id: str) -> Optional[DocumentT]:
        """
        Read and deserialize a document.

        Returns None when the key is absent; raises CorruptData when the
        stored payload does not parse.
        """
        key = record_key(entity_type.key_prefix, entity_id)
        raw = await self._call("get", key, self.backend.get(key))
        if raw is None:
            return None

        try:
            return entity_type.from_json(raw)
        except ValueError as e:
            logger.error("corrupt_record", key=key, error=str(e))
            raise CorruptData(key, str(e)) from e

    async def require(self, entity_type: type[DocumentT], entity_id: str) -> DocumentT:
        """Like get, but raises NotFound for an absent key."""
        entity = await self.get(entity_type, entity_id)
        if entity is None:
            raise NotFound(entity_type.key_prefix, entity_id)
        return entity

    async def list_items(self, key_prefix: str) -> list[str]:
        """Return the members of a collection's membership set."""
        set_name = membership_set(key_prefix)
        members = await self._call("members", set_name, self.backend.members(set_name))
        return sorted(members)

    # ========================================================================
    # Repair
    # ========================================================================

    async def reconcile(self, entity_type: type[DocumentT]) -> ReconcileReport:
        """
        Rebuild a collection's membership set from its primary records.

        Adds list items whose record exists but is not a member, and removes
        members no record produces. Corrupt records are reported and skipped.
        """
        key_prefix = entity_type.key_prefix
        set_name = membership_set(key_prefix)
        report = ReconcileReport(key_prefix=key_prefix)

        keys, members = await asyncio.gather(
            self._call("scan", key_prefix, self.backend.scan(key_prefix)),
            self._call("members", set_name, self.backend.members(set_name)),
        )
        report.records = len(keys)

        raws = await asyncio.gather(*(self._call("get", key, self.backend.get(key)) for key in keys))

        expected: set[str] = set()
        for key, raw in zip(keys, raws):
            if raw is None:
                continue
            try:
                entity = entity_type.from_json(raw)
            except ValueError as e:
                logger.error("corrupt_record", key=key, error=str(e))
                report.corrupt.append(key)
                continue
            list_item = entity.list_item()
            if list_item is not None:
                expected.add(list_item)

        report.added = sorted(expected - members)
        report.removed = sorted(members - expected)

        await asyncio.gather(
            *(self._call("add_member", set_name, self.backend.add_member(set_name, m)) for m in report.added),
            *(self._call("remove_member", set_name, self.backend.remove_member(set_name, m)) for m in report.removed),
        )

        logger.info(
            "membership_reconciled",
            set_name=set_name,
            records=report.records,
            added=len(report.added),
            removed=len(report.removed),
            corrupt=len(report.corrupt),
        )
        return report
