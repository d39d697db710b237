"""
Azure Table Storage backend for Ornot.

Maps the key space onto two tables:
- records: PartitionKey = key prefix (user, topic, ...), RowKey = id,
  ``value`` = serialized document, ``expires_at`` for records with a TTL
- members: PartitionKey = set name (users, topics, ...),
  RowKey = sha256(member), ``member`` = the list item

Uses managed identity authentication in production,
falls back to connection string for local development.
"""

from __future__ import annotations

import hashlib
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

import structlog
from azure.core.exceptions import AzureError, ResourceExistsError, ResourceNotFoundError
from azure.data.tables.aio import (
    TableClient as AsyncTableClient,
)
from azure.data.tables.aio import (
    TableServiceClient as AsyncTableServiceClient,
)
from azure.identity.aio import DefaultAzureCredential as AsyncDefaultAzureCredential

from core.exceptions import StoreUnavailable
from db.backend import split_key

logger = structlog.get_logger(__name__)


def _member_row_key(member: str) -> str:
    # Row keys may not contain '/', '\\', '#' or '?'; topic list items can.
    return hashlib.sha256(member.encode()).hexdigest()


class AzureTableBackend:
    """KeyValueBackend implementation over Azure Table Storage."""

    def __init__(
        self,
        table_prefix: str = "ornot",
        table_endpoint: Optional[str] = None,
        connection_string: Optional[str] = None,
    ):
        """
        Initialize the backend.

        Args:
            table_prefix: Prefix of the two table names
            table_endpoint: Azure Storage table endpoint URL
            connection_string: Optional connection string (for local dev)
        """
        self.records_table = f"{table_prefix}records"
        self.members_table = f"{table_prefix}members"
        self.table_endpoint = table_endpoint
        self._connection_string = connection_string

        self._service_client: Optional[AsyncTableServiceClient] = None
        self._credential: Optional[AsyncDefaultAzureCredential] = None
        self._is_initialized = False

    async def initialize(self) -> None:
        """Initialize the table service client and ensure tables exist."""
        if self._is_initialized:
            return

        try:
            if self._connection_string:
                self._service_client = AsyncTableServiceClient.from_connection_string(self._connection_string)
                logger.info("azure_tables_init", method="connection_string")
            else:
                if not self.table_endpoint:
                    raise ValueError("AZURE_STORAGE_TABLE_ENDPOINT must be set for managed identity auth")
                self._credential = AsyncDefaultAzureCredential()
                self._service_client = AsyncTableServiceClient(
                    endpoint=self.table_endpoint,
                    credential=self._credential,
                )
                logger.info(
                    "azure_tables_init",
                    method="managed_identity",
                    endpoint=self.table_endpoint,
                )

            await self._ensure_tables_exist()
            self._is_initialized = True

        except AzureError as e:
            logger.error("azure_tables_init_failed", error=str(e))
            raise StoreUnavailable(f"azure tables init failed: {e}") from e

    async def _ensure_tables_exist(self) -> None:
        """Create tables if they don't exist."""
        if not self._service_client:
            raise RuntimeError("Azure Table Service client not initialized")

        for table_name in (self.records_table, self.members_table):
            try:
                await self._service_client.create_table(table_name)
                logger.info("table_created", table=table_name)
            except ResourceExistsError:
                pass

    def _get_table_client(self, table_name: str) -> AsyncTableClient:
        """Get a table client for the specified table."""
        if not self._service_client:
            raise StoreUnavailable("Azure Table backend not initialized. Call initialize() first.")
        return self._service_client.get_table_client(table_name)

    async def close(self) -> None:
        """Close the service client."""
        if self._service_client:
            await self._service_client.close()
            self._service_client = None
            self._is_initialized = False
        if self._credential:
            await self._credential.close()
            self._credential = None

    # =========================================================================
    # Records
    # =========================================================================

    async def get(self, key: str) -> Optional[str]:
        partition, row = split_key(key)
        table_client = self._get_table_client(self.records_table)

        try:
            entity = await table_client.get_entity(partition, row)
        except ResourceNotFoundError:
            return None
        except AzureError as e:
            raise StoreUnavailable(f"get {key} failed: {e}") from e

        expires_at = entity.get("expires_at")
        if expires_at and datetime.now(timezone.utc) >= datetime.fromisoformat(expires_at):
            # Expired, can be cleaned up by a later delete
            return None

        return entity["value"]

    async def set(self, key: str, value: str, ttl_seconds: Optional[int] = None) -> None:
        partition, row = split_key(key)
        table_client = self._get_table_client(self.records_table)

        entity: dict[str, Any] = {
            "PartitionKey": partition,
            "RowKey": row,
            "value": value,
            "updated_at": datetime.now(timezone.utc).isoformat(),
        }
        if ttl_seconds is not None:
            entity["expires_at"] = (datetime.now(timezone.utc) + timedelta(seconds=ttl_seconds)).isoformat()

        try:
            await table_client.upsert_entity(entity)
        except AzureError as e:
            raise StoreUnavailable(f"set {key} failed: {e}") from e

    async def delete(self, key: str) -> bool:
        partition, row = split_key(key)
        table_client = self._get_table_client(self.records_table)

        try:
            await table_client.get_entity(partition, row)
            await table_client.delete_entity(partition, row)
            return True
        except ResourceNotFoundError:
            return False
        except AzureError as e:
            raise StoreUnavailable(f"delete {key} failed: {e}") from e

    async def scan(self, prefix: str) -> list[str]:
        table_client = self._get_table_client(self.records_table)

        keys = []
        try:
            async for entity in table_client.query_entities(
                query_filter="PartitionKey eq @pk",
                parameters={"pk": prefix},
                select=["PartitionKey", "RowKey"],
            ):
                keys.append(f"{entity['PartitionKey']}:{entity['RowKey']}")
        except AzureError as e:
            raise StoreUnavailable(f"scan {prefix} failed: {e}") from e

        return keys

    # =========================================================================
    # Membership sets
    # =========================================================================

    async def add_member(self, set_name: str, member: str) -> None:
        table_client = self._get_table_client(self.members_table)

        entity = {
            "PartitionKey": set_name,
            "RowKey": _member_row_key(member),
            "member": member,
        }

        try:
            await table_client.upsert_entity(entity)
        except AzureError as e:
            raise StoreUnavailable(f"add member to {set_name} failed: {e}") from e

    async def remove_member(self, set_name: str, member: str) -> None:
        table_client = self._get_table_client(self.members_table)

        try:
            await table_client.delete_entity(set_name, _member_row_key(member))
        except ResourceNotFoundError:
            pass
        except AzureError as e:
            raise StoreUnavailable(f"remove member from {set_name} failed: {e}") from e

    async def members(self, set_name: str) -> set[str]:
        table_client = self._get_table_client(self.members_table)

        members = set()
        try:
            async for entity in table_client.query_entities(
                query_filter="PartitionKey eq @pk",
                parameters={"pk": set_name},
            ):
                members.add(entity["member"])
        except AzureError as e:
            raise StoreUnavailable(f"list {set_name} failed: {e}") from e

        return members
