"""Azure Cosmos DB client for product document storage."""

import logging
from typing import Any, Optional

from azure.core import MatchConditions
from azure.cosmos.aio import CosmosClient
from azure.cosmos.aio._container import ContainerProxy
from azure.cosmos.aio._database import DatabaseProxy
from azure.cosmos.exceptions import CosmosResourceNotFoundError

logger = logging.getLogger(__name__)

# Server-managed properties Cosmos DB adds to every stored item
SYSTEM_PROPERTIES = ("_rid", "_self", "_etag", "_attachments", "_ts")


def strip_system_properties(item: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of an item without Cosmos DB system properties."""
    return {key: value for key, value in item.items() if key not in SYSTEM_PROPERTIES}


class CosmosDBClient:
    """Async Cosmos DB client with connection management.

    Uses the NoSQL API for storing and querying product documents.
    Supports async context manager pattern for proper resource cleanup.
    """

    def __init__(
        self,
        endpoint: str,
        key: str,
        database_name: str,
        container_name: str,
        partition_key_path: str = "/id",
    ):
        """Initialize the Cosmos DB client.

        Args:
            endpoint: Cosmos DB account endpoint URL
            key: Cosmos DB account key
            database_name: Name of the database to use
            container_name: Name of the container to use
            partition_key_path: Path to the partition key field (default: /id)
        """
        self._endpoint = endpoint
        self._key = key
        self._database_name = database_name
        self._container_name = container_name
        self._partition_key_path = partition_key_path

        self._client: Optional[CosmosClient] = None
        self._database: Optional[DatabaseProxy] = None
        self._container: Optional[ContainerProxy] = None

    async def connect(self) -> None:
        """Establish connection and ensure database/container exist.

        If the database or container cannot be set up, the underlying client
        is closed again before the error propagates.
        """
        self._client = CosmosClient(url=self._endpoint, credential=self._key)
        await self._client.__aenter__()

        try:
            await self._ensure_container()
        except Exception:
            await self.close()
            raise

    async def _ensure_container(self) -> None:
        # Get or create database
        try:
            self._database = self._client.get_database_client(self._database_name)
            # Verify database exists by reading it
            await self._database.read()
        except CosmosResourceNotFoundError:
            logger.info(f"Creating Cosmos DB database '{self._database_name}'")
            self._database = await self._client.create_database(self._database_name)

        # Get or create container
        try:
            self._container = self._database.get_container_client(self._container_name)
            # Verify container exists by reading it
            await self._container.read()
        except CosmosResourceNotFoundError:
            logger.info(f"Creating Cosmos DB container '{self._container_name}'")
            self._container = await self._database.create_container(
                id=self._container_name,
                partition_key={"paths": [self._partition_key_path], "kind": "Hash"},
            )

    async def close(self) -> None:
        """Close the Cosmos DB connection."""
        if self._client:
            await self._client.close()
            self._client = None
            self._database = None
            self._container = None

    async def __aenter__(self) -> "CosmosDBClient":
        """Async context manager entry."""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        """Async context manager exit with cleanup."""
        await self.close()
        return False

    def _require_container(self) -> ContainerProxy:
        if self._container is None:
            raise RuntimeError("CosmosDB client not connected. Call connect() first.")
        return self._container

    async def create_item(self, item: dict[str, Any]) -> dict[str, Any]:
        """Insert a new item into the container.

        Args:
            item: Dictionary containing the item data, including its 'id'.

        Returns:
            The stored item with any system-generated fields.

        Raises:
            RuntimeError: If client is not connected.
            CosmosResourceExistsError: If an item with the same id exists.
        """
        container = self._require_container()
        result = await container.create_item(body=item)
        return dict(result)

    async def patch_item(
        self,
        item_id: str,
        partition_key: str,
        patch_operations: list[dict[str, Any]],
    ) -> dict[str, Any]:
        """Apply partial-document operations to an item in one server call.

        Each operation is applied atomically on the server, so fields that
        are not named in ``patch_operations`` keep their current values.

        Args:
            item_id: The item's id
            partition_key: The partition key value
            patch_operations: Operations such as {"op": "set", "path": "/field", "value": value}

        Returns:
            The item as stored after the operations were applied.

        Raises:
            RuntimeError: If client is not connected.
            CosmosResourceNotFoundError: If item not found.
        """
        container = self._require_container()
        result = await container.patch_item(
            item=item_id,
            partition_key=partition_key,
            patch_operations=patch_operations,
        )
        return dict(result)

    async def query_items(self, query: str) -> list[dict[str, Any]]:
        """Run a cross-partition query against the container.

        Args:
            query: SQL query string

        Returns:
            List of matching items.

        Raises:
            RuntimeError: If client is not connected.
        """
        container = self._require_container()

        items = []
        async for item in container.query_items(query=query):
            items.append(dict(item))

        return items

    async def read_item(self, item_id: str, partition_key: str) -> dict[str, Any]:
        """Read a single item by id and partition key.

        Args:
            item_id: The item's id
            partition_key: The partition key value

        Returns:
            The item data, including its '_etag'.

        Raises:
            RuntimeError: If client is not connected.
            CosmosResourceNotFoundError: If item not found.
        """
        container = self._require_container()
        result = await container.read_item(item=item_id, partition_key=partition_key)
        return dict(result)

    async def delete_item(self, item_id: str, partition_key: str, etag: Optional[str] = None) -> None:
        """Delete an item by id and partition key.

        Args:
            item_id: The item's id
            partition_key: The partition key value
            etag: When given, only delete if the item still carries this etag

        Raises:
            RuntimeError: If client is not connected.
            CosmosResourceNotFoundError: If item not found.
            CosmosAccessConditionFailedError: If the item changed since ``etag`` was read.
        """
        container = self._require_container()
        if etag is None:
            await container.delete_item(item=item_id, partition_key=partition_key)
        else:
            await container.delete_item(
                item=item_id,
                partition_key=partition_key,
                etag=etag,
                match_condition=MatchConditions.IfNotModified,
            )
