"""Product store with switchable persistence backend.

Products are kept either in a Cosmos DB container (document database used
in deployed environments) or in a local SQLite file (development). The
backend is chosen by the ``store.backend`` config setting.

Every record is addressed by a store-assigned UUID4 string. The store never
recovers failures: backend errors are wrapped in ``StoreUnavailableError``
and propagate to the caller.
"""

import logging
import sqlite3
import uuid
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from azure.core.exceptions import AzureError
from azure.cosmos.exceptions import CosmosAccessConditionFailedError, CosmosResourceNotFoundError

from ..clients import CosmosDBClient, SqliteClient, strip_system_properties
from ..config import AppConfig, CosmosDBConfig, ProductsConfig, StoreConfig
from ..models import Product, ProductFields

logger = logging.getLogger(__name__)

# SQL statements
CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS products (
    id TEXT PRIMARY KEY,
    prod_name TEXT,
    prod_price TEXT,
    prod_id NUMERIC,
    prod_desc TEXT,
    updated_time TEXT NOT NULL
)
"""

PRODUCT_COLUMNS = ("id", "prod_name", "prod_price", "prod_id", "prod_desc", "updated_time")

# Conditional Cosmos DB deletes retried when the product keeps changing
DELETE_ATTEMPTS = 3


class ProductStoreError(Exception):
    """Base exception for product store failures."""

    status_code = 500


class MalformedIdentifierError(ProductStoreError):
    """Raised when a product id is not a well-formed store key."""

    status_code = 400

    def __init__(self, product_id: str):
        super().__init__(f"Malformed product id: {product_id}")
        self.product_id = product_id


class ProductNotFoundError(ProductStoreError):
    """Raised when a well-formed product id has no matching record."""

    status_code = 404

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class ProductValidationError(ProductStoreError):
    """Raised when product fields fail the store boundary check."""

    status_code = 400


class StoreUnavailableError(ProductStoreError):
    """Raised when the backend cannot be reached or fails internally."""

    status_code = 500


def parse_product_id(product_id: str) -> str:
    """Validate a product id and return its canonical form.

    Raises:
        MalformedIdentifierError: If the id is not a UUID.
    """
    try:
        return str(uuid.UUID(product_id))
    except (ValueError, TypeError, AttributeError):
        raise MalformedIdentifierError(str(product_id)) from None


def validate_price(price: Optional[str]) -> None:
    """Check that a price is a non-negative decimal number.

    Raises:
        ProductValidationError: If the price is not numeric or is negative.
    """
    if price is None:
        return
    try:
        value = Decimal(price.strip())
    except InvalidOperation:
        raise ProductValidationError(f"prod_price must be numeric, got '{price}'") from None
    if not value.is_finite() or value < 0:
        raise ProductValidationError(f"prod_price must be a non-negative number, got '{price}'")


class ProductStore:
    """CRUD operations on product records.

    Construct with ``from_config`` and call ``connect`` before use, or use
    the instance as an async context manager.
    """

    def __init__(
        self,
        store_config: StoreConfig,
        products_config: ProductsConfig,
        cosmosdb_config: Optional[CosmosDBConfig] = None,
    ):
        self._backend = store_config.backend
        self._sqlite_path = store_config.sqlite_path
        self._products_config = products_config
        self._cosmosdb_config = cosmosdb_config

        self._sqlite_client: Optional[SqliteClient] = None
        self._cosmosdb_client: Optional[CosmosDBClient] = None

        if self._backend == "cosmosdb":
            if cosmosdb_config is None:
                raise ValueError("CosmosDB backend selected but no cosmosdb config was provided")
            self._cosmosdb_client = CosmosDBClient(
                endpoint=cosmosdb_config.endpoint,
                key=cosmosdb_config.key,
                database_name=cosmosdb_config.database_name,
                container_name=cosmosdb_config.container_name,
                partition_key_path="/id",
            )
        elif self._backend != "sqlite":
            raise ValueError(f"Unknown store backend: {self._backend}")

    @classmethod
    def from_config(cls, config: AppConfig) -> "ProductStore":
        """Build a store from the application configuration."""
        return cls(config.store, config.products, config.cosmosdb)

    @property
    def backend(self) -> str:
        return self._backend

    @property
    def is_async(self) -> bool:
        """True when backend I/O is non-blocking."""
        return self._backend == "cosmosdb"

    # --- Lifecycle ---

    async def connect(self) -> None:
        """Open the backend connection and make sure storage exists."""
        try:
            if self._cosmosdb_client is not None:
                await self._cosmosdb_client.connect()
            else:
                self._sqlite_client = SqliteClient(self._sqlite_path)
                self._sqlite_client.execute_write(CREATE_TABLE_SQL)
        except (AzureError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"Could not connect to {self._backend} store: {e}") from e

        logger.info(f"Product store connected ({self._backend} backend)")

    async def close(self) -> None:
        """Close the backend connection."""
        if self._cosmosdb_client is not None:
            await self._cosmosdb_client.close()
        if self._sqlite_client is not None:
            self._sqlite_client.close()
            self._sqlite_client = None
        logger.info("Product store closed")

    async def __aenter__(self) -> "ProductStore":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.close()
        return False

    # --- Operations ---

    async def list_all(self) -> list[Product]:
        """Return every stored product."""
        try:
            if self._cosmosdb_client is not None:
                items = await self._cosmosdb_client.query_items("SELECT * FROM c")
                return [self._from_document(item) for item in items]

            rows = self._sqlite().execute_query(
                f"SELECT {', '.join(PRODUCT_COLUMNS)} FROM products ORDER BY rowid"
            )
            return [self._from_row(row) for row in rows]
        except (AzureError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"Failed to list products: {e}") from e

    async def get_by_id(self, product_id: str) -> Optional[Product]:
        """Return the product with the given id, or None if absent.

        Raises:
            MalformedIdentifierError: If the id is not a UUID.
        """
        key = parse_product_id(product_id)
        try:
            return await self._read(key)
        except (AzureError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"Failed to read product {key}: {e}") from e

    async def create(self, fields: ProductFields) -> Product:
        """Persist a new product and return the stored record."""
        values = fields.model_dump()
        self._check_fields(values)

        product = Product(
            id=str(uuid.uuid4()),
            updated_time=datetime.now(timezone.utc),
            **values,
        )
        document = product.model_dump(mode="json")

        try:
            if self._cosmosdb_client is not None:
                stored = await self._cosmosdb_client.create_item(document)
                product = self._from_document(stored)
            else:
                self._sqlite().execute_write(
                    f"INSERT INTO products ({', '.join(PRODUCT_COLUMNS)}) "
                    f"VALUES ({', '.join('?' for _ in PRODUCT_COLUMNS)})",
                    tuple(document[column] for column in PRODUCT_COLUMNS),
                )
        except (AzureError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"Failed to create product: {e}") from e

        logger.info(f"Created product {product.id}")
        return product

    async def update(self, product_id: str, fields: ProductFields) -> Optional[Product]:
        """Merge the supplied fields into an existing product.

        Only fields explicitly present in ``fields`` are overwritten.
        ``updated_time`` is left untouched. Both backends write only the
        changed fields, in one operation.

        Returns:
            The record after the merge, or before it when
            ``products.update_returns`` is "before". None if absent.

        Raises:
            MalformedIdentifierError: If the id is not a UUID.
        """
        key = parse_product_id(product_id)
        changes = fields.model_dump(exclude_unset=True)
        self._check_fields(changes)
        return_before = self._products_config.update_returns == "before"

        try:
            if not changes:
                return await self._read(key)

            existing = await self._read(key) if return_before else None

            if self._cosmosdb_client is not None:
                operations = [
                    {"op": "set", "path": f"/{column}", "value": value}
                    for column, value in changes.items()
                ]
                try:
                    stored = await self._cosmosdb_client.patch_item(key, key, operations)
                except CosmosResourceNotFoundError:
                    return None
                merged = self._from_document(stored)
            else:
                assignments = ", ".join(f"{column} = ?" for column in changes)
                affected = self._sqlite().execute_write(
                    f"UPDATE products SET {assignments} WHERE id = ?",
                    (*changes.values(), key),
                )
                if affected == 0:
                    return None
                merged = await self._read(key)
        except (AzureError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"Failed to update product {key}: {e}") from e

        logger.info(f"Updated product {key}: {sorted(changes)}")

        if return_before and existing is not None:
            return existing
        return merged

    async def delete(self, product_id: str) -> Optional[Product]:
        """Remove a product permanently and return the removed record.

        On Cosmos DB the delete is conditional on the etag of the snapshot
        that is returned, and is retried with a fresh snapshot when the
        product changed in between.

        Returns:
            The removed product, or None if absent.

        Raises:
            MalformedIdentifierError: If the id is not a UUID.
        """
        key = parse_product_id(product_id)
        try:
            if self._cosmosdb_client is not None:
                removed = await self._delete_document(key)
            else:
                removed = await self._read(key)
                if removed is None:
                    return None
                affected = self._sqlite().execute_write(
                    "DELETE FROM products WHERE id = ?", (key,)
                )
                if affected == 0:
                    return None
        except (AzureError, sqlite3.Error) as e:
            raise StoreUnavailableError(f"Failed to delete product {key}: {e}") from e

        if removed is not None:
            logger.info(f"Deleted product {key}")
        return removed

    # --- Helpers ---

    async def _delete_document(self, key: str) -> Optional[Product]:
        for attempt in range(1, DELETE_ATTEMPTS + 1):
            try:
                item = await self._cosmosdb_client.read_item(key, partition_key=key)
            except CosmosResourceNotFoundError:
                return None
            try:
                await self._cosmosdb_client.delete_item(key, partition_key=key, etag=item.get("_etag"))
            except CosmosResourceNotFoundError:
                return None
            except CosmosAccessConditionFailedError:
                logger.debug(f"Product {key} changed before delete (attempt {attempt}), retrying")
                continue
            return self._from_document(item)

        raise StoreUnavailableError(
            f"Failed to delete product {key}: still changing after {DELETE_ATTEMPTS} attempts"
        )

    def _sqlite(self) -> SqliteClient:
        if self._sqlite_client is None:
            raise StoreUnavailableError("SQLite store not connected. Call connect() first.")
        return self._sqlite_client

    async def _read(self, key: str) -> Optional[Product]:
        if self._cosmosdb_client is not None:
            try:
                item = await self._cosmosdb_client.read_item(key, partition_key=key)
            except CosmosResourceNotFoundError:
                return None
            return self._from_document(item)

        rows = self._sqlite().execute_query(
            f"SELECT {', '.join(PRODUCT_COLUMNS)} FROM products WHERE id = ?",
            (key,),
        )
        if not rows:
            return None
        return self._from_row(rows[0])

    def _check_fields(self, values: dict[str, Any]) -> None:
        if self._products_config.strict_price:
            validate_price(values.get("prod_price"))

    @staticmethod
    def _from_document(item: dict[str, Any]) -> Product:
        return Product.model_validate(strip_system_properties(item))

    @staticmethod
    def _from_row(row: sqlite3.Row) -> Product:
        return Product.model_validate(dict(row))
