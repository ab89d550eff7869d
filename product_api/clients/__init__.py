"""Client modules for external services."""

from product_api.clients.sqlite_client import SqliteClient
from product_api.clients.cosmosdb_client import CosmosDBClient, strip_system_properties

__all__ = [
    "SqliteClient",
    "CosmosDBClient",
    "strip_system_properties",
]
