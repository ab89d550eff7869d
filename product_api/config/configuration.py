"""Configuration module for the Product API.

Loads settings from environment-specific config files:
- APP_ENV=dev  → config_dev.yaml (SQLite backend, local development)
- APP_ENV=test → config_test.yaml (CosmosDB backend, production-like testing)
- Default      → config.yaml

Cosmos DB credentials are loaded from the .env file.
Fails fast with clear error messages if required configuration is missing.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import yaml
from dotenv import load_dotenv

STORE_BACKENDS = ("sqlite", "cosmosdb")
UPDATE_RETURN_MODES = ("after", "before")


class ConfigurationError(Exception):
    """Raised when required configuration is missing or invalid."""
    pass


def _get_project_root() -> Path:
    """Get the project root directory (where config.yaml lives)."""
    # Navigate from product_api/config/ up to project root
    return Path(__file__).parent.parent.parent


def _get_config_filename() -> str:
    """Get config filename based on APP_ENV environment variable.

    Returns:
        Config filename:
        - APP_ENV=dev  → config_dev.yaml
        - APP_ENV=test → config_test.yaml
        - Default      → config.yaml
    """
    app_env = os.environ.get("APP_ENV", "").lower()

    if app_env == "dev":
        return "config_dev.yaml"
    elif app_env == "test":
        return "config_test.yaml"
    else:
        return "config.yaml"


def _load_yaml_config() -> dict:
    """Load configuration from environment-specific config file."""
    config_filename = _get_config_filename()
    config_path = _get_project_root() / config_filename

    if not config_path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {config_path}. "
            f"Set APP_ENV to 'dev' or 'test', or create {config_filename}."
        )

    with open(config_path, "r") as f:
        return yaml.safe_load(f) or {}


def _get_required_env(key: str) -> str:
    """Get required environment variable or raise ConfigurationError."""
    value = os.environ.get(key)
    if not value:
        raise ConfigurationError(
            f"Required environment variable '{key}' is not set. "
            f"Please add it to your .env file."
        )
    return value


@dataclass(frozen=True)
class ApiDocsConfig:
    """Metadata block rendered into the generated OpenAPI document."""
    title: str
    version: str
    description: str
    contact_name: str
    contact_email: str
    server_url: str
    docs_url: str


@dataclass(frozen=True)
class StoreConfig:
    """Product store configuration with backend toggle."""
    backend: str  # "sqlite" or "cosmosdb"
    sqlite_path: str


@dataclass(frozen=True)
class CosmosDBConfig:
    """Azure Cosmos DB configuration for the products container."""
    endpoint: str
    key: str
    database_name: str
    container_name: str


@dataclass(frozen=True)
class ProductsConfig:
    """Resource contract switches.

    ``missing_as_null`` and ``update_returns: before`` reproduce the
    responses of the service this API replaces.
    """
    strict_price: bool
    missing_as_null: bool
    update_returns: str  # "after" or "before"


@dataclass(frozen=True)
class LoggingConfig:
    """Logging configuration."""
    level: str


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration container."""
    api_docs: ApiDocsConfig
    store: StoreConfig
    products: ProductsConfig
    logging: LoggingConfig
    cosmosdb: Optional[CosmosDBConfig]  # Only required when store.backend == "cosmosdb"


def load_config() -> AppConfig:
    """
    Load and validate all application configuration.

    Loads from the YAML file selected by APP_ENV for non-sensitive settings
    and .env for credentials. Fails fast if required configuration is missing.

    Returns:
        AppConfig: Validated application configuration.

    Raises:
        ConfigurationError: If required configuration is missing or invalid.
    """
    # Load environment variables from .env file
    load_dotenv()

    # Load YAML configuration
    yaml_config = _load_yaml_config()

    # Build API docs config
    docs_section = yaml_config.get("api_docs", {})

    api_docs_config = ApiDocsConfig(
        title=docs_section.get("title", "API Documentation"),
        version=str(docs_section.get("version", "1.0.0")),
        description=docs_section.get(
            "description",
            "This is a simple API application made with FastAPI and a document database",
        ),
        contact_name=docs_section.get("contact_name", ""),
        contact_email=docs_section.get("contact_email", ""),
        server_url=docs_section.get("server_url", "http://localhost:3000/"),
        docs_url=docs_section.get("docs_url", "/api-docs"),
    )

    # Build Store config
    store_section = yaml_config.get("store", {})
    store_backend = store_section.get("backend", "sqlite")

    if store_backend not in STORE_BACKENDS:
        raise ConfigurationError(
            f"Unknown store backend: '{store_backend}'. "
            f"Expected one of: {', '.join(STORE_BACKENDS)}."
        )

    store_config = StoreConfig(
        backend=store_backend,
        sqlite_path=store_section.get("sqlite_path", "products.db"),
    )

    # Build Products config
    products_section = yaml_config.get("products", {})
    update_returns = products_section.get("update_returns", "after")

    if update_returns not in UPDATE_RETURN_MODES:
        raise ConfigurationError(
            f"Invalid products.update_returns: '{update_returns}'. "
            f"Expected one of: {', '.join(UPDATE_RETURN_MODES)}."
        )

    products_config = ProductsConfig(
        strict_price=bool(products_section.get("strict_price", False)),
        missing_as_null=bool(products_section.get("missing_as_null", False)),
        update_returns=update_returns,
    )

    # Build Logging config
    logging_section = yaml_config.get("logging", {})

    logging_config = LoggingConfig(
        level=logging_section.get("level", "INFO"),
    )

    # Build CosmosDB config (only if backend is cosmosdb)
    cosmosdb_config: Optional[CosmosDBConfig] = None
    if store_backend == "cosmosdb":
        cosmosdb_section = yaml_config.get("cosmosdb", {})
        cosmosdb_config = CosmosDBConfig(
            endpoint=_get_required_env("COSMOSDB_ENDPOINT"),
            key=_get_required_env("COSMOSDB_KEY"),
            database_name=cosmosdb_section.get("database_name", "product_catalog"),
            container_name=cosmosdb_section.get("container_name", "products"),
        )

    return AppConfig(
        api_docs=api_docs_config,
        store=store_config,
        products=products_config,
        logging=logging_config,
        cosmosdb=cosmosdb_config,
    )


# Module-level singleton for convenience
_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """
    Get the application configuration singleton.

    Lazy-loads configuration on first access.
    Config file is selected based on APP_ENV environment variable.

    Returns:
        AppConfig: Application configuration.

    Raises:
        ConfigurationError: If required configuration is missing.
    """
    global _config
    if _config is None:
        _config = load_config()
    return _config


def get_environment() -> str:
    """Get current environment name.

    Returns:
        'dev', 'test', or 'default' based on APP_ENV.
    """
    app_env = os.environ.get("APP_ENV", "").lower()
    return app_env if app_env in ("dev", "test") else "default"


def reset_config() -> None:
    """Reset the config singleton. Useful for testing."""
    global _config
    _config = None
