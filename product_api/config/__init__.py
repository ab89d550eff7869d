"""Configuration module."""

from product_api.config.configuration import (
    ApiDocsConfig,
    AppConfig,
    ConfigurationError,
    CosmosDBConfig,
    LoggingConfig,
    ProductsConfig,
    StoreConfig,
    get_config,
    get_environment,
    load_config,
    reset_config,
)
from product_api.config.logging_config import setup_logging

__all__ = [
    "ApiDocsConfig",
    "AppConfig",
    "ConfigurationError",
    "CosmosDBConfig",
    "LoggingConfig",
    "ProductsConfig",
    "StoreConfig",
    "get_config",
    "get_environment",
    "load_config",
    "reset_config",
    "setup_logging",
]
