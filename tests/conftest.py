"""Shared fixtures.

Configuration is pointed at a temporary YAML file and the SQLite backend
at a temporary database so tests never touch a real Cosmos DB account.
"""

import os
import tempfile

import pytest
import yaml
from fastapi.testclient import TestClient

from product_api.api import create_app
from product_api.config import ProductsConfig, StoreConfig, configuration
from product_api.services import ProductStore


@pytest.fixture
def temp_db_path():
    """Create a temporary database file for testing."""
    fd, path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield path
    # Cleanup
    if os.path.exists(path):
        os.remove(path)


@pytest.fixture
def make_config(temp_db_path, monkeypatch):
    """Factory that loads an AppConfig from a temporary YAML file.

    Keyword arguments replace whole top-level sections of the default
    test configuration.
    """
    config_paths = []
    monkeypatch.delenv("APP_ENV", raising=False)

    def _make(**sections):
        config_content = {
            "api_docs": {
                "title": "API Documentation",
                "version": "1.0.0",
                "description": "Product API test instance",
                "contact_name": "Test Maintainer",
                "contact_email": "maintainer@example.com",
                "server_url": "http://localhost:3000/",
                "docs_url": "/api-docs",
            },
            "store": {"backend": "sqlite", "sqlite_path": temp_db_path},
            "products": {"strict_price": False, "missing_as_null": False, "update_returns": "after"},
            "logging": {"level": "INFO"},
        }
        config_content.update(sections)

        fd, config_path = tempfile.mkstemp(suffix=".yaml")
        os.close(fd)
        with open(config_path, "w") as f:
            yaml.dump(config_content, f)
        config_paths.append(config_path)

        def mock_load():
            with open(config_path, "r") as f:
                return yaml.safe_load(f)

        monkeypatch.setattr(configuration, "_load_yaml_config", mock_load)
        configuration.reset_config()
        return configuration.load_config()

    yield _make

    # Cleanup
    configuration.reset_config()
    for path in config_paths:
        if os.path.exists(path):
            os.remove(path)


@pytest.fixture
def app_config(make_config):
    """Default test configuration (SQLite backend, strict contract)."""
    return make_config()


@pytest.fixture
def client(app_config):
    """HTTP client against an app whose lifespan has run."""
    with TestClient(create_app(app_config)) as test_client:
        yield test_client


@pytest.fixture
def compat_client(make_config):
    """HTTP client configured to reproduce the legacy responses."""
    config = make_config(
        products={"strict_price": False, "missing_as_null": True, "update_returns": "before"}
    )
    with TestClient(create_app(config)) as test_client:
        yield test_client


@pytest.fixture
def make_store(temp_db_path):
    """Factory for unconnected SQLite-backed stores sharing one database file."""

    def _make(**products) -> ProductStore:
        products_config = ProductsConfig(
            strict_price=products.get("strict_price", False),
            missing_as_null=products.get("missing_as_null", False),
            update_returns=products.get("update_returns", "after"),
        )
        return ProductStore(StoreConfig(backend="sqlite", sqlite_path=temp_db_path), products_config)

    return _make


@pytest.fixture
async def product_store(make_store):
    """Connected SQLite-backed store."""
    store = make_store()
    await store.connect()
    yield store
    await store.close()
