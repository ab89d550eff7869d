"""Tests for configuration loading.

These tests verify:
- Defaults and section parsing
- Backend toggle validation
- Cosmos DB credentials are required only for the cosmosdb backend
- APP_ENV config file selection
"""

import pytest

from product_api.config import ConfigurationError, configuration


class TestLoadConfig:
    """Test load_config with temporary YAML files."""

    def test_sqlite_backend_needs_no_credentials(self, make_config, monkeypatch, temp_db_path):
        monkeypatch.delenv("COSMOSDB_ENDPOINT", raising=False)
        monkeypatch.delenv("COSMOSDB_KEY", raising=False)

        config = make_config()

        assert config.store.backend == "sqlite"
        assert config.store.sqlite_path == temp_db_path
        assert config.cosmosdb is None
        assert config.products.update_returns == "after"
        assert config.products.missing_as_null is False
        assert config.api_docs.docs_url == "/api-docs"

    def test_missing_sections_use_defaults(self, make_config, monkeypatch):
        monkeypatch.setattr(configuration, "_load_yaml_config", lambda: {})
        config = configuration.load_config()

        assert config.store.backend == "sqlite"
        assert config.store.sqlite_path == "products.db"
        assert config.products.strict_price is False
        assert config.logging.level == "INFO"
        assert config.api_docs.server_url == "http://localhost:3000/"

    def test_cosmosdb_backend_reads_credentials(self, make_config, monkeypatch):
        monkeypatch.setenv("COSMOSDB_ENDPOINT", "https://example.documents.azure.com:443/")
        monkeypatch.setenv("COSMOSDB_KEY", "test-key")

        config = make_config(
            store={"backend": "cosmosdb"},
            cosmosdb={"database_name": "catalog", "container_name": "items"},
        )

        assert config.cosmosdb.endpoint == "https://example.documents.azure.com:443/"
        assert config.cosmosdb.key == "test-key"
        assert config.cosmosdb.database_name == "catalog"
        assert config.cosmosdb.container_name == "items"

    def test_cosmosdb_without_credentials_raises(self, make_config, monkeypatch):
        monkeypatch.delenv("COSMOSDB_ENDPOINT", raising=False)
        monkeypatch.delenv("COSMOSDB_KEY", raising=False)
        # load_dotenv must not refill them from a developer's .env
        monkeypatch.setattr(configuration, "load_dotenv", lambda: None)

        with pytest.raises(ConfigurationError, match="COSMOSDB_ENDPOINT"):
            make_config(store={"backend": "cosmosdb"})

    def test_invalid_backend_raises(self, make_config):
        with pytest.raises(ConfigurationError, match="Unknown store backend"):
            make_config(store={"backend": "mongodb"})

    def test_invalid_update_returns_raises(self, make_config):
        with pytest.raises(ConfigurationError, match="update_returns"):
            make_config(products={"update_returns": "sometimes"})

    def test_get_config_is_cached(self, make_config):
        make_config()

        assert configuration.get_config() is configuration.get_config()

        first = configuration.get_config()
        configuration.reset_config()
        assert configuration.get_config() is not first


class TestConfigFileSelection:
    """Test APP_ENV based config file selection."""

    @pytest.mark.parametrize(
        "app_env, filename, environment",
        [
            ("dev", "config_dev.yaml", "dev"),
            ("TEST", "config_test.yaml", "test"),
            ("", "config.yaml", "default"),
            ("production", "config.yaml", "default"),
        ],
    )
    def test_filename_follows_app_env(self, monkeypatch, app_env, filename, environment):
        monkeypatch.setenv("APP_ENV", app_env)

        assert configuration._get_config_filename() == filename
        assert configuration.get_environment() == environment

    def test_missing_file_raises(self, monkeypatch, tmp_path):
        monkeypatch.setenv("APP_ENV", "dev")
        monkeypatch.setattr(configuration, "_get_project_root", lambda: tmp_path)

        with pytest.raises(ConfigurationError, match="config_dev.yaml"):
            configuration._load_yaml_config()

    def test_shipped_config_files_parse(self, monkeypatch):
        for app_env in ("dev", "test", ""):
            monkeypatch.setenv("APP_ENV", app_env)
            yaml_config = configuration._load_yaml_config()
            assert yaml_config["store"]["backend"] in ("sqlite", "cosmosdb")
