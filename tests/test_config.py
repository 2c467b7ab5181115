"""Test settings loading and precedence."""

import pytest

from walrus_profiles.config import Settings, load_settings
from walrus_profiles.errors import ConfigurationError


class TestSettings:
    """Test the settings model."""

    def test_defaults(self):
        settings = Settings()
        assert settings.network == "testnet"
        assert settings.epochs == 3
        assert settings.deletable is True
        assert settings.timeout == 60.0
        assert settings.provider == "walrus"
        assert settings.publisher_url == "https://publisher.walrus-testnet.walrus.space"
        assert settings.aggregator_url == "https://aggregator.walrus-testnet.walrus.space"

    def test_mainnet_has_no_public_publisher(self):
        settings = Settings(network="mainnet")
        assert settings.publisher_url == ""
        assert settings.aggregator_url.startswith("https://aggregator.walrus-mainnet")

    def test_explicit_urls_win_and_are_trimmed(self):
        settings = Settings(
            publisher_url="http://localhost:31415/",
            aggregator_url="http://localhost:31416/",
        )
        assert settings.publisher_url == "http://localhost:31415"
        assert settings.aggregator_url == "http://localhost:31416"

    def test_network_case_insensitive(self):
        assert Settings(network="TestNet").network == "testnet"

    def test_invalid_network(self):
        with pytest.raises(ValueError, match="Invalid network"):
            Settings(network="devnet")

    def test_epochs_must_be_positive(self):
        with pytest.raises(ValueError):
            Settings(epochs=0)


class TestLoadSettings:
    """Test defaults < YAML < environment precedence."""

    def test_no_file_uses_defaults(self):
        assert load_settings() == Settings()

    def test_yaml_in_working_directory(self, tmp_path):
        (tmp_path / "walrus-profiles.yaml").write_text("epochs: 5\ndeletable: false\n")
        settings = load_settings()
        assert settings.epochs == 5
        assert settings.deletable is False

    def test_env_overrides_yaml(self, tmp_path, monkeypatch):
        config = tmp_path / "custom.yaml"
        config.write_text("epochs: 5\nprovider: fs\nstorage_dir: /tmp/a\n")
        monkeypatch.setenv("WALRUS_EPOCHS", "7")
        monkeypatch.setenv("WALRUS_STORAGE_DIR", "/tmp/b")
        settings = load_settings(config)
        assert settings.epochs == 7
        assert settings.provider == "fs"
        assert settings.storage_dir == "/tmp/b"

    def test_env_deletable_parsed_as_bool(self, monkeypatch):
        monkeypatch.setenv("WALRUS_DELETABLE", "false")
        assert load_settings().deletable is False

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        config = tmp_path / "elsewhere.yaml"
        config.write_text("network: mainnet\npublisher_url: https://pub.example.com\n")
        monkeypatch.setenv("WALRUS_PROFILES_CONFIG", str(config))
        settings = load_settings()
        assert settings.network == "mainnet"
        assert settings.publisher_url == "https://pub.example.com"

    def test_explicit_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_settings(tmp_path / "missing.yaml")

    def test_invalid_yaml(self, tmp_path):
        config = tmp_path / "bad.yaml"
        config.write_text("epochs: [unclosed\n")
        with pytest.raises(ConfigurationError, match="Cannot read"):
            load_settings(config)

    def test_non_mapping_yaml(self, tmp_path):
        config = tmp_path / "list.yaml"
        config.write_text("- a\n- b\n")
        with pytest.raises(ConfigurationError, match="mapping"):
            load_settings(config)

    def test_invalid_values_raise_configuration_error(self, monkeypatch):
        monkeypatch.setenv("WALRUS_EPOCHS", "zero")
        with pytest.raises(ConfigurationError, match="Invalid settings"):
            load_settings()
