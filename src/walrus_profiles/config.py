"""Settings for the profile store.

Priority: environment variables > YAML config file > defaults
"""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from .constants import (
    CONFIG_ENV,
    CONFIG_FILE,
    DEFAULT_DELETABLE,
    DEFAULT_EPOCHS,
    DEFAULT_NETWORK,
    DEFAULT_TIMEOUT,
    NETWORK_ENDPOINTS,
)
from .errors import ConfigurationError


# Environment variable -> settings field
ENV_OVERRIDES = {
    "WALRUS_NETWORK": "network",
    "WALRUS_PUBLISHER_URL": "publisher_url",
    "WALRUS_AGGREGATOR_URL": "aggregator_url",
    "WALRUS_EPOCHS": "epochs",
    "WALRUS_DELETABLE": "deletable",
    "WALRUS_TIMEOUT": "timeout",
    "WALRUS_STORAGE_PROVIDER": "provider",
    "WALRUS_STORAGE_DIR": "storage_dir",
}


class Settings(BaseModel):
    """
    Profile store configuration.

    The signing key is not part of settings; it is read separately from
    PRIVATE_KEY so it never ends up in a config file.
    """
    network: str = DEFAULT_NETWORK          # "testnet" | "mainnet"
    publisher_url: str = ""                 # Empty = network preset
    aggregator_url: str = ""                # Empty = network preset
    epochs: int = Field(default=DEFAULT_EPOCHS, ge=1)
    deletable: bool = DEFAULT_DELETABLE
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)

    # Blob backend: "walrus" or "fs" (local directory, for development)
    provider: str = "walrus"
    storage_dir: str = ""

    @field_validator("network", "provider")
    @classmethod
    def _lowercase(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("network")
    @classmethod
    def validate_network(cls, v: str) -> str:
        if v not in NETWORK_ENDPOINTS:
            raise ValueError(f"Invalid network. Must be one of: {sorted(NETWORK_ENDPOINTS)}")
        return v

    @model_validator(mode="after")
    def fill_network_endpoints(self):
        """Default publisher/aggregator URLs from the network preset."""
        preset = NETWORK_ENDPOINTS[self.network]
        if not self.publisher_url:
            self.publisher_url = preset["publisher"]
        if not self.aggregator_url:
            self.aggregator_url = preset["aggregator"]
        self.publisher_url = self.publisher_url.rstrip("/")
        self.aggregator_url = self.aggregator_url.rstrip("/")
        return self


def load_env_file() -> None:
    """Load .env from the working directory or a parent; never overrides set variables."""
    load_dotenv(find_dotenv(usecwd=True))


def _env_overrides() -> Dict[str, Any]:
    return {
        field: os.environ[var]
        for var, field in ENV_OVERRIDES.items()
        if os.environ.get(var)
    }


def load_settings(config_path: Optional[Path] = None) -> Settings:
    """
    Load settings from YAML and environment.

    Args:
        config_path: Optional YAML file. Defaults to $WALRUS_PROFILES_CONFIG,
            then ./walrus-profiles.yaml if it exists.

    Returns:
        Settings instance

    Raises:
        ConfigurationError: If the file is unreadable or values are invalid
    """
    load_env_file()

    if config_path is None:
        env_path = os.environ.get(CONFIG_ENV)
        config_path = Path(env_path) if env_path else Path.cwd() / CONFIG_FILE
        explicit = bool(env_path)
    else:
        config_path = Path(config_path)
        explicit = True

    data: Dict[str, Any] = {}
    if config_path.exists():
        try:
            loaded = yaml.safe_load(config_path.read_text())
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read config file {config_path}: {e}") from e
        if loaded is not None and not isinstance(loaded, dict):
            raise ConfigurationError(f"Config file {config_path} must contain a mapping")
        data.update(loaded or {})
    elif explicit:
        raise ConfigurationError(f"Config file not found: {config_path}")

    data.update(_env_overrides())

    try:
        return Settings(**data)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid settings: {e}") from e
