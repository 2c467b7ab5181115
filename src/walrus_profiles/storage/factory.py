"""Factory for creating blob storage instances."""

from pathlib import Path

from ..config import Settings
from ..errors import ConfigurationError
from .base import BlobStore
from .fs import FilesystemBlobStore
from .walrus import WalrusBlobStore


def validate_walrus_config(settings: Settings) -> None:
    """
    Early validation of Walrus configuration.

    Args:
        settings: Settings to validate

    Raises:
        ConfigurationError: If configuration is invalid
    """
    if not settings.publisher_url:
        raise ConfigurationError(
            f"No public publisher on {settings.network}. "
            f"Set publisher_url (or WALRUS_PUBLISHER_URL) to your own publisher"
        )
    if not settings.aggregator_url:
        raise ConfigurationError("aggregator_url required for Walrus blob storage")


def make_blob_store(settings: Settings) -> BlobStore:
    """
    Create blob store instance based on settings.

    Args:
        settings: Store settings

    Returns:
        BlobStore instance

    Raises:
        ConfigurationError: If configuration is invalid or provider unknown
    """
    if settings.provider == "walrus":
        validate_walrus_config(settings)
        return WalrusBlobStore(
            settings.publisher_url,
            settings.aggregator_url,
            timeout=settings.timeout,
        )

    elif settings.provider == "fs":
        if not settings.storage_dir:
            raise ConfigurationError("storage_dir required for filesystem storage")
        return FilesystemBlobStore(Path(settings.storage_dir).expanduser())

    else:
        raise ConfigurationError(f"Provider {settings.provider} not supported")
