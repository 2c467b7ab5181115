"""Test blob store selection from settings."""

import pytest

from walrus_profiles.config import Settings
from walrus_profiles.errors import ConfigurationError
from walrus_profiles.storage import make_blob_store
from walrus_profiles.storage.fs import FilesystemBlobStore
from walrus_profiles.storage.walrus import WalrusBlobStore


@pytest.mark.asyncio
async def test_walrus_is_default():
    store = make_blob_store(Settings())
    try:
        assert isinstance(store, WalrusBlobStore)
        assert store.publisher_url == "https://publisher.walrus-testnet.walrus.space"
        assert store._client.timeout.read == 60.0
    finally:
        await store.aclose()


def test_mainnet_requires_publisher():
    with pytest.raises(ConfigurationError, match="No public publisher on mainnet"):
        make_blob_store(Settings(network="mainnet"))


@pytest.mark.asyncio
async def test_mainnet_with_own_publisher():
    store = make_blob_store(Settings(network="mainnet", publisher_url="https://pub.example.com"))
    try:
        assert store.aggregator_url == "https://aggregator.walrus-mainnet.walrus.space"
    finally:
        await store.aclose()


def test_fs_provider(tmp_path):
    store = make_blob_store(Settings(provider="fs", storage_dir=str(tmp_path / "blobs")))
    assert isinstance(store, FilesystemBlobStore)


def test_fs_requires_directory():
    with pytest.raises(ConfigurationError, match="storage_dir"):
        make_blob_store(Settings(provider="fs"))


def test_unknown_provider():
    with pytest.raises(ConfigurationError, match="Provider azure not supported"):
        make_blob_store(Settings(provider="azure"))
