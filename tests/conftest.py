"""Shared test fixtures and utilities."""

import base64

import pytest

from walrus_profiles.config import Settings
from walrus_profiles.models import UserProfile
from walrus_profiles.profile_store import ProfileStore
from walrus_profiles.signer import SigningIdentity
from walrus_profiles.storage.fs import FilesystemBlobStore

# Fixed Ed25519 seed so addresses are stable across runs
TEST_SEED = bytes(range(32))
TEST_PRIVATE_KEY = base64.b64encode(TEST_SEED).decode()


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Keep tests away from the developer's .env, config file and key."""
    monkeypatch.chdir(tmp_path)
    for var in (
        "PRIVATE_KEY",
        "WALRUS_PROFILES_CONFIG",
        "WALRUS_NETWORK",
        "WALRUS_PUBLISHER_URL",
        "WALRUS_AGGREGATOR_URL",
        "WALRUS_EPOCHS",
        "WALRUS_DELETABLE",
        "WALRUS_TIMEOUT",
        "WALRUS_STORAGE_PROVIDER",
        "WALRUS_STORAGE_DIR",
    ):
        # setenv first so teardown also removes values later loaded from .env
        monkeypatch.setenv(var, "")
        monkeypatch.delenv(var)


@pytest.fixture
def seed():
    return TEST_SEED


@pytest.fixture
def private_key():
    return TEST_PRIVATE_KEY


@pytest.fixture
def identity(private_key):
    return SigningIdentity.from_secret(private_key)


@pytest.fixture
def blob_dir(tmp_path):
    return tmp_path / "blobs"


@pytest.fixture
def settings(blob_dir):
    return Settings(provider="fs", storage_dir=str(blob_dir))


@pytest.fixture
def fs_store(blob_dir):
    return FilesystemBlobStore(blob_dir)


@pytest.fixture
def profile_store(settings, identity, fs_store):
    return ProfileStore(settings=settings, identity=identity, blob_store=fs_store)


@pytest.fixture
def sample_profile():
    """Profile with most optional fields set (no facebook_url)."""
    return UserProfile(
        email="john.doe@example.com",
        firstname="John",
        lastname="Doe",
        profile_picture="https://example.com/profile.jpg",
        username="johndoe",
        twitter_url="https://twitter.com/johndoe",
        instagram_url="https://instagram.com/johndoe",
        linkedin_url="https://linkedin.com/in/johndoe",
        discord="johndoe#1234",
        createdAt=1_700_000_000_000,
        updatedAt=1_700_000_000_000,
    )
