"""Profile store: JSON profiles over immutable Walrus blobs.

Every store produces a fresh identifier; nothing is mutated in place.
Updating a profile reads the previous blob, merges the changes and writes a
new blob, leaving the old identifier valid and unchanged.
"""

import logging
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError

from .config import Settings, load_settings
from .errors import (
    DecodeError,
    NotFoundError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from .models import ProfilePatch, UserProfile, build_upload, merge_profile
from .signer import SigningIdentity
from .storage import BlobStore, make_blob_store

logger = logging.getLogger(__name__)


class ProfileStore:
    """
    Store, retrieve and update user profiles by blob identifier.

    Holds no profile state between calls, so concurrent calls on one
    instance are independent of each other.

    Example:
        >>> async with ProfileStore() as store:
        ...     blob_id = await store.store(UserProfile.new(
        ...         email="john.doe@example.com", firstname="John",
        ...         lastname="Doe", username="johndoe"))
        ...     new_id = await store.update(blob_id, {"firstname": "Johnny"})
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        identity: Optional[SigningIdentity] = None,
        blob_store: Optional[BlobStore] = None,
    ):
        """
        Initialize the store.

        The signing identity is resolved first, so a missing key fails
        before any storage client is created.

        Args:
            settings: Store settings (defaults to load_settings())
            identity: Signing identity (defaults to PRIVATE_KEY from the environment)
            blob_store: Blob backend (defaults to one built from settings)

        Raises:
            ConfigurationError: If no signing identity is available or settings are invalid
        """
        self.identity = identity or SigningIdentity.from_env()
        self.settings = settings or load_settings()
        self.blob_store = blob_store or make_blob_store(self.settings)

    async def __aenter__(self) -> "ProfileStore":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.blob_store.aclose()

    async def store(self, profile: UserProfile) -> str:
        """
        Store a user profile as a new blob.

        Args:
            profile: Fully populated profile; timestamps are stored as given

        Returns:
            Identifier of the new blob

        Raises:
            StorageWriteError: If the upload fails (not retried)
        """
        upload = build_upload(profile)
        try:
            blob_id = await self.blob_store.write(
                upload,
                epochs=self.settings.epochs,
                deletable=self.settings.deletable,
                owner=self.identity,
            )
        except StorageError:
            raise
        except Exception as e:
            raise StorageWriteError(f"Failed to store profile {profile.username}: {e}") from e

        logger.info("Profile stored successfully: %s", blob_id)
        return blob_id

    async def retrieve(self, blob_id: str) -> Optional[UserProfile]:
        """
        Retrieve a user profile by blob identifier.

        Args:
            blob_id: Identifier returned by store() or update()

        Returns:
            Decoded profile, or None if no blob exists for the identifier

        Raises:
            DecodeError: If the blob is not a JSON profile
            StorageReadError: If the download fails
        """
        try:
            blobs = await self.blob_store.read([blob_id])
        except StorageError:
            raise
        except Exception as e:
            raise StorageReadError(f"Failed to read profile {blob_id}: {e}", blob_id) from e

        data = blobs.get(blob_id)
        if data is None:
            logger.info("Profile not found: %s", blob_id)
            return None

        try:
            return UserProfile.from_bytes(data)
        except ValidationError as e:
            errors = e.errors()
            reason = errors[0]["msg"] if errors else str(e)
            raise DecodeError(blob_id, reason) from e

    async def update(
        self,
        blob_id: str,
        changes: Union[ProfilePatch, Mapping[str, Any]],
    ) -> str:
        """
        Update an existing profile by storing a merged copy.

        Args:
            blob_id: Identifier of the profile to update
            changes: Fields to overwrite; updatedAt is always set from the clock

        Returns:
            Identifier of the new blob. The old blob is left untouched.

        Raises:
            NotFoundError: If no profile exists for blob_id (nothing is written)
            DecodeError: If the existing blob is not a profile
            StorageReadError / StorageWriteError: If either exchange fails
        """
        if not isinstance(changes, ProfilePatch):
            changes = ProfilePatch.model_validate(dict(changes))

        existing = await self.retrieve(blob_id)
        if existing is None:
            raise NotFoundError(blob_id)

        merged = merge_profile(existing, changes)
        new_id = await self.store(merged)
        logger.info("Profile %s updated as %s", blob_id, new_id)
        return new_id

    async def search_by_username(self, username: str) -> List[UserProfile]:
        """
        Search profiles by username.

        Always empty: searching needs an index of stored profiles, which
        this store does not build.
        """
        logger.warning("Search by username %r not supported - requires search index", username)
        return []

    async def list_all(self) -> List[UserProfile]:
        """
        List all stored profiles.

        Always empty: enumeration needs an index of stored profiles, which
        this store does not build.
        """
        logger.warning("Listing all profiles not supported - requires search index")
        return []
