"""Base protocol for blob storage implementations."""

from typing import Dict, Iterable, Optional, Protocol

from ..models import BlobUpload
from ..signer import SigningIdentity


class BlobStore(Protocol):
    """
    Protocol for blob storage implementations.

    Blobs are immutable: a write always yields an identifier that refers to
    exactly the uploaded bytes, and nothing is ever overwritten in place.
    """

    async def write(
        self,
        upload: BlobUpload,
        *,
        epochs: int,
        deletable: bool,
        owner: SigningIdentity,
    ) -> str:
        """
        Upload one object.

        Args:
            upload: Contents, file identifier and tags
            epochs: Retention period in storage epochs
            deletable: Whether the owner may delete the blob before expiry
            owner: Identity that receives the stored blob object

        Returns:
            Service-assigned identifier

        Raises:
            StorageWriteError: On any failure (no partial success)
        """
        ...

    async def read(self, identifiers: Iterable[str]) -> Dict[str, Optional[bytes]]:
        """
        Download objects by identifier.

        Args:
            identifiers: Identifiers to fetch

        Returns:
            Mapping identifier -> bytes, or None where no object exists

        Raises:
            StorageReadError: On transport or service failure
        """
        ...

    async def aclose(self) -> None:
        """Release any network resources."""
        ...
