"""Custom exceptions for walrus-profiles.

Every failure surfaced by the profile store is one of these types, so callers
(the CLI, or a service layer) can map each kind to its own exit code or status.
"""

from typing import Optional


class ProfileError(RuntimeError):
    """Base class for all profile store errors."""
    pass


class ConfigurationError(ProfileError):
    """Required configuration (signing key, storage settings) missing or invalid."""
    pass


# Storage Errors
class StorageError(ProfileError):
    """Base class for blob storage communication errors."""

    def __init__(self, message: str, identifier: Optional[str] = None):
        self.identifier = identifier
        super().__init__(message)


class StorageWriteError(StorageError):
    """Blob upload failed (network, signing rejection, quota)."""
    pass


class StorageReadError(StorageError):
    """Blob download failed at the transport or service level."""
    pass


class NotFoundError(ProfileError):
    """No blob exists for the identifier."""

    def __init__(self, identifier: str):
        self.identifier = identifier
        super().__init__(f"Profile not found: {identifier}")


class DecodeError(ProfileError):
    """Blob contents are not valid JSON or not a user profile."""

    def __init__(self, identifier: str, reason: str):
        self.identifier = identifier
        self.reason = reason
        super().__init__(f"Blob {identifier} is not a valid profile: {reason}")
