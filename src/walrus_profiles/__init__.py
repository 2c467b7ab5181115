"""Store user profiles as immutable JSON blobs on Walrus."""

from .constants import VERSION
from .errors import (
    ConfigurationError,
    DecodeError,
    NotFoundError,
    ProfileError,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from .models import ProfilePatch, UserProfile
from .profile_store import ProfileStore
from .signer import SigningIdentity

__version__ = VERSION

__all__ = [
    "ProfileStore",
    "UserProfile",
    "ProfilePatch",
    "SigningIdentity",
    "ProfileError",
    "ConfigurationError",
    "StorageError",
    "StorageWriteError",
    "StorageReadError",
    "NotFoundError",
    "DecodeError",
]
