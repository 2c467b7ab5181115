"""Signing identity for authorizing blob writes.

The identity is an Ed25519 keypair loaded once from a secret in process
configuration. Stored blob objects are sent to the identity's Sui address,
which makes that address the owner allowed to delete them.
"""

import base64
import binascii
import hashlib
import logging
import os
from typing import Optional

from solders.keypair import Keypair  # type: ignore

from .config import load_env_file
from .constants import PRIVATE_KEY_ENV
from .errors import ConfigurationError

logger = logging.getLogger(__name__)

# Sui signature scheme flag for Ed25519
ED25519_FLAG = 0x00


def _decode_secret(secret: str) -> bytes:
    """Decode hex or base64 key material to raw bytes."""
    value = secret.strip()
    hex_value = value[2:] if value.startswith("0x") else value
    if len(hex_value) == 64:
        try:
            return bytes.fromhex(hex_value)
        except ValueError:
            pass
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        raise ConfigurationError("Private key is neither hex nor base64 encoded")


def _keypair_from_raw(raw: bytes) -> Keypair:
    """Build a keypair from a seed, a flagged Sui key, or a full keypair."""
    if len(raw) == 33:
        if raw[0] != ED25519_FLAG:
            raise ConfigurationError(
                f"Unsupported key scheme flag 0x{raw[0]:02x} (only Ed25519 is supported)"
            )
        raw = raw[1:]
    if len(raw) == 32:
        return Keypair.from_seed(raw)
    if len(raw) == 64:
        try:
            return Keypair.from_bytes(raw)
        except ValueError as e:
            raise ConfigurationError(f"Invalid Ed25519 keypair bytes: {e}") from e
    raise ConfigurationError(
        f"Private key must decode to 32, 33 or 64 bytes, got {len(raw)}"
    )


class SigningIdentity:
    """Ed25519 credential used as the owner of written blobs."""

    def __init__(self, keypair: Keypair):
        self._keypair = keypair
        self._address: Optional[str] = None

    @classmethod
    def from_secret(cls, secret: Optional[str]) -> "SigningIdentity":
        """
        Load identity from encoded key material.

        Args:
            secret: Base64 (seed, flagged Sui key or 64-byte keypair) or hex seed

        Returns:
            SigningIdentity

        Raises:
            ConfigurationError: If the secret is empty or cannot be parsed
        """
        if not secret or not secret.strip():
            raise ConfigurationError(f"Missing {PRIVATE_KEY_ENV} in environment or .env file")
        if secret.strip().startswith("suiprivkey"):
            raise ConfigurationError(
                "Bech32 'suiprivkey' keys are not supported. Export the key as base64 "
                "with: sui keytool convert <key>"
            )
        return cls(_keypair_from_raw(_decode_secret(secret)))

    @classmethod
    def from_env(cls, env_var: str = PRIVATE_KEY_ENV) -> "SigningIdentity":
        """Load identity from the environment, reading .env first if present."""
        load_env_file()
        identity = cls.from_secret(os.environ.get(env_var))
        logger.debug("Loaded signing identity %s from %s", identity.address, env_var)
        return identity

    @property
    def public_key(self) -> bytes:
        return bytes(self._keypair.pubkey())

    @property
    def address(self) -> str:
        """Sui address: 0x + hex(BLAKE2b-256(flag || public key))."""
        if self._address is None:
            h = hashlib.blake2b(digest_size=32)
            h.update(bytes([ED25519_FLAG]))
            h.update(self.public_key)
            self._address = "0x" + h.hexdigest()
        return self._address

    def sign(self, message: bytes) -> bytes:
        """Sign raw bytes, returning the 64-byte Ed25519 signature.

        No blob store calls this yet: the Walrus publisher signs and pays for
        the storage transaction itself, and writes only use ``address`` as the
        blob owner.
        """
        return bytes(self._keypair.sign_message(message))

    def __repr__(self) -> str:
        return f"SigningIdentity(address={self.address!r})"
