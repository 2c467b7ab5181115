"""Filesystem blob storage implementation for development and testing."""

import hashlib
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Dict, Iterable, Optional

from ..errors import StorageReadError, StorageWriteError
from ..models import BlobUpload
from ..signer import SigningIdentity

logger = logging.getLogger(__name__)

_BLOB_ID = re.compile(r"^[0-9a-f]{64}$")


def compute_blob_id(upload: BlobUpload) -> str:
    """Content-derived id over identifier, tags and contents.

    Null bytes separate the parts so ("AB", "C") and ("A", "BC") differ.
    """
    h = hashlib.sha256()
    h.update(upload.identifier.encode("utf-8"))
    h.update(b"\x00")
    h.update(json.dumps(upload.tags, sort_keys=True).encode("utf-8"))
    h.update(b"\x00")
    h.update(upload.contents)
    return h.hexdigest()


def _atomic_write(data: bytes, final_path: Path) -> None:
    """Write via temp file + rename so readers never see partial blobs."""
    fd, tmppath = tempfile.mkstemp(
        prefix=f".{final_path.name}.partial-",
        dir=final_path.parent,
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
        os.replace(tmppath, final_path)
    except Exception:
        try:
            os.unlink(tmppath)
        except OSError:
            pass
        raise


class FilesystemBlobStore:
    """
    Local directory store (avoids a live Walrus network in tests).

    Blobs are stored with sharding: base_dir/ab/cd/<blob_id>, next to a
    <blob_id>.json sidecar holding identifier, tags and retention settings.
    """

    def __init__(self, base_dir: Path):
        """
        Initialize filesystem store.

        Args:
            base_dir: Base directory for blob storage
        """
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _blob_path(self, blob_id: str) -> Path:
        return self.base_dir / blob_id[:2] / blob_id[2:4] / blob_id

    async def write(
        self,
        upload: BlobUpload,
        *,
        epochs: int,
        deletable: bool,
        owner: SigningIdentity,
    ) -> str:
        blob_id = compute_blob_id(upload)
        dest = self._blob_path(blob_id)

        # Immutable: never overwrite an existing blob
        if dest.exists():
            logger.debug("Blob %s already stored", blob_id[:12])
            return blob_id

        meta = {
            "identifier": upload.identifier,
            "tags": upload.tags,
            "epochs": epochs,
            "deletable": deletable,
            "owner": owner.address,
            "size": upload.size,
        }
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            _atomic_write(json.dumps(meta, sort_keys=True).encode("utf-8"),
                          dest.with_name(f"{blob_id}.json"))
            _atomic_write(upload.contents, dest)
        except OSError as e:
            raise StorageWriteError(f"Failed to write blob {upload.identifier}: {e}") from e

        logger.debug("Wrote blob %s (%d bytes) to %s", blob_id[:12], upload.size, dest)
        return blob_id

    async def read(self, identifiers: Iterable[str]) -> Dict[str, Optional[bytes]]:
        results: Dict[str, Optional[bytes]] = {}
        for blob_id in identifiers:
            if not _BLOB_ID.match(blob_id):
                results[blob_id] = None
                continue
            path = self._blob_path(blob_id)
            try:
                results[blob_id] = path.read_bytes()
            except FileNotFoundError:
                results[blob_id] = None
            except OSError as e:
                raise StorageReadError(f"Failed to read blob {blob_id}: {e}", blob_id) from e
        return results

    def metadata(self, blob_id: str) -> Optional[dict]:
        """Sidecar metadata for a stored blob, or None if absent."""
        if not _BLOB_ID.match(blob_id):
            return None
        path = self._blob_path(blob_id).with_name(f"{blob_id}.json")
        if not path.exists():
            return None
        return json.loads(path.read_text())

    async def aclose(self) -> None:
        pass
