"""Walrus blob storage implementation over the publisher/aggregator HTTP API.

Profiles are written as single-file quilts so each one carries its own
identifier and tags. The identifier returned to callers is the quilt patch
id, which the aggregator resolves back to exactly the uploaded bytes.
"""

import json
import logging
import urllib.parse
from typing import Dict, Iterable, Optional

import httpx

from ..constants import DEFAULT_TIMEOUT
from ..errors import ConfigurationError, StorageReadError, StorageWriteError
from ..models import BlobUpload
from ..signer import SigningIdentity

logger = logging.getLogger(__name__)

# Aggregator answers 400 for ids that cannot be parsed as patch ids; such
# an id cannot name any stored object
NOT_FOUND_STATUSES = (400, 404)


def _response_snippet(response: httpx.Response, limit: int = 200) -> str:
    text = response.text.strip()
    return text[:limit] + ("..." if len(text) > limit else "")


class WalrusBlobStore:
    """
    Walrus HTTP client.

    Timeouts are configured once on the underlying httpx client; there is
    no retry at this layer.
    """

    def __init__(
        self,
        publisher_url: str,
        aggregator_url: str,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize Walrus blob store.

        Args:
            publisher_url: Base URL of the publisher (writes)
            aggregator_url: Base URL of the aggregator (reads)
            timeout: Connect/read timeout in seconds
            client: Optional preconfigured httpx client (tests inject a mock transport)
        """
        if not publisher_url:
            raise ConfigurationError("publisher_url required for Walrus blob storage")
        if not aggregator_url:
            raise ConfigurationError("aggregator_url required for Walrus blob storage")

        self.publisher_url = publisher_url.rstrip("/")
        self.aggregator_url = aggregator_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    async def write(
        self,
        upload: BlobUpload,
        *,
        epochs: int,
        deletable: bool,
        owner: SigningIdentity,
    ) -> str:
        """
        Store one file as a quilt.

        Returns:
            Quilt patch id of the stored file
        """
        params = {"epochs": str(epochs), "send_object_to": owner.address}
        if deletable:
            params["deletable"] = "true"
        else:
            params["permanent"] = "true"

        metadata = [{"identifier": upload.identifier, "tags": upload.tags}]
        files = {
            upload.identifier: (
                upload.identifier,
                upload.contents,
                upload.tags.get("content-type", "application/octet-stream"),
            ),
        }
        url = f"{self.publisher_url}/v1/quilts"
        logger.debug("PUT %s (%s, %d bytes, epochs=%d)", url, upload.identifier, upload.size, epochs)

        try:
            response = await self._client.put(
                url,
                params=params,
                files=files,
                data={"_metadata": json.dumps(metadata)},
            )
        except httpx.TimeoutException as e:
            raise StorageWriteError(f"Publisher timed out storing {upload.identifier}") from e
        except httpx.HTTPError as e:
            raise StorageWriteError(f"Cannot connect to publisher: {e}") from e

        if response.status_code >= 400:
            raise StorageWriteError(
                f"Publisher error {response.status_code} storing {upload.identifier}: "
                f"{_response_snippet(response)}"
            )

        try:
            payload = response.json()
        except json.JSONDecodeError as e:
            raise StorageWriteError(f"Publisher returned non-JSON response: {e}") from e

        for entry in payload.get("storedQuiltBlobs") or []:
            if entry.get("identifier") == upload.identifier and entry.get("quiltPatchId"):
                logger.debug("Stored %s as quilt patch %s", upload.identifier, entry["quiltPatchId"])
                return entry["quiltPatchId"]

        raise StorageWriteError(
            f"Publisher response has no quilt patch for {upload.identifier}"
        )

    async def read(self, identifiers: Iterable[str]) -> Dict[str, Optional[bytes]]:
        results: Dict[str, Optional[bytes]] = {}
        for patch_id in identifiers:
            results[patch_id] = await self._read_one(patch_id)
        return results

    async def _read_one(self, patch_id: str) -> Optional[bytes]:
        url = (
            f"{self.aggregator_url}/v1/blobs/by-quilt-patch-id/"
            f"{urllib.parse.quote(patch_id, safe='')}"
        )
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(url)
        except httpx.TimeoutException as e:
            raise StorageReadError(f"Aggregator timed out reading {patch_id}", patch_id) from e
        except httpx.HTTPError as e:
            raise StorageReadError(f"Cannot connect to aggregator: {e}", patch_id) from e

        if response.status_code in NOT_FOUND_STATUSES:
            logger.debug("No blob for %s (HTTP %d)", patch_id, response.status_code)
            return None
        if response.status_code >= 400:
            raise StorageReadError(
                f"Aggregator error {response.status_code} reading {patch_id}: "
                f"{_response_snippet(response)}",
                patch_id,
            )
        return response.content

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
