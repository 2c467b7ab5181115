"""Test filesystem blob storage backend."""

import pytest

from walrus_profiles.models import BlobUpload
from walrus_profiles.storage.fs import FilesystemBlobStore, compute_blob_id


@pytest.fixture
def upload():
    return BlobUpload(
        identifier="profile_johndoe_1.json",
        contents=b'{"username":"johndoe"}',
        tags={"username": "johndoe"},
    )


class TestFilesystemBlobStore:
    """Test write/read semantics."""

    @pytest.mark.asyncio
    async def test_write_then_read(self, fs_store, upload, identity):
        blob_id = await fs_store.write(upload, epochs=3, deletable=True, owner=identity)
        blobs = await fs_store.read([blob_id])
        assert blobs == {blob_id: upload.contents}

    @pytest.mark.asyncio
    async def test_sharded_layout(self, fs_store, blob_dir, upload, identity):
        blob_id = await fs_store.write(upload, epochs=3, deletable=True, owner=identity)
        assert (blob_dir / blob_id[:2] / blob_id[2:4] / blob_id).exists()
        assert blob_id == compute_blob_id(upload)

    @pytest.mark.asyncio
    async def test_same_upload_is_idempotent(self, fs_store, upload, identity):
        first = await fs_store.write(upload, epochs=3, deletable=True, owner=identity)
        second = await fs_store.write(upload, epochs=3, deletable=True, owner=identity)
        assert first == second

    @pytest.mark.asyncio
    async def test_new_identifier_gives_new_blob(self, fs_store, upload, identity):
        first = await fs_store.write(upload, epochs=3, deletable=True, owner=identity)
        later = upload.model_copy(update={"identifier": "profile_johndoe_2.json"})
        second = await fs_store.write(later, epochs=3, deletable=True, owner=identity)
        assert first != second

    @pytest.mark.asyncio
    async def test_existing_blob_never_overwritten(self, fs_store, blob_dir, upload, identity):
        blob_id = await fs_store.write(upload, epochs=3, deletable=True, owner=identity)
        path = blob_dir / blob_id[:2] / blob_id[2:4] / blob_id
        mtime = path.stat().st_mtime_ns
        await fs_store.write(upload, epochs=5, deletable=False, owner=identity)
        assert path.stat().st_mtime_ns == mtime
        assert fs_store.metadata(blob_id)["epochs"] == 3

    @pytest.mark.asyncio
    async def test_metadata_sidecar(self, fs_store, upload, identity):
        blob_id = await fs_store.write(upload, epochs=4, deletable=False, owner=identity)
        meta = fs_store.metadata(blob_id)
        assert meta["identifier"] == upload.identifier
        assert meta["tags"] == {"username": "johndoe"}
        assert meta["epochs"] == 4
        assert meta["deletable"] is False
        assert meta["owner"] == identity.address

    @pytest.mark.asyncio
    async def test_missing_and_malformed_ids_read_as_none(self, fs_store):
        missing = "ab" * 32
        blobs = await fs_store.read([missing, "nonexistent-id", "../etc/passwd"])
        assert blobs == {missing: None, "nonexistent-id": None, "../etc/passwd": None}
        assert fs_store.metadata("nonexistent-id") is None

    def test_creates_base_dir(self, tmp_path):
        FilesystemBlobStore(tmp_path / "a" / "b")
        assert (tmp_path / "a" / "b").is_dir()
