"""
Unit tests for ObjectStorageGateway.

The gateway runs against the in-memory MockBucket, plus a bucket that
fails on every call to exercise error mapping. No network, no boto3.
"""

import re

import pytest

from src.core.storage.gateway import (
    BUCKET_NOT_BOUND,
    PUBLIC_URL_NOT_SET,
    ObjectStorageGateway,
    is_configuration_error,
)
from src.core.storage.models import InMemoryFile
from src.infrastructure.storage.client import MockBucket


class FailingBucket(MockBucket):
    """A bucket whose every operation raises."""

    def __init__(self, message: str = "bucket unavailable") -> None:
        super().__init__()
        self._message = message

    async def put(self, key, data, metadata):
        self.put_calls += 1
        raise RuntimeError(self._message)

    async def get(self, key):
        raise RuntimeError(self._message)

    async def delete(self, key):
        self.delete_calls += 1
        raise RuntimeError(self._message)

    async def list(self, prefix="", limit=1000):
        raise RuntimeError(self._message)


@pytest.fixture
def bucket():
    return MockBucket()


@pytest.fixture
def gateway(bucket):
    return ObjectStorageGateway(bucket=bucket, base_url="cdn.example.com/")


# ---------------------------------------------------------------------------
# Upload Tests
# ---------------------------------------------------------------------------

class TestPut:
    """Tests for uploading through the gateway."""

    @pytest.mark.asyncio
    async def test_put_returns_key_and_public_url(self, gateway):
        file = InMemoryFile("photo.png", b"\x89PNG data", "image/png")

        result = await gateway.put(file, folder="avatars")

        assert result.success
        assert result.error is None
        assert re.fullmatch(r"avatars/\d+_[0-9a-z]+\.png", result.key)
        assert result.url == f"https://cdn.example.com/{result.key}"

    @pytest.mark.asyncio
    async def test_put_defaults_to_uploads_folder(self, gateway):
        result = await gateway.put(InMemoryFile("a.txt", b"hi"))
        assert result.key.startswith("uploads/")

    @pytest.mark.asyncio
    async def test_put_without_extension_uses_bin(self, gateway):
        result = await gateway.put(InMemoryFile("noext", b"raw"))
        assert result.key.endswith(".bin")

    @pytest.mark.asyncio
    async def test_put_stores_bytes_and_metadata(self, gateway, bucket):
        file = InMemoryFile("photo.png", b"12345", "image/png")

        result = await gateway.put(file)
        stored = await bucket.get(result.key)

        assert stored.body == b"12345"
        assert stored.metadata.content_type == "image/png"
        assert stored.metadata.cache_control == "public, max-age=31536000"
        assert stored.metadata.custom_metadata["originalName"] == "photo.png"
        assert stored.metadata.custom_metadata["size"] == "5"
        assert stored.metadata.custom_metadata["uploadedAt"].endswith("Z")

    @pytest.mark.asyncio
    async def test_put_preserves_http_scheme(self, bucket):
        gateway = ObjectStorageGateway(bucket=bucket, base_url="http://example.com/")
        result = await gateway.put(InMemoryFile("a.txt", b"x"))
        assert result.url == f"http://example.com/{result.key}"

    @pytest.mark.asyncio
    async def test_put_without_bucket_is_configuration_error(self):
        gateway = ObjectStorageGateway(bucket=None, base_url="cdn.example.com")

        result = await gateway.put(InMemoryFile("a.txt", b"x"))

        assert not result.success
        assert result.error == BUCKET_NOT_BOUND
        assert result.key is None and result.url is None

    @pytest.mark.asyncio
    async def test_put_without_public_url_does_no_io(self, bucket):
        gateway = ObjectStorageGateway(bucket=bucket, base_url=None)

        result = await gateway.put(InMemoryFile("a.txt", b"x"))

        assert not result.success
        assert result.error == PUBLIC_URL_NOT_SET
        assert result.error != BUCKET_NOT_BOUND
        assert bucket.put_calls == 0
        assert len(bucket) == 0

    @pytest.mark.asyncio
    async def test_empty_public_url_counts_as_missing(self, bucket):
        gateway = ObjectStorageGateway(bucket=bucket, base_url="")
        result = await gateway.put(InMemoryFile("a.txt", b"x"))
        assert result.error == PUBLIC_URL_NOT_SET

    @pytest.mark.asyncio
    async def test_put_failure_surfaces_error_message(self):
        bucket = FailingBucket("disk full")
        gateway = ObjectStorageGateway(bucket=bucket, base_url="cdn.example.com")

        result = await gateway.put(InMemoryFile("a.txt", b"x"))

        assert not result.success
        assert result.error == "disk full"
        assert bucket.put_calls == 1
        assert len(bucket) == 0

    @pytest.mark.asyncio
    async def test_put_failure_without_message_uses_fallback(self):
        gateway = ObjectStorageGateway(bucket=FailingBucket(""), base_url="cdn.example.com")
        result = await gateway.put(InMemoryFile("a.txt", b"x"))
        assert result.error == "Upload failed"


# ---------------------------------------------------------------------------
# Get Tests
# ---------------------------------------------------------------------------

class TestGet:
    """get returns None for both missing keys and errors."""

    @pytest.mark.asyncio
    async def test_get_returns_uploaded_object(self, gateway):
        result = await gateway.put(InMemoryFile("a.txt", b"hello", "text/plain"))

        obj = await gateway.get(result.key)

        assert obj is not None
        assert obj.key == result.key
        assert obj.body == b"hello"
        assert obj.size == 5

    @pytest.mark.asyncio
    async def test_get_missing_key_returns_none(self, gateway):
        assert await gateway.get("uploads/does-not-exist.png") is None

    @pytest.mark.asyncio
    async def test_get_error_returns_none(self):
        gateway = ObjectStorageGateway(bucket=FailingBucket(), base_url="cdn.example.com")
        assert await gateway.get("uploads/a.png") is None

    @pytest.mark.asyncio
    async def test_get_without_bucket_returns_none(self):
        gateway = ObjectStorageGateway(bucket=None, base_url="cdn.example.com")
        assert await gateway.get("uploads/a.png") is None


# ---------------------------------------------------------------------------
# Delete Tests
# ---------------------------------------------------------------------------

class TestDelete:
    """Tests for deleting objects."""

    @pytest.mark.asyncio
    async def test_delete_removes_object(self, gateway):
        result = await gateway.put(InMemoryFile("a.txt", b"x"))

        deleted = await gateway.delete(result.key)

        assert deleted.success
        assert deleted.error is None
        assert await gateway.get(result.key) is None

    @pytest.mark.asyncio
    async def test_delete_missing_key_succeeds(self, gateway):
        """Deletes are idempotent."""
        result = await gateway.delete("uploads/never-existed.txt")
        assert result.success

    @pytest.mark.asyncio
    async def test_delete_without_bucket_is_configuration_error(self):
        gateway = ObjectStorageGateway(bucket=None, base_url="cdn.example.com")

        result = await gateway.delete("uploads/a.txt")

        assert not result.success
        assert result.error == BUCKET_NOT_BOUND
        assert is_configuration_error(result.error)

    @pytest.mark.asyncio
    async def test_delete_failure_surfaces_error_message(self):
        gateway = ObjectStorageGateway(bucket=FailingBucket("timeout"), base_url="x.com")

        result = await gateway.delete("uploads/a.txt")

        assert not result.success
        assert result.error == "timeout"
        assert not is_configuration_error(result.error)

    @pytest.mark.asyncio
    async def test_delete_failure_without_message_uses_fallback(self):
        gateway = ObjectStorageGateway(bucket=FailingBucket(""), base_url="x.com")
        result = await gateway.delete("uploads/a.txt")
        assert result.error == "Delete from R2 failed"


# ---------------------------------------------------------------------------
# List Tests
# ---------------------------------------------------------------------------

class TestList:
    """Tests for listing objects under a prefix."""

    @pytest.mark.asyncio
    async def test_list_filters_by_prefix_and_sorts(self, gateway):
        for name in ("b.png", "a.png"):
            await gateway.put(InMemoryFile(name, b"x"), folder="avatars")
        await gateway.put(InMemoryFile("c.pdf", b"x"), folder="docs")

        objects = await gateway.list(prefix="avatars/")

        assert len(objects) == 2
        assert all(obj.key.startswith("avatars/") for obj in objects)
        assert [obj.key for obj in objects] == sorted(obj.key for obj in objects)

    @pytest.mark.asyncio
    async def test_list_respects_limit(self, gateway):
        for i in range(5):
            await gateway.put(InMemoryFile(f"{i}.txt", b"x"))

        objects = await gateway.list(limit=3)

        assert len(objects) == 3

    @pytest.mark.asyncio
    async def test_list_error_returns_empty(self):
        gateway = ObjectStorageGateway(bucket=FailingBucket(), base_url="x.com")
        assert await gateway.list() == []

    @pytest.mark.asyncio
    async def test_list_without_bucket_returns_empty(self):
        gateway = ObjectStorageGateway(bucket=None, base_url="x.com")
        assert await gateway.list() == []
