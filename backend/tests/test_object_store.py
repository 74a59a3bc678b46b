"""
Wishlist Backend — Object Store Tests
=====================================

What:  Writes, retries, error translation and best-effort deletes for both
       object store implementations.
How:   LocalObjectStore runs against tmp_path; S3ObjectStore gets a
       MagicMock in place of the boto3 client (no network).
"""

from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from wishlist.config import Settings
from wishlist.exceptions import StorageWriteError
from wishlist.services.object_store import (
    LocalObjectStore,
    S3ObjectStore,
    build_object_store,
)


def _client_error(operation: str = "PutObject") -> ClientError:
    return ClientError({"Error": {"Code": "500", "Message": "boom"}}, operation)


class TestLocalObjectStore:
    @pytest.mark.asyncio
    async def test_put_object_writes_file_and_returns_public_url(self, object_store):
        url = await object_store.put_object("abc.jpeg", b"bytes", "image/jpeg")

        assert url == "http://test/api/files/wishlist-images/abc.jpeg"
        assert (object_store.bucket_dir / "abc.jpeg").read_bytes() == b"bytes"

    def test_resolve_refuses_traversal(self, object_store):
        assert object_store.resolve("../../etc/passwd") is None
        assert object_store.resolve("nested/name.png") is None
        assert object_store.resolve("ok.png") == object_store.bucket_dir / "ok.png"

    @pytest.mark.asyncio
    async def test_put_object_with_bad_name_raises_storage_error(self, object_store):
        with pytest.raises(StorageWriteError) as exc_info:
            await object_store.put_object("../escape.png", b"x", "image/png")
        assert exc_info.value.context["error_type"] == "ValueError"

    @pytest.mark.asyncio
    async def test_oserror_is_retried_then_reported(self, object_store, monkeypatch):
        calls = []

        async def failing_write(name, content, content_type):
            calls.append(name)
            raise OSError("disk full")

        monkeypatch.setattr(object_store, "_write", failing_write)

        with pytest.raises(StorageWriteError):
            await object_store.put_object("a.png", b"x", "image/png")
        assert len(calls) == object_store.max_attempts

    @pytest.mark.asyncio
    async def test_delete_object_removes_file(self, object_store):
        await object_store.put_object("gone.png", b"x", "image/png")

        assert await object_store.delete_object("gone.png") is True
        assert not (object_store.bucket_dir / "gone.png").exists()

    @pytest.mark.asyncio
    async def test_delete_missing_object_is_quiet(self, object_store):
        assert await object_store.delete_object("never-written.png") is True

    @pytest.mark.asyncio
    async def test_health_check(self, object_store):
        assert await object_store.health_check() is True


class TestS3ObjectStore:
    def setup_method(self):
        self.client = MagicMock()
        self.store = S3ObjectStore(
            bucket="wishlist-images",
            public_base_url="https://storage.cloud.google.com/",
            client=self.client,
            max_attempts=3,
            min_wait=0,
            max_wait=0,
        )

    @pytest.mark.asyncio
    async def test_put_object_tags_content_type(self):
        url = await self.store.put_object("id.png", b"data", "image/png")

        assert url == "https://storage.cloud.google.com/wishlist-images/id.png"
        self.client.put_object.assert_called_once_with(
            Bucket="wishlist-images",
            Key="id.png",
            Body=b"data",
            ContentType="image/png",
        )

    @pytest.mark.asyncio
    async def test_transient_failure_is_retried(self):
        self.client.put_object.side_effect = [_client_error(), {"ETag": "1"}]

        url = await self.store.put_object("id.png", b"data", "image/png")

        assert url.endswith("/wishlist-images/id.png")
        assert self.client.put_object.call_count == 2

    @pytest.mark.asyncio
    async def test_retry_with_backoff_and_jitter(self):
        store = S3ObjectStore(
            bucket="wishlist-images",
            public_base_url="https://storage.cloud.google.com/",
            client=self.client,
            max_attempts=3,
            min_wait=0.01,
            max_wait=0.02,
        )
        self.client.put_object.side_effect = [_client_error(), _client_error(), {"ETag": "1"}]

        await store.put_object("id.png", b"data", "image/png")

        assert self.client.put_object.call_count == 3

    @pytest.mark.asyncio
    async def test_persistent_failure_raises_storage_write_error(self):
        self.client.put_object.side_effect = _client_error()

        with pytest.raises(StorageWriteError) as exc_info:
            await self.store.put_object("id.png", b"data", "image/png")

        assert self.client.put_object.call_count == 3
        assert exc_info.value.context == {
            "bucket": "wishlist-images",
            "object": "id.png",
            "error_type": "ClientError",
        }

    @pytest.mark.asyncio
    async def test_delete_failure_returns_false(self):
        self.client.delete_object.side_effect = _client_error("DeleteObject")

        assert await self.store.delete_object("id.png") is False

    @pytest.mark.asyncio
    async def test_health_check_reports_unreachable_bucket(self):
        self.client.head_bucket.side_effect = _client_error("HeadBucket")

        assert await self.store.health_check() is False


class TestBuildObjectStore:
    def test_local_backend_by_default(self, tmp_path):
        config = Settings(storage_backend="local", storage_root=str(tmp_path))

        store = build_object_store(config)

        assert isinstance(store, LocalObjectStore)
        assert store.bucket == config.storage_bucket
        assert store.max_attempts == config.retry_max_attempts

    def test_s3_backend(self):
        config = Settings(
            storage_backend="S3",
            s3_endpoint_url="http://localhost:9000",
            s3_access_key_id="key",
            s3_secret_access_key="secret",
        )

        store = build_object_store(config)

        assert isinstance(store, S3ObjectStore)
