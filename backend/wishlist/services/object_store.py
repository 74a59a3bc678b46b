"""
Wishlist Backend — Object Store Clients
=======================================

What:  Writes uploaded photos to durable blob storage and yields their
       public URLs.
How:   ObjectStore defines the contract; two implementations:
         - LocalObjectStore: files under <storage_root>/<bucket>/ via aiofiles,
           served back by GET /api/files/{bucket}/{name}
         - S3ObjectStore: any S3-compatible API through boto3 (AWS S3, MinIO,
           Google Cloud Storage interoperability endpoint)
       Writes are retried with tenacity (exponential backoff + jitter); when
       every attempt fails the caller gets a StorageWriteError.
Who:   Constructed once at startup by build_object_store() and injected into
       LocationService.

Public URLs are deterministic:

    <storage_public_base_url>/<bucket>/<object name>
    e.g. https://storage.cloud.google.com/wishlist-images/3f2c...9a1b.jpeg
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, Tuple, Type

import aiofiles
import boto3
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from wishlist.config import Settings, settings as default_settings
from wishlist.exceptions import StorageWriteError

logger = logging.getLogger(__name__)


class ObjectStore(ABC):
    """
    Contract for blob storage used by the upload path.

    Subclasses implement the raw `_write`, `_delete` and `health_check`;
    put_object() adds retries and error translation on top.
    """

    retryable_exceptions: Tuple[Type[BaseException], ...] = (OSError,)

    def __init__(
        self,
        bucket: str,
        public_base_url: str,
        max_attempts: int = 3,
        min_wait: float = 0.5,
        max_wait: float = 5,
    ):
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")
        self.max_attempts = max_attempts
        self.min_wait = min_wait
        self.max_wait = max_wait

    def public_url(self, name: str) -> str:
        return f"{self.public_base_url}/{self.bucket}/{name}"

    async def put_object(self, name: str, content: bytes, content_type: str) -> str:
        """
        Write `content` under `name`, tagged with `content_type`.

        Returns:
            The public URL of the stored object.

        Raises:
            StorageWriteError once all retry attempts have failed.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(self.retryable_exceptions),
            stop=stop_after_attempt(self.max_attempts),
            # exponential backoff plus up to min_wait of random jitter
            wait=wait_exponential(multiplier=self.min_wait, max=self.max_wait)
            + wait_random(0, self.min_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    await self._write(name, content, content_type)
        except Exception as e:
            logger.error(
                "Object store write failed for %s/%s: %s",
                self.bucket,
                name,
                str(e),
            )
            raise StorageWriteError(
                context={
                    "bucket": self.bucket,
                    "object": name,
                    "error_type": type(e).__name__,
                },
            ) from e

        logger.info(
            "Stored object %s/%s (%d bytes, %s)",
            self.bucket,
            name,
            len(content),
            content_type,
        )
        return self.public_url(name)

    async def delete_object(self, name: str) -> bool:
        """
        Best-effort removal. Failures are logged, never raised: callers use
        this for cleanup after the outcome of their operation is settled.
        """
        try:
            await self._delete(name)
            logger.info("Deleted object %s/%s", self.bucket, name)
            return True
        except Exception as e:
            logger.warning("Failed to delete object %s/%s: %s", self.bucket, name, str(e))
            return False

    @abstractmethod
    async def _write(self, name: str, content: bytes, content_type: str) -> None:
        ...

    @abstractmethod
    async def _delete(self, name: str) -> None:
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """True if the bucket is reachable and writable/readable."""
        ...


class LocalObjectStore(ObjectStore):
    """
    Filesystem-backed store for development and tests.

    Layout:
        storage/
        └── wishlist-images/
            ├── 3f2c...-9a1b.jpeg
            └── 7d41...-02ce.png
    """

    def __init__(self, root: str, bucket: str, public_base_url: str, **kwargs):
        super().__init__(bucket=bucket, public_base_url=public_base_url, **kwargs)
        self.root = Path(root).resolve()
        self.bucket_dir = self.root / bucket
        self.bucket_dir.mkdir(parents=True, exist_ok=True)
        logger.info("LocalObjectStore initialized at %s", self.bucket_dir)

    def resolve(self, name: str) -> Optional[Path]:
        """
        Absolute path for `name` inside the bucket directory, or None if the
        name would escape it (e.g. '../../etc/passwd').
        """
        path = (self.bucket_dir / name).resolve()
        if path.parent != self.bucket_dir:
            return None
        return path

    async def _write(self, name: str, content: bytes, content_type: str) -> None:
        path = self.resolve(name)
        if path is None:
            raise ValueError(f"Invalid object name: {name!r}")
        async with aiofiles.open(path, "wb") as f:
            await f.write(content)

    async def _delete(self, name: str) -> None:
        path = self.resolve(name)
        if path is not None and path.exists():
            path.unlink()

    async def health_check(self) -> bool:
        return self.bucket_dir.is_dir()


class S3ObjectStore(ObjectStore):
    """
    Store backed by an S3-compatible API.

    boto3 is synchronous, so every call runs in a worker thread through
    asyncio.to_thread to keep the event loop free during the upload.
    """

    retryable_exceptions = (BotoCoreError, ClientError, OSError)

    def __init__(
        self,
        bucket: str,
        public_base_url: str,
        endpoint_url: Optional[str] = None,
        region: str = "us-east-1",
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        use_path_style: bool = True,
        client=None,
        **kwargs,
    ):
        super().__init__(bucket=bucket, public_base_url=public_base_url, **kwargs)
        if client is None:
            session = boto3.session.Session(
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                region_name=region,
            )
            client = session.client(
                "s3",
                endpoint_url=endpoint_url,
                config=BotoConfig(
                    s3={"addressing_style": "path" if use_path_style else "auto"},
                    retries={"max_attempts": 1},
                ),
            )
        self.client = client
        logger.info("S3ObjectStore initialized for bucket=%s endpoint=%s", bucket, endpoint_url)

    async def _write(self, name: str, content: bytes, content_type: str) -> None:
        await asyncio.to_thread(
            self.client.put_object,
            Bucket=self.bucket,
            Key=name,
            Body=content,
            ContentType=content_type,
        )

    async def _delete(self, name: str) -> None:
        await asyncio.to_thread(self.client.delete_object, Bucket=self.bucket, Key=name)

    async def health_check(self) -> bool:
        try:
            await asyncio.to_thread(self.client.head_bucket, Bucket=self.bucket)
            return True
        except (BotoCoreError, ClientError) as e:
            logger.warning("Object store health check failed: %s", str(e))
            return False


def build_object_store(config: Optional[Settings] = None) -> ObjectStore:
    """Create the store selected by STORAGE_BACKEND."""
    config = config or default_settings
    retry_kwargs = {
        "max_attempts": config.retry_max_attempts,
        "min_wait": config.retry_min_wait,
        "max_wait": config.retry_max_wait,
    }

    if config.storage_backend == "s3":
        return S3ObjectStore(
            bucket=config.storage_bucket,
            public_base_url=config.storage_public_base_url,
            endpoint_url=config.s3_endpoint_url,
            region=config.s3_region,
            access_key_id=config.s3_access_key_id,
            secret_access_key=config.s3_secret_access_key,
            use_path_style=config.s3_use_path_style,
            **retry_kwargs,
        )

    return LocalObjectStore(
        root=config.storage_root,
        bucket=config.storage_bucket,
        public_base_url=config.storage_public_base_url,
        **retry_kwargs,
    )
