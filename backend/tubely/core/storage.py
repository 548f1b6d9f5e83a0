"""
Tubely S3-Compatible Storage Client

Storage abstraction over boto3 that works against AWS S3 or any
S3-compatible endpoint (MinIO for development) through a configurable
endpoint URL.

Key Features:
- Object upload from a local file with an explicit Content-Type
- Presigned GET URL generation for time-limited downloads
- Object deletion
- Async wrappers: blocking boto3 calls run in a worker thread
- Single-attempt calls: botocore retries are disabled

boto3 and botocore failures surface as StorageOperationError.
"""

import asyncio
import logging
from functools import wraps
from pathlib import Path
from typing import Any, Callable, TypeVar

import boto3

from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from tubely.config import Settings, get_settings
from tubely.core.exceptions import StorageOperationError


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Singleton container for storage client instance
_singleton_container: dict[str, "StorageClient"] = {}


def async_wrap(func: Callable[..., T]) -> Callable[..., "asyncio.Future[T]"]:
    """
    Decorator running a blocking boto3 call via asyncio.to_thread so the
    event loop keeps serving other requests during S3 I/O.
    """

    @wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        return await asyncio.to_thread(func, *args, **kwargs)

    return wrapper


def _error_message(error: Exception) -> str:
    if isinstance(error, ClientError):
        return error.response.get("Error", {}).get("Message") or str(error)
    return str(error)


class StorageClient:
    """
    S3-compatible storage client used by the upload pipeline.

    Attributes:
        settings: Application settings containing S3 configuration
        s3_client: Initialized boto3 S3 client
        bucket_name: Default bucket for uploads

    Example usage:
        ```python
        storage = get_storage_client()
        await storage.upload_file("/tmp/video.mp4.processing", "landscape/abc.mp4", "video/mp4")
        url = await storage.generate_presigned_download_url(
            "landscape/abc.mp4", bucket="tubely-videos", expires_in=300
        )
        ```
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """
        Create the boto3 client.

        Path-style addressing keeps MinIO endpoints working; retries are
        disabled so every store call is attempted exactly once.
        """
        self.settings = settings or get_settings()

        client_config = Config(
            signature_version="s3v4",
            s3={"addressing_style": "path"},
            retries={"total_max_attempts": 1, "mode": "standard"},
        )

        self.s3_client = boto3.client(
            "s3",
            endpoint_url=self.settings.s3_endpoint_url,
            aws_access_key_id=self.settings.s3_access_key_id,
            aws_secret_access_key=self.settings.s3_secret_access_key,
            region_name=self.settings.s3_region,
            config=client_config,
        )
        self.bucket_name = self.settings.s3_bucket_name

        logger.info(
            "S3 storage client initialized",
            extra={
                "bucket": self.bucket_name,
                "region": self.settings.s3_region,
                "endpoint": self.settings.s3_endpoint_url or "AWS S3 (default)",
            },
        )

    async def upload_file(
        self,
        file_path: str | Path,
        key: str,
        content_type: str,
        bucket: str | None = None,
    ) -> None:
        """
        Upload a local file's full contents as one object.

        The file is opened fresh and read from offset zero.

        Args:
            file_path: Local file to upload.
            key: Object key, e.g. "landscape/abc.mp4".
            content_type: Stored as the object's Content-Type.
            bucket: Target bucket (defaults to the configured bucket).

        Raises:
            StorageOperationError: If the put fails or the file cannot be read.
        """
        target_bucket = bucket or self.bucket_name

        @async_wrap
        def _put_object() -> dict[str, Any]:
            with open(file_path, "rb") as body:
                body.seek(0)
                return self.s3_client.put_object(
                    Bucket=target_bucket,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )

        try:
            await _put_object()
        except (ClientError, BotoCoreError, OSError) as error:
            logger.exception(
                "Failed to upload object", extra={"bucket": target_bucket, "key": key}
            )
            raise StorageOperationError(
                f"Failed to upload '{key}' to '{target_bucket}': {_error_message(error)}"
            ) from error

        logger.info(
            "Uploaded object",
            extra={"bucket": target_bucket, "key": key, "content_type": content_type},
        )

    async def generate_presigned_download_url(
        self,
        key: str,
        bucket: str | None = None,
        expires_in: int | None = None,
    ) -> str:
        """
        Generate a presigned GET URL for an object.

        Signing happens locally; no request is sent to the store.

        Args:
            key: Object key.
            bucket: Bucket holding the object (defaults to the configured bucket).
            expires_in: Validity in seconds (defaults to the configured window).

        Raises:
            StorageOperationError: If signing fails.
        """
        target_bucket = bucket or self.bucket_name
        expiration = expires_in or self.settings.signed_url_expiration_seconds

        @async_wrap
        def _generate() -> str:
            return self.s3_client.generate_presigned_url(
                ClientMethod="get_object",
                Params={"Bucket": target_bucket, "Key": key},
                ExpiresIn=expiration,
            )

        try:
            url = await _generate()
        except (ClientError, BotoCoreError) as error:
            logger.exception(
                "Failed to generate presigned download URL",
                extra={"bucket": target_bucket, "key": key},
            )
            raise StorageOperationError(
                f"Failed to sign '{key}' in '{target_bucket}': {_error_message(error)}"
            ) from error

        logger.debug(
            "Generated presigned download URL",
            extra={"bucket": target_bucket, "key": key, "expires_in": expiration},
        )
        return url

    async def delete_file(self, key: str, bucket: str | None = None) -> None:
        """
        Delete an object. Deleting a missing key is not an error.

        Raises:
            StorageOperationError: If the delete call fails.
        """
        target_bucket = bucket or self.bucket_name

        @async_wrap
        def _delete() -> dict[str, Any]:
            return self.s3_client.delete_object(Bucket=target_bucket, Key=key)

        try:
            await _delete()
        except (ClientError, BotoCoreError) as error:
            logger.exception(
                "Failed to delete object", extra={"bucket": target_bucket, "key": key}
            )
            raise StorageOperationError(
                f"Failed to delete '{key}' from '{target_bucket}': {_error_message(error)}"
            ) from error

        logger.info("Deleted object", extra={"bucket": target_bucket, "key": key})


def get_storage_client() -> StorageClient:
    """
    Get the shared StorageClient instance, creating it on first use.

    boto3 clients are thread-safe, so one client serves every request.
    """
    if "instance" not in _singleton_container:
        _singleton_container["instance"] = StorageClient()
        logger.info("Created new StorageClient singleton instance")

    return _singleton_container["instance"]
