"""S3 blob store used to publish originals and derivatives."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional
from urllib.parse import quote

import boto3
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from photo_gallery.core.errors import BlobCheckFailed, BlobUploadFailed

logger = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


def _error_code(exc: ClientError) -> str:
    return str(exc.response.get("Error", {}).get("Code", ""))


class S3BlobStore:
    """Thin wrapper over a boto3 S3 client for one bucket.

    Every method is safe to call from several threads: boto3 clients are
    thread-safe and no state is kept between calls.
    """

    def __init__(self, bucket: str, region: Optional[str] = None, client: Any = None):
        if not bucket:
            raise ValueError("S3 bucket name is required")
        self.bucket = bucket
        self.client = client or boto3.client(
            "s3",
            region_name=region,
            config=Config(signature_version="s3v4", retries={"max_attempts": 1}),
        )

    def check_bucket(self) -> None:
        """Verify the bucket exists and is reachable.

        Raises:
            BlobCheckFailed: If the bucket cannot be reached
        """
        try:
            self.client.head_bucket(Bucket=self.bucket)
        except (ClientError, BotoCoreError) as exc:
            raise BlobCheckFailed(f"Cannot access bucket {self.bucket}: {exc}") from exc
        logger.info("S3 bucket %s reachable", self.bucket)

    def exists(self, key: str) -> bool:
        """
        Check if an object exists.

        Args:
            key: Object key

        Returns:
            True if the object exists, False if S3 reports it missing

        Raises:
            BlobCheckFailed: For any other error
        """
        try:
            self.client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as exc:
            if _error_code(exc) in _MISSING_CODES:
                return False
            raise BlobCheckFailed(f"Failed to check {key}: {exc}") from exc
        except BotoCoreError as exc:
            raise BlobCheckFailed(f"Failed to check {key}: {exc}") from exc

    def put(self, key: str, content: bytes, content_type: str = "image/jpeg") -> str:
        """
        Upload object bytes.

        Args:
            key: Object key
            content: Object body
            content_type: MIME type stored with the object

        Returns:
            URL of the uploaded object

        Raises:
            BlobUploadFailed: If the upload fails
        """
        try:
            self.client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=content,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as exc:
            raise BlobUploadFailed(f"Failed to upload {key}: {exc}") from exc
        logger.info("Uploaded %d bytes to s3://%s/%s", len(content), self.bucket, key)
        return self.object_url(key)

    def list_all_keys(self, prefix: str = "") -> Iterator[str]:
        """Yield every object key in the bucket, following pagination."""
        paginator = self.client.get_paginator("list_objects_v2")
        params: dict[str, Any] = {"Bucket": self.bucket, "PaginationConfig": {"PageSize": 1000}}
        if prefix:
            params["Prefix"] = prefix
        try:
            for page in paginator.paginate(**params):
                for obj in page.get("Contents", []):
                    yield obj["Key"]
        except (ClientError, BotoCoreError) as exc:
            raise BlobCheckFailed(f"Failed to list bucket {self.bucket}: {exc}") from exc

    def object_url(self, key: str) -> str:
        endpoint = self.client.meta.endpoint_url.rstrip("/")
        return f"{endpoint}/{self.bucket}/{quote(key)}"
