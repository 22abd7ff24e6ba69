"""AWS S3 backend built on boto3."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from tagmonger.errors import BackendError, ConfigurationError, IterationError

from .base import ObjectStore

LOGGER = logging.getLogger(__name__)

_MISSING_CODES = {"404", "NoSuchKey", "NotFound"}


class S3Store(ObjectStore):
    """Object store backed by an S3 (or S3-compatible) client."""

    def __init__(
        self,
        client: Any | None = None,
        *,
        region: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        wait_delay: float = 5.0,
        wait_max_attempts: int = 20,
    ) -> None:
        """Create the store.

        Args:
            client: Preconfigured boto3 S3 client; one is built from the default
                credential chain when omitted.
            region: AWS region; ``$AWS_REGION`` is used when unset.
            endpoint_url: Custom endpoint for S3-compatible storage.
            wait_delay: Seconds between waiter polls.
            wait_max_attempts: Maximum waiter polls before giving up.

        Raises:
            ConfigurationError: If boto3 cannot build a client, for example
                because the profile or endpoint is invalid.
        """

        super().__init__(wait_delay=wait_delay, wait_max_attempts=wait_max_attempts)
        if client is None:
            kwargs: dict[str, Any] = {}
            if region:
                kwargs["region_name"] = region
            if endpoint_url:
                kwargs["endpoint_url"] = endpoint_url
            try:
                client = boto3.client("s3", **kwargs)
            except (BotoCoreError, ValueError) as exc:
                raise ConfigurationError(f"Unable to create S3 client: {exc}") from exc
        self._s3 = client

    def iter_keys(self, bucket: str, *, page_size: int) -> Iterator[str]:
        LOGGER.info("looking for objects in bucket: %s", bucket)
        LOGGER.info("page size: %d", page_size)
        paginator = self._s3.get_paginator("list_objects_v2")
        pages = paginator.paginate(Bucket=bucket, PaginationConfig={"PageSize": page_size})
        try:
            for page_number, page in enumerate(pages):
                LOGGER.debug("Page %d", page_number)
                for obj in page.get("Contents", []):
                    yield obj["Key"]
        except (ClientError, BotoCoreError) as exc:
            raise IterationError(f"failed to iterate objects in s3://{bucket}: {exc}") from exc

    def copy_object(self, bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> None:
        try:
            self._s3.copy_object(
                Bucket=dst_bucket,
                Key=dst_key,
                CopySource={"Bucket": bucket, "Key": src_key},
            )
        except (ClientError, BotoCoreError) as exc:
            raise BackendError(f"copy s3://{bucket}/{src_key}: {exc}") from exc
        LOGGER.debug("S3 copy: s3://%s/%s -> s3://%s/%s", bucket, src_key, dst_bucket, dst_key)

    def object_exists(self, bucket: str, key: str) -> bool:
        try:
            self._s3.head_object(Bucket=bucket, Key=key)
        except ClientError as exc:
            code = str(exc.response.get("Error", {}).get("Code", ""))
            if code in _MISSING_CODES:
                return False
            raise BackendError(f"head s3://{bucket}/{key}: {exc}") from exc
        except BotoCoreError as exc:
            raise BackendError(f"head s3://{bucket}/{key}: {exc}") from exc
        return True

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._s3.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as exc:
            raise BackendError(f"delete s3://{bucket}/{key}: {exc}") from exc
        LOGGER.debug("S3 delete: s3://%s/%s", bucket, key)

    def wait_until_exists(self, bucket: str, key: str) -> None:
        self._wait("object_exists", bucket, key)

    def wait_until_not_exists(self, bucket: str, key: str) -> None:
        self._wait("object_not_exists", bucket, key)

    def _wait(self, waiter_name: str, bucket: str, key: str) -> None:
        waiter = self._s3.get_waiter(waiter_name)
        try:
            waiter.wait(
                Bucket=bucket,
                Key=key,
                WaiterConfig={"Delay": self.wait_delay, "MaxAttempts": self.wait_max_attempts},
            )
        except (WaiterError, ClientError, BotoCoreError) as exc:
            raise BackendError(f"{waiter_name} s3://{bucket}/{key}: {exc}") from exc


__all__ = ["S3Store"]
