"""Google Cloud Storage backend."""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from google.api_core.exceptions import GoogleAPIError, NotFound
from google.auth.exceptions import DefaultCredentialsError, GoogleAuthError
from google.cloud import storage
from requests.exceptions import RequestException

from tagmonger.errors import BackendError, ConfigurationError, IterationError

from .base import ObjectStore

LOGGER = logging.getLogger(__name__)

# Auth refreshes and raw transport failures bypass GoogleAPIError.
_GCS_ERRORS = (GoogleAPIError, GoogleAuthError, RequestException)


class GCSStore(ObjectStore):
    """Object store backed by a ``google.cloud.storage`` client.

    GCS has no waiter API, so existence confirmation uses the polling loop
    inherited from :class:`ObjectStore`.
    """

    def __init__(
        self,
        client: Any | None = None,
        *,
        project: Optional[str] = None,
        wait_delay: float = 5.0,
        wait_max_attempts: int = 20,
    ) -> None:
        """Create the store.

        Raises:
            ConfigurationError: If no client is given and application default
                credentials cannot be found.
        """

        super().__init__(wait_delay=wait_delay, wait_max_attempts=wait_max_attempts)
        if client is None:
            try:
                client = storage.Client(project=project)
            except DefaultCredentialsError as exc:
                raise ConfigurationError(f"Google Cloud credentials unavailable: {exc}") from exc
        self._client = client

    def iter_keys(self, bucket: str, *, page_size: int) -> Iterator[str]:
        LOGGER.info("looking for objects in bucket: %s", bucket)
        try:
            for blob in self._client.list_blobs(bucket, page_size=page_size):
                yield blob.name
        except _GCS_ERRORS as exc:
            raise IterationError(f"failed to iterate objects in gs://{bucket}: {exc}") from exc

    def copy_object(self, bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> None:
        source_bucket = self._client.bucket(bucket)
        try:
            source_bucket.copy_blob(
                source_bucket.blob(src_key),
                self._client.bucket(dst_bucket),
                dst_key,
            )
        except _GCS_ERRORS as exc:
            raise BackendError(f"copy gs://{bucket}/{src_key}: {exc}") from exc
        LOGGER.debug("GCS copy: gs://%s/%s -> gs://%s/%s", bucket, src_key, dst_bucket, dst_key)

    def object_exists(self, bucket: str, key: str) -> bool:
        try:
            return bool(self._client.bucket(bucket).blob(key).exists())
        except _GCS_ERRORS as exc:
            raise BackendError(f"stat gs://{bucket}/{key}: {exc}") from exc

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._client.bucket(bucket).blob(key).delete()
        except NotFound as exc:
            raise BackendError(f"delete gs://{bucket}/{key}: object not found") from exc
        except _GCS_ERRORS as exc:
            raise BackendError(f"delete gs://{bucket}/{key}: {exc}") from exc
        LOGGER.debug("GCS delete: gs://%s/%s", bucket, key)


__all__ = ["GCSStore"]
