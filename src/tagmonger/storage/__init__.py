"""Object store backends and provider selection."""

from __future__ import annotations

from tagmonger.config.models import RelocationSettings, StorageSettings
from tagmonger.errors import ConfigurationError

from .base import ObjectStore


def build_store(storage: StorageSettings, relocation: RelocationSettings) -> ObjectStore:
    """Construct the backend for the configured provider.

    Provider SDKs are imported lazily so a run against one cloud never needs
    credentials or imports for the other.

    Args:
        storage: Provider and connection settings.
        relocation: Waiting behavior applied after copy and delete.

    Returns:
        ObjectStore: Backend implementing the list/copy/exists/delete capabilities.

    Raises:
        ConfigurationError: If no provider is configured.
    """

    if storage.provider == "aws":
        from .s3 import S3Store

        return S3Store(
            region=storage.region,
            endpoint_url=storage.endpoint_url,
            wait_delay=relocation.wait_delay_seconds,
            wait_max_attempts=relocation.wait_max_attempts,
        )
    if storage.provider == "gcs":
        from .gcs import GCSStore

        return GCSStore(
            project=storage.project,
            wait_delay=relocation.wait_delay_seconds,
            wait_max_attempts=relocation.wait_max_attempts,
        )
    raise ConfigurationError("No storage provider selected; pass --aws or --gcs.")


__all__ = ["ObjectStore", "build_store"]
