"""Bucket inventory listing."""

from __future__ import annotations

import logging
from itertools import islice

from tagmonger.errors import ConfigurationError
from tagmonger.storage.base import ObjectStore

LOGGER = logging.getLogger(__name__)


class InventoryFetcher:
    """Collect object keys from a bucket, bounded by an optional maximum."""

    def __init__(
        self,
        store: ObjectStore,
        *,
        page_size: int = 100,
        max_objects: int = 0,
        progress_interval: int = 10_000,
    ) -> None:
        if page_size < 1:
            raise ConfigurationError(f"Page size must be positive, got {page_size}.")
        if max_objects < 0:
            raise ConfigurationError(f"Maximum object count cannot be negative, got {max_objects}.")
        self.store = store
        self.page_size = page_size
        self.max_objects = max_objects
        self.progress_interval = max(1, progress_interval)

    def fetch(self, bucket: str) -> list[str]:
        """Return keys in listing order, stopping once ``max_objects`` is reached.

        Pages are pulled lazily, so no further page is requested after the
        limit is hit, even when it falls in the middle of a page.

        Raises:
            IterationError: If the backend listing fails; nothing is returned.
        """

        keys_iter = self.store.iter_keys(bucket, page_size=self.page_size)
        if self.max_objects:
            keys_iter = islice(keys_iter, self.max_objects)

        keys: list[str] = []
        for key in keys_iter:
            keys.append(key)
            if len(keys) % self.progress_interval == 0:
                LOGGER.info("Loaded %d files from bucket", len(keys))

        LOGGER.info("found %d objects", len(keys))
        return keys


__all__ = ["InventoryFetcher"]
