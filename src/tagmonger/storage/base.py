"""Provider-neutral object store interface."""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Iterator

from tagmonger.errors import BackendError

LOGGER = logging.getLogger(__name__)


class ObjectStore(ABC):
    """Capabilities the tag pipeline needs from a cloud object store.

    Implementations translate SDK failures into :class:`IterationError` for
    listings and :class:`BackendError` for everything else.
    """

    def __init__(self, *, wait_delay: float = 5.0, wait_max_attempts: int = 20) -> None:
        self.wait_delay = wait_delay
        self.wait_max_attempts = wait_max_attempts

    @abstractmethod
    def iter_keys(self, bucket: str, *, page_size: int) -> Iterator[str]:
        """Lazily yield object keys page by page in the backend's listing order."""

    @abstractmethod
    def copy_object(self, bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> None:
        """Copy ``bucket/src_key`` to ``dst_bucket/dst_key``."""

    @abstractmethod
    def object_exists(self, bucket: str, key: str) -> bool:
        """Return True when the object is visible to readers."""

    @abstractmethod
    def delete_object(self, bucket: str, key: str) -> None:
        """Delete ``bucket/key``."""

    def wait_until_exists(self, bucket: str, key: str) -> None:
        """Block until the object exists.

        Raises:
            BackendError: If the object is still missing after all attempts.
        """

        self._poll(bucket, key, expected=True)

    def wait_until_not_exists(self, bucket: str, key: str) -> None:
        """Block until the object is gone.

        Raises:
            BackendError: If the object is still present after all attempts.
        """

        self._poll(bucket, key, expected=False)

    def _poll(self, bucket: str, key: str, *, expected: bool) -> None:
        attempts = max(1, self.wait_max_attempts)
        for attempt in range(attempts):
            if self.object_exists(bucket, key) is expected:
                return
            if attempt < attempts - 1:
                LOGGER.debug("waiting for %s/%s (attempt %d)", bucket, key, attempt + 1)
                time.sleep(self.wait_delay)
        state = "appear" if expected else "disappear"
        raise BackendError(f"{bucket}/{key} did not {state} after {attempts} attempts")


__all__ = ["ObjectStore"]
