"""Shared fixtures for tagmonger tests."""

from __future__ import annotations

from typing import Callable, Iterable, Iterator

import pytest

from tagmonger.errors import BackendError, IterationError
from tagmonger.storage.base import ObjectStore


class FakeObjectStore(ObjectStore):
    """In-memory object store that records every call.

    Attributes:
        objects: Keys currently stored, in listing order.
        calls: ``(operation, key)`` tuples for every mutating or probing call.
        pages_served: Number of listing pages handed out.
        fail_on: Maps an operation name to the key it should fail for.
        list_error_after: Raise ``IterationError`` after this many keys.
    """

    def __init__(self, keys: Iterable[str] = ()) -> None:
        super().__init__(wait_delay=0, wait_max_attempts=2)
        self.objects: dict[str, None] = dict.fromkeys(keys)
        self.calls: list[tuple[str, str]] = []
        self.pages_served = 0
        self.fail_on: dict[str, str] = {}
        self.list_error_after: int | None = None

    def iter_keys(self, bucket: str, *, page_size: int) -> Iterator[str]:
        snapshot = list(self.objects)
        for start in range(0, len(snapshot), page_size):
            self.pages_served += 1
            for offset, key in enumerate(snapshot[start : start + page_size]):
                if self.list_error_after is not None and start + offset >= self.list_error_after:
                    raise IterationError(f"listing {bucket} failed")
                yield key

    def copy_object(self, bucket: str, src_key: str, dst_bucket: str, dst_key: str) -> None:
        self.calls.append(("copy", src_key))
        self._maybe_fail("copy", src_key)
        if src_key not in self.objects:
            raise BackendError(f"{src_key} does not exist")
        self.objects[dst_key] = None

    def object_exists(self, bucket: str, key: str) -> bool:
        self.calls.append(("exists", key))
        self._maybe_fail("exists", key)
        return key in self.objects

    def delete_object(self, bucket: str, key: str) -> None:
        self.calls.append(("delete", key))
        self._maybe_fail("delete", key)
        self.objects.pop(key, None)

    @property
    def mutations(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] in ("copy", "delete")]

    def _maybe_fail(self, operation: str, key: str) -> None:
        if self.fail_on.get(operation) == key:
            raise BackendError(f"simulated {operation} failure for {key}")


@pytest.fixture
def fake_store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def make_store() -> Callable[..., FakeObjectStore]:
    return FakeObjectStore
