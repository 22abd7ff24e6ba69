"""Executor moving expired tags into the archive directory."""

from __future__ import annotations

import logging
from typing import Sequence

from tagmonger.classification.models import TagRecord, TagState
from tagmonger.errors import BackendError, RelocationError
from tagmonger.storage.base import ObjectStore

from .models import RelocationEvent

LOGGER = logging.getLogger(__name__)


class Relocator:
    """Move expired tags with copy, confirm, delete, confirm.

    The move is not atomic. If a step fails the run stops immediately; an
    object that was copied but not deleted is classified as expired again on
    the next run and copied over its archived twin before deletion is retried.
    """

    def __init__(self, store: ObjectStore, bucket: str) -> None:
        self.store = store
        self.bucket = bucket

    def relocate(
        self,
        records: Sequence[TagRecord],
        *,
        dry_run: bool = False,
    ) -> list[RelocationEvent]:
        """Move each expired record to its target key, in the given order.

        Args:
            records: Expired records produced by the classifier.
            dry_run: When true, report the moves without calling the store.

        Returns:
            list[RelocationEvent]: One event per record.

        Raises:
            RelocationError: On the first failing step; later records are not touched.
            ValueError: If a record is not expired or lacks a target key.
        """

        self._validate(records)

        events: list[RelocationEvent] = []
        for record in records:
            target_key = record.target_key or ""
            LOGGER.info("renaming %s -> %s", record.key, target_key)

            if dry_run:
                LOGGER.info("    (noop)")
                events.append(
                    RelocationEvent(source=record.key, destination=target_key, applied=False)
                )
                continue

            self._move(record.key, target_key)
            events.append(RelocationEvent(source=record.key, destination=target_key))

        return events

    def _validate(self, records: Sequence[TagRecord]) -> None:
        for record in records:
            if record.state is not TagState.EXPIRED or not record.target_key:
                raise ValueError(f"Only expired tags can be relocated: {record.key}")

    def _move(self, key: str, target_key: str) -> None:
        step = "copy"
        try:
            self.store.copy_object(self.bucket, key, self.bucket, target_key)
            step = "confirm copy"
            self.store.wait_until_exists(self.bucket, target_key)
            step = "delete"
            self.store.delete_object(self.bucket, key)
            step = "confirm delete"
            self.store.wait_until_not_exists(self.bucket, key)
        except BackendError as exc:
            raise RelocationError(key, target_key, step, str(exc)) from exc


__all__ = ["Relocator"]
