"""Classification data models."""

from __future__ import annotations

import posixpath
from datetime import date, datetime, time, tzinfo
from enum import Enum
from typing import Iterator, List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class TagState(str, Enum):
    """Lifecycle state assigned to a tag object."""

    FRESH = "fresh"
    EXPIRED = "expired"
    RETIRED = "retired"


def split_key(key: str) -> tuple[str, str, str]:
    """Split an object key into directory, filename and parent segment.

    Args:
        key: Storage key such as ``foo/bar/d_2024_01_01.list``.

    Returns:
        tuple[str, str, str]: ``(directory, filename, parent_segment)``; the
        directory and parent segment are empty for keys at the bucket root.
    """

    directory, _, filename = key.rpartition("/")
    parent_segment = directory.rpartition("/")[2]
    return directory, filename, parent_segment


def archive_key(directory: str, filename: str, archive_dir: str) -> str:
    """Return the key an expired tag is relocated to."""

    return posixpath.join(directory, archive_dir, filename)


class TagRecord(BaseModel):
    """A tag object observed in one listing, with its lifecycle state.

    Attributes:
        key: Full object key.
        directory: Key prefix before the final ``/``.
        filename: Final path component of the key.
        parent_segment: Last segment of ``directory``.
        state: Lifecycle state, fixed at classification time.
        archive_dir: Directory name that marks retired tags.
        tag_name: Filename without the manifest suffix.
        tag_date: Date decoded from ``tag_name``.
        target_key: Archive destination, only set for expired tags.
    """

    model_config = ConfigDict(frozen=True)

    key: str
    directory: str
    filename: str
    parent_segment: str
    state: TagState
    archive_dir: str = "old_tags"
    tag_name: Optional[str] = None
    tag_date: Optional[date] = None
    target_key: Optional[str] = None

    @model_validator(mode="after")
    def _check_state(self) -> "TagRecord":
        if split_key(self.key) != (self.directory, self.filename, self.parent_segment):
            raise ValueError(f"key parts do not match {self.key!r}")
        if self.state is TagState.RETIRED:
            if self.parent_segment != self.archive_dir:
                raise ValueError(f"retired tags must sit directly under {self.archive_dir!r}")
            if self.target_key is not None:
                raise ValueError("retired tags cannot carry a target key")
            return self
        if self.tag_date is None:
            raise ValueError(f"{self.state.value} tags require a parsed tag date")
        if self.state is TagState.EXPIRED:
            expected = archive_key(self.directory, self.filename, self.archive_dir)
            if self.target_key != expected:
                raise ValueError(f"expired tag target must be {expected!r}")
        elif self.target_key is not None:
            raise ValueError("only expired tags carry a target key")
        return self

    def tag_datetime(self, zone: tzinfo) -> Optional[datetime]:
        """Return midnight of ``tag_date`` in ``zone``, if a date was parsed."""

        if self.tag_date is None:
            return None
        return datetime.combine(self.tag_date, time.min, tzinfo=zone)


class ClassificationResult(BaseModel):
    """Partitioned output of one classification pass.

    Attributes:
        today: Reference date the cutoff was derived from.
        cutoff_date: Oldest date still considered fresh.
        fresh: Tags dated on or after the cutoff.
        expired: Tags dated before the cutoff, in listing order.
        retired: Tags already under the archive directory.
        unparsable: Keys dropped because their name failed the tag grammar.
        errors: Diagnostics for dropped keys.
    """

    today: date
    cutoff_date: date
    fresh: List[TagRecord] = Field(default_factory=list)
    expired: List[TagRecord] = Field(default_factory=list)
    retired: List[TagRecord] = Field(default_factory=list)
    unparsable: List[str] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {
            "fresh": len(self.fresh),
            "expired": len(self.expired),
            "retired": len(self.retired),
            "unparsable": len(self.unparsable),
        }

    def records(self) -> Iterator[TagRecord]:
        """Yield every classified record, retired first, then fresh, then expired."""

        yield from self.retired
        yield from self.fresh
        yield from self.expired


__all__ = ["TagState", "TagRecord", "ClassificationResult", "split_key", "archive_key"]
