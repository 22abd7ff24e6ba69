"""Tag classification engine.

The classifier turns filtered object keys into :class:`TagRecord` instances and
partitions them by age. A key whose parent directory is the archive directory is
retired without looking at its name; every other key must carry a daily or
weekly tag date. Keys that fail the grammar are dropped and reported, never
fatal, so one malformed upload cannot stop the housekeeping run.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta
from typing import Iterable, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from tagmonger.errors import ConfigurationError, TagParseError

from .grammar import parse_tag_date
from .models import ClassificationResult, TagRecord, TagState, archive_key, split_key

LOGGER = logging.getLogger(__name__)

DEFAULT_ARCHIVE_DIR = "old_tags"
DEFAULT_MANIFEST_SUFFIX = ".list"
DEFAULT_TIMEZONE = "America/Los_Angeles"


class TagClassifier:
    """Partition tag keys into fresh, expired and retired records."""

    def __init__(
        self,
        *,
        timezone: str = DEFAULT_TIMEZONE,
        retention_days: int = 30,
        archive_dir: str = DEFAULT_ARCHIVE_DIR,
        manifest_suffix: str = DEFAULT_MANIFEST_SUFFIX,
        today: Optional[date] = None,
    ) -> None:
        """Validate classifier settings.

        Args:
            timezone: IANA zone identifier used to determine "today".
            retention_days: Number of days, including today, a tag stays fresh.
            archive_dir: Directory name holding relocated tags.
            manifest_suffix: Suffix stripped from filenames before parsing.
            today: Fixed reference date; defaults to the current date in ``timezone``.

        Raises:
            ConfigurationError: If any setting is invalid.
        """

        try:
            self.zone = ZoneInfo(timezone)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ConfigurationError(f"Unknown time zone identifier: {timezone!r}") from exc
        if retention_days < 1:
            raise ConfigurationError(
                f"Retention window must be at least 1 day, got {retention_days}."
            )
        if not archive_dir or "/" in archive_dir:
            raise ConfigurationError(
                f"Archive directory must be a single path segment, got {archive_dir!r}."
            )
        self.retention_days = retention_days
        self.archive_dir = archive_dir
        self.manifest_suffix = manifest_suffix
        self._today = today

    def today(self) -> date:
        """Return the reference date in the configured time zone."""

        if self._today is not None:
            return self._today
        return datetime.now(self.zone).date()

    def cutoff_date(self, today: date) -> date:
        """Return the oldest tag date that still counts as fresh."""

        return today - timedelta(days=self.retention_days - 1)

    def classify(self, keys: Iterable[str]) -> ClassificationResult:
        """Classify each key, preserving listing order within each partition.

        Args:
            keys: Object keys that passed the pattern filter.

        Returns:
            ClassificationResult: Fresh, expired and retired partitions plus the
            keys dropped as unparsable.
        """

        today = self.today()
        cutoff = self.cutoff_date(today)
        LOGGER.info("today: %s", today.isoformat())
        LOGGER.info("expire tags prior to %s", cutoff.isoformat())

        result = ClassificationResult(today=today, cutoff_date=cutoff)
        for key in keys:
            directory, filename, parent_segment = split_key(key)

            if parent_segment == self.archive_dir:
                result.retired.append(
                    TagRecord(
                        key=key,
                        directory=directory,
                        filename=filename,
                        parent_segment=parent_segment,
                        archive_dir=self.archive_dir,
                        state=TagState.RETIRED,
                    )
                )
                continue

            tag_name = filename.removesuffix(self.manifest_suffix)
            try:
                tag_date = parse_tag_date(tag_name)
            except TagParseError as exc:
                LOGGER.warning("Error parsing tag name %s: %s", tag_name, exc.reason)
                result.unparsable.append(key)
                result.errors.append(f"{key}: {exc}")
                continue

            if tag_date >= cutoff:
                record = TagRecord(
                    key=key,
                    directory=directory,
                    filename=filename,
                    parent_segment=parent_segment,
                    archive_dir=self.archive_dir,
                    tag_name=tag_name,
                    tag_date=tag_date,
                    state=TagState.FRESH,
                )
                result.fresh.append(record)
            else:
                record = TagRecord(
                    key=key,
                    directory=directory,
                    filename=filename,
                    parent_segment=parent_segment,
                    archive_dir=self.archive_dir,
                    tag_name=tag_name,
                    tag_date=tag_date,
                    state=TagState.EXPIRED,
                    target_key=archive_key(directory, filename, self.archive_dir),
                )
                result.expired.append(record)
            LOGGER.debug("%s -> %s", key, record.state.value)

        LOGGER.info('found %d "fresh enough" tag files', len(result.fresh))
        LOGGER.info("found %d expired tag files", len(result.expired))
        LOGGER.info("found %d retired tag files", len(result.retired))
        if result.unparsable:
            LOGGER.warning("skipped %d unparsable tag files", len(result.unparsable))
        return result


__all__ = ["TagClassifier", "DEFAULT_ARCHIVE_DIR", "DEFAULT_MANIFEST_SUFFIX", "DEFAULT_TIMEZONE"]
