"""High-level tag housekeeping pipeline orchestration."""

from __future__ import annotations

import logging
from typing import Any, List, Optional

from pydantic import BaseModel, Field

from tagmonger.classification import ClassificationResult, TagClassifier
from tagmonger.config import TagMongerConfig
from tagmonger.errors import ConfigurationError
from tagmonger.inventory import InventoryFetcher, PatternFilter
from tagmonger.relocation import RelocationEvent, Relocator
from tagmonger.storage import ObjectStore, build_store

LOGGER = logging.getLogger(__name__)


class RunReport(BaseModel):
    """Outcome of one pipeline run.

    Attributes:
        bucket: Bucket that was processed.
        dry_run: Whether moves were only reported.
        listed: Number of keys returned by the inventory listing.
        matched: Number of keys that passed the pattern filter.
        classification: Partitioned tag records.
        events: Relocation events in processing order.
    """

    bucket: str
    dry_run: bool
    listed: int
    matched: int
    classification: ClassificationResult
    events: List[RelocationEvent] = Field(default_factory=list)

    @property
    def counts(self) -> dict[str, int]:
        return {
            "listed": self.listed,
            "matched": self.matched,
            **self.classification.counts,
            "moved": sum(1 for event in self.events if event.applied),
        }

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-ready mapping describing the run."""

        result = self.classification
        return {
            "context": {
                "bucket": self.bucket,
                "dry_run": self.dry_run,
                "today": result.today.isoformat(),
                "cutoff_date": result.cutoff_date.isoformat(),
            },
            "counts": self.counts,
            "tags": [record.model_dump(mode="json") for record in result.records()],
            "unparsable": list(result.unparsable),
            "events": [event.model_dump(mode="json") for event in self.events],
            "errors": list(result.errors),
        }


class TagPipeline:
    """Run fetch, filter, classify and relocate strictly in sequence."""

    def __init__(
        self,
        fetcher: InventoryFetcher,
        tag_filter: PatternFilter,
        classifier: TagClassifier,
        relocator: Relocator,
    ) -> None:
        self.fetcher = fetcher
        self.tag_filter = tag_filter
        self.classifier = classifier
        self.relocator = relocator

    def run(self, bucket: str, *, dry_run: bool = False) -> RunReport:
        """Process ``bucket`` once.

        Raises:
            IterationError: If listing the bucket fails.
            RelocationError: If moving any expired tag fails.
        """

        keys = self.fetcher.fetch(bucket)
        candidates = self.tag_filter.apply(keys)
        classification = self.classifier.classify(candidates)
        events = self.relocator.relocate(classification.expired, dry_run=dry_run)
        if dry_run:
            LOGGER.info("dry run: no objects were modified")
        return RunReport(
            bucket=bucket,
            dry_run=dry_run,
            listed=len(keys),
            matched=len(candidates),
            classification=classification,
            events=events,
        )


def build_pipeline(config: TagMongerConfig, store: Optional[ObjectStore] = None) -> TagPipeline:
    """Assemble a pipeline from validated configuration.

    The filter and classifier are built before the store so that configuration
    mistakes surface before any provider client is created.

    Args:
        config: Resolved configuration.
        store: Backend to use; built from ``config.storage`` when omitted.

    Raises:
        ConfigurationError: If the bucket or provider is missing or the tag
            pattern, time zone or retention settings are invalid.
    """

    bucket = config.storage.bucket
    if not bucket:
        raise ConfigurationError("A bucket name is required (--bucket or TAG_MONGER_BUCKET).")

    retention = config.retention
    tag_filter = PatternFilter(retention.pattern)
    classifier = TagClassifier(
        timezone=retention.timezone,
        retention_days=retention.days,
        archive_dir=retention.archive_dir,
        manifest_suffix=retention.manifest_suffix,
    )
    if store is None:
        store = build_store(config.storage, config.relocation)
    fetcher = InventoryFetcher(
        store,
        page_size=config.storage.page_size,
        max_objects=config.storage.max_objects,
        progress_interval=config.logging.progress_interval,
    )
    return TagPipeline(fetcher, tag_filter, classifier, Relocator(store, bucket))


__all__ = ["RunReport", "TagPipeline", "build_pipeline"]
