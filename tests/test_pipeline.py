"""End-to-end tests for the tag housekeeping pipeline."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest

from tagmonger.classification import TagClassifier
from tagmonger.config import TagMongerConfig, resolve_with_precedence
from tagmonger.errors import ConfigurationError, IterationError, RelocationError
from tagmonger.inventory import InventoryFetcher, PatternFilter
from tagmonger.pipeline import TagPipeline, build_pipeline
from tagmonger.relocation import Relocator

BUCKET_KEYS = [
    "reports/d_2024_01_31.list",
    "reports/d_2023_11_30.list",
    "reports/README.md",
    "reports/old_tags/d_2022_01_01.list",
    "weekly/W_2023_48.list",
    "weekly/W_2024_04.list",
    "weekly/W_2024_60.list",
]


def _pipeline(store: Any, *, max_objects: int = 0) -> TagPipeline:
    return TagPipeline(
        InventoryFetcher(store, page_size=3, max_objects=max_objects),
        PatternFilter(),
        TagClassifier(timezone="UTC", retention_days=30, today=date(2024, 2, 1)),
        Relocator(store, "tags"),
    )


def test_run_archives_expired_tags(make_store: Callable[..., Any]) -> None:
    store = make_store(BUCKET_KEYS)

    report = _pipeline(store).run("tags")

    assert report.counts == {
        "listed": 7,
        "matched": 6,
        "fresh": 2,
        "expired": 2,
        "retired": 1,
        "unparsable": 1,
        "moved": 2,
    }
    assert sorted(store.objects) == [
        "reports/README.md",
        "reports/d_2024_01_31.list",
        "reports/old_tags/d_2022_01_01.list",
        "reports/old_tags/d_2023_11_30.list",
        "weekly/W_2024_04.list",
        "weekly/W_2024_60.list",
        "weekly/old_tags/W_2023_48.list",
    ]

    second = _pipeline(store).run("tags")
    assert second.counts["expired"] == 0
    assert second.counts["retired"] == 3
    assert second.events == []


def test_run_classifies_reference_bucket(make_store: Callable[..., Any]) -> None:
    store = make_store(
        [
            "foo/d_2024_01_01.list",
            "foo/d_2024_01_20.list",
            "foo/old_tags/d_2023_12_01.list",
            "foo/notes.txt",
        ]
    )

    report = _pipeline(store).run("tags")

    result = report.classification
    assert report.matched == 3
    assert [record.key for record in result.expired] == ["foo/d_2024_01_01.list"]
    assert result.expired[0].target_key == "foo/old_tags/d_2024_01_01.list"
    assert [record.key for record in result.fresh] == ["foo/d_2024_01_20.list"]
    assert [record.key for record in result.retired] == ["foo/old_tags/d_2023_12_01.list"]
    assert "foo/notes.txt" in store.objects
    assert "foo/old_tags/d_2024_01_01.list" in store.objects
    assert "foo/d_2024_01_01.list" not in store.objects


def test_dry_run_leaves_bucket_untouched(make_store: Callable[..., Any]) -> None:
    store = make_store(BUCKET_KEYS)

    report = _pipeline(store).run("tags", dry_run=True)

    assert store.mutations == []
    assert list(store.objects) == BUCKET_KEYS
    assert report.dry_run is True
    assert report.counts["moved"] == 0
    assert [event.destination for event in report.events] == [
        "reports/old_tags/d_2023_11_30.list",
        "weekly/old_tags/W_2023_48.list",
    ]


def test_max_objects_limits_what_is_classified(make_store: Callable[..., Any]) -> None:
    store = make_store(BUCKET_KEYS)

    report = _pipeline(store, max_objects=2).run("tags")

    assert report.listed == 2
    assert [event.source for event in report.events] == ["reports/d_2023_11_30.list"]
    assert "weekly/W_2023_48.list" in store.objects


def test_listing_failure_stops_before_any_move(make_store: Callable[..., Any]) -> None:
    store = make_store(BUCKET_KEYS)
    store.list_error_after = 4

    with pytest.raises(IterationError):
        _pipeline(store).run("tags")

    assert store.calls == []


def test_relocation_failure_propagates(make_store: Callable[..., Any]) -> None:
    store = make_store(BUCKET_KEYS)
    store.fail_on["copy"] = "weekly/W_2023_48.list"

    with pytest.raises(RelocationError):
        _pipeline(store).run("tags")

    assert "reports/old_tags/d_2023_11_30.list" in store.objects
    assert "weekly/W_2023_48.list" in store.objects


def test_payload_describes_the_run(make_store: Callable[..., Any]) -> None:
    report = _pipeline(make_store(BUCKET_KEYS)).run("tags", dry_run=True)

    payload = report.to_payload()

    assert payload["context"] == {
        "bucket": "tags",
        "dry_run": True,
        "today": "2024-02-01",
        "cutoff_date": "2024-01-03",
    }
    assert [tag["state"] for tag in payload["tags"]] == [
        "retired",
        "fresh",
        "fresh",
        "expired",
        "expired",
    ]
    assert payload["unparsable"] == ["weekly/W_2024_60.list"]
    assert payload["errors"][0].startswith("weekly/W_2024_60.list: ")
    assert all(event["applied"] is False for event in payload["events"])


def test_build_pipeline_uses_configuration(make_store: Callable[..., Any]) -> None:
    config = resolve_with_precedence(
        defaults=TagMongerConfig(),
        cli_overrides={
            "storage.bucket": "tags",
            "storage.page_size": 7,
            "storage.max_objects": 0,
            "retention.days": 10,
            "retention.timezone": "UTC",
            "retention.archive_dir": "attic",
        },
    )
    store = make_store()

    pipeline = build_pipeline(config, store=store)

    assert pipeline.fetcher.page_size == 7
    assert pipeline.fetcher.max_objects == 0
    assert pipeline.classifier.retention_days == 10
    assert pipeline.classifier.archive_dir == "attic"
    assert pipeline.relocator.bucket == "tags"
    assert pipeline.relocator.store is store


def test_build_pipeline_requires_bucket(make_store: Callable[..., Any]) -> None:
    with pytest.raises(ConfigurationError, match="bucket name is required"):
        build_pipeline(TagMongerConfig(), store=make_store())


def test_build_pipeline_rejects_unknown_timezone_before_creating_store(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    config = resolve_with_precedence(
        defaults=TagMongerConfig(),
        cli_overrides={"storage.bucket": "tags", "retention.timezone": "Nowhere/Special"},
    )

    def _fail(*_: Any) -> None:
        raise AssertionError("store should not be built")

    monkeypatch.setattr("tagmonger.pipeline.build_store", _fail)

    with pytest.raises(ConfigurationError, match="Unknown time zone"):
        build_pipeline(config)
