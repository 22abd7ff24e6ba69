"""Tests for moving expired tags into the archive directory."""

from __future__ import annotations

from datetime import date
from typing import Any, Callable

import pytest

from tagmonger.classification import TagClassifier, TagRecord
from tagmonger.errors import BackendError, RelocationError
from tagmonger.relocation import Relocator

CLASSIFIER = TagClassifier(timezone="UTC", retention_days=30, today=date(2024, 2, 1))
EXPIRED_KEYS = ["a/d_2023_12_01.list", "b/W_2023_40.list", "d_2023_01_01.list"]


def _expired(keys: list[str]) -> list[TagRecord]:
    return CLASSIFIER.classify(keys).expired


def test_relocate_copies_confirms_deletes_confirms_in_order(
    make_store: Callable[..., Any],
) -> None:
    store = make_store(["a/d_2023_12_01.list"])

    events = Relocator(store, "bucket").relocate(_expired(["a/d_2023_12_01.list"]))

    assert store.calls == [
        ("copy", "a/d_2023_12_01.list"),
        ("exists", "a/old_tags/d_2023_12_01.list"),
        ("delete", "a/d_2023_12_01.list"),
        ("exists", "a/d_2023_12_01.list"),
    ]
    assert list(store.objects) == ["a/old_tags/d_2023_12_01.list"]
    (event,) = events
    assert event.source == "a/d_2023_12_01.list"
    assert event.destination == "a/old_tags/d_2023_12_01.list"
    assert event.applied is True


def test_relocate_processes_records_in_listing_order(make_store: Callable[..., Any]) -> None:
    store = make_store(EXPIRED_KEYS)

    events = Relocator(store, "bucket").relocate(_expired(EXPIRED_KEYS))

    assert [event.source for event in events] == EXPIRED_KEYS
    assert [key for op, key in store.mutations if op == "copy"] == EXPIRED_KEYS
    assert sorted(store.objects) == [
        "a/old_tags/d_2023_12_01.list",
        "b/old_tags/W_2023_40.list",
        "old_tags/d_2023_01_01.list",
    ]


def test_dry_run_reports_moves_without_touching_the_store(
    make_store: Callable[..., Any],
) -> None:
    store = make_store(EXPIRED_KEYS)

    events = Relocator(store, "bucket").relocate(_expired(EXPIRED_KEYS), dry_run=True)

    assert store.calls == []
    assert list(store.objects) == EXPIRED_KEYS
    assert [event.applied for event in events] == [False, False, False]
    assert events[2].destination == "old_tags/d_2023_01_01.list"


def test_failure_aborts_the_remaining_moves(make_store: Callable[..., Any]) -> None:
    store = make_store(EXPIRED_KEYS)
    store.fail_on["copy"] = "b/W_2023_40.list"

    with pytest.raises(RelocationError) as excinfo:
        Relocator(store, "bucket").relocate(_expired(EXPIRED_KEYS))

    error = excinfo.value
    assert isinstance(error, BackendError)
    assert error.step == "copy"
    assert error.key == "b/W_2023_40.list"
    assert error.target_key == "b/old_tags/W_2023_40.list"
    assert ("copy", "d_2023_01_01.list") not in store.calls
    assert "d_2023_01_01.list" in store.objects


def test_delete_failure_leaves_a_copy_that_is_retried_next_run(
    make_store: Callable[..., Any],
) -> None:
    key = "a/d_2023_12_01.list"
    store = make_store([key])
    store.fail_on["delete"] = key

    with pytest.raises(RelocationError) as excinfo:
        Relocator(store, "bucket").relocate(_expired([key]))

    assert excinfo.value.step == "delete"
    assert sorted(store.objects) == ["a/d_2023_12_01.list", "a/old_tags/d_2023_12_01.list"]

    rerun = CLASSIFIER.classify(list(store.objects))
    assert [record.key for record in rerun.expired] == [key]
    assert [record.key for record in rerun.retired] == ["a/old_tags/d_2023_12_01.list"]

    store.fail_on.clear()
    Relocator(store, "bucket").relocate(rerun.expired)
    assert list(store.objects) == ["a/old_tags/d_2023_12_01.list"]


def test_copy_that_never_appears_fails_confirmation(
    make_store: Callable[..., Any], monkeypatch: pytest.MonkeyPatch
) -> None:
    key = "a/d_2023_12_01.list"
    store = make_store([key])
    monkeypatch.setattr(store, "copy_object", lambda *args: None)

    with pytest.raises(RelocationError) as excinfo:
        Relocator(store, "bucket").relocate(_expired([key]))

    assert excinfo.value.step == "confirm copy"
    assert "did not appear after 2 attempts" in str(excinfo.value)
    assert ("delete", key) not in store.calls


def test_confirm_delete_failure_is_reported(make_store: Callable[..., Any]) -> None:
    key = "a/d_2023_12_01.list"
    store = make_store([key])
    store.fail_on["exists"] = key

    with pytest.raises(RelocationError) as excinfo:
        Relocator(store, "bucket").relocate(_expired([key]))

    assert excinfo.value.step == "confirm delete"
    assert str(excinfo.value).startswith(
        "Failed to confirm delete while moving a/d_2023_12_01.list -> "
    )


def test_only_expired_records_are_accepted(make_store: Callable[..., Any]) -> None:
    result = CLASSIFIER.classify(["a/d_2024_01_31.list", "a/old_tags/d_2020_01_01.list"])

    with pytest.raises(ValueError):
        Relocator(make_store(), "bucket").relocate(result.fresh)
    with pytest.raises(ValueError):
        Relocator(make_store(), "bucket").relocate(result.retired)
