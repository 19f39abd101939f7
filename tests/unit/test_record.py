from __future__ import annotations

import pickle
from datetime import datetime, timezone

import pytest

from ansilog.core.levels import Level
from ansilog.core.record import Record


def test_record_parses_level_and_defaults_timestamp() -> None:
    before = datetime.now(timezone.utc)
    record = Record("warning", "disk full")
    assert record.level is Level.WARN
    assert record.message == "disk full"
    assert dict(record.fields) == {}
    assert record.timestamp >= before
    assert record.timestamp.tzinfo is not None


def test_record_is_immutable() -> None:
    record = Record(Level.INFO, "hello", {"a": 1})
    with pytest.raises(AttributeError):
        record.message = "changed"  # type: ignore[misc]
    with pytest.raises(TypeError):
        record.fields["b"] = 2  # type: ignore[index]


def test_record_copies_caller_fields() -> None:
    fields = {"a": 1}
    record = Record(Level.INFO, "hello", fields)
    fields["a"] = 2
    assert record.fields["a"] == 1


def test_naive_timestamp_is_treated_as_utc() -> None:
    record = Record(Level.INFO, "x", timestamp=datetime(2024, 1, 1, 12, 0))
    assert record.timestamp.tzinfo is timezone.utc


def test_non_datetime_timestamp_rejected() -> None:
    with pytest.raises(ValueError, match="datetime"):
        Record(Level.INFO, "x", timestamp="yesterday")  # type: ignore[arg-type]


def test_unknown_level_rejected() -> None:
    with pytest.raises(ValueError):
        Record("loud", "x")


def test_with_fields_and_without_fields_return_new_records() -> None:
    original = Record(Level.INFO, "x", {"a": 1, "b": 2})
    added = original.with_fields(c=3, a=10)
    removed = original.without_fields("b", "missing")

    assert dict(original.fields) == {"a": 1, "b": 2}
    assert dict(added.fields) == {"a": 10, "b": 2, "c": 3}
    assert dict(removed.fields) == {"a": 1}
    assert added.timestamp == original.timestamp


def test_replace_changes_message() -> None:
    original = Record(Level.INFO, "x")
    assert original.replace(message="y").message == "y"
    assert original.message == "x"


def test_record_pickles() -> None:
    record = Record(Level.ERROR, "boom", {"k": [1, 2]})
    restored = pickle.loads(pickle.dumps(record))
    assert restored == record
