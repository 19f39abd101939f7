from __future__ import annotations

import json

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from ansilog.core.levels import Level
from ansilog.core.record import Record
from ansilog.core.serialization import serialize_fields, serialize_record_line
from ansilog.filters import LevelFilter, filter_in_order

pytestmark = pytest.mark.property

json_key = st.text(
    alphabet=st.characters(min_codepoint=97, max_codepoint=122), min_size=1, max_size=12
).map(lambda s: f"k_{s}")
json_scalars = st.one_of(
    st.none(),
    st.booleans(),
    st.integers(min_value=-(2**53), max_value=2**53),
    st.text(max_size=40),
)
json_values = st.recursive(
    json_scalars,
    lambda children: st.lists(children, max_size=4)
    | st.dictionaries(json_key, children, max_size=4),
    max_leaves=10,
)
field_maps = st.dictionaries(json_key, json_values, max_size=6)
levels = st.sampled_from(list(Level))
messages = st.text(max_size=120)


@given(fields=field_maps)
@settings(max_examples=200)
def test_serialized_fields_decode_to_the_same_mapping(fields: dict) -> None:
    assert json.loads(serialize_fields(fields)) == fields


@given(level=levels, message=messages, fields=field_maps)
@settings(max_examples=200)
def test_record_line_preserves_required_keys(
    level: Level, message: str, fields: dict
) -> None:
    line = serialize_record_line(Record(level, message, fields))
    assert line.endswith(b"\n")
    parsed = json.loads(line)
    assert parsed["level"] == level.value
    assert parsed["message"] == message
    assert parsed["fields"] == fields


@given(level=levels, threshold=levels)
def test_level_filter_matches_priority_order(level: Level, threshold: Level) -> None:
    result = LevelFilter(min_level=threshold)(Record(level, "x"))
    assert (result is not None) == (level.priority >= threshold.priority)


@given(fields=field_maps, extra=field_maps)
def test_with_fields_never_mutates_original(fields: dict, extra: dict) -> None:
    original = Record(Level.INFO, "x", fields)
    updated = original.with_fields(**extra)
    assert dict(original.fields) == fields
    assert dict(updated.fields) == {**fields, **extra}


@given(level=levels, thresholds=st.lists(levels, max_size=5))
def test_chain_of_level_filters_uses_strictest(
    level: Level, thresholds: list[Level]
) -> None:
    chain = [LevelFilter(min_level=t) for t in thresholds]
    result = filter_in_order(Record(level, "x"), chain)
    strictest = max((t.priority for t in thresholds), default=0)
    assert (result is not None) == (level.priority >= strictest)
