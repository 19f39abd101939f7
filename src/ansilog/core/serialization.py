"""
JSON serialization for record fields and JSON-lines output.

Uses orjson and exposes bytes directly; ``serialize_fields`` returns text
because asyncpg expects JSON/JSONB parameters as ``str``.
"""

from __future__ import annotations

from typing import Any, Mapping

import orjson

from .errors import SerializationError
from .record import Record


def _default(obj: Any) -> Any:
    """Default serializer hook for unsupported types.

    Exceptions become a small mapping so an ``error`` field stays readable
    in the store. Anything else unknown is rejected.
    """
    if isinstance(obj, BaseException):
        return {"type": type(obj).__name__, "message": str(obj)}
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=repr)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def serialize_mapping_to_json_bytes(payload: Mapping[str, Any]) -> bytes:
    """Serialize mapping to JSON bytes using orjson without intermediate str.

    Raises:
        SerializationError: If a value has no JSON encoding.
    """
    try:
        data = orjson.dumps(
            dict(payload),
            default=_default,
            option=orjson.OPT_NON_STR_KEYS,
        )
    except TypeError as e:
        raise SerializationError(f"Serialization failed: {e}") from e
    return data


def serialize_fields(fields: Mapping[str, Any]) -> str:
    """Encode a record's fields mapping as JSON text."""
    return serialize_mapping_to_json_bytes(fields).decode("utf-8")


def record_to_dict(record: Record) -> dict[str, Any]:
    """Flatten a record into the JSON-lines shape used by stream sinks."""
    return {
        "timestamp": record.timestamp.isoformat(),
        "level": record.level.value,
        "message": record.message,
        "fields": dict(record.fields),
    }


def serialize_record_line(record: Record) -> bytes:
    """One JSON object terminated by a newline."""
    return serialize_mapping_to_json_bytes(record_to_dict(record)) + b"\n"
