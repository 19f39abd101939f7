from .errors import (
    AnsilogError,
    SerializationError,
    SinkClosedError,
    SinkError,
    SinkWriteError,
    StoreError,
)
from .levels import Level, parse_level
from .record import Record

__all__ = [
    "AnsilogError",
    "Level",
    "Record",
    "SerializationError",
    "SinkClosedError",
    "SinkError",
    "SinkWriteError",
    "StoreError",
    "parse_level",
]
