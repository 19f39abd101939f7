"""
Public entrypoints for ansilog.

Structured logging with pluggable sinks: a synchronous JSON-lines sink and
an asynchronous sink that batches records into PostgreSQL transactions.
"""

from __future__ import annotations

from ._version import __version__
from .builder import LoggingSetup, configure
from .core.errors import (
    AnsilogError,
    SerializationError,
    SinkClosedError,
    SinkError,
    SinkWriteError,
    StoreError,
)
from .core.levels import Level, parse_level
from .core.record import Record
from .core.settings import Settings
from .filters import (
    DropFieldsFilter,
    ExtraFieldsFilter,
    FilterChain,
    IgnoreMarkedFilter,
    LevelFilter,
)
from .handler import SinkHandler
from .sinks import AsyncSink, Sink, StreamSink, SyncSink

VERSION = __version__

__all__ = [
    "configure",
    "LoggingSetup",
    "Settings",
    "Level",
    "parse_level",
    "Record",
    "Sink",
    "SyncSink",
    "StreamSink",
    "AsyncSink",
    "SinkHandler",
    "FilterChain",
    "LevelFilter",
    "ExtraFieldsFilter",
    "DropFieldsFilter",
    "IgnoreMarkedFilter",
    "AnsilogError",
    "SinkError",
    "SinkClosedError",
    "SinkWriteError",
    "StoreError",
    "SerializationError",
    "__version__",
    "VERSION",
]
