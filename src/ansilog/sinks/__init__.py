from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..core.record import Record
from ..filters import Filter
from .async_sink import DEFAULT_QUEUE_CAPACITY, AsyncSink
from .sync import StreamSink, SyncSink


@runtime_checkable
class Sink(Protocol):
    """Base sink interface.

    Sinks accept finalized records and persist or forward them. ``fire``
    must be safe to call from many threads without caller-side locking and
    raises a ``SinkError`` subclass when the record cannot be accepted.
    """

    name: str

    def fire(self, record: Record) -> None:
        """Accept a single record."""

    def add_filter(self, fn: Filter) -> None:
        """Append a filter to the sink's chain."""

    def flush(self) -> None:
        """Block until accepted records are written (optional)."""

    def close(self) -> None:
        """Flush and release the destination (optional)."""


__all__ = [
    "Sink",
    "SyncSink",
    "StreamSink",
    "AsyncSink",
    "DEFAULT_QUEUE_CAPACITY",
]
