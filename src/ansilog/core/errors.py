"""
Error taxonomy for ansilog.

Only producer-facing paths raise these. The asynchronous worker never
raises; it reports through ``ansilog.core.diagnostics`` instead.
"""

from __future__ import annotations


class AnsilogError(Exception):
    """Base class for all ansilog errors."""


class SinkError(AnsilogError):
    """A sink could not accept or forward a record."""

    def __init__(
        self,
        message: str,
        *,
        sink_name: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.sink_name = sink_name
        self.cause = cause


class SinkClosedError(SinkError):
    """Raised by ``fire`` once a sink has been flushed and stopped."""


class SinkWriteError(SinkError):
    """A synchronous write to the sink destination failed."""


class StoreError(AnsilogError):
    """The backing store rejected an operation."""


class SerializationError(AnsilogError):
    """A record could not be encoded for its destination."""


__all__ = [
    "AnsilogError",
    "SinkError",
    "SinkClosedError",
    "SinkWriteError",
    "StoreError",
    "SerializationError",
]
