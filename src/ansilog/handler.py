"""
Bridge from the stdlib ``logging`` package into ansilog sinks.

``SinkHandler`` is a ``logging.Handler`` that turns each ``LogRecord`` into
an immutable ``Record`` and fires it at a sink. Attributes passed through
``extra=`` become record fields; an active exception becomes the ``error``
field.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any

from .core.diagnostics import LOGGER_NAME as DIAGNOSTICS_LOGGER
from .core.levels import from_stdlib_level
from .core.record import Record
from .sinks import Sink, SyncSink

# Attributes every LogRecord carries; anything else came from ``extra=``
_STANDARD_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


def record_from_logging(log_record: logging.LogRecord) -> Record:
    """Convert a stdlib ``LogRecord`` into a ``Record``."""
    fields: dict[str, Any] = {
        key: value
        for key, value in vars(log_record).items()
        if key not in _STANDARD_ATTRS and not key.startswith("_")
    }
    fields.setdefault("logger", log_record.name)
    if log_record.exc_info and log_record.exc_info[1] is not None:
        fields.setdefault("error", log_record.exc_info[1])
    return Record(
        level=from_stdlib_level(log_record.levelno),
        message=log_record.getMessage(),
        fields=fields,
        timestamp=datetime.fromtimestamp(log_record.created, tz=timezone.utc),
    )


class SinkHandler(logging.Handler):
    """Logging handler that forwards records to a sink.

    Example:
        >>> sink = AsyncSink(PostgresStore())
        >>> logging.getLogger("app").addHandler(SinkHandler(sink))
    """

    def __init__(self, sink: Sink, level: int = logging.NOTSET) -> None:
        super().__init__(level)
        self.sink = sink

    def emit(self, record: logging.LogRecord) -> None:
        # Internal warnings are never forwarded, to avoid feedback loops
        if record.name == DIAGNOSTICS_LOGGER:
            return
        try:
            self.sink.fire(record_from_logging(record))
        except Exception:
            self.handleError(record)

    def flush(self) -> None:
        # Async sinks stop on flush; leave that to close()
        if isinstance(self.sink, SyncSink):
            self.sink.flush()

    def close(self) -> None:
        try:
            self.sink.close()
        finally:
            super().close()


__all__ = ["SinkHandler", "record_from_logging"]
