"""
Wire a stdlib logger to ansilog sinks from ``Settings``.

``configure`` builds a logger writing JSON lines to stdout and, when a
PostgreSQL level is configured, an asynchronous sink persisting records at
or above that level. Records carrying an ``ignore`` field never reach the
database.

Example:
    >>> setup = configure(Settings(postgres={"level": "WARN"}))
    >>> setup.logger.warning("disk almost full", extra={"mount": "/var"})
    >>> setup.close()  # flush pending records before exit
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import IO, Any

from .core.diagnostics import is_reserved_logger_name
from .core.levels import to_stdlib_level
from .core.settings import Settings
from .filters import IgnoreMarkedFilter, LevelFilter
from .handler import SinkHandler
from .metrics.metrics import SinkMetrics
from .sinks import AsyncSink, Sink, StreamSink
from .stores import Store, make_insert
from .stores.postgres import PostgresStore


@dataclass
class LoggingSetup:
    """Logger plus the sinks and handlers created for it."""

    logger: logging.Logger
    sinks: list[Sink] = field(default_factory=list)
    handlers: list[SinkHandler] = field(default_factory=list)

    @property
    def async_sink(self) -> AsyncSink | None:
        for sink in self.sinks:
            if isinstance(sink, AsyncSink):
                return sink
        return None

    def close(self) -> None:
        """Detach handlers and flush every sink. Safe to call twice."""
        for handler in self.handlers:
            self.logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()


def configure(
    settings: Settings | None = None,
    *,
    store: Store | None = None,
    stream: IO[Any] | None = None,
    logger_name: str | None = None,
) -> LoggingSetup:
    """Build a logger from ``settings`` (environment when omitted).

    ``store`` replaces the PostgreSQL store, e.g. with an in-memory one in
    tests; it is only used when ``postgres.level`` is set.

    Configuring the same logger again replaces the sinks attached by the
    previous call; those are flushed and closed first.

    Raises:
        ValueError: If the logger name is reserved for ansilog diagnostics.
    """
    cfg = settings or Settings()
    name = logger_name or cfg.core.app_name
    if is_reserved_logger_name(name):
        raise ValueError(f"logger name {name!r} is reserved for ansilog diagnostics")
    logger = logging.getLogger(name)
    _detach_sink_handlers(logger)
    logger.setLevel(to_stdlib_level(cfg.core.level))
    logger.propagate = False
    setup = LoggingSetup(logger=logger)

    if cfg.core.console:
        _attach(setup, StreamSink(stream))

    if cfg.postgres.level is not None:
        backing = (
            store
            if store is not None
            else PostgresStore(cfg.postgres.store_config())
        )
        sink = AsyncSink(
            backing,
            cfg.async_sink.queue_capacity,
            insert=make_insert(cfg.postgres.table_name, cfg.postgres.schema_name),
            filters=[IgnoreMarkedFilter(), LevelFilter(min_level=cfg.postgres.level)],
            commit_interval=cfg.async_sink.commit_interval_seconds,
            flush_interval=cfg.async_sink.flush_interval_seconds,
            metrics=SinkMetrics(enabled=cfg.metrics.enabled, sink_name="postgres"),
            name="postgres",
        )
        _attach(setup, sink)

    return setup


def _detach_sink_handlers(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        if isinstance(handler, SinkHandler):
            logger.removeHandler(handler)
            handler.close()


def _attach(setup: LoggingSetup, sink: Sink) -> None:
    handler = SinkHandler(sink)
    setup.logger.addHandler(handler)
    setup.sinks.append(sink)
    setup.handlers.append(handler)


__all__ = ["LoggingSetup", "configure"]
