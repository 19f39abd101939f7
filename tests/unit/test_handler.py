from __future__ import annotations

import io
import json
import logging

import pytest

from ansilog.core.levels import Level
from ansilog.core.record import Record
from ansilog.handler import SinkHandler, record_from_logging
from ansilog.sinks import AsyncSink, StreamSink, SyncSink
from ansilog.testing import MemoryStore


def _log_record(**kwargs) -> logging.LogRecord:  # type: ignore[no-untyped-def]
    defaults = dict(
        name="app",
        level=logging.WARNING,
        pathname=__file__,
        lineno=1,
        msg="hello %s",
        args=("world",),
        exc_info=None,
    )
    defaults.update(kwargs)
    return logging.LogRecord(**defaults)  # type: ignore[arg-type]


def test_record_from_logging_maps_level_message_and_time() -> None:
    log_record = _log_record()
    record = record_from_logging(log_record)
    assert record.level is Level.WARN
    assert record.message == "hello world"
    assert record.fields["logger"] == "app"
    assert record.timestamp.timestamp() == pytest.approx(log_record.created)


def test_extra_attributes_become_fields() -> None:
    log_record = _log_record()
    log_record.user_id = 42
    log_record._private = "hidden"
    fields = record_from_logging(log_record).fields
    assert fields["user_id"] == 42
    assert "_private" not in fields
    assert "lineno" not in fields


def test_exception_becomes_error_field() -> None:
    try:
        raise ValueError("boom")
    except ValueError:
        import sys

        log_record = _log_record(level=logging.ERROR, exc_info=sys.exc_info())
    error = record_from_logging(log_record).fields["error"]
    assert isinstance(error, ValueError)


def test_handler_forwards_to_sink(isolated_logger: logging.Logger) -> None:
    written: list[Record] = []
    isolated_logger.addHandler(SinkHandler(SyncSink(written.append)))
    isolated_logger.setLevel(logging.DEBUG)

    isolated_logger.info("user %s logged in", "bob", extra={"user": "bob"})

    assert len(written) == 1
    assert written[0].message == "user bob logged in"
    assert written[0].fields["user"] == "bob"


def test_handler_skips_only_diagnostics_logger() -> None:
    written: list[Record] = []
    handler = SinkHandler(SyncSink(written.append))
    handler.handle(_log_record(name="ansilog.diagnostics"))
    handler.handle(_log_record(name="ansilog"))
    handler.handle(_log_record(name="ansilog.worker"))
    handler.handle(_log_record(name="ansilogger"))
    assert [r.fields["logger"] for r in written] == [
        "ansilog",
        "ansilog.worker",
        "ansilogger",
    ]


def test_sink_errors_go_to_handle_error(monkeypatch: pytest.MonkeyPatch) -> None:
    def failing(record: Record) -> None:
        raise OSError("down")

    handler = SinkHandler(SyncSink(failing))
    seen: list[logging.LogRecord] = []
    monkeypatch.setattr(handler, "handleError", seen.append)
    handler.handle(_log_record())
    assert len(seen) == 1


def test_handler_writes_json_lines(isolated_logger: logging.Logger) -> None:
    buf = io.StringIO()
    isolated_logger.addHandler(SinkHandler(StreamSink(buf)))
    isolated_logger.warning("careful", extra={"k": "v"})
    line = json.loads(buf.getvalue())
    assert line["level"] == "WARN"
    assert line["fields"]["k"] == "v"


def test_close_flushes_async_sink(isolated_logger: logging.Logger) -> None:
    store = MemoryStore()
    sink = AsyncSink(store)
    handler = SinkHandler(sink)
    isolated_logger.addHandler(handler)
    isolated_logger.error("persist me")

    handler.flush()
    assert sink.closed is False

    isolated_logger.removeHandler(handler)
    handler.close()
    assert sink.closed is True
    assert store.messages == ["persist me"]
