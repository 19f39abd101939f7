from __future__ import annotations

import logging

import pytest

from ansilog.core import diagnostics


def test_warn_attaches_structured_payload(diagnostics_records) -> None:
    diagnostics.warn("worker", "cannot commit", sink="pg", lost=2)
    assert diagnostics_records() == [
        {"component": "worker", "message": "cannot commit", "sink": "pg", "lost": 2}
    ]


def test_warn_message_is_readable(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.WARNING, logger="ansilog.diagnostics")
    diagnostics.warn("sink", "record dropped", reason="sink stopped")
    assert caplog.records[0].getMessage() == "[sink] record dropped reason='sink stopped'"
    assert caplog.records[0].levelno == logging.WARNING


def test_rate_limit_key_collapses_repeats(diagnostics_records) -> None:
    for _ in range(5):
        diagnostics.warn("worker", "cannot open transaction", _rate_limit_key="k")
    diagnostics.warn("worker", "other", _rate_limit_key="j")
    assert [p["message"] for p in diagnostics_records()] == [
        "cannot open transaction",
        "other",
    ]


def test_rate_limit_window_expires(
    diagnostics_records, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setattr(diagnostics, "RATE_LIMIT_WINDOW_SECONDS", 0.0)
    diagnostics.warn("worker", "again", _rate_limit_key="k")
    diagnostics.warn("worker", "again", _rate_limit_key="k")
    assert len(diagnostics_records()) == 2


def test_reserved_logger_names() -> None:
    assert diagnostics.is_reserved_logger_name("ansilog")
    assert diagnostics.is_reserved_logger_name("ansilog.diagnostics")
    assert not diagnostics.is_reserved_logger_name("app")
    assert not diagnostics.is_reserved_logger_name("ansilog.worker")
    assert not diagnostics.is_reserved_logger_name("ansilogx")
