"""
Pytest fixtures for ansilog.

Registered from the root ``conftest.py`` via ``pytest_plugins``.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Iterator

import pytest

from ..core import diagnostics
from ..sinks.async_sink import AsyncSink
from .stores import MemoryStore


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def make_async_sink() -> Iterator[Callable[..., AsyncSink]]:
    """Factory for async sinks that are flushed when the test ends."""
    created: list[AsyncSink] = []

    def _make(store: Any = None, **kwargs: Any) -> AsyncSink:
        sink = AsyncSink(store if store is not None else MemoryStore(), **kwargs)
        created.append(sink)
        return sink

    yield _make

    for sink in created:
        sink.flush(timeout=5.0)


@pytest.fixture
def diagnostics_records(
    caplog: pytest.LogCaptureFixture,
) -> Iterator[Callable[[], list[dict[str, Any]]]]:
    """Return a getter for structured diagnostic payloads captured so far."""
    diagnostics._reset_rate_limits()
    caplog.set_level(logging.WARNING, logger="ansilog.diagnostics")

    def _get() -> list[dict[str, Any]]:
        return [
            r.diagnostic  # type: ignore[attr-defined]
            for r in caplog.records
            if r.name == "ansilog.diagnostics" and hasattr(r, "diagnostic")
        ]

    yield _get
    diagnostics._reset_rate_limits()
