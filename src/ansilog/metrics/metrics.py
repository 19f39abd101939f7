"""
Sink metrics collection for ansilog.

Implements minimal Prometheus-compatible counters and a batch-size
histogram for the asynchronous sink.

Design goals:
- Zero global state; each sink gets its own collector and registry
- Safe to call from producer threads and the worker loop alike
- Safe no-op exporting when metrics are disabled, while still tracking
  basic in-memory counters for tests
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram


@dataclass
class SinkStats:
    """Captured runtime counters for quick assertions in tests."""

    enqueued: int = 0
    committed: int = 0
    insert_failures: int = 0
    commit_failures: int = 0
    begin_failures: int = 0
    dropped: int = 0
    batches: int = 0


class SinkMetrics:
    """Sink-scoped metrics collector."""

    def __init__(self, *, enabled: bool = False, sink_name: str = "async") -> None:
        self._enabled = bool(enabled)
        self._sink_name = sink_name
        self._lock = threading.Lock()
        self._state = SinkStats()

        self._c_records: Any | None = None
        self._c_failures: Any | None = None
        self._h_batch_size: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            # Isolated registry to avoid global duplication in tests
            self._registry = CollectorRegistry()
            self._c_records = Counter(
                "ansilog_records_total",
                "Records handled by the sink, by outcome",
                ["sink", "outcome"],
                registry=self._registry,
            )
            self._c_failures = Counter(
                "ansilog_store_failures_total",
                "Backing store operation failures",
                ["sink", "operation"],
                registry=self._registry,
            )
            self._h_batch_size = Histogram(
                "ansilog_commit_batch_size",
                "Number of records per committed transaction",
                ["sink"],
                buckets=(1, 5, 10, 50, 100, 500, 1000, 5000, 10000),
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    def _count(self, outcome: str, n: int) -> None:
        if self._c_records is not None:
            self._c_records.labels(sink=self._sink_name, outcome=outcome).inc(n)

    def _fail(self, operation: str) -> None:
        if self._c_failures is not None:
            self._c_failures.labels(sink=self._sink_name, operation=operation).inc()

    def record_enqueued(self, n: int = 1) -> None:
        with self._lock:
            self._state.enqueued += n
        self._count("enqueued", n)

    def record_dropped(self, n: int = 1) -> None:
        with self._lock:
            self._state.dropped += n
        self._count("dropped", n)

    def record_insert_failure(self) -> None:
        with self._lock:
            self._state.insert_failures += 1
        self._fail("insert")

    def record_begin_failure(self) -> None:
        with self._lock:
            self._state.begin_failures += 1
        self._fail("begin")

    def record_commit(self, batch_size: int) -> None:
        with self._lock:
            self._state.committed += batch_size
            self._state.batches += 1
        self._count("committed", batch_size)
        if self._h_batch_size is not None:
            self._h_batch_size.labels(sink=self._sink_name).observe(batch_size)

    def record_commit_failure(self, batch_size: int) -> None:
        with self._lock:
            self._state.commit_failures += 1
        self._fail("commit")
        self._count("lost", batch_size)

    def snapshot(self) -> SinkStats:
        with self._lock:
            return replace(self._state)
