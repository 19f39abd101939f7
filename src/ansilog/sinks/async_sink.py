"""
Asynchronous sink: bounded queue in front of a batching commit worker.

Producers call ``fire`` from any thread. Records pass the filter chain on
the caller's thread and are then put on a bounded queue owned by a private
event loop running in a dedicated daemon thread. A single ``CommitWorker``
on that loop inserts queued records into a backing-store transaction and
commits it on every tick that has something to commit.

Backpressure: when the queue is full, ``fire`` blocks the calling thread
until the worker frees a slot. Records are never dropped for lack of room.

Shutdown: ``flush`` shortens the tick interval, waits until every record
registered before the call has been settled (committed or reported),
then stops the worker and waits for its final commit. There is no
automatic flush on process exit; callers that need delivery guarantees
must call ``flush`` (or ``close``) themselves.
"""

from __future__ import annotations

import asyncio
import threading
import time
import types
from concurrent.futures import Future
from typing import Any, Callable, Iterable

from ..core.concurrency import PendingCounter, Ticker
from ..core.diagnostics import warn
from ..core.errors import SinkClosedError
from ..core.record import Record
from ..core.worker import CommitWorker, describe_record
from ..filters import Filter, FilterChain
from ..metrics.metrics import SinkMetrics
from ..stores import InsertFunc, Store, insert_record

DEFAULT_QUEUE_CAPACITY = 8192
DEFAULT_COMMIT_INTERVAL_SECONDS = 1.0
DEFAULT_FLUSH_INTERVAL_SECONDS = 0.1

# How long shutdown keeps polling for in-flight enqueues before giving up
_STRAGGLER_GRACE_SECONDS = 1.0


class AsyncSink:
    """Sink that persists records to a transactional store in batches.

    Usage:
        sink = AsyncSink(PostgresStore(config))
        sink.add_filter(LevelFilter(min_level="WARN"))
        sink.fire(Record(Level.ERROR, "disk full", {"mount": "/var"}))
        ...
        sink.flush()  # before exiting

    A ``queue_capacity`` of 0 selects the default (8192).
    """

    name = "async"

    def __init__(
        self,
        store: Store,
        queue_capacity: int = DEFAULT_QUEUE_CAPACITY,
        *,
        insert: InsertFunc | None = None,
        filters: Iterable[Filter] | None = None,
        commit_interval: float = DEFAULT_COMMIT_INTERVAL_SECONDS,
        flush_interval: float = DEFAULT_FLUSH_INTERVAL_SECONDS,
        metrics: SinkMetrics | None = None,
        name: str | None = None,
    ) -> None:
        if queue_capacity < 0:
            raise ValueError("queue_capacity must be >= 0")
        if commit_interval <= 0:
            raise ValueError("commit_interval must be > 0")
        if flush_interval <= 0:
            raise ValueError("flush_interval must be > 0")
        if name:
            self.name = name

        self._store = store
        self._capacity = queue_capacity or DEFAULT_QUEUE_CAPACITY
        self._insert = insert or insert_record
        self._filters = FilterChain(filters)
        self._commit_interval = commit_interval
        self._flush_interval = flush_interval
        self._metrics = metrics or SinkMetrics(sink_name=self.name)
        self._pending = PendingCounter()

        # Guards _closed against concurrent fire/flush
        self._lock = threading.Lock()
        self._closed = False

        self._loop = asyncio.new_event_loop()
        self._queue: asyncio.Queue[Record] | None = None
        self._stop_event: asyncio.Event | None = None
        self._worker: CommitWorker | None = None
        self._started = threading.Event()
        self._worker_thread = threading.Thread(
            target=self._thread_main,
            name=f"ansilog-{self.name}-worker",
            daemon=True,
        )
        self._worker_thread.start()
        self._started.wait()
        if self._worker is None:
            raise RuntimeError(f"{self.name} sink worker failed to start")

    # Properties -----------------------------------------------------------------

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    @property
    def pending(self) -> int:
        """Records accepted but not yet committed or reported."""
        return self._pending.outstanding

    @property
    def queue_capacity(self) -> int:
        return self._capacity

    @property
    def filters(self) -> FilterChain:
        return self._filters

    @property
    def metrics(self) -> SinkMetrics:
        return self._metrics

    # Producer API ---------------------------------------------------------------

    def add_filter(self, fn: Filter) -> None:
        self._filters.add(fn)

    def fire(self, record: Record) -> None:
        """Filter and enqueue a record, blocking while the queue is full.

        Returns once the record is queued; persistence happens later.

        Raises:
            SinkClosedError: If the sink has been flushed or closed.
        """
        filtered = self._filters.apply(record)
        if filtered is None:
            return None
        if self._on_worker_thread():
            self._fire_from_worker(filtered)
            return None
        self._schedule_enqueue(filtered).result()
        return None

    async def fire_async(self, record: Record) -> None:
        """Like ``fire`` but awaits queue space instead of blocking the thread."""
        filtered = self._filters.apply(record)
        if filtered is None:
            return None
        if self._on_worker_thread():
            self._fire_from_worker(filtered)
            return None
        await asyncio.wrap_future(self._schedule_enqueue(filtered))
        return None

    def flush(self, timeout: float | None = None) -> bool:
        """Drain the queue, commit, and stop the worker.

        Waits for every record accepted before the call. With a ``timeout``,
        gives up waiting after that many seconds and stops anyway; records
        still unsettled are then reported as dropped. Returns True when the
        drain completed in time. Calling ``flush`` again is a no-op.
        """
        if self._on_worker_thread():
            raise RuntimeError("flush() cannot be called from the sink worker thread")

        deadline = None if timeout is None else time.monotonic() + timeout
        with self._lock:
            already_closed = self._closed
            target = self._pending.submitted

        drained = True
        if not already_closed:
            assert self._worker is not None and self._stop_event is not None
            self._call_soon(self._worker.reset_interval, self._flush_interval)
            drained = self._pending.wait_settled(target, timeout)
            with self._lock:
                self._closed = True
            self._call_soon(self._stop_event.set)

        remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
        self._worker_thread.join(remaining)
        return drained and not self._worker_thread.is_alive()

    def close(self) -> None:
        self.flush()

    def __enter__(self) -> AsyncSink:
        return self

    def __exit__(
        self,
        _exc_type: type[BaseException] | None,
        _exc: BaseException | None,
        _tb: types.TracebackType | None,
    ) -> None:
        self.close()

    # Internals ------------------------------------------------------------------

    def _on_worker_thread(self) -> bool:
        return threading.current_thread() is self._worker_thread

    def _schedule_enqueue(self, record: Record) -> Future[None]:
        with self._lock:
            if self._closed:
                raise SinkClosedError(
                    f"{self.name} sink is closed", sink_name=self.name
                )
            self._pending.add()
            coro = self._enqueue(record)
            # Scheduled under the lock so shutdown never misses it
            try:
                return asyncio.run_coroutine_threadsafe(coro, self._loop)
            except RuntimeError as exc:
                # Loop already closed; the record was never accepted
                coro.close()
                self._pending.settle()
                self._closed = True
                raise SinkClosedError(
                    f"{self.name} sink is closed", sink_name=self.name, cause=exc
                ) from exc

    async def _enqueue(self, record: Record) -> None:
        assert self._queue is not None
        await self._queue.put(record)
        self._metrics.record_enqueued()

    def _fire_from_worker(self, record: Record) -> None:
        # Blocking here would deadlock the worker; enqueue or drop instead
        assert self._queue is not None
        with self._lock:
            if self._closed:
                raise SinkClosedError(
                    f"{self.name} sink is closed", sink_name=self.name
                )
            self._pending.add()
        try:
            self._queue.put_nowait(record)
        except asyncio.QueueFull:
            self._report_dropped(record, reason="queue full on worker thread")
            return
        self._metrics.record_enqueued()

    def _call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            self._loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            # Loop already finished; nothing left to signal
            pass

    def _thread_main(self) -> None:
        asyncio.set_event_loop(self._loop)
        try:
            self._loop.run_until_complete(self._main())
        except Exception as exc:  # pragma: no cover
            warn(
                "sink",
                "worker thread error",
                sink=self.name,
                error_type=type(exc).__name__,
                error=str(exc),
            )
        finally:
            self._started.set()
            try:
                self._loop.run_until_complete(self._loop.shutdown_asyncgens())
            finally:
                self._loop.close()

    async def _main(self) -> None:
        self._queue = asyncio.Queue(maxsize=self._capacity)
        self._stop_event = asyncio.Event()
        self._worker = CommitWorker(
            queue=self._queue,
            store=self._store,
            insert=self._insert,
            ticker=Ticker(self._commit_interval),
            pending=self._pending,
            stop_event=self._stop_event,
            metrics=self._metrics,
            name=self.name,
        )
        self._started.set()
        await self._worker.run()
        await self._drop_stragglers()
        await self._close_store()

    async def _drop_stragglers(self) -> None:
        """Report records that reached the queue after the worker stopped."""
        assert self._queue is not None
        deadline = time.monotonic() + _STRAGGLER_GRACE_SECONDS
        while self._pending.outstanding > 0:
            try:
                record = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                if time.monotonic() >= deadline:
                    break
                # Let scheduled enqueues run
                await asyncio.sleep(0.001)
                continue
            self._report_dropped(record, reason="sink stopped")

    async def _close_store(self) -> None:
        close = getattr(self._store, "close", None)
        if close is None:
            return
        try:
            await close()
        except Exception as exc:
            warn(
                "sink",
                "store close failed",
                sink=self.name,
                error_type=type(exc).__name__,
                error=str(exc),
            )

    def _report_dropped(self, record: Record, *, reason: str) -> None:
        self._metrics.record_dropped()
        warn(
            "sink",
            "record dropped",
            sink=self.name,
            reason=reason,
            record=describe_record(record),
        )
        self._pending.settle()


__all__ = [
    "AsyncSink",
    "DEFAULT_QUEUE_CAPACITY",
    "DEFAULT_COMMIT_INTERVAL_SECONDS",
    "DEFAULT_FLUSH_INTERVAL_SECONDS",
]
