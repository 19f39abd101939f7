"""
Commit worker for the asynchronous sink.

A single ``CommitWorker`` consumes the sink's bounded queue and owns every
write to the backing store. Records are inserted into an open transaction
as they arrive and committed when the ticker fires with a non-empty batch,
so one transaction covers everything that arrived within a tick.
"""

from __future__ import annotations

import asyncio
from typing import Any

from ..metrics.metrics import SinkMetrics
from ..stores import InsertFunc, Store, Transaction
from .concurrency import PendingCounter, Ticker
from .diagnostics import warn
from .record import Record
from .serialization import record_to_dict


def describe_record(record: Record) -> dict[str, Any]:
    """Printable form of a record for diagnostics."""
    return record_to_dict(record)


class CommitWorker:
    """Background worker that batches queued records into transactions.

    The worker waits on three events at once: a record becoming available,
    the ticker firing, and the stop signal. It never raises; every store
    error is reported through diagnostics and the worker carries on.
    """

    def __init__(
        self,
        *,
        queue: asyncio.Queue[Record],
        store: Store,
        insert: InsertFunc,
        ticker: Ticker,
        pending: PendingCounter,
        stop_event: asyncio.Event,
        metrics: SinkMetrics | None = None,
        name: str = "async",
    ) -> None:
        self._queue = queue
        self._store = store
        self._insert_fn = insert
        self._ticker = ticker
        self._pending = pending
        self._stop_event = stop_event
        self._metrics = metrics
        self._name = name

        self._tx: Transaction | None = None
        # Records inserted into the open transaction
        self._batch: list[Record] = []
        # Records whose insert failed within the open transaction
        self._failed = 0
        self._getter: asyncio.Future[Record] | None = None
        self._stopper: asyncio.Future[Any] | None = None
        self._interval_changed = asyncio.Event()
        self._waker: asyncio.Future[Any] | None = None

    def reset_interval(self, interval: float) -> None:
        """Change the tick interval and wake the worker to pick it up.

        Must be called on the worker loop.
        """
        self._ticker.reset(interval)
        self._interval_changed.set()

    @property
    def batch_size(self) -> int:
        return len(self._batch) + self._failed

    async def run(self) -> None:
        self._stopper = asyncio.ensure_future(self._stop_event.wait())
        try:
            await self._consume()
        except Exception as exc:  # pragma: no cover
            self._emit_worker_error(exc)
        finally:
            await self._finish()

    async def _consume(self) -> None:
        assert self._stopper is not None
        while True:
            if self._stop_event.is_set():
                return

            if self._ticker.due():
                self._ticker.consume()
                # Empty ticks neither open nor commit a transaction
                if self.batch_size:
                    await self._commit()
                continue

            if self._getter is None:
                self._getter = asyncio.ensure_future(self._queue.get())

            done, _ = await asyncio.wait(
                {self._getter, self._stopper, self._arm_waker()},
                timeout=self._ticker.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
            self._disarm_waker_if_done()
            if self._getter in done:
                record = self._getter.result()
                self._getter = None
                await self._insert(record)

    async def _insert(self, record: Record, *, retry: bool = True) -> None:
        if self._tx is None:
            self._tx = await self._open_transaction(retry=retry)
            if self._tx is None:
                self._report_dropped([record], reason="store unavailable")
                return
        try:
            await self._insert_fn(self._tx, record)
        except Exception as exc:
            self._failed += 1
            if self._metrics is not None:
                self._metrics.record_insert_failure()
            warn(
                "worker",
                "cannot insert record",
                sink=self._name,
                record=describe_record(record),
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return
        self._batch.append(record)

    async def _open_transaction(self, *, retry: bool) -> Transaction | None:
        """Open a transaction, retrying once per tick until stopped."""
        while True:
            try:
                return await self._store.begin()
            except Exception as exc:
                if self._metrics is not None:
                    self._metrics.record_begin_failure()
                warn(
                    "worker",
                    "cannot open transaction",
                    sink=self._name,
                    error_type=type(exc).__name__,
                    error=str(exc),
                    _rate_limit_key=f"{self._name}-begin",
                )
            if not retry or await self._wait_tick_or_stop():
                return None

    async def _wait_tick_or_stop(self) -> bool:
        """Sleep until the next tick; returns True if stop was requested."""
        assert self._stopper is not None
        while True:
            done, _ = await asyncio.wait(
                {self._stopper, self._arm_waker()},
                timeout=self._ticker.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
            self._disarm_waker_if_done()
            if self._stopper in done:
                return True
            if self._ticker.due():
                self._ticker.consume()
                return False

    def _arm_waker(self) -> asyncio.Future[Any]:
        if self._waker is None:
            self._waker = asyncio.ensure_future(self._interval_changed.wait())
        return self._waker

    def _disarm_waker_if_done(self) -> None:
        if self._waker is not None and self._waker.done():
            self._waker = None
            self._interval_changed.clear()

    async def _commit(self) -> None:
        tx, inserted, failed = self._tx, self._batch, self._failed
        self._tx, self._batch, self._failed = None, [], 0
        try:
            if tx is not None:
                await tx.commit()
            if self._metrics is not None:
                self._metrics.record_commit(len(inserted))
        except Exception as exc:
            if self._metrics is not None:
                self._metrics.record_commit_failure(len(inserted))
            warn(
                "worker",
                "cannot commit transaction",
                sink=self._name,
                error_type=type(exc).__name__,
                error=str(exc),
                lost=[describe_record(r) for r in inserted],
            )
            await self._rollback_quietly(tx)
        finally:
            self._pending.settle(len(inserted) + failed)

    async def _rollback_quietly(self, tx: Transaction | None) -> None:
        if tx is None:
            return
        try:
            await tx.rollback()
        except Exception:
            # The commit failure was already reported
            pass

    async def _finish(self) -> None:
        """Drain what is left into the current transaction and commit it."""
        leftover: list[Record] = []
        getter = self._getter
        self._getter = None
        if getter is not None:
            if getter.done() and not getter.cancelled():
                leftover.append(getter.result())
            else:
                getter.cancel()
                await asyncio.gather(getter, return_exceptions=True)
        for waiter in (self._stopper, self._waker):
            if waiter is not None and not waiter.done():
                waiter.cancel()
                await asyncio.gather(waiter, return_exceptions=True)
        self._waker = None

        while True:
            try:
                leftover.append(self._queue.get_nowait())
            except asyncio.QueueEmpty:
                break

        for record in leftover:
            await self._insert(record, retry=False)
        if self._tx is not None or self.batch_size:
            await self._commit()

    def _report_dropped(self, records: list[Record], *, reason: str) -> None:
        if not records:
            return
        if self._metrics is not None:
            self._metrics.record_dropped(len(records))
        for record in records:
            warn(
                "worker",
                "record dropped",
                sink=self._name,
                reason=reason,
                record=describe_record(record),
            )
        self._pending.settle(len(records))

    def _emit_worker_error(self, exc: Exception) -> None:
        warn(
            "worker",
            "worker error",
            sink=self._name,
            error_type=type(exc).__name__,
            error=str(exc),
        )
