from __future__ import annotations

import io
import sys
import threading
from typing import IO, Any, Callable, Iterable

from ..core.errors import SinkWriteError
from ..core.record import Record
from ..core.serialization import serialize_record_line
from ..filters import Filter, FilterChain


class SyncSink:
    """Sink that writes each record inline on the caller's thread.

    - Applies the filter chain, then calls ``write(record)``
    - Any write error is raised to the caller as ``SinkWriteError``
    - No retry and no internal state beyond the writer and the chain
    """

    name = "sync"

    def __init__(
        self,
        write: Callable[[Record], Any],
        *,
        filters: Iterable[Filter] | None = None,
        name: str | None = None,
    ) -> None:
        self._write = write
        self._filters = FilterChain(filters)
        if name:
            self.name = name

    @property
    def filters(self) -> FilterChain:
        return self._filters

    def add_filter(self, fn: Filter) -> None:
        self._filters.add(fn)

    def fire(self, record: Record) -> None:
        filtered = self._filters.apply(record)
        if filtered is None:
            return None
        try:
            self._write(filtered)
        except Exception as exc:
            raise SinkWriteError(
                f"Failed to write record in {self.name}",
                sink_name=self.name,
                cause=exc,
            ) from exc
        return None

    def flush(self) -> None:
        return None

    def close(self) -> None:
        self.flush()


class StreamSink(SyncSink):
    """Sink that writes structured JSON lines to a stream.

    Accepts text or binary streams; defaults to ``sys.stdout``. Writes are
    serialized with a lock so lines from different threads never interleave.
    """

    name = "stream"

    def __init__(
        self,
        stream: IO[Any] | None = None,
        *,
        filters: Iterable[Filter] | None = None,
        name: str | None = None,
    ) -> None:
        super().__init__(self._write_line, filters=filters, name=name)
        self._stream = stream
        self._lock = threading.Lock()

    @property
    def stream(self) -> IO[Any]:
        # Resolved per call so redirected stdout (e.g. capsys) is honored
        return self._stream if self._stream is not None else sys.stdout

    def _write_line(self, record: Record) -> None:
        line = serialize_record_line(record)
        stream = self.stream
        with self._lock:
            if isinstance(stream, (io.RawIOBase, io.BufferedIOBase)):
                stream.write(line)
            else:
                stream.write(line.decode("utf-8"))
            stream.flush()

    def flush(self) -> None:
        with self._lock:
            self.stream.flush()
