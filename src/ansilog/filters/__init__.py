from __future__ import annotations

import threading
from typing import Callable, Iterable, Optional, Protocol, runtime_checkable

from ..core import diagnostics
from ..core.record import Record
from .fields import DropFieldsFilter, ExtraFieldsFilter, IgnoreMarkedFilter
from .level import LevelFilter

Filter = Callable[[Record], Optional[Record]]


@runtime_checkable
class BaseFilter(Protocol):
    """Contract for class-based filters that can drop or transform records."""

    name: str

    def __call__(self, record: Record) -> Record | None:
        """Return a record to continue or None to drop."""


def filter_name(fn: Filter) -> str:
    name = getattr(fn, "name", None)
    if isinstance(name, str) and name:
        return name
    return getattr(fn, "__name__", type(fn).__name__)


def filter_in_order(record: Record, filters: Iterable[Filter]) -> Record | None:
    """Apply filters sequentially; return None when any drops the record.

    A filter that raises is skipped and the record continues unchanged.
    """
    current = record
    for f in filters:
        try:
            result = f(current)
        except Exception as exc:
            diagnostics.warn(
                "filter",
                "filter exception",
                filter=filter_name(f),
                reason=str(exc),
            )
            continue

        if result is None:
            return None
        current = result
    return current


class FilterChain:
    """Ordered list of filters shared by a sink's producers.

    Registration is guarded so filters can be added while other threads
    log; ``apply`` works on a snapshot of the list.
    """

    def __init__(self, filters: Iterable[Filter] | None = None) -> None:
        self._filters: tuple[Filter, ...] = tuple(filters or ())
        self._lock = threading.Lock()

    def add(self, fn: Filter) -> None:
        if not callable(fn):
            raise TypeError("filter must be callable")
        with self._lock:
            self._filters = (*self._filters, fn)

    def apply(self, record: Record) -> Record | None:
        return filter_in_order(record, self._filters)

    def __len__(self) -> int:
        return len(self._filters)

    def __iter__(self):  # type: ignore[no-untyped-def]
        return iter(self._filters)


__all__ = [
    "BaseFilter",
    "Filter",
    "FilterChain",
    "filter_in_order",
    "filter_name",
    "LevelFilter",
    "ExtraFieldsFilter",
    "DropFieldsFilter",
    "IgnoreMarkedFilter",
]
