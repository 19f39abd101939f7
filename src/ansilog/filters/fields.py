"""Field-level filters: constant extras, field removal and ignore markers."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..core.record import Record


class ExtraFieldsFilter:
    """Merge constant fields into every record.

    Fields already present on the record take precedence.
    """

    name = "extra_fields"

    def __init__(self, extra: Mapping[str, Any]) -> None:
        self._extra = dict(extra)

    def __call__(self, record: Record) -> Record | None:
        if not self._extra:
            return record
        merged = dict(self._extra)
        merged.update(record.fields)
        return record.replace(fields=merged)


class DropFieldsFilter:
    """Remove the named fields from every record."""

    name = "drop_fields"

    def __init__(self, names: Iterable[str]) -> None:
        self._names = tuple(names)

    def __call__(self, record: Record) -> Record | None:
        if not any(n in record.fields for n in self._names):
            return record
        return record.without_fields(*self._names)


class IgnoreMarkedFilter:
    """Drop records that carry a marker field (``ignore`` by default)."""

    name = "ignore_marked"

    def __init__(self, key: str = "ignore") -> None:
        self._key = key

    def __call__(self, record: Record) -> Record | None:
        if self._key in record.fields:
            return None
        return record
