"""
Structured record value handed from the logging front-end to sinks.

A ``Record`` is immutable once created. Filters never edit a record in
place; they return a new one built with ``with_fields``/``without_fields``
or ``replace``. This keeps the asynchronous worker free to read a record on
its own thread while producers keep logging.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Mapping

from .levels import Level, parse_level


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Record:
    """One structured log event."""

    level: Level
    message: str
    fields: Mapping[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        # Copy so later changes to the caller's dict cannot leak in
        object.__setattr__(self, "level", parse_level(self.level))
        object.__setattr__(self, "message", str(self.message))
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        if not isinstance(self.timestamp, datetime):
            raise ValueError("Timestamp must be a datetime object")
        if self.timestamp.tzinfo is None:
            object.__setattr__(
                self, "timestamp", self.timestamp.replace(tzinfo=timezone.utc)
            )

    def with_fields(self, **fields: Any) -> Record:
        """Return a copy with ``fields`` merged over the existing ones."""
        merged = dict(self.fields)
        merged.update(fields)
        return dataclasses.replace(self, fields=merged)

    def without_fields(self, *names: str) -> Record:
        """Return a copy with the named fields removed."""
        kept = {k: v for k, v in self.fields.items() if k not in names}
        return dataclasses.replace(self, fields=kept)

    def replace(self, **changes: Any) -> Record:
        return dataclasses.replace(self, **changes)

    def __reduce__(self) -> Any:
        # MappingProxyType cannot be pickled; rebuild from a plain dict
        return (
            Record,
            (self.level, self.message, dict(self.fields), self.timestamp),
        )
