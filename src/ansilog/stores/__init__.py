from __future__ import annotations

from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from ..core.record import Record
from ..core.serialization import serialize_fields


@runtime_checkable
class Transaction(Protocol):
    """One open unit of work against a backing store."""

    async def execute(self, query: str, *args: Any) -> Any:
        """Run a statement inside the transaction."""

    async def commit(self) -> None:
        """Make every statement executed so far durable."""

    async def rollback(self) -> None:
        """Discard the transaction."""


@runtime_checkable
class Store(Protocol):
    """Transactional backing store used by the asynchronous sink.

    All calls happen on the sink's worker loop; implementations may bind
    connections to that loop lazily inside ``begin``.
    """

    async def begin(self) -> Transaction:
        """Open a new transaction."""

    async def close(self) -> None:
        """Release connections (optional lifecycle hook)."""


InsertFunc = Callable[[Transaction, Record], Awaitable[None]]

DEFAULT_TABLE = "logs"


def quote_ident(value: str) -> str:
    escaped = value.replace('"', '""')
    return f'"{escaped}"'


def build_insert_statement(table: str = DEFAULT_TABLE, schema: str | None = None) -> str:
    target = quote_ident(table)
    if schema:
        target = f"{quote_ident(schema)}.{target}"
    return (
        f"INSERT INTO {target} (level, message, message_data, created_at) "
        "VALUES ($1, $2, $3, $4)"
    )


def record_row(record: Record) -> tuple[Any, ...]:
    """Positional parameters for the default insert statement."""
    return (
        record.level.value,
        record.message,
        serialize_fields(record.fields),
        record.timestamp,
    )


def make_insert(table: str = DEFAULT_TABLE, schema: str | None = None) -> InsertFunc:
    """Build an insert function writing one row per record into ``table``."""
    query = build_insert_statement(table, schema)

    async def insert(tx: Transaction, record: Record) -> None:
        await tx.execute(query, *record_row(record))

    return insert


insert_record: InsertFunc = make_insert()


__all__ = [
    "Store",
    "Transaction",
    "InsertFunc",
    "DEFAULT_TABLE",
    "build_insert_statement",
    "insert_record",
    "make_insert",
    "quote_ident",
    "record_row",
]
