"""
Testing utilities for ansilog.

Provides an in-memory transactional store, record factories and protocol
validators for testing custom sinks, filters and stores. Pytest fixtures
live in ``ansilog.testing.fixtures`` and require the testing extra.

Example:
    from ansilog.sinks import AsyncSink
    from ansilog.testing import MemoryStore, create_record

    def test_my_filter():
        store = MemoryStore()
        with AsyncSink(store, filters=[my_filter]) as sink:
            sink.fire(create_record("hello"))
        assert store.messages == ["hello"]
"""

from .factories import create_batch_records, create_record
from .stores import MemoryStore, MemoryTransaction, StoredRow
from .validators import (
    ProtocolViolationError,
    ValidationResult,
    validate_filter,
    validate_sink,
    validate_store,
    validate_transaction_lifecycle,
)

__all__ = [
    "MemoryStore",
    "MemoryTransaction",
    "StoredRow",
    "create_record",
    "create_batch_records",
    "validate_sink",
    "validate_filter",
    "validate_store",
    "validate_transaction_lifecycle",
    "ValidationResult",
    "ProtocolViolationError",
]
