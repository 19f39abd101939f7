from __future__ import annotations

import os
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..core import diagnostics
from ..core.errors import StoreError
from ..core.utils import parse_config
from . import DEFAULT_TABLE, InsertFunc, make_insert, quote_ident

asyncpg: Any = None  # Lazy import; populated in _ensure_asyncpg


def _ensure_asyncpg() -> None:
    global asyncpg
    if asyncpg is None:
        import asyncpg as _asyncpg

        asyncpg = _asyncpg


class PostgresStoreConfig(BaseModel):
    """Configuration for the PostgreSQL backing store."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    # Connection settings
    dsn: str | None = Field(default_factory=lambda: os.getenv("ANSILOG_POSTGRES__DSN"))
    host: str = Field(
        default_factory=lambda: os.getenv("ANSILOG_POSTGRES__HOST", "localhost")
    )
    port: int = Field(
        default_factory=lambda: int(os.getenv("ANSILOG_POSTGRES__PORT", "5432"))
    )
    database: str = Field(
        default_factory=lambda: os.getenv("ANSILOG_POSTGRES__DATABASE", "ansilog")
    )
    user: str = Field(
        default_factory=lambda: os.getenv("ANSILOG_POSTGRES__USER", "ansilog")
    )
    password: str | None = Field(
        default_factory=lambda: os.getenv("ANSILOG_POSTGRES__PASSWORD")
    )

    # Table settings
    table_name: str = Field(default=DEFAULT_TABLE)
    schema_name: str | None = Field(default=None)
    create_table: bool = Field(
        default=False,
        description=(
            "Create the log table on first connect. Leave False where tables "
            "are provisioned by migrations."
        ),
    )
    use_jsonb: bool = True

    # Connection pool settings
    min_pool_size: int = Field(default=1, ge=1)
    max_pool_size: int = Field(default=4, ge=1)
    pool_acquire_timeout: float = Field(default=10.0, gt=0.0)


class PostgresTransaction:
    """An asyncpg transaction bound to one pooled connection.

    Each ``execute`` runs inside a savepoint, so a failing statement is
    rolled back on its own and the rest of the batch can still commit.
    """

    def __init__(self, pool: Any, conn: Any, tx: Any) -> None:
        self._pool = pool
        self._conn = conn
        self._tx = tx
        self._done = False

    async def execute(self, query: str, *args: Any) -> Any:
        if self._done:
            raise StoreError("transaction already finished")
        async with self._conn.transaction():
            return await self._conn.execute(query, *args)

    async def commit(self) -> None:
        try:
            await self._tx.commit()
        finally:
            await self._release()

    async def rollback(self) -> None:
        try:
            await self._tx.rollback()
        finally:
            await self._release()

    async def _release(self) -> None:
        if self._done:
            return
        self._done = True
        await self._pool.release(self._conn)


class PostgresStore:
    """PostgreSQL backing store using an asyncpg connection pool.

    The pool is created lazily by ``begin`` on the caller's event loop, so
    connection failures surface as transaction-open failures and are
    retried by the sink worker on its next tick.
    """

    name = "postgres"

    def __init__(self, config: PostgresStoreConfig | None = None, **kwargs: Any) -> None:
        self._config = parse_config(PostgresStoreConfig, config, **kwargs)
        self._pool: Any = None
        self._table_created = False

    @property
    def config(self) -> PostgresStoreConfig:
        return self._config

    def insert_func(self) -> InsertFunc:
        """Default insert function targeting the configured table."""
        return make_insert(self._config.table_name, self._config.schema_name)

    async def _ensure_pool(self) -> Any:
        if self._pool is not None:
            return self._pool
        _ensure_asyncpg()
        pool_kwargs = {
            "min_size": self._config.min_pool_size,
            "max_size": self._config.max_pool_size,
        }
        if self._config.dsn:
            self._pool = await asyncpg.create_pool(dsn=self._config.dsn, **pool_kwargs)
        else:
            self._pool = await asyncpg.create_pool(
                host=self._config.host,
                port=self._config.port,
                database=self._config.database,
                user=self._config.user,
                password=self._config.password,
                **pool_kwargs,
            )
        return self._pool

    async def begin(self) -> PostgresTransaction:
        pool = await self._ensure_pool()
        if self._config.create_table:
            await self._ensure_table()
        conn = await pool.acquire(timeout=self._config.pool_acquire_timeout)
        try:
            tx = conn.transaction()
            await tx.start()
        except BaseException:
            await pool.release(conn)
            raise
        return PostgresTransaction(pool, conn, tx)

    async def close(self) -> None:
        if self._pool is not None:
            await self._pool.close()
            self._pool = None

    def _table_ref(self) -> str:
        table = quote_ident(self._config.table_name)
        if self._config.schema_name:
            return f"{quote_ident(self._config.schema_name)}.{table}"
        return table

    async def _ensure_table(self) -> None:
        if self._table_created or self._pool is None:
            return
        json_type = "JSONB" if self._config.use_jsonb else "JSON"
        create_schema_sql = (
            f"CREATE SCHEMA IF NOT EXISTS {quote_ident(self._config.schema_name)}"
            if self._config.schema_name
            else None
        )
        create_table_sql = (
            f"CREATE TABLE IF NOT EXISTS {self._table_ref()} (\n"
            "    id BIGSERIAL PRIMARY KEY,\n"
            "    level VARCHAR(10) NOT NULL,\n"
            "    message TEXT NOT NULL,\n"
            f"    message_data {json_type},\n"
            "    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()\n"
            ")"
        )
        index_sql = (
            f"CREATE INDEX IF NOT EXISTS "
            f"{quote_ident('idx_' + self._config.table_name + '_created_at')} "
            f"ON {self._table_ref()} (created_at DESC)"
        )
        async with self._pool.acquire(
            timeout=self._config.pool_acquire_timeout
        ) as conn:
            if create_schema_sql:
                await conn.execute(create_schema_sql)
            await conn.execute(create_table_sql)
            try:
                await conn.execute(index_sql)
            except Exception:
                # Index creation is best effort
                diagnostics.warn(
                    "postgres-store",
                    "index creation failed",
                    statement=index_sql,
                    _rate_limit_key="postgres-index",
                )
        self._table_created = True


__all__ = ["PostgresStore", "PostgresStoreConfig", "PostgresTransaction"]
