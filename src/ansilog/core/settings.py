"""
Configuration models for ansilog using Pydantic v2 Settings.

Every field can be set from the environment with the ``ANSILOG_`` prefix
and ``__`` as the nesting delimiter, e.g. ``ANSILOG_CORE__LEVEL=INFO`` or
``ANSILOG_POSTGRES__LEVEL=WARN``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)

from ..stores import DEFAULT_TABLE
from ..stores.postgres import PostgresStoreConfig
from .diagnostics import is_reserved_logger_name
from .levels import Level, parse_level


class CoreSettings(BaseModel):
    """Logger-wide settings."""

    app_name: str = Field(
        default="app",
        description="Logical application name; also the configured logger name",
    )
    level: Level = Field(
        default=Level.DEBUG,
        description="Minimum level for the configured logger; unknown names fall back to DEBUG",
    )
    console: bool = Field(
        default=True,
        description="Write JSON lines to stdout",
    )

    @field_validator("app_name")
    @classmethod
    def _validate_app_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("app_name must not be empty")
        if is_reserved_logger_name(value):
            raise ValueError(f"app_name {value!r} is reserved for ansilog diagnostics")
        return value

    @field_validator("level", mode="before")
    @classmethod
    def _lenient_level(cls, value: Any) -> Level:
        try:
            return parse_level(value)
        except ValueError:
            return Level.DEBUG


class AsyncSinkSettings(BaseModel):
    """Queue and commit cadence for the asynchronous sink."""

    queue_capacity: int = Field(
        default=8192,
        ge=0,
        description="Maximum queued records before producers block (0 selects the default)",
    )
    commit_interval_seconds: float = Field(
        default=1.0,
        gt=0.0,
        description="Interval between commits of a non-empty batch",
    )
    flush_interval_seconds: float = Field(
        default=0.1,
        gt=0.0,
        description="Commit interval used while a flush drains the queue",
    )


class PostgresSettings(BaseModel):
    """PostgreSQL sink settings; the sink is enabled by setting ``level``."""

    level: Level | None = Field(
        default=None,
        description="Minimum level persisted to PostgreSQL; unset disables the sink",
    )
    dsn: str | None = None
    host: str = "localhost"
    port: int = Field(default=5432, ge=1, le=65535)
    database: str = "ansilog"
    user: str = "ansilog"
    password: str | None = None
    table_name: str = DEFAULT_TABLE
    schema_name: str | None = None
    create_table: bool = False

    @field_validator("level", mode="before")
    @classmethod
    def _parse_level(cls, value: Any) -> Level | None:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return parse_level(value)

    def store_config(self) -> PostgresStoreConfig:
        return PostgresStoreConfig(
            dsn=self.dsn,
            host=self.host,
            port=self.port,
            database=self.database,
            user=self.user,
            password=self.password,
            table_name=self.table_name,
            schema_name=self.schema_name,
            create_table=self.create_table,
        )


class MetricsSettings(BaseModel):
    enabled: bool = Field(
        default=False,
        description="Export Prometheus metrics for the asynchronous sink",
    )


class Settings(BaseSettings):
    """Top-level configuration model."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    async_sink: AsyncSinkSettings = Field(default_factory=AsyncSinkSettings)
    postgres: PostgresSettings = Field(default_factory=PostgresSettings)
    metrics: MetricsSettings = Field(default_factory=MetricsSettings)

    model_config = SettingsConfigDict(
        env_prefix="ANSILOG_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )
