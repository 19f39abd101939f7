from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from ..core.levels import Level, parse_level
from ..core.record import Record
from ..core.utils import parse_config


class LevelFilterConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    min_level: Level = Level.INFO
    drop_below: bool = True

    @field_validator("min_level", mode="before")
    @classmethod
    def _parse_min_level(cls, value: Any) -> Level:
        return parse_level(value)


class LevelFilter:
    """Filter records by log level threshold."""

    name = "level"

    def __init__(
        self, *, config: LevelFilterConfig | dict | None = None, **kwargs: Any
    ) -> None:
        cfg = parse_config(LevelFilterConfig, config, **kwargs)
        self._min_priority = cfg.min_level.priority
        self._drop_below = bool(cfg.drop_below)

    def __call__(self, record: Record) -> Record | None:
        if self._drop_below and record.level.priority < self._min_priority:
            return None
        return record
