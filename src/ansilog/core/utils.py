"""Helpers for building frozen pydantic configs from mixed inputs."""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel

ConfigT = TypeVar("ConfigT", bound=BaseModel)


def parse_config(
    model: type[ConfigT],
    config: ConfigT | dict[str, Any] | None = None,
    **kwargs: Any,
) -> ConfigT:
    """Build ``model`` from an instance, a dict, keyword arguments, or a mix.

    Keyword arguments override values from ``config``.

    Example:
        >>> parse_config(LevelFilterConfig, {"min_level": "WARN"})
        >>> parse_config(LevelFilterConfig, min_level="WARN")
    """
    if isinstance(config, model) and not kwargs:
        return config
    data: dict[str, Any] = {}
    if isinstance(config, BaseModel):
        data.update(config.model_dump(exclude_unset=True))
    elif isinstance(config, dict):
        data.update(config)
    elif config is not None:
        raise TypeError(
            f"config must be {model.__name__}, dict or None, got {type(config).__name__}"
        )
    data.update(kwargs)
    return model(**data)
