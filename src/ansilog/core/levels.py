"""Log level scale shared by records, filters and the stdlib bridge.

Levels are ordered by numeric priority; lower means more verbose. Names are
case-insensitive and accept the usual aliases (``WARNING`` for ``WARN``,
``CRITICAL`` for ``FATAL``).

Example:
    >>> parse_level("warning")
    <Level.WARN: 'WARN'>
    >>> Level.ERROR.priority > Level.INFO.priority
    True
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Final


class Level(str, Enum):
    """Severity of a log record."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"
    FATAL = "FATAL"
    PANIC = "PANIC"

    @property
    def priority(self) -> int:
        return _PRIORITIES[self]

    def __str__(self) -> str:
        return self.value


_PRIORITIES: Final[dict[Level, int]] = {
    Level.DEBUG: 10,
    Level.INFO: 20,
    Level.WARN: 30,
    Level.ERROR: 40,
    Level.FATAL: 50,
    Level.PANIC: 60,
}

_ALIASES: Final[dict[str, Level]] = {
    "WARNING": Level.WARN,
    "CRITICAL": Level.FATAL,
}


def parse_level(level: str | Level) -> Level:
    """Resolve a level name (or ``Level``) to a ``Level``.

    Raises:
        ValueError: If the name is not a known level or alias.
    """
    if isinstance(level, Level):
        return level
    name = str(level).strip().upper()
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return Level(name)
    except ValueError:
        raise ValueError(f"Unknown log level: {level!r}") from None


def from_stdlib_level(levelno: int) -> Level:
    """Map a stdlib ``logging`` level number onto the level scale."""
    if levelno >= logging.CRITICAL:
        return Level.FATAL
    if levelno >= logging.ERROR:
        return Level.ERROR
    if levelno >= logging.WARNING:
        return Level.WARN
    if levelno >= logging.INFO:
        return Level.INFO
    return Level.DEBUG


def to_stdlib_level(level: str | Level) -> int:
    """Map a level onto the stdlib ``logging`` number used for thresholds."""
    resolved = parse_level(level)
    return {
        Level.DEBUG: logging.DEBUG,
        Level.INFO: logging.INFO,
        Level.WARN: logging.WARNING,
        Level.ERROR: logging.ERROR,
        Level.FATAL: logging.CRITICAL,
        Level.PANIC: logging.CRITICAL,
    }[resolved]
