"""
Internal diagnostics for non-fatal errors (worker, sink, store).

Diagnostics go to the stdlib logger ``ansilog.diagnostics`` as WARNING
records. The structured payload is attached as ``record.diagnostic`` so
handlers and tests can inspect it without parsing the message.

Repeated warnings can be collapsed with ``_rate_limit_key``: only the first
warning per key is emitted within ``RATE_LIMIT_WINDOW_SECONDS``.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Any

LOGGER_NAME = "ansilog.diagnostics"

_logger = logging.getLogger(LOGGER_NAME)

RATE_LIMIT_WINDOW_SECONDS = 5.0

_last_emitted: dict[str, float] = {}
_lock = threading.Lock()


def _allowed(key: str | None) -> bool:
    if key is None:
        return True
    now = time.monotonic()
    with _lock:
        last = _last_emitted.get(key)
        if last is not None and (now - last) < RATE_LIMIT_WINDOW_SECONDS:
            return False
        _last_emitted[key] = now
    return True


def _format(component: str, message: str, fields: dict[str, Any]) -> str:
    if not fields:
        return f"[{component}] {message}"
    rendered = " ".join(f"{k}={v!r}" for k, v in fields.items())
    return f"[{component}] {message} {rendered}"


def warn(
    component: str,
    message: str,
    *,
    _rate_limit_key: str | None = None,
    **fields: Any,
) -> None:
    """Emit a structured internal warning.

    Never raises; diagnostics must not break the caller.
    """
    if not _allowed(_rate_limit_key):
        return
    payload = {"component": component, "message": message, **fields}
    try:
        _logger.warning(
            _format(component, message, fields),
            extra={"diagnostic": payload},
        )
    except Exception:
        pass


def is_reserved_logger_name(name: str) -> bool:
    """True for the diagnostics logger and its ancestors.

    Handlers on these loggers would either swallow or cut off internal
    warnings.
    """
    return name == LOGGER_NAME or LOGGER_NAME.startswith(name + ".")


def _reset_rate_limits() -> None:
    """Clear rate-limit state (for testing only)."""
    with _lock:
        _last_emitted.clear()
