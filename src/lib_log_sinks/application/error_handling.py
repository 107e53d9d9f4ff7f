"""Pluggable error-handler hook shared by all sinks.

Purpose
-------
Route failures raised while handling or delivering a record through one
replaceable callable that may report, transform, or suppress them.

Contents
--------
* :func:`default_error_handler` - reports to stderr as one JSON line and wraps
  the error in :class:`~lib_log_sinks.domain.errors.HandleRecordError`.
* :func:`invoke_error_handler` - guarded call used by the adapters.

System Role
-----------
Synchronous failures come back to the producer as whatever the handler
returns; asynchronous delivery failures only ever reach the handler.
"""

from __future__ import annotations

import json
import logging
import sys
from typing import IO, Any

from lib_log_sinks.application.ports.sink import ErrorHandler
from lib_log_sinks.domain.errors import HandleRecordError, SinkError
from lib_log_sinks.domain.events import LogEvent

LOGGER = logging.getLogger(__name__)


def _error_payload(exc: BaseException) -> dict[str, Any]:
    if isinstance(exc, SinkError):
        payload = exc.to_dict()
        payload.setdefault("error", exc.message)
        return payload
    return {"message": str(exc), "code": int(HandleRecordError.code), "error": type(exc).__name__}


def default_error_handler(exc: Exception, event: LogEvent | None, *, stream: IO[str] | None = None) -> Exception:
    """Write ``{"record": ..., "error": ...}`` to ``stream`` and return a wrapped error.

    ``stream`` defaults to :data:`sys.stderr` resolved at call time.
    """

    target = stream if stream is not None else sys.stderr
    report = {
        "record": event.to_dict() if event is not None else None,
        "error": _error_payload(exc),
    }
    try:
        target.write(json.dumps(report, default=str) + "\n")
        target.flush()
    except (OSError, ValueError):
        LOGGER.error("Failed to report sink error", exc_info=True)
    wrapped = HandleRecordError("failed to handle record")
    wrapped.__cause__ = exc
    return wrapped


def invoke_error_handler(handler: ErrorHandler | None, exc: Exception, event: LogEvent | None) -> Exception | None:
    """Pass ``exc`` through ``handler``; a failing handler keeps the original error."""

    if handler is None:
        return exc
    try:
        return handler(exc, event)
    except Exception:  # noqa: BLE001
        LOGGER.error("Error handler raised while processing %r", exc, exc_info=True)
        return exc


__all__ = ["default_error_handler", "invoke_error_handler"]
