"""Use case turning one logging call into a record handed to a sink.

Purpose
-------
Build the :class:`~lib_log_sinks.domain.events.LogEvent` for a logging call,
consult the sink's gate, dispatch, and report the outcome as a small result
mapping.

Contents
--------
* :data:`ProcessResult` - ``{"ok": bool, "reason": ..., ...}`` result mapping.
* :func:`create_process_log_event` - factory returning the per-call callable.

System Role
-----------
Application-layer orchestrator used by :class:`lib_log_sinks.runtime.Logger`.
The sink graph itself (fan-out, gates, buffering) lives in the adapters.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any

from lib_log_sinks.application.ports.sink import SinkPort
from lib_log_sinks.application.ports.time import CallSiteProvider, ClockPort
from lib_log_sinks.domain.attrs import Attr, coerce_attrs
from lib_log_sinks.domain.events import LogEvent

logger = logging.getLogger(__name__)

ProcessResult = dict[str, Any]
ProcessCallable = Callable[..., ProcessResult]
Diagnostic = Callable[[str, dict[str, Any]], None]


class SystemClock:
    """Clock returning the current UTC time."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


def create_process_log_event(
    *,
    sink: SinkPort,
    clock: ClockPort | None = None,
    call_site: CallSiteProvider | None = None,
    diagnostic: Diagnostic | None = None,
) -> ProcessCallable:
    """Return a callable emitting one record to ``sink`` per invocation.

    Parameters
    ----------
    sink:
        Root of the sink graph.
    clock:
        Provider of timezone-aware timestamps (UTC wall clock by default).
    call_site:
        Optional provider of the caller's :class:`~lib_log_sinks.domain.events.Source`.
    diagnostic:
        Optional callback invoked with pipeline milestones.

    Returns
    -------
    Callable
        ``process(level, message, attrs=None, *, depth=0)`` returning a
        :data:`ProcessResult`: ``{"ok": True}`` when handled,
        ``{"ok": False, "reason": "level_disabled"}`` when gated out, and
        ``{"ok": False, "reason": "sink_error", "error": exc}`` when the sink
        raised.

    Examples
    --------
    >>> from lib_log_sinks.adapters.discard import DiscardSink
    >>> process = create_process_log_event(sink=DiscardSink())
    >>> process(20, "ignored")
    {'ok': False, 'reason': 'level_disabled'}
    """

    active_clock = clock or SystemClock()

    def emit(name: str, payload: dict[str, Any]) -> None:
        if diagnostic is None:
            return
        try:
            diagnostic(name, payload)
        except Exception:  # noqa: BLE001
            logger.debug("Diagnostic hook raised for %s", name, exc_info=True)

    def process(
        level: int,
        message: str,
        attrs: Iterable[Attr] | Mapping[str, Any] | None = None,
        *,
        depth: int = 0,
    ) -> ProcessResult:
        if not sink.enabled(level):
            emit("level_disabled", {"level": level})
            return {"ok": False, "reason": "level_disabled"}
        source = call_site(depth + 1) if call_site is not None else None
        event = LogEvent(
            timestamp=active_clock.now(),
            level=level,
            message=message,
            attrs=coerce_attrs(attrs),
            source=source,
        )
        try:
            sink.handle(event)
        except Exception as exc:  # noqa: BLE001 - reported through the result
            emit("sink_error", {"level": level, "error": repr(exc)})
            return {"ok": False, "reason": "sink_error", "error": exc}
        emit("handled", {"level": level})
        return {"ok": True}

    return process


__all__ = ["ProcessCallable", "ProcessResult", "SystemClock", "create_process_log_event"]
