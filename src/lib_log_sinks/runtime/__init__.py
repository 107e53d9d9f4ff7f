"""Runtime façade over the sink graph.

Purpose
-------
Expose a small, stable entry point for host applications: a :class:`Logger`
bound to one sink graph, plus the builder registry used to assemble that graph
from configuration.

Contents
--------
* :class:`Logger` - level helpers, clone-on-extend ``with_attrs`` /
  ``with_group``, and shutdown.
* :func:`new` - build a sink from configuration and wrap it in a :class:`Logger`.
* Registry helpers re-exported from :mod:`lib_log_sinks.runtime._registry`.

System Role
-----------
Outer shell of the package. Inner layers never import from here.
"""

from __future__ import annotations

import sys
from collections.abc import Iterable, Mapping, MutableMapping
from typing import Any, Optional

from lib_log_sinks.application.ports.sink import SinkPort
from lib_log_sinks.application.ports.time import ClockPort
from lib_log_sinks.application.use_cases.process_event import (
    Diagnostic,
    ProcessResult,
    create_process_log_event,
)
from lib_log_sinks.application.use_cases.shutdown import create_shutdown
from lib_log_sinks.domain.attrs import Attr
from lib_log_sinks.domain.events import Source
from lib_log_sinks.domain.levels import LogLevel, parse_level

from ._registry import (
    REGISTRY,
    BuildCallback,
    FanoutBuilder,
    OptionsBuilder,
    SinkBuilder,
    SinkRegistry,
    build_sink,
    builder_from_config,
    create_registry,
    register_builder,
    registered_types,
)

# Frames between frame_call_site and the code calling a Logger method:
# frame_call_site <- process <- Logger._log <- Logger.<level method>.
_LOGGER_FRAMES = 2


def frame_call_site(depth: int) -> Source | None:
    """Return the call site ``depth`` frames above the caller of this function."""

    try:
        frame = sys._getframe(depth + 1)
    except ValueError:
        return None
    code = frame.f_code
    return Source(file=code.co_filename, line=frame.f_lineno, function=code.co_name)


class Logger:
    """Lightweight facade for structured logging calls.

    Level helpers return the diagnostic dictionary produced by
    :func:`~lib_log_sinks.application.use_cases.process_event.create_process_log_event`.
    ``with_attrs`` and ``with_group`` return new loggers over extended sinks; the
    original logger is unaffected.
    """

    def __init__(
        self,
        sink: SinkPort,
        *,
        clock: ClockPort | None = None,
        include_call_site: bool = True,
        diagnostic: Diagnostic | None = None,
    ) -> None:
        self._sink = sink
        self._clock = clock
        self._include_call_site = include_call_site
        self._diagnostic = diagnostic
        self._process = create_process_log_event(
            sink=sink,
            clock=clock,
            call_site=frame_call_site if include_call_site else None,
            diagnostic=diagnostic,
        )
        self._shutdown = create_shutdown(sink=sink)

    @property
    def sink(self) -> SinkPort:
        return self._sink

    def enabled(self, level: int | str) -> bool:
        return self._sink.enabled(parse_level(level))

    def debug(self, message: str, *, extra: Optional[MutableMapping[str, Any]] = None) -> dict[str, Any]:
        """Emit a ``DEBUG`` record; see :meth:`log` for return semantics."""
        return self._log(LogLevel.DEBUG, message, extra)

    def info(self, message: str, *, extra: Optional[MutableMapping[str, Any]] = None) -> dict[str, Any]:
        """Emit an ``INFO`` record; see :meth:`log` for return semantics."""
        return self._log(LogLevel.INFO, message, extra)

    def warning(self, message: str, *, extra: Optional[MutableMapping[str, Any]] = None) -> dict[str, Any]:
        return self._log(LogLevel.WARNING, message, extra)

    def error(self, message: str, *, extra: Optional[MutableMapping[str, Any]] = None) -> dict[str, Any]:
        return self._log(LogLevel.ERROR, message, extra)

    def critical(self, message: str, *, extra: Optional[MutableMapping[str, Any]] = None) -> dict[str, Any]:
        return self._log(LogLevel.CRITICAL, message, extra)

    def log(
        self,
        level: int | str,
        message: str,
        *,
        extra: Optional[MutableMapping[str, Any]] = None,
    ) -> ProcessResult:
        """Emit a record at any level (integers or names such as ``"DEBUG-4"``).

        Returns
        -------
        dict[str, Any]
            ``{"ok": True}`` when handled; otherwise ``ok`` is false and
            ``reason`` is ``"level_disabled"`` or ``"sink_error"`` (with the
            raised exception under ``error``).
        """
        return self._log(parse_level(level), message, extra)

    def _log(self, level: int, message: str, extra: Optional[Mapping[str, Any]]) -> ProcessResult:
        return self._process(level, message, extra, depth=_LOGGER_FRAMES)

    def with_attrs(self, attrs: Iterable[Attr] | Mapping[str, Any] | None = None, **kwargs: Any) -> "Logger":
        collected: dict[str, Any] | list[Attr]
        if attrs is None or isinstance(attrs, Mapping):
            collected = {**(attrs or {}), **kwargs}
        else:
            collected = [*attrs, *(Attr(key, value) for key, value in kwargs.items())]
        return self._derive(self._sink.with_attrs(collected))

    def with_group(self, name: str) -> "Logger":
        return self._derive(self._sink.with_group(name))

    def close(self) -> None:
        """Close the sink graph once, flushing buffered records."""
        self._shutdown()

    def _derive(self, sink: SinkPort) -> "Logger":
        if sink is self._sink:
            return self
        return Logger(
            sink,
            clock=self._clock,
            include_call_site=self._include_call_site,
            diagnostic=self._diagnostic,
        )


def new(
    type_name: str,
    options: Mapping[str, Any] | str | bytes | None = None,
    *,
    callback: BuildCallback | None = None,
    registry: SinkRegistry | None = None,
    include_call_site: bool = True,
) -> Logger:
    """Build a sink of ``type_name`` from ``options`` and return a :class:`Logger` over it."""

    active = registry or REGISTRY
    sink = active.build(type_name, options, callback)
    return Logger(sink, include_call_site=include_call_site)


__all__ = [
    "BuildCallback",
    "FanoutBuilder",
    "Logger",
    "OptionsBuilder",
    "REGISTRY",
    "SinkBuilder",
    "SinkRegistry",
    "build_sink",
    "builder_from_config",
    "create_registry",
    "frame_call_site",
    "new",
    "register_builder",
    "registered_types",
]
