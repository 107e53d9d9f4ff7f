"""Sink port describing the capability set every destination implements.

Purpose
-------
Define the narrow protocol the producer and the fan-out composer depend on, so
console, file, discard, and forwarding sinks plug in interchangeably.

Contents
--------
* :class:`SinkPort` - gate check, record handling, clone-on-extend, close, and
  introspection.
* :class:`LevelGatedSink` - sinks exposing their shared
  :class:`~lib_log_sinks.domain.gate.LevelGate`.
* :data:`ErrorHandler` - signature of the pluggable error hook.

System Role
-----------
Clarifies the sink-facing boundary so adapters never leak implementation
details to the producer.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from lib_log_sinks.domain.attrs import Attr
from lib_log_sinks.domain.events import LogEvent
from lib_log_sinks.domain.gate import LevelGate

ErrorHandler = Callable[[Exception, LogEvent | None], Exception | None]


@runtime_checkable
class SinkPort(Protocol):
    """Destination for log records."""

    @property
    def type(self) -> str:
        """Registry type name of the sink."""

    @property
    def options(self) -> Any:
        """Options the sink was built from."""

    def enabled(self, level: int) -> bool:
        """Return whether a record at ``level`` would be handled."""

    def handle(self, event: LogEvent) -> None:
        """Format and emit ``event``; raises on synchronous failure."""

    def with_attrs(self, attrs: Iterable[Attr] | Mapping[str, Any]) -> "SinkPort":
        """Return a new sink whose records carry ``attrs``."""

    def with_group(self, name: str) -> "SinkPort":
        """Return a new sink nesting later attributes under ``name``."""

    def child_sinks(self) -> list["SinkPort"]:
        """Return the direct children (empty for leaf sinks)."""

    def close(self) -> None:
        """Flush buffered state and release resources."""


@runtime_checkable
class LevelGatedSink(SinkPort, Protocol):
    """Sink whose enablement is controlled by a shared level gate."""

    @property
    def level_gate(self) -> LevelGate: ...


__all__ = ["ErrorHandler", "LevelGatedSink", "SinkPort"]
