"""Ports for time and call-site capture."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, runtime_checkable

from lib_log_sinks.domain.events import Source


@runtime_checkable
class ClockPort(Protocol):
    """Provide the current timestamp."""

    def now(self) -> datetime: ...


@runtime_checkable
class CallSiteProvider(Protocol):
    """Return the call site ``depth`` frames above the caller, if known."""

    def __call__(self, depth: int) -> Source | None: ...


__all__ = ["CallSiteProvider", "ClockPort"]
