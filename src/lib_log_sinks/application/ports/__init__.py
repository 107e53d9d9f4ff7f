"""Protocols separating the application layer from concrete adapters."""

from __future__ import annotations

from .sink import ErrorHandler, LevelGatedSink, SinkPort
from .time import CallSiteProvider, ClockPort

__all__ = ["CallSiteProvider", "ClockPort", "ErrorHandler", "LevelGatedSink", "SinkPort"]
