"""Console sinks."""

from __future__ import annotations

from .rich_console import ConsoleOptions, ConsoleSink

__all__ = ["ConsoleOptions", "ConsoleSink"]
