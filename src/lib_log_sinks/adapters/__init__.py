"""Concrete sinks and their supporting writers."""

from __future__ import annotations

from .console import ConsoleOptions, ConsoleSink
from .discard import DiscardOptions, DiscardSink
from .fanout import FanoutSink
from .file import FileOptions, FileSink
from .scrubber import RegexRedactor
from .structured import EventCollectorOptions, EventCollectorSink, translate_level

__all__ = [
    "ConsoleOptions",
    "ConsoleSink",
    "DiscardOptions",
    "DiscardSink",
    "EventCollectorOptions",
    "EventCollectorSink",
    "FanoutSink",
    "FileOptions",
    "FileSink",
    "RegexRedactor",
    "translate_level",
]
