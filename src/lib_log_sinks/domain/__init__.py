"""Domain entities and value objects used by the sinks."""

from __future__ import annotations

from .attrs import Attr, AttrGroup, AttrScope, ReplaceAttr, attrs_from_mapping, group
from .events import LogEvent, Source
from .gate import LevelGate
from .levels import LogLevel, level_name, parse_level

__all__ = [
    "Attr",
    "AttrGroup",
    "AttrScope",
    "LevelGate",
    "LogEvent",
    "LogLevel",
    "ReplaceAttr",
    "Source",
    "attrs_from_mapping",
    "group",
    "level_name",
    "parse_level",
]
