"""Numeric severity scale shared by every sink.

Purpose
-------
Give log records an ordered, open-ended integer severity while keeping the five
familiar names (aligned with :mod:`logging`) available for configuration and
rendering.

Contents
--------
* :class:`LogLevel` - named points on the scale with presentation helpers.
* :func:`level_name` - render any integer as ``NAME`` or ``NAME+offset``.
* :func:`parse_level` - accept names, offset names, or integers from options.
* ``_ICON_TABLE`` constant mapping named levels to console glyphs.

System Role
-----------
Sinks compare plain integers through :class:`~lib_log_sinks.domain.gate.LevelGate`;
this module only names the points on that scale.
"""

from __future__ import annotations

import logging
import re
from enum import IntEnum


class LogLevel(IntEnum):
    """Named severities; arbitrary integers in between remain valid levels."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    @property
    def severity(self) -> str:
        """Return the lowercase severity name."""

        return self.name.lower()

    @property
    def icon(self) -> str:
        """Return the unicode icon visualizing the level on colored consoles."""

        return _ICON_TABLE[self]

    def to_python_level(self) -> int:
        """Return the :mod:`logging` constant matching this level."""

        return getattr(logging, self.name)

    @classmethod
    def from_name(cls, name: str) -> "LogLevel":
        normalized = name.strip().upper()
        if normalized == "WARN":
            normalized = "WARNING"
        try:
            return cls[normalized]
        except KeyError as exc:
            raise ValueError(f"Unknown log level: {name!r}") from exc

    @classmethod
    def floor(cls, level: int) -> "LogLevel":
        """Return the highest named level not above ``level`` (``DEBUG`` below the scale)."""
        named = [member for member in cls if member <= level]
        return named[-1] if named else cls.DEBUG


_ICON_TABLE = {
    LogLevel.DEBUG: "\U0001f41e",
    LogLevel.INFO: "ℹ",
    LogLevel.WARNING: "⚠",
    LogLevel.ERROR: "✖",
    LogLevel.CRITICAL: "☠",
}
# Console glyphs displayed by the Rich sink per named level.

_OFFSET_NAME = re.compile(r"^(?P<name>[A-Za-z]+)\s*(?P<offset>[+-]\s*\d+)?$")


def level_name(level: int) -> str:
    """Render ``level`` relative to the nearest named level at or below it.

    Examples
    --------
    >>> level_name(20)
    'INFO'
    >>> level_name(22)
    'INFO+2'
    >>> level_name(6)
    'DEBUG-4'
    """

    base = LogLevel.floor(level)
    offset = int(level) - int(base)
    if offset == 0:
        return base.name
    return f"{base.name}{offset:+d}"


def parse_level(value: int | str | LogLevel) -> int:
    """Coerce a configured level into its integer value.

    Accepts :class:`LogLevel` members, integers, numeric strings, and names with
    an optional signed offset (``"debug-4"``, ``"INFO+2"``).

    Examples
    --------
    >>> parse_level("warn")
    30
    >>> parse_level("DEBUG-4")
    6
    >>> parse_level(" 25 ")
    25
    """

    if isinstance(value, bool):
        raise ValueError(f"Unknown log level: {value!r}")
    if isinstance(value, int):
        return int(value)
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    match = _OFFSET_NAME.match(text)
    if match is None:
        raise ValueError(f"Unknown log level: {value!r}")
    base = LogLevel.from_name(match.group("name"))
    offset = match.group("offset")
    return int(base) + (int(offset.replace(" ", "")) if offset else 0)


__all__ = ["LogLevel", "level_name", "parse_level"]
