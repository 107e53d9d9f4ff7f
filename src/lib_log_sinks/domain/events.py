"""Domain event describing a structured log record.

Purpose
-------
Provide an immutable representation of one log record travelling from the
producer to the sinks.

Contents
--------
* :class:`Source` - call-site triple attached when the producer captured it.
* :class:`LogEvent` dataclass with copy-on-write helpers and :meth:`LogEvent.to_dict`.
* Key constants used by :meth:`LogEvent.to_dict` and the default error handler.
* Utility function ``_ensure_aware`` for timestamp validation.

System Role
-----------
Sits in the domain layer. Sinks never mutate an event; the fan-out composer
hands every child its own :meth:`LogEvent.clone`.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any

from .attrs import Attr, coerce_attrs, resolve_attrs
from .levels import level_name

TIME_KEY = "time"
LEVEL_KEY = "level"
MESSAGE_KEY = "msg"
SOURCE_KEY = "source"
ATTRS_KEY = "attrs"
FILE_KEY = "file"
LINE_KEY = "line"
FUNCTION_KEY = "function"


def _ensure_aware(ts: datetime) -> datetime:
    """Validate that ``ts`` is timezone-aware and normalise to UTC."""
    if ts.tzinfo is None or ts.tzinfo.utcoffset(ts) is None:
        raise ValueError("timestamp must be timezone-aware")
    return ts.astimezone(timezone.utc)


@dataclass(slots=True, frozen=True)
class Source:
    """Call site that produced a record."""

    file: str
    line: int
    function: str

    def to_dict(self) -> dict[str, Any]:
        return {FILE_KEY: self.file, LINE_KEY: self.line, FUNCTION_KEY: self.function}


@dataclass(slots=True, frozen=True)
class LogEvent:
    """Immutable log record transported through the sinks.

    Attributes
    ----------
    timestamp:
        Time of the record in timezone-aware UTC.
    level:
        Integer severity; see :mod:`lib_log_sinks.domain.levels`.
    message:
        Rendered message passed by the caller; may be empty.
    attrs:
        Ordered attributes attached by the caller.
    source:
        Optional call site captured by the producer.
    """

    timestamp: datetime
    level: int
    message: str = ""
    attrs: tuple[Attr, ...] = field(default_factory=tuple)
    source: Source | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "timestamp", _ensure_aware(self.timestamp))
        object.__setattr__(self, "level", int(self.level))
        object.__setattr__(self, "attrs", coerce_attrs(self.attrs))

    @property
    def level_name(self) -> str:
        return level_name(self.level)

    def add_attrs(self, *attrs: Attr | Iterable[Attr] | Mapping[str, Any]) -> "LogEvent":
        """Return a copy carrying ``attrs`` after the existing attributes."""

        collected: list[Attr] = []
        for item in attrs:
            if isinstance(item, Attr):
                collected.append(item)
            else:
                collected.extend(coerce_attrs(item))
        if not collected:
            return self
        return replace(self, attrs=self.attrs + tuple(collected))

    def clone(self) -> "LogEvent":
        """Return an independent, attribute-identical copy."""

        return replace(self)

    def to_dict(self) -> dict[str, Any]:
        """Return the generic keyed mapping used by diagnostics.

        Examples
        --------
        >>> ts = datetime(2025, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        >>> LogEvent(ts, 20, "hi", (Attr("k", "v"),)).to_dict()
        {'time': '2025-01-02T03:04:05+00:00', 'level': 'INFO', 'msg': 'hi', 'attrs': {'k': 'v'}}
        """

        data: dict[str, Any] = {
            TIME_KEY: self.timestamp.isoformat(),
            LEVEL_KEY: self.level_name,
            MESSAGE_KEY: self.message,
        }
        if self.source is not None:
            data[SOURCE_KEY] = self.source.to_dict()
        attrs = resolve_attrs(self.attrs)
        if attrs:
            data[ATTRS_KEY] = attrs
        return data

    def to_json(self) -> str:
        """Serialize :meth:`to_dict` with sorted keys for deterministic output."""

        return json.dumps(self.to_dict(), sort_keys=True, default=str)

    def replace(self, **changes: Any) -> "LogEvent":
        """Return a copied event with ``changes`` applied."""

        return replace(self, **changes)


__all__ = [
    "ATTRS_KEY",
    "FILE_KEY",
    "FUNCTION_KEY",
    "LEVEL_KEY",
    "LINE_KEY",
    "LogEvent",
    "MESSAGE_KEY",
    "SOURCE_KEY",
    "Source",
    "TIME_KEY",
]
