"""Sink that accepts nothing.

Useful as a placeholder in configuration and as a fan-out child that must
never widen the composite's enablement.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from lib_log_sinks.adapters._base import SinkOptions
from lib_log_sinks.domain.attrs import Attr
from lib_log_sinks.domain.events import LogEvent

DISCARD_SINK_TYPE = "discard"


@dataclass(slots=True)
class DiscardOptions(SinkOptions):
    sink_type: ClassVar[str] = DISCARD_SINK_TYPE


class DiscardSink:
    """Always disabled; ``handle`` is a no-op."""

    type_name = DISCARD_SINK_TYPE

    def __init__(self, options: DiscardOptions | None = None) -> None:
        self._options = options or DiscardOptions()

    @property
    def type(self) -> str:
        return self.type_name

    @property
    def options(self) -> DiscardOptions:
        return self._options

    def enabled(self, level: int) -> bool:
        return False

    def handle(self, event: LogEvent) -> None:
        return None

    def with_attrs(self, attrs: Iterable[Attr] | Mapping[str, Any]) -> "DiscardSink":
        return self

    def with_group(self, name: str) -> "DiscardSink":
        return self

    def child_sinks(self) -> list[Any]:
        return []

    def close(self) -> None:
        return None


__all__ = ["DISCARD_SINK_TYPE", "DiscardOptions", "DiscardSink"]
