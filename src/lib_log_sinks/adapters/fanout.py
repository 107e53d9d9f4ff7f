"""Composite sink broadcasting each record to several children.

Purpose
-------
Deliver one record to every enabled child while isolating failures, so a
broken destination never prevents delivery to its siblings.

Contents
--------
* :class:`FanoutSink` - the composer.
* :func:`describe_sink` - ``{"type", "options"}`` description used for
  introspection.

System Role
-----------
Usually the root of a configured sink graph; extension with ``with_attrs`` /
``with_group`` produces a new composer over extended children.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from typing import Any

from lib_log_sinks.application.ports.sink import SinkPort
from lib_log_sinks.domain.attrs import Attr, coerce_attrs
from lib_log_sinks.domain.errors import FanoutError
from lib_log_sinks.domain.events import LogEvent

LOGGER = logging.getLogger(__name__)

FANOUT_SINK_TYPE = "fanout"


def describe_sink(sink: Any) -> dict[str, Any]:
    """Return the registry type and options of ``sink`` as plain data."""

    sink_type = getattr(sink, "type", None)
    if not isinstance(sink_type, str):
        return {
            "type": type(sink).__qualname__,
            "options": {"unknown": "sink does not expose type and options"},
        }
    options = getattr(sink, "options", None)
    to_dict = getattr(options, "to_dict", None)
    if callable(to_dict):
        options = to_dict()
    return {"type": sink_type, "options": options}


class FanoutSink:
    """Send every record to each enabled child, in order.

    Examples
    --------
    >>> from lib_log_sinks.adapters.discard import DiscardSink
    >>> fanout = FanoutSink([DiscardSink()])
    >>> fanout.enabled(50)
    False
    >>> fanout.options
    {'sinks': [{'type': 'discard', 'options': {}}]}
    """

    type_name = FANOUT_SINK_TYPE

    def __init__(self, sinks: Sequence[SinkPort] = ()) -> None:
        self._sinks: tuple[SinkPort, ...] = tuple(sinks)

    @property
    def type(self) -> str:
        return self.type_name

    @property
    def options(self) -> dict[str, Any]:
        return {"sinks": [describe_sink(sink) for sink in self._sinks]}

    def child_sinks(self) -> list[SinkPort]:
        return list(self._sinks)

    def enabled(self, level: int) -> bool:
        return any(sink.enabled(level) for sink in self._sinks)

    def handle(self, event: LogEvent) -> None:
        """Hand each enabled child its own copy of ``event``.

        Raises
        ------
        FanoutError
            When at least one child raised; ``errors`` holds every failure.
        """

        errors: list[BaseException] = []
        for sink in self._sinks:
            if not sink.enabled(event.level):
                continue
            try:
                sink.handle(event.clone())
            except Exception as exc:  # noqa: BLE001 - one child must not stop the others
                LOGGER.debug("Fan-out child %r failed", sink, exc_info=True)
                errors.append(exc)
        if errors:
            raise FanoutError("one or more sinks failed to handle the record", errors)

    def with_attrs(self, attrs: Iterable[Attr] | Mapping[str, Any]) -> "FanoutSink":
        collected = coerce_attrs(attrs)
        if not collected:
            return self
        return FanoutSink([sink.with_attrs(collected) for sink in self._sinks])

    def with_group(self, name: str) -> "FanoutSink":
        if not name:
            return self
        return FanoutSink([sink.with_group(name) for sink in self._sinks])

    def close(self) -> None:
        """Close every child; failures are collected into one :class:`FanoutError`."""

        errors: list[BaseException] = []
        for sink in self._sinks:
            close = getattr(sink, "close", None)
            if close is None:
                continue
            try:
                close()
            except Exception as exc:  # noqa: BLE001
                errors.append(exc)
        if errors:
            raise FanoutError("one or more sinks failed to close", errors)

    def __repr__(self) -> str:
        return f"FanoutSink({list(self._sinks)!r})"


__all__ = ["FANOUT_SINK_TYPE", "FanoutSink", "describe_sink"]
