"""Composable log sinks: console, file, fan-out, discard, and a batching HTTP forwarder.

Typical use builds a sink graph from configuration and logs through a
:class:`~lib_log_sinks.runtime.Logger`::

    logger = lib_log_sinks.new("fanout", {"sinks": [{"type": "console"}, {"type": "file", "options": {"path": "app.log"}}]})
    logger.info("started", extra={"port": 8080})
    logger.close()
"""

from __future__ import annotations

from .application.error_handling import default_error_handler
from .domain import Attr, LevelGate, LogEvent, LogLevel, group, level_name, parse_level
from .domain.errors import SinkError
from .runtime import Logger, build_sink, builder_from_config, new, register_builder, registered_types


def summary_info() -> str:
    """Return the metadata banner used by the CLI entry point.

    Examples
    --------
    >>> "version" in summary_info()
    True
    """
    from . import __init__conf__

    lines: list[str] = []

    def _capture(text: str) -> None:
        lines.append(text)

    __init__conf__.print_info(writer=_capture)
    return "".join(lines)


__all__ = [
    "Attr",
    "LevelGate",
    "LogEvent",
    "LogLevel",
    "Logger",
    "SinkError",
    "build_sink",
    "builder_from_config",
    "default_error_handler",
    "group",
    "level_name",
    "new",
    "parse_level",
    "register_builder",
    "registered_types",
    "summary_info",
]
