"""Rich-powered console sink.

Purpose
-------
Write records to stdout or stderr either as coloured, human-friendly lines
(``pretty``) or as machine-readable ``json`` / ``plaintext`` lines.

Contents
--------
* :data:`_STYLE_MAP` - default level-to-style mapping.
* :class:`ConsoleOptions` - options accepted by the ``console`` sink type.
* :class:`ConsoleSink` - level-gated sink writing through a Rich console.

System Role
-----------
Primary human-facing sink. Colour handling is left to Rich, which drops styles
automatically when the target stream is not a terminal.
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, ClassVar

from rich.console import Console
from rich.text import Text

from lib_log_sinks.adapters._base import GATE_CONVERTERS, GatedSink, SinkOptions
from lib_log_sinks.adapters._formatting import build_record_payload, encode_json_line, format_fields, format_plaintext
from lib_log_sinks.application.ports.sink import ErrorHandler
from lib_log_sinks.config import parse_bool
from lib_log_sinks.domain.attrs import ReplaceAttr
from lib_log_sinks.domain.errors import BufferWriteError, FormatError, SinkError
from lib_log_sinks.domain.events import LogEvent
from lib_log_sinks.domain.gate import LevelGate
from lib_log_sinks.domain.levels import LogLevel

CONSOLE_SINK_TYPE = "console"

FORMAT_JSON = "json"
FORMAT_PLAINTEXT = "plaintext"
FORMAT_PRETTY = "pretty"
_FORMATS = (FORMAT_JSON, FORMAT_PLAINTEXT, FORMAT_PRETTY)

PRETTY_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"

_STYLE_MAP: Mapping[LogLevel, str] = {
    LogLevel.DEBUG: "dim",
    LogLevel.INFO: "cyan",
    LogLevel.WARNING: "yellow",
    LogLevel.ERROR: "red",
    LogLevel.CRITICAL: "bold red",
}

#: Default Rich styles keyed by the named level at or below a record's level.


def _parse_format(value: Any) -> str:
    text = str(value).strip().lower() or FORMAT_PRETTY
    if text not in _FORMATS:
        raise ValueError(f"{value}: invalid format for console sink")
    return text


@dataclass(slots=True)
class ConsoleOptions(SinkOptions):
    """Options for the ``console`` sink type."""

    sink_type: ClassVar[str] = CONSOLE_SINK_TYPE
    converters: ClassVar[Mapping[str, Callable[[Any], Any]]] = {
        **GATE_CONVERTERS,
        "format": _parse_format,
        "stderr": parse_bool,
        "force_color": parse_bool,
        "no_color": parse_bool,
    }

    format: str = FORMAT_PRETTY
    include_caller: bool = False
    level: int = LogLevel.INFO
    max_level: int | None = None
    stderr: bool = False
    force_color: bool = False
    no_color: bool = False
    replace_attr: ReplaceAttr | None = None
    error_handler: ErrorHandler | None = None


class ConsoleSink(GatedSink):
    """Render records through a :class:`rich.console.Console`."""

    type_name = CONSOLE_SINK_TYPE

    def __init__(self, options: ConsoleOptions | None = None, *, console: Console | None = None) -> None:
        """Configure the sink; ``console`` overrides the stream chosen by ``options.stderr``."""
        options = options or ConsoleOptions()
        options.format = _parse_format(options.format)
        super().__init__(
            options,
            gate=LevelGate(options.level, options.max_level),
            error_handler=options.error_handler,
        )
        if console is None:
            console = Console(
                file=sys.stderr if options.stderr else sys.stdout,
                force_terminal=True if options.force_color else None,
                no_color=options.no_color,
            )
        self._console = console

    @property
    def options(self) -> ConsoleOptions:
        return self._options  # type: ignore[return-value]

    @property
    def console(self) -> Console:
        return self._console

    def handle(self, event: LogEvent) -> None:
        options = self.options
        try:
            if options.format == FORMAT_PRETTY:
                self._print_pretty(event)
                return
            payload = build_record_payload(
                event,
                self._scope,
                include_caller=options.include_caller,
                replace_attr=options.replace_attr,
            )
            encoded = encode_json_line(payload) if options.format == FORMAT_JSON else format_plaintext(payload)
            self._write_line(encoded.decode("utf-8").rstrip("\n"))
        except SinkError as exc:
            self._report(exc, event)

    def close(self) -> None:
        self._console.file.flush()

    def _write_line(self, line: str | Text) -> None:
        try:
            if isinstance(line, Text):
                self._console.print(line, highlight=False, soft_wrap=True)
            else:
                self._console.out(line, highlight=False)
        except OSError as exc:
            raise BufferWriteError("failed to write console record") from exc

    def _print_pretty(self, event: LogEvent) -> None:
        self._write_line(self._format_pretty(event))

    def _format_pretty(self, event: LogEvent) -> Text:
        """Return the coloured line for ``event``: time, level, message, fields."""
        options = self.options
        named = LogLevel.floor(event.level)
        style = _STYLE_MAP.get(named, "")
        stamp = event.timestamp.astimezone().strftime(PRETTY_TIME_FORMAT)
        line = Text()
        line.append(stamp, style="dim")
        line.append(" ")
        line.append(f"{named.icon} {event.level_name:<8}", style=style)
        if options.include_caller and event.source is not None:
            line.append(f" {event.source.file}:{event.source.line}", style="dim")
        line.append(" ")
        line.append(event.message)
        try:
            fields = self._scope.apply(event.attrs, replace_attr=options.replace_attr)
        except Exception as exc:  # noqa: BLE001 - replace_attr is caller code
            raise FormatError("failed to resolve record attributes") from exc
        if fields:
            line.append(" ")
            line.append(format_fields(fields), style="dim")
        return line


__all__ = ["CONSOLE_SINK_TYPE", "ConsoleOptions", "ConsoleSink"]
