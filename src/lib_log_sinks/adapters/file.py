"""File sink writing JSON lines to a size-rotated log file.

Purpose
-------
Persist records as one JSON document per line, optionally batching writes in
memory through :class:`~lib_log_sinks.adapters._writer.BufferedWriter`.

Contents
--------
* :func:`default_log_path` - ``<executable>.log`` in the working directory.
* :class:`FileOptions` - options accepted by the ``file`` sink type.
* :class:`FileSink` - level-gated sink owning the rotating writer.

System Role
-----------
Durable local sink. Clones share the writer, so records from every clone land
in the same file. ``close`` on any of them flushes the shared buffer and
releases the file handle; the next record from any clone reopens it.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar

from lib_log_sinks.adapters._base import GATE_CONVERTERS, GatedSink, SinkOptions, program_name
from lib_log_sinks.adapters._formatting import build_record_payload, encode_json_line
from lib_log_sinks.adapters._writer import BufferedWriter, ByteSink, RotatingFileWriter
from lib_log_sinks.application.ports.sink import ErrorHandler
from lib_log_sinks.config import parse_bool
from lib_log_sinks.domain.attrs import ReplaceAttr
from lib_log_sinks.domain.errors import BufferWriteError, OptionsValidationError, SinkError
from lib_log_sinks.domain.events import LogEvent
from lib_log_sinks.domain.gate import LevelGate
from lib_log_sinks.domain.levels import LogLevel

FILE_SINK_TYPE = "file"
DEFAULT_FILE_NAME = "app.log"
DEFAULT_DIR_MODE = 0o755
DEFAULT_FILE_MODE = 0o640
DEFAULT_MAX_SIZE_MB = 100


def _parse_mode(value: Any) -> int:
    """Accept ``0o640``, ``416``, or octal text such as ``"0640"``."""
    if isinstance(value, bool):
        raise ValueError(f"Invalid file mode: {value!r}")
    if isinstance(value, int):
        return value
    text = str(value).strip().lower().removeprefix("0o")
    return int(text, 8)


def _parse_count(value: Any) -> int:
    number = int(value)
    if number < 0:
        raise ValueError(f"Value must not be negative: {value!r}")
    return number


def default_log_path() -> Path:
    """Return ``./<executable>.log``, falling back to ``./app.log``."""

    executable = program_name()
    name = f"{executable}.log" if executable else DEFAULT_FILE_NAME
    return Path(".") / name


@dataclass(slots=True)
class FileOptions(SinkOptions):
    """Options for the ``file`` sink type; ``max_size`` is in megabytes, ``max_age`` in days."""

    sink_type: ClassVar[str] = FILE_SINK_TYPE
    converters: ClassVar[Mapping[str, Callable[[Any], Any]]] = {
        **GATE_CONVERTERS,
        "compress": parse_bool,
        "auto_chmod": parse_bool,
        "auto_create_parent": parse_bool,
        "dir_mode": _parse_mode,
        "file_mode": _parse_mode,
        "max_age": _parse_count,
        "max_count": _parse_count,
        "max_size": _parse_count,
    }

    path: str = ""
    buffer_size: int = 0
    compress: bool = False
    include_caller: bool = False
    level: int = LogLevel.INFO
    max_level: int | None = None
    max_age: int = 0
    max_count: int = 0
    max_size: int = DEFAULT_MAX_SIZE_MB
    auto_chmod: bool = True
    auto_create_parent: bool = True
    dir_mode: int = DEFAULT_DIR_MODE
    file_mode: int = DEFAULT_FILE_MODE
    replace_attr: ReplaceAttr | None = None
    error_handler: ErrorHandler | None = None

    def resolved_path(self) -> Path:
        """Return the absolute log path with ``~`` and ``$VAR`` expanded."""
        if not self.path.strip():
            return default_log_path().resolve()
        return Path(os.path.expandvars(os.path.expanduser(self.path.strip()))).resolve()


class FileSink(GatedSink):
    """Append JSON lines to a rotating file."""

    type_name = FILE_SINK_TYPE

    def __init__(self, options: FileOptions | None = None, *, writer: ByteSink | None = None) -> None:
        """Open the log file described by ``options``; ``writer`` replaces the rotating file."""
        options = options or FileOptions()
        if options.buffer_size < 0:
            raise OptionsValidationError("buffer_size must not be negative", sink_type=FILE_SINK_TYPE)
        super().__init__(
            options,
            gate=LevelGate(options.level, options.max_level),
            error_handler=options.error_handler,
        )
        if writer is None:
            path = options.resolved_path()
            options.path = str(path)
            writer = self._open_file(options, path)
        self._writer: ByteSink = BufferedWriter(writer, options.buffer_size) if options.buffer_size > 0 else writer

    @property
    def options(self) -> FileOptions:
        return self._options  # type: ignore[return-value]

    @staticmethod
    def _open_file(options: FileOptions, path: Path) -> RotatingFileWriter:
        parent = path.parent
        if not parent.exists() and not options.auto_create_parent:
            raise OptionsValidationError(
                f"log directory '{parent}' does not exist",
                sink_type=FILE_SINK_TYPE,
                log_file=str(path),
            )
        try:
            parent.mkdir(mode=options.dir_mode, parents=True, exist_ok=True)
            if path.exists() and options.auto_chmod:
                path.chmod(options.file_mode)
        except OSError as exc:
            raise OptionsValidationError(
                f"failed to prepare log file '{path}'",
                sink_type=FILE_SINK_TYPE,
                log_file=str(path),
            ) from exc
        return RotatingFileWriter(
            path,
            max_size=options.max_size,
            max_count=options.max_count,
            max_age=options.max_age,
            compress=options.compress,
            file_mode=options.file_mode,
            dir_mode=options.dir_mode,
            auto_create_parent=options.auto_create_parent,
        )

    def handle(self, event: LogEvent) -> None:
        options = self.options
        try:
            payload = build_record_payload(
                event,
                self._scope,
                include_caller=options.include_caller,
                replace_attr=options.replace_attr,
            )
            line = encode_json_line(payload)
            try:
                self._writer.write(line)
            except OSError as exc:
                raise BufferWriteError("failed to write record to log file", log_file=options.path) from exc
        except SinkError as exc:
            self._report(exc, event)

    def flush(self) -> None:
        self._writer.flush()

    def close(self) -> None:
        """Flush buffered records and close the file."""
        try:
            self._writer.close()
        except OSError as exc:
            raise BufferWriteError("failed to close log file", log_file=self.options.path) from exc


__all__ = ["FILE_SINK_TYPE", "FileOptions", "FileSink", "default_log_path"]
