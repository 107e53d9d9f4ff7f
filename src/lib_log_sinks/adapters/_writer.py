"""Byte writers backing the file and console sinks.

Purpose
-------
Provide the mutex-serialized :class:`BufferedWriter` and the size-rotating
:class:`RotatingFileWriter` it usually wraps.

Contents
--------
* :class:`ByteSink` - minimal write/flush/close protocol.
* :class:`BufferedWriter` - fixed-size buffer flushed before a record would
  overflow it; one ``write`` is never split across flushes.
* :class:`RotatingFileWriter` - append-only file with size-based rotation,
  backup pruning by count and age, and optional gzip of rotated files.

System Role
-----------
Sinks format a whole record first and hand it to these writers with a single
``write`` call, so record boundaries survive concurrent producers.
"""

from __future__ import annotations

import gzip
import logging
import os
import shutil
import threading
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol, runtime_checkable

from lib_log_sinks.domain.errors import BufferWriteError

LOGGER = logging.getLogger(__name__)

_MEGABYTE = 1024 * 1024
_BACKUP_TIME_FORMAT = "%Y-%m-%dT%H-%M-%S.%f"


@runtime_checkable
class ByteSink(Protocol):
    def write(self, data: bytes) -> int: ...

    def flush(self) -> None: ...

    def close(self) -> None: ...


class BufferedWriter:
    """Buffer whole records in memory and pass them on in chunks.

    Examples
    --------
    >>> import io
    >>> raw = io.BytesIO()
    >>> writer = BufferedWriter(raw, size=8)
    >>> writer.write(b"abcd")
    4
    >>> raw.getvalue()
    b''
    >>> writer.write(b"efghij")
    6
    >>> raw.getvalue()
    b'abcd'
    >>> writer.flush()
    >>> raw.getvalue()
    b'abcdefghij'
    """

    def __init__(self, underlying: ByteSink, size: int) -> None:
        if size <= 0:
            raise ValueError("buffer size must be positive")
        self._underlying = underlying
        self._size = size
        self._buffer = bytearray()
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        return self._size

    def buffered(self) -> int:
        """Return the number of bytes waiting for the next flush."""
        with self._lock:
            return len(self._buffer)

    def write(self, data: bytes) -> int:
        with self._lock:
            try:
                if self._buffer and len(self._buffer) + len(data) > self._size:
                    self._drain()
                if len(data) > self._size:
                    self._underlying.write(data)
                else:
                    self._buffer += data
            except OSError as exc:
                raise BufferWriteError("failed to write buffered record", size=len(data)) from exc
            return len(data)

    def flush(self) -> None:
        with self._lock:
            try:
                self._drain()
                self._underlying.flush()
            except OSError as exc:
                raise BufferWriteError("failed to flush buffered writer") from exc

    def close(self) -> None:
        """Flush pending bytes, then close the underlying writer.

        The writer stays usable: later writes buffer again and reach the
        underlying writer on the next flush or close, which lets clones of one
        sink close independently.
        """
        with self._lock:
            try:
                self._drain()
                self._underlying.flush()
            except OSError as exc:
                raise BufferWriteError("failed to flush buffered writer on close") from exc
            finally:
                self._underlying.close()

    def _drain(self) -> None:
        if self._buffer:
            self._underlying.write(bytes(self._buffer))
            self._buffer.clear()


class RotatingFileWriter:
    """Append to ``path`` and rotate it once it would grow past ``max_size`` MB.

    Rotated files are renamed to ``<stem>-<UTC timestamp><suffix>`` next to the
    active file. ``max_count`` backups are kept (0 keeps all), backups older than
    ``max_age`` days are removed (0 disables), and ``compress`` gzips them.
    """

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        max_size: int = 100,
        max_count: int = 0,
        max_age: int = 0,
        compress: bool = False,
        file_mode: int = 0o640,
        dir_mode: int = 0o755,
        auto_create_parent: bool = True,
    ) -> None:
        self._path = Path(path)
        self._max_bytes = max(0, max_size) * _MEGABYTE
        self._max_count = max(0, max_count)
        self._max_age = max(0, max_age)
        self._compress = compress
        self._file_mode = file_mode
        self._dir_mode = dir_mode
        self._auto_create_parent = auto_create_parent
        self._lock = threading.Lock()
        self._fd: int | None = None
        self._written = 0

    @property
    def path(self) -> Path:
        return self._path

    def write(self, data: bytes) -> int:
        with self._lock:
            fd = self._fd if self._fd is not None else self._open()
            if self._max_bytes and self._written and self._written + len(data) > self._max_bytes:
                fd = self._rotate(fd)
            view = memoryview(data)
            while view:
                count = os.write(fd, view)
                view = view[count:]
            self._written += len(data)
            return len(data)

    def flush(self) -> None:
        with self._lock:
            if self._fd is not None:
                os.fsync(self._fd)

    def close(self) -> None:
        with self._lock:
            if self._fd is not None:
                os.close(self._fd)
                self._fd = None

    def _open(self) -> int:
        parent = self._path.parent
        if not parent.exists():
            if not self._auto_create_parent:
                raise FileNotFoundError(f"log directory does not exist: {parent}")
            parent.mkdir(mode=self._dir_mode, parents=True, exist_ok=True)
        fd = os.open(self._path, os.O_WRONLY | os.O_APPEND | os.O_CREAT, self._file_mode)
        self._fd = fd
        self._written = os.fstat(fd).st_size
        return fd

    def _rotate(self, fd: int) -> int:
        """Close ``fd``, move the active file aside, and return the new descriptor."""
        os.close(fd)
        self._fd = None
        stamp = datetime.now(timezone.utc).strftime(_BACKUP_TIME_FORMAT)[:-3]
        backup = self._path.with_name(f"{self._path.stem}-{stamp}{self._path.suffix}")
        os.replace(self._path, backup)
        LOGGER.debug("Rotated %s to %s", self._path, backup)
        if self._compress:
            self._gzip(backup)
        fd = self._open()
        self._prune()
        return fd

    @staticmethod
    def _gzip(backup: Path) -> None:
        target = backup.with_name(backup.name + ".gz")
        with backup.open("rb") as source, gzip.open(target, "wb") as sink:
            shutil.copyfileobj(source, sink)
        backup.unlink()

    def _backups(self) -> list[Path]:
        prefix = f"{self._path.stem}-"
        suffixes = (self._path.suffix, self._path.suffix + ".gz")
        found = [
            candidate
            for candidate in self._path.parent.iterdir()
            if candidate.name.startswith(prefix) and candidate.name.endswith(suffixes) and candidate != self._path
        ]
        return sorted(found, key=lambda item: item.name, reverse=True)

    def _prune(self) -> None:
        backups = self._backups()
        doomed: list[Path] = []
        if self._max_count:
            doomed.extend(backups[self._max_count :])
            backups = backups[: self._max_count]
        if self._max_age:
            cutoff = (datetime.now(timezone.utc) - timedelta(days=self._max_age)).timestamp()
            doomed.extend(item for item in backups if item.stat().st_mtime < cutoff)
        for item in doomed:
            try:
                item.unlink()
            except OSError:
                LOGGER.warning("Could not remove old log backup %s", item, exc_info=True)


__all__ = ["BufferedWriter", "ByteSink", "RotatingFileWriter"]
