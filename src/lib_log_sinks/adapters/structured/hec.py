"""Batching forwarder for the SentinelOne HTTP event collector.

Purpose
-------
Serialize records as newline-delimited JSON events, accumulate them in a shared
buffer, and POST gzip-compressed batches to
``https://<ingest_hostname>/services/collector/event``.

Contents
--------
* :func:`translate_level` - default numeric level to collector severity mapping.
* :class:`EventCollectorOptions` - options accepted by ``sentinelone:hec``.
* :class:`EventCollectorSink` - level-gated sink that cuts and delivers batches.

System Role
-----------
Remote structured backend. Formatting runs outside the buffer lock; the lock
only guards the append/cut. Batches cut during ``handle`` are delivered on a
detached daemon thread unless ``disable_async`` is set, while ``close`` always
delivers the remainder synchronously. Delivery errors are never re-buffered;
asynchronous ones are only visible through the error handler.

Alignment Notes
---------------
Each line carries ``time`` (epoch milliseconds, after ``replace_attr`` saw the
record timestamp under the empty group path), ``event`` (scoped attributes
plus ``message``, ``severity``, optional caller, and ``dataSource``), ``host``,
``source``, ``sourcetype``, and ``fields`` when configured.
"""

from __future__ import annotations

import contextvars
import gzip
import logging
import socket
import threading
import zlib
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, ClassVar

import httpx

from lib_log_sinks.adapters._base import GATE_CONVERTERS, GatedSink, SinkOptions, program_name
from lib_log_sinks.adapters._formatting import encode_json_line, put_builtin
from lib_log_sinks.application.ports.sink import ErrorHandler
from lib_log_sinks.config import env_option, parse_bool, parse_duration
from lib_log_sinks.domain.attrs import ReplaceAttr
from lib_log_sinks.domain.errors import (
    CompressionError,
    FormatError,
    OptionsValidationError,
    RequestError,
    ResponseError,
    SinkError,
    TransportError,
)
from lib_log_sinks.domain.events import TIME_KEY, LogEvent
from lib_log_sinks.domain.gate import LevelGate
from lib_log_sinks.domain.levels import LogLevel

LOGGER = logging.getLogger(__name__)

HEC_SINK_TYPE = "sentinelone:hec"
INGEST_URL_TEMPLATE = "https://{host}/services/collector/event"
SCOPE_HEADER = "S1-Scope"

DEFAULT_CALLER_KEY = "caller"
DEFAULT_DATASOURCE_CATEGORY = "applog"
DEFAULT_DATASOURCE_NAME = "unknown"
DEFAULT_DATASOURCE_VENDOR = "Unknown"
DEFAULT_HOST = "unknown"
DEFAULT_SOURCE = "unknown"
DEFAULT_SOURCE_TYPE = "gron"
DEFAULT_SEND_TIMEOUT = 10.0

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
_MILLISECOND = timedelta(milliseconds=1)

LevelTranslator = Callable[[int], str]


def translate_level(level: int) -> str:
    """Map a numeric level onto the collector's severity names.

    Examples
    --------
    >>> [translate_level(value) for value in (51, 40, 30, 20, 10, 6, 2)]
    ['critical', 'error', 'warning', 'info', 'debug', 'trace', 'finest']
    """

    if level > LogLevel.ERROR:
        return "critical"
    if level > LogLevel.WARNING:
        return "error"
    if level > LogLevel.INFO:
        return "warning"
    if level > LogLevel.DEBUG:
        return "info"
    if level > LogLevel.DEBUG - 4:
        return "debug"
    if level > LogLevel.DEBUG - 8:
        return "trace"
    return "finest"


def _parse_timeout(value: Any) -> float | None:
    seconds = parse_duration(value)
    return None if seconds < 0 else seconds


def _parse_fields(value: Any) -> dict[str, Any]:
    if not isinstance(value, Mapping):
        raise ValueError("fields must be a mapping")
    return dict(value)


@dataclass(slots=True)
class EventCollectorOptions(SinkOptions):
    """Options for the ``sentinelone:hec`` sink type.

    ``send_timeout`` is in seconds: ``None`` (or negative) selects the 10 second
    default and ``0`` disables the timeout. ``buffer_size`` of ``0`` sends each
    record with the next ``handle`` or on ``close``.
    """

    sink_type: ClassVar[str] = HEC_SINK_TYPE
    converters: ClassVar[Mapping[str, Callable[[Any], Any]]] = {
        **GATE_CONVERTERS,
        "compress": parse_bool,
        "disable_async": parse_bool,
        "send_timeout": _parse_timeout,
        "fields": _parse_fields,
    }

    api_token: str = ""
    ingest_hostname: str = ""
    scope: str = ""
    buffer_size: int = 0
    caller_key: str = DEFAULT_CALLER_KEY
    compress: bool = True
    datasource_category: str = DEFAULT_DATASOURCE_CATEGORY
    datasource_name: str = ""
    datasource_vendor: str = DEFAULT_DATASOURCE_VENDOR
    disable_async: bool = False
    fields: dict[str, Any] = field(default_factory=dict)
    host: str = ""
    include_caller: bool = False
    level: int = LogLevel.INFO
    max_level: int | None = None
    send_timeout: float | None = None
    source: str = ""
    source_type: str = DEFAULT_SOURCE_TYPE
    level_translator: LevelTranslator | None = None
    replace_attr: ReplaceAttr | None = None
    error_handler: ErrorHandler | None = None

    def apply_defaults(self) -> None:
        """Fill unset values from ``LOG_SINKS_HEC_*`` variables and the local host."""
        self.api_token = self.api_token or env_option("HEC_API_TOKEN", "") or ""
        self.ingest_hostname = self.ingest_hostname or env_option("HEC_INGEST_HOSTNAME", "") or ""
        self.scope = self.scope or env_option("HEC_SCOPE", "") or ""
        program = program_name()
        self.caller_key = self.caller_key or DEFAULT_CALLER_KEY
        self.datasource_category = self.datasource_category or DEFAULT_DATASOURCE_CATEGORY
        self.datasource_name = self.datasource_name or program or DEFAULT_DATASOURCE_NAME
        self.datasource_vendor = self.datasource_vendor or DEFAULT_DATASOURCE_VENDOR
        self.source = self.source or program or DEFAULT_SOURCE
        self.source_type = self.source_type or DEFAULT_SOURCE_TYPE
        if not self.host:
            try:
                self.host = socket.gethostname() or DEFAULT_HOST
            except OSError:
                self.host = DEFAULT_HOST
        if self.send_timeout is None or self.send_timeout < 0:
            self.send_timeout = DEFAULT_SEND_TIMEOUT

    def validate(self) -> None:
        for name in ("api_token", "ingest_hostname", "scope"):
            if not str(getattr(self, name)).strip():
                raise OptionsValidationError(f"{name} is a required setting", sink_type=HEC_SINK_TYPE, option=name)
        if self.buffer_size < 0:
            raise OptionsValidationError("buffer_size must not be negative", sink_type=HEC_SINK_TYPE)

    def to_dict(self) -> dict[str, Any]:
        data = SinkOptions.to_dict(self)
        if data.get("api_token"):
            data["api_token"] = "***"
        data["fields"] = dict(self.fields)
        return data


class _PendingBatch:
    """Shared byte buffer; clones of one sink hold the same instance."""

    __slots__ = ("_buffer", "_lock")

    def __init__(self) -> None:
        self._buffer = bytearray()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)

    def append(self, line: bytes, threshold: int) -> bytes | None:
        """Append ``line``; return the previous contents when they form a full batch.

        A batch is cut only when the buffer already holds data and either
        batching is off (``threshold == 0``) or ``line`` would overflow it.
        """
        with self._lock:
            batch: bytes | None = None
            if self._buffer and (threshold == 0 or len(self._buffer) + len(line) > threshold):
                batch = bytes(self._buffer)
                self._buffer.clear()
            self._buffer += line
            return batch

    def drain(self) -> bytes:
        with self._lock:
            batch = bytes(self._buffer)
            self._buffer.clear()
            return batch


class _ClientHandle:
    """HTTP client shared by clones of one sink.

    An injected client belongs to the caller and is never closed here. A client
    the sink created itself is closed by :meth:`release` once no delivery is
    using it; the next delivery then creates a fresh one.
    """

    __slots__ = ("_client", "_owned", "_lock", "_active", "_release_pending")

    def __init__(self, client: httpx.Client | None) -> None:
        self._client = client
        self._owned = client is None
        self._lock = threading.Lock()
        self._active = 0
        self._release_pending = False

    def acquire(self) -> httpx.Client:
        with self._lock:
            if self._client is None:
                self._client = httpx.Client()
            self._active += 1
            return self._client

    def done(self) -> None:
        with self._lock:
            self._active -= 1
            if self._release_pending and not self._active:
                self._close_locked()

    def release(self) -> None:
        with self._lock:
            if not self._owned:
                return
            if self._active:
                self._release_pending = True
            else:
                self._close_locked()

    def _close_locked(self) -> None:
        self._release_pending = False
        client, self._client = self._client, None
        if client is not None:
            client.close()


class EventCollectorSink(GatedSink):
    """Forward records to the SentinelOne HTTP event collector in batches."""

    type_name = HEC_SINK_TYPE

    def __init__(self, options: EventCollectorOptions, *, client: httpx.Client | None = None) -> None:
        """Validate ``options`` and prepare the shared buffer and HTTP client.

        Raises
        ------
        OptionsValidationError
            When ``api_token``, ``ingest_hostname`` or ``scope`` is missing from
            both the options and the environment.
        """
        options.apply_defaults()
        options.validate()
        super().__init__(
            options,
            gate=LevelGate(options.level, options.max_level),
            error_handler=options.error_handler,
        )
        self._url = INGEST_URL_TEMPLATE.format(host=options.ingest_hostname.strip())
        self._timeout: float | None = options.send_timeout or None
        self._http = _ClientHandle(client)
        self._batch = _PendingBatch()
        self._translate: LevelTranslator = options.level_translator or translate_level

    @property
    def options(self) -> EventCollectorOptions:
        return self._options  # type: ignore[return-value]

    @property
    def url(self) -> str:
        return self._url

    @property
    def pending_bytes(self) -> int:
        return len(self._batch)

    def format_event(self, event: LogEvent) -> bytes:
        """Return the NDJSON line (including ``\\n``) sent for ``event``."""

        options = self.options
        record: dict[str, Any] = {}
        try:
            put_builtin(record, TIME_KEY, event.timestamp, options.replace_attr)
            payload = self._scope.apply(event.attrs, replace_attr=options.replace_attr)
            payload["message"] = event.message
            payload["severity"] = self._translate(event.level)
        except Exception as exc:  # noqa: BLE001 - hooks are caller code
            raise FormatError("failed to format record for the event collector") from exc
        stamp = record.get(TIME_KEY)
        if isinstance(stamp, datetime):
            if stamp.tzinfo is None:
                stamp = stamp.replace(tzinfo=timezone.utc)
            record[TIME_KEY] = (stamp - _EPOCH) // _MILLISECOND
        if options.include_caller and event.source is not None:
            payload[options.caller_key] = event.source.to_dict()
        payload["dataSource"] = {
            "category": options.datasource_category,
            "name": options.datasource_name,
            "vendor": options.datasource_vendor,
        }
        record["event"] = payload
        record["host"] = options.host
        record["source"] = options.source
        record["sourcetype"] = options.source_type
        if options.fields:
            record["fields"] = dict(options.fields)
        return encode_json_line(record)

    def handle(self, event: LogEvent) -> None:
        try:
            line = self.format_event(event)
        except SinkError as exc:
            self._report(exc, event)
            return
        batch = self._batch.append(line, self.options.buffer_size)
        if batch is None:
            return
        LOGGER.debug("Cut batch of %d bytes for %s", len(batch), self._url)
        if self.options.disable_async:
            self._deliver(batch, event)
            return
        context = contextvars.copy_context()
        worker = threading.Thread(
            target=context.run,
            args=(self._deliver_detached, batch, event),
            name="lib-log-sinks-hec-delivery",
            daemon=True,
        )
        worker.start()

    def close(self) -> None:
        """Deliver whatever is buffered synchronously, then release an owned HTTP client.

        A client passed to the constructor stays open. A client the sink
        created is closed after in-flight deliveries finish and is recreated
        if any clone sends again.
        """
        batch = self._batch.drain()
        try:
            if batch:
                self._deliver(batch, None)
        finally:
            self._http.release()

    def send(self, payload: bytes) -> None:
        """POST ``payload`` to the collector once, without retries.

        Raises
        ------
        CompressionError
            The payload could not be gzip-compressed.
        RequestError
            The request could not be constructed.
        TransportError
            The request could not be executed (connection, timeout, ...).
        ResponseError
            The collector answered with a status of 400 or above.
        """

        options = self.options
        headers = {
            "Authorization": f"Bearer {options.api_token}",
            "Content-Type": "application/json",
            SCOPE_HEADER: options.scope,
        }
        body = payload
        if options.compress:
            try:
                body = gzip.compress(payload)
            except (OSError, ValueError, zlib.error) as exc:
                raise CompressionError("failed to compress payload", size=len(payload)) from exc
            headers["Content-Encoding"] = "gzip"
        client = self._http.acquire()
        try:
            response = self._post(client, body, headers)
        finally:
            self._http.done()
        try:
            if response.status_code >= 400:
                text = response.text
                status = f"{response.status_code} {response.reason_phrase}".strip()
                raise ResponseError(
                    f"log endpoint returned non-OK status: {status}, body: {text}",
                    status_code=response.status_code,
                    status=status,
                    body=text,
                )
        finally:
            response.close()
        LOGGER.debug("Delivered %d bytes to %s", len(payload), self._url)

    def _post(self, client: httpx.Client, body: bytes, headers: dict[str, str]) -> httpx.Response:
        try:
            request = client.build_request("POST", self._url, content=body, headers=headers, timeout=self._timeout)
        except (httpx.InvalidURL, ValueError, TypeError) as exc:
            raise RequestError("failed to create HTTP request", url=self._url) from exc
        try:
            return client.send(request)
        except httpx.HTTPError as exc:
            raise TransportError("failed to execute HTTP request", url=self._url) from exc

    def _deliver(self, batch: bytes, event: LogEvent | None) -> None:
        try:
            self.send(batch)
        except SinkError as exc:
            self._report(exc, event)

    def _deliver_detached(self, batch: bytes, event: LogEvent | None) -> None:
        try:
            self._deliver(batch, event)
        except Exception:  # noqa: BLE001 - no caller left to receive it
            LOGGER.error("Asynchronous delivery to %s failed", self._url, exc_info=True)


__all__ = [
    "EventCollectorOptions",
    "EventCollectorSink",
    "HEC_SINK_TYPE",
    "LevelTranslator",
    "translate_level",
]
