"""Utilities that turn log events into record payloads and encoded lines.

Why
---
The console, file, and forwarding sinks all render the same built-in keys and
resolve the sink's attribute scope the same way. Building the payload in one
place keeps the ``replace_attr`` hook and group nesting consistent across them.

Contents
--------
* :func:`build_record_payload` - ordered mapping of built-ins plus scoped attributes.
* :func:`encode_json_line` - one JSON document terminated by ``\\n``.
* :func:`format_plaintext` - ``key=value`` line with dotted group keys.
* :func:`format_fields` - trailing ``key=value`` pairs for the pretty console.

System Role
-----------
Internal to the adapters package; sinks call these helpers outside any shared
lock so only the final append is serialized.
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from datetime import date, datetime
from typing import Any

from lib_log_sinks.domain.attrs import Attr, AttrScope, ReplaceAttr
from lib_log_sinks.domain.errors import FormatError, MarshalError
from lib_log_sinks.domain.events import LEVEL_KEY, MESSAGE_KEY, SOURCE_KEY, TIME_KEY, LogEvent


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=str)
    if isinstance(value, Attr):
        return {value.key: value.value}
    return str(value)


def put_builtin(payload: dict[str, Any], key: str, value: Any, replace_attr: ReplaceAttr | None) -> None:
    """Store a top-level built-in under ``key`` after ``replace_attr`` saw it.

    A hook returning ``None`` or an empty key drops the entry.
    """
    if replace_attr is None:
        payload[key] = value
        return
    replaced = replace_attr((), Attr(key, value))
    if replaced is not None and replaced.key:
        payload[replaced.key] = replaced.value


def build_record_payload(
    event: LogEvent,
    scope: AttrScope,
    *,
    include_caller: bool = False,
    replace_attr: ReplaceAttr | None = None,
) -> dict[str, Any]:
    """Return built-in keys followed by ``event`` attributes resolved through ``scope``.

    Built-ins (``time``, ``level``, ``msg``, and ``source`` when ``include_caller``
    is set and the event carries one) pass through ``replace_attr`` with an empty
    group path.
    """

    payload: dict[str, Any] = {}
    try:
        put_builtin(payload, TIME_KEY, event.timestamp, replace_attr)
        put_builtin(payload, LEVEL_KEY, event.level_name, replace_attr)
        put_builtin(payload, MESSAGE_KEY, event.message, replace_attr)
        if include_caller and event.source is not None:
            put_builtin(payload, SOURCE_KEY, event.source.to_dict(), replace_attr)
        payload.update(scope.apply(event.attrs, replace_attr=replace_attr))
    except Exception as exc:  # noqa: BLE001 - replace_attr is caller code
        raise FormatError("failed to resolve record attributes") from exc
    return payload


def encode_json_line(payload: Mapping[str, Any]) -> bytes:
    """Encode ``payload`` as compact JSON followed by a newline.

    Examples
    --------
    >>> encode_json_line({"msg": "hi", "n": 1})
    b'{"msg":"hi","n":1}\\n'
    """

    try:
        text = json.dumps(payload, default=_json_default, separators=(",", ":"), ensure_ascii=False)
    except (TypeError, ValueError) as exc:
        raise MarshalError("failed to encode record as JSON") from exc
    return (text + "\n").encode("utf-8")


def _flatten(mapping: Mapping[str, Any], prefix: str = "") -> list[tuple[str, Any]]:
    pairs: list[tuple[str, Any]] = []
    for key, value in mapping.items():
        name = f"{prefix}{key}"
        if isinstance(value, Mapping):
            pairs.extend(_flatten(value, name + "."))
        else:
            pairs.append((name, value))
    return pairs


def _text_value(value: Any) -> str:
    if isinstance(value, datetime):
        text = value.isoformat()
    elif isinstance(value, str):
        text = value
    elif isinstance(value, (list, tuple)):
        text = json.dumps(value, default=_json_default, ensure_ascii=False)
    else:
        text = str(value)
    if text == "" or any(char.isspace() or char in '"=' for char in text):
        return json.dumps(text, ensure_ascii=False)
    return text


def format_fields(mapping: Mapping[str, Any]) -> str:
    """Render ``mapping`` as space separated ``key=value`` pairs.

    Examples
    --------
    >>> format_fields({"a": 1, "req": {"id": "x y"}})
    'a=1 req.id="x y"'
    """

    return " ".join(f"{key}={_text_value(value)}" for key, value in _flatten(mapping))


def format_plaintext(payload: Mapping[str, Any]) -> bytes:
    """Render the whole payload as one ``key=value`` line."""

    return (format_fields(payload) + "\n").encode("utf-8")


__all__ = ["build_record_payload", "encode_json_line", "format_fields", "format_plaintext", "put_builtin"]
