from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from lib_log_sinks.domain.attrs import Attr
from lib_log_sinks.domain.events import LogEvent, Source


def _event(**overrides: object) -> LogEvent:
    payload: dict[str, object] = {
        "timestamp": datetime(2025, 9, 23, 12, 0, tzinfo=timezone.utc),
        "level": 20,
        "message": "hello",
        "attrs": (Attr("foo", "bar"),),
    }
    payload.update(overrides)
    return LogEvent(**payload)  # type: ignore[arg-type]


def test_event_requires_timezone_aware_timestamp() -> None:
    with pytest.raises(ValueError, match="timezone-aware"):
        _event(timestamp=datetime(2025, 9, 23, 12, 0))


def test_event_normalises_timestamp_to_utc() -> None:
    local = datetime(2025, 9, 23, 14, 0, tzinfo=timezone(timedelta(hours=2)))

    event = _event(timestamp=local)

    assert event.timestamp == datetime(2025, 9, 23, 12, 0, tzinfo=timezone.utc)
    assert event.timestamp.tzinfo is timezone.utc


def test_event_accepts_mapping_attrs() -> None:
    event = _event(attrs={"user": {"id": 7}})

    assert event.to_dict()["attrs"] == {"user": {"id": 7}}


def test_to_dict_contains_builtins_and_source() -> None:
    event = _event(level=22, source=Source("app.py", 12, "main"))

    data = event.to_dict()

    assert data == {
        "time": "2025-09-23T12:00:00+00:00",
        "level": "INFO+2",
        "msg": "hello",
        "source": {"file": "app.py", "line": 12, "function": "main"},
        "attrs": {"foo": "bar"},
    }


def test_to_dict_omits_empty_attrs() -> None:
    assert "attrs" not in _event(attrs=()).to_dict()


def test_to_json_is_sorted() -> None:
    payload = json.loads(_event().to_json())

    assert list(payload) == sorted(payload)


def test_add_attrs_returns_new_event() -> None:
    event = _event()

    extended = event.add_attrs(Attr("a", 1), {"b": 2})

    assert event.attrs == (Attr("foo", "bar"),)
    assert extended.attrs == (Attr("foo", "bar"), Attr("a", 1), Attr("b", 2))
    assert event.add_attrs() is event


def test_clone_is_equal_but_independent() -> None:
    event = _event()

    copy = event.clone()

    assert copy == event
    assert copy is not event
    assert copy.add_attrs(Attr("x", 1)).attrs != event.attrs


def test_replace_changes_fields() -> None:
    event = _event()

    changed = event.replace(message="bye", level=40)

    assert changed.message == "bye"
    assert changed.level_name == "ERROR"
    assert event.message == "hello"
