from __future__ import annotations

import json

from lib_log_sinks.adapters.console.rich_console import ConsoleOptions, ConsoleSink
from lib_log_sinks.adapters.scrubber import RegexRedactor
from lib_log_sinks.domain.attrs import Attr


def test_redactor_masks_matching_values() -> None:
    redactor = RegexRedactor(patterns={"password": ".+"})

    assert redactor((), Attr("password", "hunter2")).value == "***"
    assert redactor((), Attr("user", "ada")).value == "ada"


def test_redactor_prefers_dotted_group_keys() -> None:
    redactor = RegexRedactor(patterns={"auth.token": ".+"}, replacement="[redacted]")

    assert redactor(("auth",), Attr("token", "abc")).value == "[redacted]"
    assert redactor(("other",), Attr("token", "abc")).value == "abc"


def test_redactor_scrubs_nested_values() -> None:
    redactor = RegexRedactor(patterns={"secrets": "key"})

    scrubbed = redactor((), Attr("secrets", {"a": "key-1", "b": ["ok", "key-2"], "c": 3})).value

    assert scrubbed == {"a": "***", "b": ["ok", "***"], "c": 3}


def test_redactor_returns_same_attr_when_untouched() -> None:
    redactor = RegexRedactor(patterns={"token": "secret"})
    attr = Attr("token", "public")

    assert redactor((), attr) is attr


def test_redactor_plugs_into_sink_replace_hook(record_console, make_event) -> None:
    options = ConsoleOptions(format="json", replace_attr=RegexRedactor(patterns={"password": ".+"}))
    sink = ConsoleSink(options, console=record_console)

    sink.with_group("login").handle(make_event(attrs={"password": "hunter2", "user": "ada"}))

    payload = json.loads(record_console.export_text())
    assert payload["login"] == {"password": "***", "user": "ada"}
    assert payload["msg"] == "hello"
