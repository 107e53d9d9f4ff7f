from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import httpx
import pytest

from lib_log_sinks.adapters.console.rich_console import ConsoleSink
from lib_log_sinks.adapters.discard import DiscardSink
from lib_log_sinks.adapters.fanout import FanoutSink
from lib_log_sinks.adapters.file import FileOptions, FileSink
from lib_log_sinks.adapters.structured.hec import EventCollectorOptions, EventCollectorSink
from lib_log_sinks.domain.errors import (
    BuildError,
    FanoutError,
    InvalidParameterError,
    MarshalError,
    OptionsValidationError,
    SinkTypeExistsError,
    UnsupportedSinkTypeError,
)
from lib_log_sinks.domain.levels import LogLevel
from lib_log_sinks.runtime import OptionsBuilder, create_registry


@pytest.fixture
def registry():
    return create_registry()


def test_builtin_types_are_registered(registry) -> None:
    assert registry.types() == ["console", "discard", "fanout", "file", "sentinelone:hec"]


def test_type_names_are_case_insensitive(registry) -> None:
    sink = registry.build(" Discard ")

    assert isinstance(sink, DiscardSink)


def test_unknown_type_is_rejected(registry) -> None:
    with pytest.raises(UnsupportedSinkTypeError, match="syslog"):
        registry.builder_from_config("syslog", {})


def test_options_may_be_json_text(registry, tmp_path: Path) -> None:
    raw = json.dumps({"path": str(tmp_path / "app.log"), "level": "DEBUG"})

    builder = registry.builder_from_config("file", raw)

    assert builder.type == "file"
    assert builder.options_dict()["level"] == "DEBUG"


@pytest.mark.parametrize("raw", ["{not json", "[1, 2]"])
def test_malformed_options_raise_marshal_error(registry, raw: str) -> None:
    with pytest.raises(MarshalError):
        registry.builder_from_config("console", raw)


def test_unknown_option_is_rejected_at_parse_time(registry) -> None:
    with pytest.raises(OptionsValidationError, match="does not exist"):
        registry.builder_from_config("console", {"colour": "always"})


def test_build_callback_can_force_values(registry, tmp_path: Path) -> None:
    seen: list[str] = []

    def force_debug(type_name: str, options: Any) -> None:
        seen.append(type_name)
        options.level = LogLevel.DEBUG

    builder = registry.builder_from_config("file", {"path": str(tmp_path / "app.log")})
    sink = builder.build(force_debug)

    assert seen == ["file"]
    assert sink.enabled(LogLevel.DEBUG)
    assert builder.options_dict()["level"] == "INFO"
    sink.close()


def test_build_failures_are_wrapped(registry) -> None:
    with pytest.raises(BuildError) as excinfo:
        registry.build("sentinelone:hec", {"api_token": "t"})

    assert isinstance(excinfo.value.__cause__, OptionsValidationError)


def test_register_and_override_factories(registry) -> None:
    factory = OptionsBuilder.factory("quiet", FileOptions, lambda options: DiscardSink())

    registry.register("quiet", factory)
    assert "quiet" in registry.types()
    with pytest.raises(SinkTypeExistsError):
        registry.register("QUIET", factory)

    registry.register("quiet", OptionsBuilder.factory("quiet", FileOptions, lambda options: FanoutSink()), overwrite=True)
    assert isinstance(registry.build("quiet"), FanoutSink)

    registry.unregister("quiet")
    assert "quiet" not in registry.types()


@pytest.mark.parametrize("name, factory", [("", lambda raw: None), ("custom", None)])
def test_register_rejects_invalid_parameters(registry, name: str, factory: Any) -> None:
    with pytest.raises(InvalidParameterError):
        registry.register(name, factory)


def test_fanout_builds_children_through_registry(registry, tmp_path: Path) -> None:
    config = {
        "sinks": [
            {"type": "console", "options": {"format": "json", "level": "WARNING"}},
            {"type": "file", "options": {"path": str(tmp_path / "app.log")}},
            {"type": "discard"},
        ]
    }

    builder = registry.builder_from_config("fanout", config)
    sink = builder.build()

    assert [child["type"] for child in builder.options_dict()["sinks"]] == ["console", "file", "discard"]
    children = sink.child_sinks()
    assert isinstance(children[0], ConsoleSink)
    assert isinstance(children[1], FileSink)
    assert isinstance(children[2], DiscardSink)
    assert sink.options["sinks"][0]["options"]["level"] == "WARNING"
    sink.close()


def test_fanout_rejects_malformed_children(registry) -> None:
    with pytest.raises(OptionsValidationError):
        registry.builder_from_config("fanout", {"sinks": [{"options": {}}]})
    with pytest.raises(OptionsValidationError):
        registry.builder_from_config("fanout", {"children": []})


def test_fanout_build_failure_closes_built_children(registry, tmp_path: Path) -> None:
    closed: list[str] = []

    class _Tracked(DiscardSink):
        def close(self) -> None:
            closed.append("tracked")

    registry.register("tracked", OptionsBuilder.factory("tracked", FileOptions, lambda options: _Tracked()))
    config = {"sinks": [{"type": "tracked"}, {"type": "sentinelone:hec", "options": {}}]}

    with pytest.raises(BuildError) as excinfo:
        registry.build("fanout", config)

    assert closed == ["tracked"]
    assert isinstance(excinfo.value.__cause__, FanoutError)


def test_forwarder_can_be_built_with_environment_credentials(registry, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LOG_SINKS_HEC_API_TOKEN", "env-token")
    monkeypatch.setenv("LOG_SINKS_HEC_INGEST_HOSTNAME", "ingest.example.net")
    monkeypatch.setenv("LOG_SINKS_HEC_SCOPE", "42")
    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200)))

    registry.register(
        "hec-test",
        OptionsBuilder.factory(
            "hec-test",
            EventCollectorOptions,
            lambda options: EventCollectorSink(options, client=client),
        ),
    )
    sink = registry.build("hec-test", {"buffer_size": "64KB"})

    assert sink.options.buffer_size == 65536
    assert sink.options.to_dict()["api_token"] == "***"
    sink.close()


def test_file_and_discard_fanout_enablement_follows_file_gate(registry, tmp_path: Path) -> None:
    config = {
        "sinks": [
            {"type": "discard"},
            {"type": "file", "options": {"path": str(tmp_path / "app.log"), "level": "WARNING"}},
        ]
    }
    sink = registry.build("fanout", config)

    assert not sink.enabled(LogLevel.INFO)
    assert sink.enabled(LogLevel.WARNING)
    sink.close()
