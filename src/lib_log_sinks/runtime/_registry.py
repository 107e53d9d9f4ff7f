"""Registry mapping sink type names to builder factories.

Purpose
-------
Construct sinks from JSON-compatible configuration through one uniform
contract, and let applications add or override sink types.

Contents
--------
* :class:`SinkBuilder` - protocol of a parsed, not yet built, sink.
* :class:`OptionsBuilder` - builder for leaf sinks backed by an options dataclass.
* :class:`FanoutBuilder` - builder composing child builders.
* :class:`SinkRegistry` and the module-level :data:`REGISTRY` with the
  built-in ``console``, ``discard``, ``fanout``, ``file`` and
  ``sentinelone:hec`` types.

System Role
-----------
Edge of the runtime layer. The configuration parsing that decides *which*
sinks to build stays with the embedding application; it calls
:func:`builder_from_config` with the type name and raw options.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import threading
from collections.abc import Callable, Mapping, Sequence
from typing import Any, Protocol, runtime_checkable

from lib_log_sinks.adapters._base import SinkOptions
from lib_log_sinks.adapters.console.rich_console import CONSOLE_SINK_TYPE, ConsoleOptions, ConsoleSink
from lib_log_sinks.adapters.discard import DISCARD_SINK_TYPE, DiscardOptions, DiscardSink
from lib_log_sinks.adapters.fanout import FANOUT_SINK_TYPE, FanoutSink
from lib_log_sinks.adapters.file import FILE_SINK_TYPE, FileOptions, FileSink
from lib_log_sinks.adapters.structured.hec import HEC_SINK_TYPE, EventCollectorOptions, EventCollectorSink
from lib_log_sinks.application.ports.sink import SinkPort
from lib_log_sinks.domain.errors import (
    BuildError,
    FanoutError,
    InvalidParameterError,
    MarshalError,
    OptionsValidationError,
    SinkError,
    SinkTypeExistsError,
    UnsupportedSinkTypeError,
)

LOGGER = logging.getLogger(__name__)

BuildCallback = Callable[[str, Any], None]
"""Invoked with the sink type name and its mutable options right before construction."""

RawOptions = Mapping[str, Any] | str | bytes | None


@runtime_checkable
class SinkBuilder(Protocol):
    """Parsed sink configuration that can be turned into a sink."""

    @property
    def type(self) -> str: ...

    def options_dict(self) -> dict[str, Any]: ...

    def build(self, callback: BuildCallback | None = None) -> SinkPort: ...


SinkFactory = Callable[[Mapping[str, Any]], SinkBuilder]


def normalise_type(type_name: str) -> str:
    return str(type_name).strip().lower()


def _decode_options(type_name: str, raw: RawOptions) -> Mapping[str, Any]:
    if raw is None:
        return {}
    if isinstance(raw, (str, bytes, bytearray)):
        try:
            raw = json.loads(raw or "{}")
        except ValueError as exc:
            raise MarshalError("failed to unmarshal sink options", sink_type=type_name) from exc
    if not isinstance(raw, Mapping):
        raise MarshalError("sink options must be a mapping", sink_type=type_name)
    return raw


class OptionsBuilder:
    """Builder for a leaf sink constructed from an options dataclass."""

    def __init__(self, type_name: str, options: SinkOptions, construct: Callable[[Any], SinkPort]) -> None:
        self._type = type_name
        self._options = options
        self._construct = construct

    @classmethod
    def factory(
        cls,
        type_name: str,
        options_type: type[SinkOptions],
        construct: Callable[[Any], SinkPort],
    ) -> SinkFactory:
        """Return a factory parsing raw mappings into ``options_type``."""

        def make(raw: Mapping[str, Any]) -> "OptionsBuilder":
            return cls(type_name, options_type.from_mapping(raw), construct)

        return make

    @property
    def type(self) -> str:
        return self._type

    @property
    def options(self) -> SinkOptions:
        return self._options

    def options_dict(self) -> dict[str, Any]:
        return self._options.to_dict()

    def build(self, callback: BuildCallback | None = None) -> SinkPort:
        """Construct the sink from a copy of the parsed options.

        ``callback`` receives that copy and may change it, so an embedding
        application can force values regardless of configuration.
        """

        options = dataclasses.replace(self._options)  # type: ignore[type-var]
        if callback is not None:
            callback(self._type, options)
        try:
            return self._construct(options)
        except SinkError as exc:
            raise BuildError(f"failed to build {self._type!r} sink: {exc}", sink_type=self._type) from exc


class FanoutBuilder:
    """Builder composing the builders of its children."""

    def __init__(self, children: Sequence[SinkBuilder]) -> None:
        self._children = tuple(children)

    @property
    def type(self) -> str:
        return FANOUT_SINK_TYPE

    @property
    def children(self) -> tuple[SinkBuilder, ...]:
        return self._children

    def options_dict(self) -> dict[str, Any]:
        return {"sinks": [{"type": child.type, "options": child.options_dict()} for child in self._children]}

    def build(self, callback: BuildCallback | None = None) -> SinkPort:
        """Build every child with ``callback``; any failure closes the built ones and raises."""

        built: list[SinkPort] = []
        errors: list[BaseException] = []
        for child in self._children:
            try:
                built.append(child.build(callback))
            except SinkError as exc:
                errors.append(exc)
        if errors:
            for sink in built:
                try:
                    sink.close()
                except Exception:  # noqa: BLE001
                    LOGGER.warning("Failed to close %r after a sibling failed to build", sink, exc_info=True)
            raise BuildError("failed to build one or more fanout children", sink_type=FANOUT_SINK_TYPE) from FanoutError(
                "child build failures", errors
            )
        return FanoutSink(built)


class SinkRegistry:
    """Thread-safe mapping of normalised type names to factories."""

    def __init__(self) -> None:
        self._factories: dict[str, SinkFactory] = {}
        self._lock = threading.RLock()

    def register(self, type_name: str, factory: SinkFactory, *, overwrite: bool = False) -> None:
        """Register ``factory`` for ``type_name``.

        Raises
        ------
        InvalidParameterError
            When ``type_name`` is blank or ``factory`` is ``None``.
        SinkTypeExistsError
            When the type is already registered and ``overwrite`` is false.
        """

        key = normalise_type(type_name)
        if not key:
            raise InvalidParameterError("sink type name must not be empty")
        if factory is None:
            raise InvalidParameterError("sink factory must not be None", sink_type=key)
        with self._lock:
            if key in self._factories and not overwrite:
                raise SinkTypeExistsError(f"sink type {key!r} is already registered", sink_type=key)
            self._factories[key] = factory

    def unregister(self, type_name: str) -> None:
        with self._lock:
            self._factories.pop(normalise_type(type_name), None)

    def types(self) -> list[str]:
        with self._lock:
            return sorted(self._factories)

    def builder_from_config(self, type_name: str, options: RawOptions = None) -> SinkBuilder:
        """Return the builder for ``type_name`` parsed from ``options``."""

        key = normalise_type(type_name)
        with self._lock:
            factory = self._factories.get(key)
        if factory is None:
            raise UnsupportedSinkTypeError(f"unsupported sink type {type_name!r}", sink_type=key)
        return factory(_decode_options(key, options))

    def build(self, type_name: str, options: RawOptions = None, callback: BuildCallback | None = None) -> SinkPort:
        return self.builder_from_config(type_name, options).build(callback)

    def fanout_factory(self, raw: Mapping[str, Any]) -> FanoutBuilder:
        """Parse ``{"sinks": [{"type": ..., "options": {...}}, ...]}`` with this registry."""

        unknown = sorted(set(raw) - {"sinks"})
        if unknown:
            raise OptionsValidationError(
                f"option {unknown[0]!r} does not exist for sink type {FANOUT_SINK_TYPE!r}",
                sink_type=FANOUT_SINK_TYPE,
                option=unknown[0],
            )
        entries = raw.get("sinks") or []
        if not isinstance(entries, Sequence) or isinstance(entries, (str, bytes)):
            raise OptionsValidationError("'sinks' must be a list", sink_type=FANOUT_SINK_TYPE, option="sinks")
        children: list[SinkBuilder] = []
        for index, entry in enumerate(entries):
            if not isinstance(entry, Mapping) or not str(entry.get("type", "")).strip():
                raise OptionsValidationError(
                    f"sinks[{index}] must be a mapping with a 'type'",
                    sink_type=FANOUT_SINK_TYPE,
                    option="sinks",
                )
            children.append(self.builder_from_config(entry["type"], entry.get("options")))
        return FanoutBuilder(children)


def _register_builtins(registry: SinkRegistry) -> None:
    registry.register(CONSOLE_SINK_TYPE, OptionsBuilder.factory(CONSOLE_SINK_TYPE, ConsoleOptions, ConsoleSink))
    registry.register(DISCARD_SINK_TYPE, OptionsBuilder.factory(DISCARD_SINK_TYPE, DiscardOptions, DiscardSink))
    registry.register(FILE_SINK_TYPE, OptionsBuilder.factory(FILE_SINK_TYPE, FileOptions, FileSink))
    registry.register(
        HEC_SINK_TYPE,
        OptionsBuilder.factory(HEC_SINK_TYPE, EventCollectorOptions, EventCollectorSink),
    )
    registry.register(FANOUT_SINK_TYPE, registry.fanout_factory)


def create_registry() -> SinkRegistry:
    """Return a new registry holding only the built-in sink types."""

    registry = SinkRegistry()
    _register_builtins(registry)
    return registry


REGISTRY = create_registry()


def register_builder(type_name: str, factory: SinkFactory, *, overwrite: bool = False) -> None:
    REGISTRY.register(type_name, factory, overwrite=overwrite)


def builder_from_config(type_name: str, options: RawOptions = None) -> SinkBuilder:
    return REGISTRY.builder_from_config(type_name, options)


def build_sink(type_name: str, options: RawOptions = None, callback: BuildCallback | None = None) -> SinkPort:
    return REGISTRY.build(type_name, options, callback)


def registered_types() -> list[str]:
    return REGISTRY.types()


__all__ = [
    "BuildCallback",
    "FanoutBuilder",
    "OptionsBuilder",
    "REGISTRY",
    "SinkBuilder",
    "SinkFactory",
    "SinkRegistry",
    "build_sink",
    "builder_from_config",
    "create_registry",
    "register_builder",
    "registered_types",
]
